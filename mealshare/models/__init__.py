from mealshare.models.listing import Listing
from mealshare.models.booking import Booking
from mealshare.models.audit import AuditEntry
