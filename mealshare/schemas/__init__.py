from mealshare.schemas.common import PaginatedResponse, ErrorResponse
from mealshare.schemas.listing import (
    AddressIn, ListingCreate, ListingUpdate, ListingPublic, ListingDetail,
    ExactAddressOut, DuplicateAddressGroup,
)
from mealshare.schemas.booking import Booking, BookingCreate, BookingCancel
from mealshare.schemas.audit import AuditEntry
