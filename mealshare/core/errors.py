"""Error taxonomy for the reservation and disclosure engine.

Every failure is per-operation and recoverable: business refusals are shown
to the end user as-is, ``StoreUnavailable`` may be retried by the caller.
"""

from typing import Optional


class MealshareError(Exception):
    """Base exception. Carries the HTTP status and machine-readable code."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFound(MealshareError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class Unauthorized(MealshareError):
    """Requester is not entitled to the resource or action."""

    status_code = 403
    code = "unauthorized"
    default_message = "Not allowed"


class SoldOut(MealshareError):
    status_code = 409
    code = "sold_out"
    default_message = "No portions left for this meal"


class DuplicateReservation(MealshareError):
    status_code = 409
    code = "duplicate_reservation"
    default_message = "You already hold a reservation for this meal"


class ListingExpired(MealshareError):
    status_code = 409
    code = "listing_expired"
    default_message = "The pickup window for this meal has passed"


class ListingClosed(MealshareError):
    status_code = 409
    code = "listing_closed"
    default_message = "This meal is no longer offered"


class GraceExpired(MealshareError):
    status_code = 409
    code = "grace_expired"
    default_message = "The free cancellation period has ended"


class EditWindowClosed(MealshareError):
    status_code = 409
    code = "edit_window_closed"
    default_message = "Listings can only be edited shortly after publishing"


class InvalidTransition(MealshareError):
    status_code = 409
    code = "invalid_transition"
    default_message = "Booking cannot move to the requested state"


class GeocodingFailed(MealshareError):
    status_code = 502
    code = "geocoding_failed"
    default_message = "Address could not be located"


class StoreUnavailable(MealshareError):
    """Transient storage failure. Nothing was written; safe to retry."""

    status_code = 503
    code = "store_unavailable"
    default_message = "Storage temporarily unavailable, please retry"


class InvalidSchedule(MealshareError):
    status_code = 422
    code = "invalid_schedule"
    default_message = "Pickup window must end after it starts"
