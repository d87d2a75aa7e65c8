"""Booking lifecycle: the only place that decides which status changes are legal."""

import enum

from mealshare.core.errors import InvalidTransition


class BookingStatus(str, enum.Enum):
    NONE = "none"  # no booking record yet; never persisted
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class BookingEvent(str, enum.Enum):
    RESERVE = "reserve"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    HOST_CANCEL = "host_cancel"
    COMPLETE = "complete"
    MARK_NO_SHOW = "mark_no_show"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
TERMINAL_STATUSES = (BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW)

_TRANSITIONS = {
    (BookingStatus.NONE, BookingEvent.RESERVE): BookingStatus.PENDING,
    (BookingStatus.PENDING, BookingEvent.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, BookingEvent.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.PENDING, BookingEvent.HOST_CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.HOST_CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.COMPLETE): BookingStatus.COMPLETED,
    (BookingStatus.CONFIRMED, BookingEvent.MARK_NO_SHOW): BookingStatus.NO_SHOW,
}


def transition(current, event: BookingEvent) -> BookingStatus:
    """Return the status reached by applying ``event``; raise InvalidTransition if illegal."""
    current = BookingStatus(current)
    try:
        return _TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransition(
            f"Cannot {event.value.replace('_', ' ')} a booking that is {current.value}"
        ) from None


def is_active(status) -> bool:
    return BookingStatus(status) in ACTIVE_STATUSES
