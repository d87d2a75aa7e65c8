from datetime import datetime, timedelta

from mealshare.core.config import settings
from mealshare.utils.clock import ensure_utc


def can_edit(listing, now: datetime, window_seconds: int = None) -> bool:
    """True while ``now`` is at most the edit window past the listing's creation."""
    if window_seconds is None:
        window_seconds = settings.EDIT_WINDOW_SECONDS
    elapsed = ensure_utc(now) - ensure_utc(listing.created_at)
    return elapsed <= timedelta(seconds=window_seconds)
