import logging
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from mealshare.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session):
    """
    Run the enclosed block as one transaction.

    Commits on normal exit and rolls back on any exception, so a failed or
    interrupted operation never leaves a partial write behind. Connectivity
    failures are surfaced as ``StoreUnavailable``.
    """
    try:
        yield db
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.exception("Store unavailable, transaction rolled back.")
        raise StoreUnavailable() from exc
    except DBAPIError as exc:
        db.rollback()
        if exc.connection_invalidated:
            logger.exception("Connection lost, transaction rolled back.")
            raise StoreUnavailable() from exc
        raise
    except BaseException:
        db.rollback()
        raise
