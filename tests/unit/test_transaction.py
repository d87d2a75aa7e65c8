"""Tests for the atomic() transaction helper."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from mealshare.core.errors import SoldOut, StoreUnavailable
from mealshare.db.transaction import atomic


@pytest.mark.unit
def test_commits_on_success():
    db = MagicMock()

    with atomic(db):
        db.add("row")

    db.commit.assert_called_once()
    db.rollback.assert_not_called()


@pytest.mark.unit
def test_business_error_rolls_back_and_propagates():
    db = MagicMock()

    with pytest.raises(SoldOut):
        with atomic(db):
            raise SoldOut()

    db.rollback.assert_called_once()
    db.commit.assert_not_called()


@pytest.mark.unit
def test_operational_error_becomes_store_unavailable():
    db = MagicMock()

    with pytest.raises(StoreUnavailable):
        with atomic(db):
            raise OperationalError("UPDATE listings", {}, Exception("server closed the connection"))

    db.rollback.assert_called_once()
    db.commit.assert_not_called()


@pytest.mark.unit
def test_failed_commit_rolls_back():
    db = MagicMock()
    db.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))

    with pytest.raises(StoreUnavailable):
        with atomic(db):
            pass

    db.rollback.assert_called_once()


@pytest.mark.unit
def test_invalidated_connection_becomes_store_unavailable():
    db = MagicMock()

    with pytest.raises(StoreUnavailable):
        with atomic(db):
            raise DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)


@pytest.mark.unit
def test_integrity_error_is_not_masked():
    db = MagicMock()

    with pytest.raises(IntegrityError):
        with atomic(db):
            raise IntegrityError("INSERT INTO bookings", {}, Exception("unique violation"))

    db.rollback.assert_called_once()


@pytest.mark.unit
def test_interrupt_rolls_back():
    db = MagicMock()

    with pytest.raises(KeyboardInterrupt):
        with atomic(db):
            raise KeyboardInterrupt()

    db.rollback.assert_called_once()
    db.commit.assert_not_called()
