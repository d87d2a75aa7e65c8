"""Tests for exact-address disclosure."""

import uuid
from datetime import timedelta

import pytest

from mealshare.core.errors import NotFound, Unauthorized
from mealshare.services import disclosure, reservations


@pytest.mark.integration
def test_host_always_sees_own_address(db, make_listing, host_id):
    listing = make_listing()

    assert disclosure.can_reveal_exact_address(db, listing.id, host_id)
    address = disclosure.get_exact_address(db, listing.id, host_id)
    assert address.street == "Main Street 1"
    assert address.postal_code == "4051"
    assert address.lat == listing.real_lat


@pytest.mark.integration
def test_guest_without_booking_is_denied(db, make_listing, guest_id):
    listing = make_listing()

    assert not disclosure.can_reveal_exact_address(db, listing.id, guest_id)
    with pytest.raises(Unauthorized):
        disclosure.get_exact_address(db, listing.id, guest_id)


@pytest.mark.integration
def test_anonymous_viewer_is_denied(db, make_listing):
    listing = make_listing()

    assert not disclosure.can_reveal_exact_address(db, listing.id, None)


@pytest.mark.integration
def test_pending_booking_is_not_enough(db, make_listing, guest_id, now):
    listing = make_listing()
    reservations.reserve(db, listing.id, guest_id, now=now)

    assert not disclosure.can_reveal_exact_address(db, listing.id, guest_id)


@pytest.mark.integration
def test_confirmed_booking_reveals_address(db, make_listing, host_id, guest_id, now):
    listing = make_listing()
    booking = reservations.reserve(db, listing.id, guest_id, now=now)
    reservations.confirm(db, booking.id, host_id, now=now)

    assert disclosure.can_reveal_exact_address(db, listing.id, guest_id)
    assert disclosure.get_exact_address(db, listing.id, guest_id).city == "Basel"


@pytest.mark.integration
def test_cancellation_revokes_disclosure_immediately(db, make_listing, host_id, guest_id, now):
    listing = make_listing()
    booking = reservations.reserve(db, listing.id, guest_id, now=now)
    reservations.confirm(db, booking.id, host_id, now=now)
    assert disclosure.can_reveal_exact_address(db, listing.id, guest_id)

    reservations.cancel(db, booking.id, guest_id, now=now + timedelta(minutes=3))

    assert not disclosure.can_reveal_exact_address(db, listing.id, guest_id)
    # Host keeps access regardless of booking state
    assert disclosure.can_reveal_exact_address(db, listing.id, host_id)


@pytest.mark.integration
def test_completed_booking_no_longer_reveals(db, make_listing, host_id, guest_id, now):
    listing = make_listing()
    booking = reservations.reserve(db, listing.id, guest_id, now=now)
    reservations.confirm(db, booking.id, host_id, now=now)
    reservations.complete(db, booking.id, host_id, now=now + timedelta(hours=7))

    assert not disclosure.can_reveal_exact_address(db, listing.id, guest_id)


@pytest.mark.integration
def test_confirmed_booking_on_other_listing_does_not_leak(db, make_listing, host_id, guest_id, now):
    booked = make_listing()
    other = make_listing(street="Spalenberg 12")
    booking = reservations.reserve(db, booked.id, guest_id, now=now)
    reservations.confirm(db, booking.id, host_id, now=now)

    assert disclosure.can_reveal_exact_address(db, booked.id, guest_id)
    assert not disclosure.can_reveal_exact_address(db, other.id, guest_id)


@pytest.mark.integration
def test_unknown_listing(db):
    with pytest.raises(NotFound):
        disclosure.can_reveal_exact_address(db, uuid.uuid4(), uuid.uuid4())
