"""Tests for the admin booking list."""

from datetime import datetime, timezone

import pytest

from vbs.application.list_bookings import ListBookingsHandler
from vbs.application.requests import ListBookingsRequest
from vbs.domain.exceptions import AccessDeniedError, UnauthenticatedError
from vbs.domain.model.booking import Booking, BookingItem, BookingStatus
from vbs.domain.model.user import User
from vbs.domain.model.value_objects import (
    Caller,
    GuestIdentity,
    ItemType,
    Money,
    Quantity,
    UserRole,
)
from tests.fakes import InMemoryBookingStore

ADMIN = Caller("admin-1", UserRole.ADMIN)


def _booking(day, price, status=BookingStatus.CONFIRMED, reference=None, created_hour=9, **owner):
    booking = Booking.create(
        booking_date=datetime(2026, 7, day, 10, 0, tzinfo=timezone.utc),
        items=[BookingItem(ItemType.PACKAGE, "Day Pass", Quantity(1), Money.of(price), package_id="pkg-1")],
        **owner,
    )
    booking.status = status
    booking.booking_reference = reference
    booking.created_at = datetime(2026, 6, 1, created_hour, 0, tzinfo=timezone.utc)
    return booking


def _setup():
    store = InMemoryBookingStore(
        users=[
            User("user-1", "alice@example.com", name="Alice Archer"),
            User("admin-1", "ops@example.com", role=UserRole.ADMIN),
        ]
    )
    store.seed_booking(_booking(10, "100", reference="ABC12345", created_hour=9, user_id="user-1"))
    store.seed_booking(
        _booking(12, "250", reference="XYZ98765", created_hour=11, guest=GuestIdentity("Bob Baker", "bob@example.net"))
    )
    store.seed_booking(
        _booking(20, "50", status=BookingStatus.PENDING, created_hour=10, guest=GuestIdentity("Carol", "carol@example.org"))
    )
    store.seed_booking(
        _booking(25, "75", status=BookingStatus.CANCELLED, reference="CAN00001", created_hour=8, user_id="user-1")
    )
    return store, ListBookingsHandler(store)


def _list(handler, **kwargs):
    return handler.handle(ListBookingsRequest(**kwargs), ADMIN)


class TestListBookings:

    def test_newest_first_by_default(self):
        _, handler = _setup()

        result = _list(handler)

        assert [b.final_amount for b in result.bookings] == ["GBP 250.00", "GBP 50.00", "GBP 100.00", "GBP 75.00"]
        assert result.total == 4
        assert result.total_pages == 1

    def test_search_by_reference(self):
        _, handler = _setup()
        result = _list(handler, search="xyz98")
        assert [b.booking_reference for b in result.bookings] == ["XYZ98765"]

    def test_search_by_guest_name_and_email(self):
        _, handler = _setup()
        assert [b.owner for b in _list(handler, search="baker").bookings] == ["bob@example.net"]
        assert [b.owner for b in _list(handler, search="CAROL@").bookings] == ["carol@example.org"]

    def test_search_by_account_name_and_email(self):
        _, handler = _setup()
        by_name = _list(handler, search="archer")
        by_email = _list(handler, search="alice@example")
        assert {b.booking_reference for b in by_name.bookings} == {"ABC12345", "CAN00001"}
        assert by_email.total == 2

    def test_status_filter(self):
        _, handler = _setup()
        result = _list(handler, status="PENDING")
        assert [b.status for b in result.bookings] == ["PENDING"]

    def test_booking_date_range_is_inclusive(self):
        _, handler = _setup()
        result = _list(
            handler,
            start_date=datetime(2026, 7, 12, 10, 0, tzinfo=timezone.utc),
            end_date=datetime(2026, 7, 20, 10, 0, tzinfo=timezone.utc),
            sort_by="bookingDate",
            sort_order="asc",
        )
        assert [b.booking_date[:10] for b in result.bookings] == ["2026-07-12", "2026-07-20"]

    def test_sort_by_final_amount(self):
        _, handler = _setup()
        result = _list(handler, sort_by="finalAmount", sort_order="asc")
        assert [b.final_amount for b in result.bookings] == ["GBP 50.00", "GBP 75.00", "GBP 100.00", "GBP 250.00"]

    def test_sort_by_status(self):
        _, handler = _setup()
        result = _list(handler, sort_by="status", sort_order="asc")
        assert [b.status for b in result.bookings] == ["CANCELLED", "CONFIRMED", "CONFIRMED", "PENDING"]

    def test_pagination(self):
        _, handler = _setup()

        first = _list(handler, limit=3)
        second = _list(handler, limit=3, page=2)

        assert len(first.bookings) == 3
        assert [b.final_amount for b in second.bookings] == ["GBP 75.00"]
        assert second.total == 4
        assert second.total_pages == 2
        assert second.page == 2

    def test_page_past_the_end_is_empty(self):
        _, handler = _setup()
        result = _list(handler, page=5)
        assert result.bookings == []
        assert result.total == 4

    def test_no_bookings(self):
        result = ListBookingsHandler(InMemoryBookingStore()).handle(ListBookingsRequest(), ADMIN)
        assert result.total == 0
        assert result.total_pages == 0

    def test_customer_denied(self):
        _, handler = _setup()
        with pytest.raises(AccessDeniedError):
            handler.handle(ListBookingsRequest(), Caller("user-1"))

    def test_anonymous_rejected(self):
        _, handler = _setup()
        with pytest.raises(UnauthenticatedError):
            handler.handle(ListBookingsRequest(), None)
