"""Tests for the read-side use cases and user registration."""

from datetime import datetime, timezone

import pytest

from vbs.application.add_user import AddUserHandler
from vbs.application.confirm_booking import ConfirmBookingHandler
from vbs.application.list_email_queue import ListEmailQueueHandler
from vbs.application.requests import ConfirmBookingRequest
from vbs.application.show_booking import ShowBookingHandler
from vbs.domain.exceptions import AccessDeniedError, EntityNotFoundError, ValidationError
from vbs.domain.model.booking import Booking, BookingItem
from vbs.domain.model.email import EmailStatus
from vbs.domain.model.user import User
from vbs.domain.model.value_objects import Caller, ItemType, Money, Quantity, UserRole
from tests.fakes import FakePaymentGateway, InMemoryBookingStore

OWNER = Caller("user-1")


def _confirmed_setup():
    store = InMemoryBookingStore(users=[User("user-1", "owner@example.com")])
    booking = store.seed_booking(
        Booking.create(
            booking_date=datetime(2026, 7, 15, 10, 0, tzinfo=timezone.utc),
            items=[BookingItem(ItemType.PACKAGE, "Day Pass", Quantity(1), Money.of("99"), package_id="pkg-1")],
            user_id="user-1",
            user_email="owner@example.com",
        )
    )
    gateway = FakePaymentGateway()
    gateway.add_payment("pi_1", 9900)
    result = ConfirmBookingHandler(store, gateway).handle(
        ConfirmBookingRequest(booking_id=booking.id, payment_reference="pi_1"), OWNER
    )
    return store, booking, result.booking.booking_reference


class TestShowBooking:

    def test_owner_by_id(self):
        store, booking, reference = _confirmed_setup()
        dto = ShowBookingHandler(store).handle(booking_id=booking.id, caller=OWNER)
        assert dto.booking_reference == reference
        assert dto.items[0].name == "Day Pass"

    def test_by_reference_case_insensitive(self):
        store, booking, reference = _confirmed_setup()
        dto = ShowBookingHandler(store).handle(booking_reference=reference.lower(), caller=OWNER)
        assert dto.id == booking.id

    def test_admin_sees_any_booking(self):
        store, booking, _ = _confirmed_setup()
        dto = ShowBookingHandler(store).handle(
            booking_id=booking.id, caller=Caller("admin-1", UserRole.ADMIN)
        )
        assert dto.id == booking.id

    def test_other_user_denied(self):
        store, booking, _ = _confirmed_setup()
        with pytest.raises(AccessDeniedError):
            ShowBookingHandler(store).handle(booking_id=booking.id, caller=Caller("user-2"))

    def test_unknown_reference(self):
        store, _, _ = _confirmed_setup()
        with pytest.raises(EntityNotFoundError):
            ShowBookingHandler(store).handle(booking_reference="ZZZZZZZZ", caller=OWNER)

    def test_needs_a_key(self):
        with pytest.raises(ValidationError):
            ShowBookingHandler(InMemoryBookingStore()).handle(caller=OWNER)


class TestListEmailQueue:

    def test_lists_queued_notifications(self):
        store, _, reference = _confirmed_setup()

        lines = ListEmailQueueHandler(store).handle()

        assert len(lines) == 2
        assert {line.email_type for line in lines} == {"BOOKING_CONFIRMATION", "BOOKING_REMINDER"}
        assert {line.booking_reference for line in lines} == {reference}
        assert {line.status for line in lines} == {"PENDING"}

    def test_filter_by_status(self):
        store, _, _ = _confirmed_setup()
        assert ListEmailQueueHandler(store).handle(EmailStatus.SENT) == []


class TestAddUser:

    def test_registers_user(self):
        store = InMemoryBookingStore()
        user = AddUserHandler(store).handle("admin-1", "admin@example.com", role=UserRole.ADMIN)
        assert user.role is UserRole.ADMIN
        assert store.find_user("admin-1").email == "admin@example.com"

    def test_updates_existing_user(self):
        store = InMemoryBookingStore(users=[User("user-1", "old@example.com", name="Olive")])
        AddUserHandler(store).handle("user-1", "new@example.com")
        stored = store.find_user("user-1")
        assert stored.email == "new@example.com"
        assert stored.name == "Olive"

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError, match="Invalid email"):
            AddUserHandler(InMemoryBookingStore()).handle("user-1", "nope")
