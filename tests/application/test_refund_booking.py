"""Integration tests for the RefundBooking use case."""

import logging
from datetime import date, datetime, timezone

import pytest

from vbs.application.confirm_booking import ConfirmBookingHandler
from vbs.application.refund_booking import RefundBookingHandler
from vbs.application.requests import ConfirmBookingRequest, RefundBookingRequest
from vbs.domain.exceptions import (
    AccessDeniedError,
    GatewayUnavailableError,
    InvalidStateError,
    PostPaymentCommitFailure,
    StaleBookingError,
    ValidationError,
)
from vbs.domain.model.availability import AvailabilityEntry
from vbs.domain.model.booking import Booking, BookingItem, BookingStatus
from vbs.domain.model.user import User
from vbs.domain.model.value_objects import Caller, ItemKey, ItemType, Money, Quantity, UserRole
from tests.fakes import FakePaymentGateway, InMemoryBookingStore

DAY = date(2026, 7, 15)
PKG = ItemKey(ItemType.PACKAGE, "pkg-1")
ADMIN = Caller("admin-1", UserRole.ADMIN)
OWNER = Caller("user-1")
REFUNDED_AT = datetime(2026, 6, 2, 12, 0, tzinfo=timezone.utc)


def _setup(confirm=True):
    store = InMemoryBookingStore(
        users=[User("user-1", "owner@example.com")],
        availability=[AvailabilityEntry(PKG, DAY, 10, 10)],
    )
    gateway = FakePaymentGateway()
    booking = store.seed_booking(
        Booking.create(
            booking_date=datetime(2026, 7, 15, 10, 0, tzinfo=timezone.utc),
            items=[BookingItem(ItemType.PACKAGE, "Day Pass", Quantity(2), Money.of("75"), package_id="pkg-1")],
            user_id="user-1",
            user_email="owner@example.com",
        )
    )
    gateway.add_payment("pi_1", 15000)
    if confirm:
        ConfirmBookingHandler(store, gateway).handle(
            ConfirmBookingRequest(booking_id=booking.id, payment_reference="pi_1"), OWNER
        )
    handler = RefundBookingHandler(store, gateway, clock=lambda: REFUNDED_AT)
    return store, gateway, booking, handler


class TestRefundBooking:

    def test_full_refund(self):
        store, gateway, booking, handler = _setup()

        result = handler.handle(booking.id, RefundBookingRequest(reason="Venue closed"), ADMIN)

        assert result.amount == 15000
        assert result.currency == "GBP"
        assert result.booking.status == "REFUNDED"
        stored = store.find_booking_with_items(booking.id)
        assert stored.status == BookingStatus.REFUNDED
        assert stored.refunded_amount == Money.of("150")
        assert stored.refunded_at == REFUNDED_AT
        assert gateway.refund_metadata[0]["reason"] == "Venue closed"
        assert gateway.refund_metadata[0]["admin_id"] == "admin-1"

    def test_refund_does_not_restock(self):
        store, _, booking, handler = _setup()
        handler.handle(booking.id, RefundBookingRequest(reason="Venue closed"), ADMIN)
        assert store.find_availability(PKG, DAY).available_quantity == 8

    def test_partial_refunds_accumulate(self):
        store, gateway, booking, handler = _setup()
        partial = RefundBookingRequest(reason="Rain", type="partial", amount="50.00")

        handler.handle(booking.id, partial, ADMIN)
        assert store.find_booking_with_items(booking.id).status == BookingStatus.CONFIRMED

        result = handler.handle(booking.id, RefundBookingRequest(reason="Rest"), ADMIN)
        assert result.amount == 10000
        assert [r.amount for r in gateway.refunds] == [5000, 10000]
        assert store.find_booking_with_items(booking.id).status == BookingStatus.REFUNDED

    def test_partial_refund_above_balance_rejected_before_provider_call(self):
        _, gateway, booking, handler = _setup()
        too_much = RefundBookingRequest(reason="Oops", type="partial", amount="150.01")

        with pytest.raises(ValidationError, match="exceeds refundable balance"):
            handler.handle(booking.id, too_much, ADMIN)
        assert gateway.refunds == []

    def test_pending_booking_cannot_be_refunded(self):
        _, gateway, booking, handler = _setup(confirm=False)
        with pytest.raises(InvalidStateError, match="Cannot refund pending booking"):
            handler.handle(booking.id, RefundBookingRequest(reason="x"), ADMIN)
        assert gateway.refunds == []

    def test_requires_admin(self):
        _, _, booking, handler = _setup()
        with pytest.raises(AccessDeniedError):
            handler.handle(booking.id, RefundBookingRequest(reason="x"), OWNER)

    def test_gateway_unavailable_changes_nothing(self):
        store, gateway, booking, handler = _setup()
        gateway.unavailable = True
        with pytest.raises(GatewayUnavailableError):
            handler.handle(booking.id, RefundBookingRequest(reason="x"), ADMIN)
        assert store.find_booking_with_items(booking.id).refunded_amount is None

    def test_commit_failure_after_refund(self, caplog):
        store, gateway, booking, handler = _setup()
        store.fail_on_commit = True

        with caplog.at_level(logging.CRITICAL, logger="vbs.application.refund_booking"):
            with pytest.raises(PostPaymentCommitFailure, match="re_1 was issued"):
                handler.handle(booking.id, RefundBookingRequest(reason="x"), ADMIN)

        assert len(gateway.refunds) == 1
        assert "could not be recorded" in caplog.text
        assert store.find_booking_with_items(booking.id).status == BookingStatus.CONFIRMED

    def test_refund_recorded_meanwhile_is_added_not_overwritten(self):
        store, gateway, booking, handler = _setup()
        other_admin = Caller("admin-2", UserRole.ADMIN)
        original_issue = gateway.issue_refund

        def issue_then_interleave(payment_reference, amount, metadata=None):
            refund = original_issue(payment_reference, amount, metadata)
            if len(gateway.refunds) == 1:
                handler.handle(
                    booking.id,
                    RefundBookingRequest(reason="Rain", type="partial", amount="40.00"),
                    other_admin,
                )
            return refund

        gateway.issue_refund = issue_then_interleave

        result = handler.handle(
            booking.id, RefundBookingRequest(reason="Late", type="partial", amount="30.00"), ADMIN
        )

        assert sorted(r.amount for r in gateway.refunds) == [3000, 4000]
        assert store.find_booking_with_items(booking.id).refunded_amount == Money.of("70")
        assert result.booking.refunded_amount == "GBP 70.00"

    def test_record_refund_rejects_total_above_final_amount(self):
        store, _, booking, _ = _setup()

        with pytest.raises(StaleBookingError):
            store.run(lambda tx: tx.record_refund(booking.id, Money.of("150.01"), REFUNDED_AT))

        assert store.find_booking_with_items(booking.id).refunded_amount is None
