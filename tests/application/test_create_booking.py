"""Integration tests for the CreateBooking use case."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from vbs.application.create_booking import CreateBookingHandler
from vbs.application.requests import CreateBookingRequest, parse_request
from vbs.domain.exceptions import EntityNotFoundError, ValidationError
from vbs.domain.model.booking import BookingStatus
from vbs.domain.model.user import User
from tests.fakes import InMemoryBookingStore


def _setup():
    store = InMemoryBookingStore(users=[User("user-1", "owner@example.com", name="Olive")])
    return store, CreateBookingHandler(store)


def _payload(**overrides):
    payload = {
        "bookingDate": "2026-07-15T10:00:00Z",
        "items": [
            {"itemType": "PACKAGE", "itemId": "pkg-1", "name": "Day Pass", "quantity": 2, "unitPrice": "75.00"},
            {"itemType": "EXTRA", "itemId": "ext-1", "quantity": 1, "unitPrice": "12.50"},
        ],
        "userId": "user-1",
    }
    payload.update(overrides)
    return payload


class TestCreateBooking:

    def test_registered_user_booking(self):
        store, handler = _setup()

        dto = handler.handle(parse_request(CreateBookingRequest, _payload()))

        assert dto.status == "PENDING"
        assert dto.booking_reference is None
        assert dto.owner == "user-1"
        assert dto.total_amount == "GBP 162.50"
        assert dto.final_amount == "GBP 162.50"
        assert [item.name for item in dto.items] == ["Day Pass", "ext-1"]

        stored = store.find_booking_with_items(dto.id)
        assert stored.status == BookingStatus.PENDING
        assert stored.user_email == "owner@example.com"
        assert stored.booking_date == datetime(2026, 7, 15, 10, 0, tzinfo=timezone.utc)
        assert all(item.id for item in stored.items)

    def test_guest_booking(self):
        store, handler = _setup()
        payload = _payload(userId=None, guestName="Sam Guest", guestEmail="sam@example.com")

        dto = handler.handle(parse_request(CreateBookingRequest, payload))

        stored = store.find_booking_with_items(dto.id)
        assert stored.is_guest_booking
        assert stored.recipient_email == "sam@example.com"

    def test_discount_reduces_final_amount(self):
        _, handler = _setup()

        dto = handler.handle(parse_request(CreateBookingRequest, _payload(discountAmount="12.50")))

        assert dto.discount_amount == "GBP 12.50"
        assert dto.final_amount == "GBP 150.00"

    def test_discount_above_total_rejected(self):
        store, handler = _setup()
        with pytest.raises(ValidationError, match="exceeds booking total"):
            handler.handle(parse_request(CreateBookingRequest, _payload(discountAmount="500")))
        assert store.commits == 0

    def test_unknown_user_rejected(self):
        _, handler = _setup()
        with pytest.raises(EntityNotFoundError, match="User ghost not found"):
            handler.handle(parse_request(CreateBookingRequest, _payload(userId="ghost")))

    def test_request_can_be_built_directly(self):
        _, handler = _setup()
        request = CreateBookingRequest(
            booking_date=datetime(2026, 7, 15, 10, 0),
            items=[{"item_type": "PACKAGE", "item_id": "pkg-1", "quantity": 1, "unit_price": Decimal("99.99")}],
            user_id="user-1",
        )
        assert handler.handle(request).final_amount == "GBP 99.99"
