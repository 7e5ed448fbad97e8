"""Integration tests for the availability use cases."""

from datetime import date

import pytest

from vbs.application.set_availability import SetAvailabilityHandler
from vbs.application.show_availability import ShowAvailabilityHandler
from vbs.domain.exceptions import ValidationError
from vbs.domain.model.availability import AvailabilityEntry
from vbs.domain.model.value_objects import ItemKey, ItemType
from tests.fakes import InMemoryBookingStore

DAY = date(2026, 7, 15)
PKG = ItemKey(ItemType.PACKAGE, "pkg-1")
EXT = ItemKey(ItemType.EXTRA, "ext-1")


class TestSetAvailability:

    def test_creates_entry(self):
        store = InMemoryBookingStore()

        entry = SetAvailabilityHandler(store).handle(PKG, DAY, 20)

        assert entry.total_quantity == 20
        assert entry.available_quantity == 20
        assert store.find_availability(PKG, DAY).total_quantity == 20

    def test_resize_keeps_reservations(self):
        store = InMemoryBookingStore(availability=[AvailabilityEntry(PKG, DAY, 10, 4)])

        SetAvailabilityHandler(store).handle(PKG, DAY, 12)

        stored = store.find_availability(PKG, DAY)
        assert stored.total_quantity == 12
        assert stored.available_quantity == 6

    def test_below_reserved_rejected(self):
        store = InMemoryBookingStore(availability=[AvailabilityEntry(PKG, DAY, 10, 4)])

        with pytest.raises(ValidationError, match="6 already reserved"):
            SetAvailabilityHandler(store).handle(PKG, DAY, 5)

        assert store.find_availability(PKG, DAY).total_quantity == 10


class TestShowAvailability:

    def test_lists_entries_with_reserved_counts(self):
        other_day = date(2026, 7, 16)
        store = InMemoryBookingStore(
            availability=[
                AvailabilityEntry(PKG, DAY, 10, 7),
                AvailabilityEntry(EXT, DAY, 5, 5),
                AvailabilityEntry(PKG, other_day, 10, 10),
            ]
        )
        handler = ShowAvailabilityHandler(store)

        lines = handler.handle()
        assert len(lines) == 3
        assert lines[0].day == "2026-07-15"

        only_day = handler.handle(DAY)
        assert {(line.item_type, line.item_id) for line in only_day} == {
            ("PACKAGE", "pkg-1"),
            ("EXTRA", "ext-1"),
        }
        pkg_line = next(line for line in only_day if line.item_id == "pkg-1")
        assert (pkg_line.total, pkg_line.reserved, pkg_line.available) == (10, 3, 7)

    def test_empty(self):
        assert ShowAvailabilityHandler(InMemoryBookingStore()).handle() == []
