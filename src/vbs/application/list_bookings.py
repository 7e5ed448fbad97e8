"""Application service: List Bookings use case (admin query)."""

from __future__ import annotations

import math

from vbs.application.access import require_admin
from vbs.application.dto import BookingListDTO, to_booking_dto
from vbs.application.requests import ListBookingsRequest
from vbs.domain.model.booking import BookingStatus
from vbs.domain.model.value_objects import Caller
from vbs.domain.repository.booking_store import BookingQuery, BookingSortField, BookingStore


class ListBookingsHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(self, request: ListBookingsRequest, caller: Caller | None) -> BookingListDTO:
        require_admin(caller)

        query = BookingQuery(
            search=request.search,
            status=BookingStatus(request.status) if request.status else None,
            date_from=request.start_date,
            date_to=request.end_date,
            sort_by=BookingSortField(request.sort_by),
            descending=request.sort_order == "desc",
            page=request.page,
            limit=request.limit,
        )
        page = self._store.list_bookings(query)

        return BookingListDTO(
            bookings=[to_booking_dto(booking) for booking in page.bookings],
            total=page.total,
            page=request.page,
            limit=request.limit,
            total_pages=math.ceil(page.total / request.limit),
        )
