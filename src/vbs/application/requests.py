"""Request models, validated once at the boundary.

Transport layers (CLI, HTTP) build these from raw input with
``parse_request``; handlers receive only well-formed requests.  JSON
bodies may use camelCase keys (``bookingId``) or snake_case ones.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from vbs.domain.exceptions import MalformedRequestError
from vbs.domain.repository.booking_store import MAX_PAGE_SIZE

M = TypeVar("M", bound=BaseModel)


class _Request(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ConfirmBookingRequest(_Request):
    """Input of the confirmation workflow."""

    booking_id: str = Field(..., min_length=8, max_length=64)
    payment_reference: str = Field(..., min_length=1, max_length=255)

    @field_validator("booking_id", "payment_reference")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if any(ch.isspace() for ch in v):
            raise ValueError("must not contain whitespace")
        return v


class BookingItemRequest(_Request):
    item_type: Literal["PACKAGE", "EXTRA"]
    item_id: str = Field(..., min_length=1)
    name: str | None = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)


class CreateBookingRequest(_Request):
    """Checkout: a booking date, an owner and the selected items.

    ``discount_amount`` comes from promo-code validation, already applied
    by the caller.
    """

    booking_date: datetime
    items: list[BookingItemRequest] = Field(..., min_length=1)
    user_id: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None
    currency: str = Field(default="GBP", pattern="^[A-Z]{3}$")
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    customer_notes: str | None = Field(default=None, max_length=2000)

    @field_validator("booking_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def one_owner(self) -> CreateBookingRequest:
        is_guest = self.guest_name is not None or self.guest_email is not None
        if (self.user_id is not None) == is_guest:
            raise ValueError("give either user_id or guest_name and guest_email")
        if is_guest and not (self.guest_name and self.guest_email):
            raise ValueError("guest bookings need both guest_name and guest_email")
        return self


class RefundBookingRequest(_Request):
    """Admin refund.  A full refund returns whatever is still refundable."""

    reason: str = Field(..., min_length=1, max_length=500)
    type: Literal["full", "partial"] = "full"
    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)

    @field_validator("reason")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def partial_needs_amount(self) -> RefundBookingRequest:
        if self.type == "partial" and self.amount is None:
            raise ValueError("partial refunds need an amount")
        return self


_SORT_FIELDS = {
    "createdAt": "created_at",
    "bookingDate": "booking_date",
    "finalAmount": "final_amount",
}


class ListBookingsRequest(_Request):
    """Admin booking list: search, filters, ordering and paging."""

    search: str | None = Field(default=None, max_length=200)
    status: Literal["PENDING", "CONFIRMED", "CANCELLED", "REFUNDED"] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    sort_by: Literal["created_at", "booking_date", "final_amount", "status"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("search")
    @classmethod
    def blank_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("sort_by", mode="before")
    @classmethod
    def accept_camel_sort_field(cls, v: Any) -> Any:
        return _SORT_FIELDS.get(v, v) if isinstance(v, str) else v

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_in_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def ordered_range(self) -> ListBookingsRequest:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


def parse_request(model: type[M], payload: Mapping[str, Any]) -> M:
    """Validate *payload* into *model* or raise MalformedRequestError."""
    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        problems = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err["loc"]) or "body"
            problems.append(f"{location}: {err['msg']}")
        raise MalformedRequestError("Invalid request: " + "; ".join(problems)) from exc
