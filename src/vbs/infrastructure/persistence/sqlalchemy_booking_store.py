"""SQLAlchemy implementation of BookingStore.

One session per ``run`` call, committed when the callback returns.  The
writes that race with other confirmations are single conditional UPDATE
statements, so the database decides the winner:

- status flips are compare-and-set on the current status
- availability decrements only match rows with enough units left
- refunds add to the stored refunded total, never past the final amount

Reference assignment runs inside a SAVEPOINT so that a uniqueness clash
rolls back only that statement and the caller can retry with another
reference in the same transaction.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Callable, Iterator, TypeVar

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from vbs.domain.exceptions import (
    AlreadyConfirmedError,
    DuplicateReferenceError,
    EntityNotFoundError,
    InsufficientAvailabilityError,
    InvalidStateError,
    StaleBookingError,
    StorageError,
)
from vbs.domain.model.availability import AvailabilityEntry
from vbs.domain.model.booking import Booking, BookingItem, BookingStatus
from vbs.domain.model.email import EmailQueueEntry, EmailStatus, EmailType
from vbs.domain.model.user import User
from vbs.domain.model.value_objects import (
    GuestIdentity,
    ItemKey,
    ItemType,
    Money,
    Quantity,
    UserRole,
)
from vbs.domain.repository.booking_store import (
    BookingPage,
    BookingQuery,
    BookingSortField,
    BookingStore,
    BookingTransaction,
)
from vbs.infrastructure.persistence.models import (
    AvailabilityModel,
    BookingItemModel,
    BookingModel,
    EmailQueueModel,
    UserModel,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc)


def _from_db(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; they were stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Row <-> domain mapping -------------------------------------------------


def _to_user(row: UserModel) -> User:
    return User(id=row.id, email=row.email, name=row.name, role=UserRole(row.role))


def _to_booking(row: BookingModel) -> Booking:
    currency = row.currency
    guest = None
    if row.user_id is None and row.guest_email:
        guest = GuestIdentity(name=row.guest_name or "", email=row.guest_email)
    return Booking(
        id=row.id,
        booking_date=_from_db(row.booking_date),  # type: ignore[arg-type]
        items=[
            BookingItem(
                item_type=ItemType(item.item_type),
                name=item.name,
                quantity=Quantity(item.quantity),
                unit_price=Money.from_minor_units(item.unit_price, currency),
                package_id=item.package_id,
                extra_id=item.extra_id,
                id=item.id,
            )
            for item in row.items
        ],
        total_amount=Money.from_minor_units(row.total_amount, currency),
        discount_amount=Money.from_minor_units(row.discount_amount, currency),
        final_amount=Money.from_minor_units(row.final_amount, currency),
        user_id=row.user_id,
        user_email=row.user.email if row.user is not None else None,
        guest=guest,
        status=BookingStatus(row.status),
        booking_reference=row.booking_reference,
        payment_reference=row.payment_reference,
        refunded_amount=(
            Money.from_minor_units(row.refunded_amount, currency)
            if row.refunded_amount is not None
            else None
        ),
        refunded_at=_from_db(row.refunded_at),
        customer_notes=row.customer_notes,
        created_at=_from_db(row.created_at),  # type: ignore[arg-type]
    )


def _to_entry(row: AvailabilityModel) -> AvailabilityEntry:
    return AvailabilityEntry(
        item_key=ItemKey(ItemType(row.item_type), row.item_id),
        day=row.day,
        total_quantity=row.total_quantity,
        available_quantity=row.available_quantity,
    )


def _to_email(row: EmailQueueModel) -> EmailQueueEntry:
    return EmailQueueEntry(
        recipient=row.recipient,
        subject=row.subject,
        email_type=EmailType(row.email_type),
        content=dict(row.content or {}),
        scheduled_for=_from_db(row.scheduled_for),  # type: ignore[arg-type]
        status=EmailStatus(row.status),
        id=row.id,
        sent_at=_from_db(row.sent_at),
        error=row.error,
        created_at=_from_db(row.created_at),  # type: ignore[arg-type]
    )


_SORT_COLUMNS = {
    BookingSortField.CREATED_AT: BookingModel.created_at,
    BookingSortField.BOOKING_DATE: BookingModel.booking_date,
    BookingSortField.FINAL_AMOUNT: BookingModel.final_amount,
    BookingSortField.STATUS: BookingModel.status,
}


def _contains(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _booking_filters(query: BookingQuery) -> list:
    conditions = []
    if query.search:
        pattern = _contains(query.search)
        conditions.append(
            or_(
                BookingModel.booking_reference.ilike(pattern, escape="\\"),
                BookingModel.guest_name.ilike(pattern, escape="\\"),
                BookingModel.guest_email.ilike(pattern, escape="\\"),
                BookingModel.user.has(
                    or_(
                        UserModel.name.ilike(pattern, escape="\\"),
                        UserModel.email.ilike(pattern, escape="\\"),
                    )
                ),
            )
        )
    if query.status is not None:
        conditions.append(BookingModel.status == query.status.value)
    if query.date_from is not None:
        conditions.append(BookingModel.booking_date >= _to_utc(query.date_from))
    if query.date_to is not None:
        conditions.append(BookingModel.booking_date <= _to_utc(query.date_to))
    return conditions


def _availability_filter(item_key: ItemKey, day: date) -> tuple:
    return (
        AvailabilityModel.item_type == item_key.item_type.value,
        AvailabilityModel.item_id == item_key.item_id,
        AvailabilityModel.day == day,
    )


# --- Transaction --------------------------------------------------------------


class _SqlAlchemyTransaction(BookingTransaction):

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_booking(self, booking: Booking) -> Booking:
        booking_id = booking.id or _new_id()
        now = datetime.now(timezone.utc)
        items = [dataclasses.replace(item, id=item.id or _new_id()) for item in booking.items]

        self._session.add(
            BookingModel(
                id=booking_id,
                booking_reference=booking.booking_reference,
                user_id=booking.user_id,
                guest_name=booking.guest.name if booking.guest else None,
                guest_email=booking.guest.email if booking.guest else None,
                booking_date=_to_utc(booking.booking_date),
                status=booking.status.value,
                currency=booking.currency,
                total_amount=booking.total_amount.to_minor_units(),
                discount_amount=booking.discount_amount.to_minor_units(),
                final_amount=booking.final_amount.to_minor_units(),
                payment_reference=booking.payment_reference,
                customer_notes=booking.customer_notes,
                created_at=_to_utc(booking.created_at),
                updated_at=now,
                items=[
                    BookingItemModel(
                        id=item.id,
                        position=position,
                        item_type=item.item_type.value,
                        package_id=item.package_id,
                        extra_id=item.extra_id,
                        name=item.name,
                        quantity=item.quantity.value,
                        unit_price=item.unit_price.to_minor_units(),
                        total_price=item.total_price.to_minor_units(),
                    )
                    for position, item in enumerate(items)
                ],
            )
        )
        self._session.flush()

        booking.id = booking_id
        booking.items = items
        return booking

    def set_booking_confirmed(
        self,
        booking_id: str,
        booking_reference: str,
        payment_reference: str,
    ) -> None:
        stmt = (
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == BookingStatus.PENDING.value,
            )
            .values(
                status=BookingStatus.CONFIRMED.value,
                booking_reference=booking_reference,
                payment_reference=payment_reference,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            with self._session.begin_nested():
                result = self._session.execute(stmt)
        except IntegrityError as exc:
            raise DuplicateReferenceError(booking_reference) from exc

        if result.rowcount == 1:
            return

        status, current_reference = self._current_status(booking_id)
        if status is BookingStatus.CONFIRMED:
            raise AlreadyConfirmedError(booking_id, current_reference)
        raise InvalidStateError(status)

    def set_booking_cancelled(self, booking_id: str, expected_status: BookingStatus) -> None:
        result = self._session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == expected_status.value,
            )
            .values(
                status=BookingStatus.CANCELLED.value,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._current_status(booking_id)
            raise StaleBookingError(booking_id)

    def record_refund(self, booking_id: str, amount: Money, refunded_at: datetime) -> None:
        # SET expressions see the row as it was before this UPDATE.
        new_total = func.coalesce(BookingModel.refunded_amount, 0) + amount.to_minor_units()
        result = self._session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == BookingStatus.CONFIRMED.value,
                new_total <= BookingModel.final_amount,
            )
            .values(
                refunded_amount=new_total,
                refunded_at=_to_utc(refunded_at),
                status=case(
                    (new_total == BookingModel.final_amount, BookingStatus.REFUNDED.value),
                    else_=BookingStatus.CONFIRMED.value,
                ),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._current_status(booking_id)
            raise StaleBookingError(booking_id)

    def reserve_availability(
        self, item_key: ItemKey, day: date, quantity: int
    ) -> AvailabilityEntry | None:
        result = self._session.execute(
            update(AvailabilityModel)
            .where(
                *_availability_filter(item_key, day),
                AvailabilityModel.available_quantity >= quantity,
            )
            .values(available_quantity=AvailabilityModel.available_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        row = self._load_availability(item_key, day)
        if row is None:
            return None
        if result.rowcount != 1:
            raise InsufficientAvailabilityError(item_key, day, quantity, row.available_quantity)
        return _to_entry(row)

    def release_availability(
        self, item_key: ItemKey, day: date, quantity: int
    ) -> AvailabilityEntry | None:
        restored = AvailabilityModel.available_quantity + quantity
        self._session.execute(
            update(AvailabilityModel)
            .where(*_availability_filter(item_key, day))
            .values(
                available_quantity=case(
                    (restored > AvailabilityModel.total_quantity, AvailabilityModel.total_quantity),
                    else_=restored,
                )
            )
            .execution_options(synchronize_session=False)
        )
        row = self._load_availability(item_key, day)
        return _to_entry(row) if row is not None else None

    def get_availability(self, item_key: ItemKey, day: date) -> AvailabilityEntry | None:
        row = self._load_availability(item_key, day)
        return _to_entry(row) if row is not None else None

    def save_availability(self, entry: AvailabilityEntry) -> None:
        row = self._load_availability(entry.item_key, entry.day)
        if row is None:
            row = AvailabilityModel(
                item_type=entry.item_key.item_type.value,
                item_id=entry.item_key.item_id,
                day=entry.day,
            )
            self._session.add(row)
        row.total_quantity = entry.total_quantity
        row.available_quantity = entry.available_quantity
        self._session.flush()

    def enqueue_email(self, entry: EmailQueueEntry) -> EmailQueueEntry:
        entry_id = entry.id or _new_id()
        self._session.add(
            EmailQueueModel(
                id=entry_id,
                recipient=entry.recipient,
                subject=entry.subject,
                email_type=entry.email_type.value,
                content=entry.content,
                scheduled_for=_to_utc(entry.scheduled_for),
                status=entry.status.value,
                sent_at=_to_utc(entry.sent_at),
                error=entry.error,
                created_at=_to_utc(entry.created_at),
            )
        )
        self._session.flush()
        return dataclasses.replace(entry, id=entry_id)

    def save_user(self, user: User) -> None:
        self._session.merge(
            UserModel(id=user.id, email=user.email, name=user.name, role=user.role.value)
        )
        self._session.flush()

    # --- Internal helpers -----------------------------------------------------

    def _load_availability(self, item_key: ItemKey, day: date) -> AvailabilityModel | None:
        return self._session.execute(
            select(AvailabilityModel)
            .where(*_availability_filter(item_key, day))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _current_status(self, booking_id: str) -> tuple[BookingStatus, str | None]:
        row = self._session.execute(
            select(BookingModel.status, BookingModel.booking_reference).where(
                BookingModel.id == booking_id
            )
        ).one_or_none()
        if row is None:
            raise EntityNotFoundError(f"Booking {booking_id} not found")
        return BookingStatus(row.status), row.booking_reference


# --- Store ----------------------------------------------------------------------


class SqlAlchemyBookingStore(BookingStore):

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _reading(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            raise StorageError(f"Database read failed: {exc}") from exc
        finally:
            session.close()

    def find_user(self, user_id: str) -> User | None:
        with self._reading() as session:
            row = session.get(UserModel, user_id)
            return _to_user(row) if row is not None else None

    def find_booking_with_items(self, booking_id: str) -> Booking | None:
        with self._reading() as session:
            row = session.execute(
                select(BookingModel)
                .where(BookingModel.id == booking_id)
                .options(selectinload(BookingModel.items), selectinload(BookingModel.user))
            ).scalar_one_or_none()
            return _to_booking(row) if row is not None else None

    def find_booking_by_reference(self, booking_reference: str) -> Booking | None:
        with self._reading() as session:
            row = session.execute(
                select(BookingModel)
                .where(BookingModel.booking_reference == booking_reference)
                .options(selectinload(BookingModel.items), selectinload(BookingModel.user))
            ).scalar_one_or_none()
            return _to_booking(row) if row is not None else None

    def list_bookings(self, query: BookingQuery) -> BookingPage:
        conditions = _booking_filters(query)
        column = _SORT_COLUMNS[query.sort_by]
        stmt = (
            select(BookingModel)
            .where(*conditions)
            .order_by(column.desc() if query.descending else column.asc(), BookingModel.id)
            .offset(query.offset)
            .limit(query.limit)
            .options(selectinload(BookingModel.items), selectinload(BookingModel.user))
        )
        count = select(func.count()).select_from(BookingModel).where(*conditions)
        with self._reading() as session:
            total = session.execute(count).scalar_one()
            rows = session.execute(stmt).scalars().all()
            return BookingPage(bookings=[_to_booking(row) for row in rows], total=total)

    def find_availability(self, item_key: ItemKey, day: date) -> AvailabilityEntry | None:
        with self._reading() as session:
            row = session.execute(
                select(AvailabilityModel).where(*_availability_filter(item_key, day))
            ).scalar_one_or_none()
            return _to_entry(row) if row is not None else None

    def list_availability(self, day: date | None = None) -> list[AvailabilityEntry]:
        stmt = select(AvailabilityModel).order_by(
            AvailabilityModel.day, AvailabilityModel.item_type, AvailabilityModel.item_id
        )
        if day is not None:
            stmt = stmt.where(AvailabilityModel.day == day)
        with self._reading() as session:
            return [_to_entry(row) for row in session.execute(stmt).scalars()]

    def list_emails(self, status: EmailStatus | None = None) -> list[EmailQueueEntry]:
        stmt = select(EmailQueueModel).order_by(
            EmailQueueModel.scheduled_for, EmailQueueModel.created_at
        )
        if status is not None:
            stmt = stmt.where(EmailQueueModel.status == status.value)
        with self._reading() as session:
            return [_to_email(row) for row in session.execute(stmt).scalars()]

    def run(self, fn: Callable[[BookingTransaction], T]) -> T:
        session = self._session_factory()
        try:
            with session.begin():
                return fn(_SqlAlchemyTransaction(session))
        except SQLAlchemyError as exc:
            logger.error(f"Transaction rolled back: {exc}")
            raise StorageError(f"Transaction failed: {exc}") from exc
        finally:
            session.close()
