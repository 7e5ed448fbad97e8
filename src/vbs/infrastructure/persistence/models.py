"""Table definitions.  Money columns hold integer minor units."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from vbs.infrastructure.persistence.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(16), nullable=False, default="CUSTOMER")

    bookings = relationship("BookingModel", back_populates="user")


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True)
    booking_reference = Column(String(12), unique=True, nullable=True)
    user_id = Column(String(64), ForeignKey("users.id"), index=True, nullable=True)
    guest_name = Column(String(255), nullable=True)
    guest_email = Column(String(320), nullable=True)
    booking_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    currency = Column(String(3), nullable=False, default="GBP")
    total_amount = Column(Integer, nullable=False)
    discount_amount = Column(Integer, nullable=False, default=0)
    final_amount = Column(Integer, nullable=False)
    payment_reference = Column(String(255), nullable=True, index=True)
    refunded_amount = Column(Integer, nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    customer_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("UserModel", back_populates="bookings")
    items = relationship(
        "BookingItemModel",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingItemModel.position",
    )


class BookingItemModel(Base):
    __tablename__ = "booking_items"

    id = Column(String(64), primary_key=True)
    booking_id = Column(
        String(64), ForeignKey("bookings.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position = Column(Integer, nullable=False, default=0)
    item_type = Column(String(16), nullable=False)
    package_id = Column(String(64), nullable=True)
    extra_id = Column(String(64), nullable=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)

    booking = relationship("BookingModel", back_populates="items")

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_booking_items_quantity"),)


class AvailabilityModel(Base):
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String(16), nullable=False)
    item_id = Column(String(64), nullable=False)
    day = Column("date", Date, nullable=False)
    total_quantity = Column(Integer, nullable=False)
    available_quantity = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("item_type", "item_id", "date", name="uq_availability_item_date"),
        CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= total_quantity",
            name="ck_availability_bounds",
        ),
    )


class EmailQueueModel(Base):
    __tablename__ = "email_queue"

    id = Column(String(64), primary_key=True)
    recipient = Column(String(320), nullable=False)
    subject = Column(String(255), nullable=False)
    email_type = Column(String(32), nullable=False)
    content = Column(JSON, nullable=False, default=dict)
    scheduled_for = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
