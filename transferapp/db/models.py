from sqlalchemy import (
    DateTime,
    ForeignKey,
    JSON,
    Enum as SQLAEnum,
    func,
)
from sqlalchemy.orm import (
    declarative_base,
    Mapped,
    mapped_column,
    relationship,
)
from enum import Enum as PyEnum
import uuid
from datetime import datetime
from typing import Protocol, Optional, List, Any


Base = declarative_base()

# ---- Protocol ----
class HasId(Protocol):
    id: Mapped[Any]

# ---- Enums ----
class TransferStatus(str, PyEnum):
    pending = "pending"
    confirmed = "confirmed"
    on_ride = "on_ride"
    completed = "completed"
    canceled = "canceled"

class NotificationStatus(str, PyEnum):
    pending = "pending"
    sent = "sent"
    read = "read"

# Statuses whose driver is already committed to a ride of that vehicle type
ACTIVE_TRANSFER_STATUSES = (TransferStatus.on_ride, TransferStatus.confirmed)


def _uuid_str() -> str:
    return str(uuid.uuid4())

# ---- Models ----
class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[str] = mapped_column(primary_key=True, default=_uuid_str)
    name: Mapped[str] = mapped_column()
    phone: Mapped[Optional[str]] = mapped_column(nullable=True)
    selfie_url: Mapped[Optional[str]] = mapped_column(nullable=True)
    driver_status: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    vehicle_type: Mapped[Optional[str]] = mapped_column(nullable=True)
    is_online: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    vehicles: Mapped[List["Vehicle"]] = relationship(back_populates="driver")
    transfers: Mapped[List["AirportTransfer"]] = relationship(back_populates="driver")
    notifications: Mapped[List["TransferNotification"]] = relationship(back_populates="driver")


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(primary_key=True, default=_uuid_str)
    driver_id: Mapped[Optional[str]] = mapped_column(ForeignKey("drivers.id"), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    make: Mapped[str] = mapped_column()
    model: Mapped[str] = mapped_column()
    color: Mapped[Optional[str]] = mapped_column(nullable=True)
    license_plate: Mapped[Optional[str]] = mapped_column(nullable=True)
    # Pricing columns are loosely typed upstream; basic_price and surcharge are text
    price_km: Mapped[Optional[float]] = mapped_column(nullable=True)
    basic_price: Mapped[Optional[str]] = mapped_column(nullable=True)
    surcharge: Mapped[Optional[str]] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)

    driver: Mapped[Optional["Driver"]] = relationship(back_populates="vehicles")
    transfers: Mapped[List["AirportTransfer"]] = relationship(back_populates="vehicle")


class AirportTransfer(Base):
    __tablename__ = "airport_transfer"

    id: Mapped[int] = mapped_column(primary_key=True)
    booking_code: Mapped[str] = mapped_column(unique=True)
    status: Mapped[TransferStatus] = mapped_column(
        SQLAEnum(TransferStatus, name="transfer_status", create_constraint=True),
        default=TransferStatus.pending,
        nullable=False
    )
    customer_name: Mapped[str] = mapped_column()
    phone: Mapped[str] = mapped_column()
    payment_method: Mapped[str] = mapped_column()
    pickup_location: Mapped[str] = mapped_column()
    dropoff_location: Mapped[str] = mapped_column()
    from_location: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    to_location: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    pickup_date: Mapped[str] = mapped_column()
    pickup_time: Mapped[str] = mapped_column()
    passenger: Mapped[int] = mapped_column(default=1)
    type: Mapped[Optional[str]] = mapped_column(nullable=True)
    distance: Mapped[float] = mapped_column()
    duration: Mapped[float] = mapped_column()
    price: Mapped[float] = mapped_column()
    driver_id: Mapped[Optional[str]] = mapped_column(ForeignKey("drivers.id"), nullable=True)
    driver_name: Mapped[Optional[str]] = mapped_column(nullable=True)
    vehicle_id: Mapped[Optional[str]] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    vehicle_name: Mapped[Optional[str]] = mapped_column(nullable=True)
    make: Mapped[Optional[str]] = mapped_column(nullable=True)
    model: Mapped[Optional[str]] = mapped_column(nullable=True)
    license_plate: Mapped[Optional[str]] = mapped_column(nullable=True)
    color: Mapped[Optional[str]] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    driver: Mapped[Optional["Driver"]] = relationship(back_populates="transfers")
    vehicle: Mapped[Optional["Vehicle"]] = relationship(back_populates="transfers")
    notifications: Mapped[List["TransferNotification"]] = relationship(back_populates="transfer")


class TransferNotification(Base):
    __tablename__ = "airport_transfer_notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    transfer_id: Mapped[int] = mapped_column(ForeignKey("airport_transfer.id"))
    driver_id: Mapped[str] = mapped_column(ForeignKey("drivers.id"))
    message: Mapped[Optional[str]] = mapped_column(nullable=True)
    status: Mapped[NotificationStatus] = mapped_column(
        SQLAEnum(NotificationStatus, name="notification_status"),
        default=NotificationStatus.pending
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    transfer: Mapped["AirportTransfer"] = relationship(back_populates="notifications")
    driver: Mapped["Driver"] = relationship(back_populates="notifications")
