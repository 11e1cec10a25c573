"""SQLAlchemy tables for guests, flight legs and cars.

``car_passengers`` is the only record of who rides where: a guest's car
and a car's passenger list are two reads of the same rows, and the unique
``guest_id`` keeps each guest in at most one car. The relationships onto
that table are read-only; the store writes seat rows explicitly.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from airpickup.models.status import FlightStatus


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class GuestRecord(Base):
    __tablename__ = "guests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    legs: Mapped[list[FlightLegRecord]] = relationship(
        back_populates="guest",
        cascade="all, delete-orphan",
        order_by=lambda: [FlightLegRecord.leg_order, FlightLegRecord.eta],
    )
    seat: Mapped[CarPassengerRecord | None] = relationship(viewonly=True)

    def __repr__(self) -> str:
        return f"<GuestRecord {self.id} {self.name!r}>"


class FlightLegRecord(Base):
    __tablename__ = "flight_legs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guest_id: Mapped[int] = mapped_column(ForeignKey("guests.id", ondelete="CASCADE"), nullable=False)
    leg_order: Mapped[int] = mapped_column(Integer, nullable=False)
    flight_number: Mapped[str] = mapped_column(String(16), nullable=False)
    airline: Mapped[str] = mapped_column(String(8), nullable=False)
    origin: Mapped[str] = mapped_column(String(64), nullable=False)
    destination: Mapped[str] = mapped_column(String(64), nullable=False)
    eta: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[FlightStatus] = mapped_column(
        Enum(
            FlightStatus,
            native_enum=False,
            length=16,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=FlightStatus.ON_TIME,
    )

    guest: Mapped[GuestRecord] = relationship(back_populates="legs")

    __table_args__ = (
        Index("ix_flight_legs_guest_order", "guest_id", "leg_order"),
        Index("ix_flight_legs_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<FlightLegRecord {self.id} {self.airline}{self.flight_number} {self.status.value}>"


class CarRecord(Base):
    __tablename__ = "cars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    destination: Mapped[str | None] = mapped_column(String(64))
    eta: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    flight: Mapped[str | None] = mapped_column(String(24))
    driver_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    driver_phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    seats: Mapped[list[CarPassengerRecord]] = relationship(
        viewonly=True,
        order_by=lambda: CarPassengerRecord.seat,
    )

    def __repr__(self) -> str:
        return f"<CarRecord {self.id} capacity={self.capacity}>"


class CarPassengerRecord(Base):
    __tablename__ = "car_passengers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    car_id: Mapped[int] = mapped_column(ForeignKey("cars.id", ondelete="CASCADE"), nullable=False)
    guest_id: Mapped[int] = mapped_column(ForeignKey("guests.id", ondelete="CASCADE"), nullable=False)
    seat: Mapped[int] = mapped_column(Integer, nullable=False)
    """Position of the passenger in the car, starting at 0."""

    __table_args__ = (UniqueConstraint("guest_id", name="uq_car_passengers_guest"),)
