"""Pickup car models."""

from __future__ import annotations

from pydantic import Field

from airpickup._constants import DEFAULT_CAR_CAPACITY
from airpickup.models._base import PickupBaseModel, UtcDatetime


class CarSave(PickupBaseModel):
    """Inbound car payload (create, upsert or update).

    ``passengers`` is the ordered list of guest ids riding in the car.
    """

    id: int | None = Field(default=None, ge=1)
    passengers: list[int] = Field(default_factory=list)
    capacity: int = Field(default=DEFAULT_CAR_CAPACITY, ge=1)
    destination: str | None = None
    eta: UtcDatetime | None = None
    flight: str | None = None
    driver_name: str = ""
    driver_phone: str = ""
    notes: str = ""


class Car(PickupBaseModel):
    """A stored pickup car."""

    id: int
    passengers: tuple[int, ...] = ()
    """Guest ids in seat order."""
    capacity: int = DEFAULT_CAR_CAPACITY
    destination: str | None = None
    eta: UtcDatetime | None = None
    flight: str | None = None
    """Flight code (airline + number) the car was organised around."""
    driver_name: str = ""
    driver_phone: str = ""
    notes: str = ""

    @property
    def seats_left(self) -> int:
        return max(0, self.capacity - len(self.passengers))


class CarPlan(PickupBaseModel):
    """One car produced by the assignment engine, not yet persisted."""

    number: int
    """Sequential car number across the whole assignment run, from 1."""
    capacity: int
    passengers: tuple[int, ...]
    destination: str
    eta: UtcDatetime
    flight: str
