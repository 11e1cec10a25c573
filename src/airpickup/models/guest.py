"""Guest and flight-leg models.

``LegPayload`` and ``GuestCreate`` describe what an API layer sends in;
``FlightLeg`` and ``Guest`` are the read views the store hands back.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, computed_field, field_validator

from airpickup.models._base import Code, PickupBaseModel, UtcDatetime
from airpickup.models.status import FlightStatus, StatusField


class LegPayload(PickupBaseModel):
    """One flight segment of an inbound guest payload."""

    flight: Code = Field(min_length=1, max_length=16)
    """Flight number without the airline prefix (e.g. ``"100"``)."""
    airline: Code = Field(min_length=1, max_length=8)
    """IATA airline code (e.g. ``"XY"``)."""
    origin: str = Field(min_length=1, max_length=64)
    destination: str = Field(min_length=1, max_length=64)
    eta: UtcDatetime
    """Scheduled arrival time."""
    status: StatusField = FlightStatus.ON_TIME

    @property
    def flight_code(self) -> str:
        return f"{self.airline}{self.flight}"


class GuestCreate(PickupBaseModel):
    """Inbound guest payload used for both create and full update."""

    name: str = Field(min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    legs: list[LegPayload]

    @field_validator("legs")
    @classmethod
    def _require_legs(cls, value: list[LegPayload]) -> list[LegPayload]:
        if not value:
            raise ValueError("a guest needs at least one flight leg")
        return value

    @field_validator("phone")
    @classmethod
    def _blank_phone_is_none(cls, value: str | None) -> str | None:
        return value or None


class FlightLeg(PickupBaseModel):
    """A stored flight leg."""

    id: int
    guest_id: int
    leg_order: int
    """Position of the leg in the itinerary, starting at 0."""
    flight: str
    airline: str
    origin: str
    destination: str
    eta: UtcDatetime
    status: FlightStatus

    @property
    def flight_code(self) -> str:
        return f"{self.airline}{self.flight}"


class Guest(PickupBaseModel):
    """A stored guest with its ordered itinerary.

    ``final_destination``, ``final_eta`` and ``status`` are derived from the
    last leg every time they are read.
    """

    id: int
    name: str
    phone: str | None = None
    created_at: UtcDatetime
    legs: tuple[FlightLeg, ...]
    """Legs ordered by ``leg_order`` (ties broken by ETA)."""
    car_assigned: int | None = None
    """Id of the car the guest rides in, if any."""

    @property
    def final_leg(self) -> FlightLeg:
        return self.legs[-1]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def final_destination(self) -> str:
        return self.final_leg.destination

    @computed_field  # type: ignore[prop-decorator]
    @property
    def final_eta(self) -> datetime:
        return self.final_leg.eta

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> FlightStatus:
        return self.final_leg.status
