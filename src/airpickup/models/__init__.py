"""Data models for guests, flight legs and pickup cars."""

from airpickup.models._base import PickupBaseModel, UtcDatetime, as_utc
from airpickup.models.car import Car, CarPlan, CarSave
from airpickup.models.guest import FlightLeg, Guest, GuestCreate, LegPayload
from airpickup.models.import_row import ImportRow
from airpickup.models.status import (
    TERMINAL_STATUSES,
    UNAVAILABLE,
    FlightStatus,
    ResolverResult,
    Unavailable,
    parse_flight_status,
)

__all__ = [
    "Car",
    "CarPlan",
    "CarSave",
    "FlightLeg",
    "FlightStatus",
    "Guest",
    "GuestCreate",
    "ImportRow",
    "LegPayload",
    "PickupBaseModel",
    "ResolverResult",
    "TERMINAL_STATUSES",
    "UNAVAILABLE",
    "Unavailable",
    "UtcDatetime",
    "as_utc",
    "parse_flight_status",
]
