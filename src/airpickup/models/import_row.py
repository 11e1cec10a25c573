"""Bulk-import row model (one spreadsheet line per guest)."""

from __future__ import annotations

import datetime as dt

from pydantic import Field, ValidationError, field_validator

from airpickup.exceptions import PickupValidationError
from airpickup.models._base import Code, PickupBaseModel
from airpickup.models.guest import GuestCreate, LegPayload


class ImportRow(PickupBaseModel):
    """A single-leg guest as it appears in an uploaded sheet.

    ``date`` and ``time`` are the local arrival date and time; together they
    form the leg ETA (naive, stored as UTC like every other naive time).
    """

    name: str = Field(min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    flight: Code = Field(min_length=1, max_length=16)
    airline: Code = Field(min_length=1, max_length=8)
    origin: str = Field(min_length=1, max_length=64)
    destination: str | None = Field(default=None, max_length=64)
    date: dt.date
    time: dt.time

    @field_validator("phone", "destination")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        return value or None

    @property
    def eta(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.time)

    def to_guest(self, default_destination: str | None = None) -> GuestCreate:
        """Build the guest payload for this row.

        Raises
        ------
        PickupValidationError
            If the row has no destination and no default is configured, or
            the default destination does not fit a flight leg.
        """
        destination = self.destination or default_destination
        if not destination:
            raise PickupValidationError(f"import row for {self.name!r} has no destination and no default is configured")
        try:
            leg = LegPayload(
                flight=self.flight,
                airline=self.airline,
                origin=self.origin,
                destination=destination,
                eta=self.eta,
            )
            return GuestCreate(name=self.name, phone=self.phone, legs=[leg])
        except ValidationError as exc:
            raise PickupValidationError(
                f"import row for {self.name!r} is invalid: {exc.error_count()} error(s)",
                errors=exc.errors(include_url=False),
            ) from exc
