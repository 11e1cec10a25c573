"""Base model and shared field types.

Every airpickup payload and view inherits from :class:`PickupBaseModel`
which provides:

* ``alias_generator=to_camel`` so the camelCase keys of the JSON API map
  to snake_case fields, and ``model_dump(by_alias=True)`` produces them
  again.
* ``populate_by_name=True`` so Python callers can use field names.
* Whitespace stripping on every string field.

Timestamps use :data:`UtcDatetime`, which treats naive values as UTC and
normalises aware values to UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
"""Datetime coerced to aware UTC."""


def upper_code(value: str) -> str:
    """Normalise an airline/flight/airport code: no inner spaces, upper-case."""
    return "".join(value.split()).upper()


Code = Annotated[str, AfterValidator(upper_code)]


class PickupBaseModel(BaseModel):
    """Base for airpickup payloads and views."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON shape used on the wire."""
        return self.model_dump(mode="json", by_alias=True)
