"""Flight status enumeration and the provider ``UNAVAILABLE`` marker."""

from __future__ import annotations

import enum
from typing import Annotated, Any, Final

from pydantic import BeforeValidator


class FlightStatus(enum.StrEnum):
    """Status of a flight leg as shown to coordinators."""

    ON_TIME = "On Time"
    DELAYED = "Delayed"
    CANCELLED = "Cancelled"
    LANDED = "Landed"

    @classmethod
    def _missing_(cls, value: object) -> FlightStatus | None:
        # Accept "OnTime", "on time", "ON_TIME", "on-time" and friends.
        if not isinstance(value, str):
            return None
        key = "".join(ch for ch in value.lower() if ch.isalnum())
        for member in cls:
            if key in {member.value.replace(" ", "").lower(), member.name.replace("_", "").lower()}:
                return member
        return None

    @property
    def is_terminal(self) -> bool:
        """Landed and Cancelled legs are never re-queried."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: Final[frozenset[FlightStatus]] = frozenset({FlightStatus.LANDED, FlightStatus.CANCELLED})


class Unavailable(enum.Enum):
    """Marker for a provider lookup that produced no answer."""

    UNAVAILABLE = "unavailable"

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE: Final = Unavailable.UNAVAILABLE

ResolverResult = FlightStatus | Unavailable


def parse_flight_status(value: Any) -> FlightStatus:
    """Coerce wire values into :class:`FlightStatus`.

    Raises :class:`ValueError` for anything that is not a known status.
    """
    if isinstance(value, FlightStatus):
        return value
    try:
        return FlightStatus(value)
    except ValueError:
        allowed = ", ".join(repr(m.value) for m in FlightStatus)
        raise ValueError(f"status must be one of {allowed}, got {value!r}") from None


StatusField = Annotated[FlightStatus, BeforeValidator(parse_flight_status)]
