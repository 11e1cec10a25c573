"""Flight status resolver.

Looks up one flight on one date at the flight-data provider and maps the
vendor vocabulary onto :class:`~airpickup.models.FlightStatus`. Every
provider problem ends as :data:`~airpickup.models.UNAVAILABLE`; deciding
what to do about it is the reconciliation policy's job.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from airpickup._constants import (
    AVIATIONSTACK_FLIGHTS_PATH,
    VENDOR_AIRBORNE,
    VENDOR_CANCELLED,
    VENDOR_DELAYED,
    VENDOR_LANDED,
    VENDOR_SCHEDULED,
)
from airpickup.config import PickupConfig
from airpickup.exceptions import ProviderUnavailableError
from airpickup.models.status import UNAVAILABLE, FlightStatus, ResolverResult
from airpickup.providers.transport import FlightDataTransport

_logger = logging.getLogger(__name__)


def _delay_minutes(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def map_vendor_status(flight_status: str | None, departure_delay: Any = None) -> FlightStatus:
    """Map an AviationStack ``flight_status`` onto :class:`FlightStatus`.

    ``scheduled`` becomes Delayed only when the provider reports a
    positive departure delay. Unknown or missing values are optimistic
    (On Time).
    """
    vendor = (flight_status or "").strip().lower()
    if vendor in VENDOR_CANCELLED:
        return FlightStatus.CANCELLED
    if vendor in VENDOR_LANDED:
        return FlightStatus.LANDED
    if vendor in VENDOR_DELAYED:
        return FlightStatus.DELAYED
    if vendor in VENDOR_SCHEDULED:
        return FlightStatus.DELAYED if _delay_minutes(departure_delay) > 0 else FlightStatus.ON_TIME
    if vendor not in VENDOR_AIRBORNE:
        _logger.debug("Unrecognised vendor status %r, assuming On Time", flight_status)
    return FlightStatus.ON_TIME


def status_from_payload(body: dict[str, Any]) -> ResolverResult:
    """Extract the status of the first flight in an AviationStack response."""
    data = body.get("data")
    if not isinstance(data, list) or not data:
        return UNAVAILABLE
    flight = data[0]
    if not isinstance(flight, dict):
        return UNAVAILABLE
    departure = flight.get("departure")
    delay = departure.get("delay") if isinstance(departure, dict) else None
    return map_vendor_status(flight.get("flight_status"), delay)


class FlightStatusResolver:
    """Resolve ``(airline + flight number, date)`` to a flight status.

    Usage::

        resolver = FlightStatusResolver(config, transport)
        result = await resolver.resolve("100", "XY", date(2026, 5, 1))
        if result is UNAVAILABLE:
            ...
    """

    def __init__(self, config: PickupConfig, transport: FlightDataTransport | None) -> None:
        self._config = config
        self._transport = transport
        self._warned_missing_key = False

    @property
    def enabled(self) -> bool:
        """Whether lookups can reach the provider at all."""
        return self._config.has_provider_credentials and self._transport is not None

    async def resolve(self, flight_number: str, airline_code: str, flight_date: date) -> ResolverResult:
        """Look up the current status of one flight.

        Never raises for provider failures; returns ``UNAVAILABLE`` instead.
        """
        if not self.enabled:
            if not self._warned_missing_key:
                _logger.warning("AviationStack API key not configured; flight status lookups are disabled")
                self._warned_missing_key = True
            return UNAVAILABLE
        assert self._transport is not None  # noqa: S101

        flight_iata = f"{airline_code}{flight_number}".replace(" ", "").upper()
        params = {
            "flight_iata": flight_iata,
            "flight_date": flight_date.isoformat(),
            "limit": 1,
        }

        try:
            body = await self._transport.get_json(AVIATIONSTACK_FLIGHTS_PATH, params)
        except ProviderUnavailableError as exc:
            _logger.warning("Flight status lookup for %s on %s failed: %s", flight_iata, flight_date, exc)
            return UNAVAILABLE

        result = status_from_payload(body)
        if result is UNAVAILABLE:
            _logger.info("No provider data for flight %s on %s", flight_iata, flight_date)
        else:
            _logger.debug("Flight %s on %s status: %s", flight_iata, flight_date, result)
        return result
