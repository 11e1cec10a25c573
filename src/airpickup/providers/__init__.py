"""Flight-data provider access."""

from airpickup.providers.resolver import FlightStatusResolver, map_vendor_status, status_from_payload
from airpickup.providers.transport import AviationStackTransport, FlightDataTransport

__all__ = [
    "AviationStackTransport",
    "FlightDataTransport",
    "FlightStatusResolver",
    "map_vendor_status",
    "status_from_payload",
]
