"""Internal constants shared across the library."""

AVIATIONSTACK_BASE_URL = "http://api.aviationstack.com/v1"
AVIATIONSTACK_FLIGHTS_PATH = "/flights"
USER_AGENT = "airpickup/1"

DEFAULT_CAR_CAPACITY = 5
DEFAULT_PROVIDER_TIMEOUT = 8.0
DEFAULT_REFRESH_INTERVAL = 10 * 60.0

# ------------------------------------------------------------------
# AviationStack ``flight_status`` vocabulary
# ------------------------------------------------------------------

VENDOR_CANCELLED: frozenset[str] = frozenset({"cancelled", "canceled"})
VENDOR_LANDED: frozenset[str] = frozenset({"landed"})
VENDOR_AIRBORNE: frozenset[str] = frozenset({"active", "en-route"})
VENDOR_SCHEDULED: frozenset[str] = frozenset({"scheduled"})
VENDOR_DELAYED: frozenset[str] = frozenset({"delayed"})
