"""airpickup - guest, flight and pickup-car coordination for airport arrivals."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("airpickup")
except PackageNotFoundError:
    __version__ = "0+local"
from airpickup.assignment import assign_cars
from airpickup.config import PickupConfig
from airpickup.exceptions import (
    PickupConfigError,
    PickupError,
    PickupNotFoundError,
    PickupPersistenceError,
    PickupValidationError,
    ProviderUnavailableError,
)
from airpickup.manager import PickupManager
from airpickup.models import (
    UNAVAILABLE,
    Car,
    CarPlan,
    CarSave,
    FlightLeg,
    FlightStatus,
    Guest,
    GuestCreate,
    ImportRow,
    LegPayload,
    Unavailable,
)
from airpickup.providers import FlightStatusResolver, map_vendor_status
from airpickup.reconciler import ReconcileReport, StatusReconciler
from airpickup.state.policy import is_terminal, reconcile
from airpickup.state.store import PickupStore

__all__ = [
    "__version__",
    "Car",
    "CarPlan",
    "CarSave",
    "FlightLeg",
    "FlightStatus",
    "FlightStatusResolver",
    "Guest",
    "GuestCreate",
    "ImportRow",
    "LegPayload",
    "PickupConfig",
    "PickupConfigError",
    "PickupError",
    "PickupManager",
    "PickupNotFoundError",
    "PickupPersistenceError",
    "PickupStore",
    "PickupValidationError",
    "ProviderUnavailableError",
    "ReconcileReport",
    "StatusReconciler",
    "UNAVAILABLE",
    "Unavailable",
    "assign_cars",
    "is_terminal",
    "map_vendor_status",
    "reconcile",
]
