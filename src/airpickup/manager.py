"""High-level async facade used by an HTTP layer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, date, datetime
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from airpickup.assignment import assign_cars
from airpickup.config import PickupConfig
from airpickup.exceptions import PickupError, PickupValidationError
from airpickup.models.car import Car, CarSave
from airpickup.models.guest import Guest, GuestCreate, LegPayload
from airpickup.models.import_row import ImportRow
from airpickup.models.status import UNAVAILABLE, FlightStatus
from airpickup.providers.resolver import FlightStatusResolver
from airpickup.providers.transport import AviationStackTransport, FlightDataTransport
from airpickup.reconciler import ReconcileReport, StatusReconciler
from airpickup.state.store import PickupStore

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _coerce(model_cls: type[M], payload: M | Mapping[str, Any]) -> M:
    """Accept a model instance or a decoded JSON object."""
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        raise PickupValidationError(
            f"Invalid {model_cls.__name__}: {exc.error_count()} error(s)",
            errors=exc.errors(include_url=False),
        ) from exc


class PickupManager:
    """Guest, car and flight-status operations behind one object.

    Usage::

        async with PickupManager(PickupConfig.from_env()) as manager:
            guest = await manager.create_guest({"name": "Ada", "legs": [...]})
            manager.start_auto_refresh()
            cars = await manager.auto_assign_cars()

    Store-backed methods run the blocking database work in a worker
    thread. Payload arguments accept either the pydantic model or the
    plain dict decoded from a JSON request body.
    """

    def __init__(
        self,
        config: PickupConfig,
        *,
        store: PickupStore | None = None,
        http_session: aiohttp.ClientSession | None = None,
        transport: FlightDataTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._external_store = store is not None
        self._store = store if store is not None else PickupStore.from_config(config)
        self._external_session = http_session is not None
        self._http_session = http_session
        self._transport = transport
        self._clock = clock
        self._resolver: FlightStatusResolver | None = None
        self._reconciler: StatusReconciler | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PickupManager:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = AviationStackTransport(self._config, self._http_session)
        self._resolver = FlightStatusResolver(self._config, self._transport)
        self._reconciler = StatusReconciler(
            self._store,
            self._resolver,
            timeout=self._config.provider_timeout,
            max_concurrency=self._config.refresh_concurrency,
            clock=self._clock,
        )
        await asyncio.to_thread(self._store.create_schema)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._reconciler is not None:
            await self._reconciler.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_store:
            self._store.dispose()
        self._reconciler = None
        self._resolver = None

    @property
    def config(self) -> PickupConfig:
        return self._config

    @property
    def store(self) -> PickupStore:
        return self._store

    def _require_resolver(self) -> FlightStatusResolver:
        if self._resolver is None:
            raise PickupError("Manager not initialized. Use 'async with PickupManager(...) as manager:'")
        return self._resolver

    def _require_reconciler(self) -> StatusReconciler:
        if self._reconciler is None:
            raise PickupError("Manager not initialized. Use 'async with PickupManager(...) as manager:'")
        return self._reconciler

    # ------------------------------------------------------------------
    # Guests
    # ------------------------------------------------------------------

    async def create_guest(self, payload: GuestCreate | Mapping[str, Any]) -> Guest:
        guest = _coerce(GuestCreate, payload)
        return await asyncio.to_thread(self._store.create_guest, guest)

    async def get_guest(self, guest_id: int) -> Guest:
        return await asyncio.to_thread(self._store.get_guest, guest_id)

    async def list_guests(self) -> list[Guest]:
        """Guests as last recorded; never waits on a status refresh."""
        return await asyncio.to_thread(self._store.list_guests)

    async def update_guest(self, guest_id: int, payload: GuestCreate | Mapping[str, Any]) -> Guest:
        guest = _coerce(GuestCreate, payload)
        return await asyncio.to_thread(self._store.update_guest, guest_id, guest)

    async def replace_guest_legs(
        self, guest_id: int, legs: Sequence[LegPayload | Mapping[str, Any]]
    ) -> Guest:
        parsed = [_coerce(LegPayload, leg) for leg in legs]
        return await asyncio.to_thread(self._store.replace_guest_legs, guest_id, parsed)

    async def delete_guest(self, guest_id: int) -> None:
        await asyncio.to_thread(self._store.delete_guest, guest_id)

    async def import_guests(self, rows: Sequence[ImportRow | Mapping[str, Any]]) -> list[Guest]:
        """Create one guest per import row; either every row lands or none does."""
        parsed = [_coerce(ImportRow, row) for row in rows]
        return await asyncio.to_thread(self._store.import_guests, parsed, self._config.default_destination)

    # ------------------------------------------------------------------
    # Cars
    # ------------------------------------------------------------------

    async def list_cars(self) -> list[Car]:
        return await asyncio.to_thread(self._store.list_cars)

    async def get_car(self, car_id: int) -> Car:
        return await asyncio.to_thread(self._store.get_car, car_id)

    async def save_car(self, payload: CarSave | Mapping[str, Any]) -> Car:
        car = _coerce(CarSave, payload)
        return await asyncio.to_thread(self._store.save_car, car)

    async def update_car(self, car_id: int, payload: CarSave | Mapping[str, Any]) -> Car:
        car = _coerce(CarSave, payload)
        return await asyncio.to_thread(self._store.update_car, car_id, car)

    async def delete_car(self, car_id: int) -> None:
        await asyncio.to_thread(self._store.delete_car, car_id)

    async def delete_all_cars(self) -> int:
        return await asyncio.to_thread(self._store.delete_all_cars)

    async def auto_assign_cars(self, capacity: int | None = None) -> list[Car]:
        """Discard every car and rebuild them from the current guest list."""
        seats = self._config.car_capacity if capacity is None else capacity
        guests = await asyncio.to_thread(self._store.list_guests)
        plans = assign_cars(guests, seats)
        cars = await asyncio.to_thread(self._store.replace_cars, plans)
        _logger.info("Auto-assigned %d guest(s) into %d car(s) of %d seats", len(guests), len(cars), seats)
        return cars

    # ------------------------------------------------------------------
    # Flight status
    # ------------------------------------------------------------------

    async def flight_status(self, flight: str, airline: str, flight_date: date | None = None) -> FlightStatus:
        """Single status lookup; On Time whenever the provider cannot answer."""
        if not flight or not airline:
            raise PickupValidationError("flight and airline are required")
        day = flight_date if flight_date is not None else self._clock().date()
        resolver = self._require_resolver()
        try:
            result = await asyncio.wait_for(
                resolver.resolve(flight, airline, day), timeout=self._config.provider_timeout
            )
        except TimeoutError:
            _logger.warning(
                "Status lookup for %s%s timed out after %.1fs", airline, flight, self._config.provider_timeout
            )
            return FlightStatus.ON_TIME
        if result is UNAVAILABLE:
            return FlightStatus.ON_TIME
        return result

    async def reconcile_now(self) -> ReconcileReport:
        """Run one reconciliation pass immediately."""
        return await self._require_reconciler().run_pass()

    def start_auto_refresh(self, interval: float | None = None) -> None:
        """Start periodic reconciliation on the running event loop."""
        self._require_reconciler().start(self._config.refresh_interval if interval is None else interval)

    async def stop_auto_refresh(self) -> None:
        await self._require_reconciler().stop()
