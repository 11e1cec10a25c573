"""End-to-end tests through the async facade with an in-memory store."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any

import pytest

from airpickup import (
    FlightStatus,
    PickupConfig,
    PickupError,
    PickupManager,
    PickupNotFoundError,
    PickupValidationError,
    ProviderUnavailableError,
)
from airpickup.state.store import PickupStore

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _clock() -> datetime:
    return NOW


class _FakeTransport:
    def __init__(self) -> None:
        self.statuses: dict[str, str] = {}
        self.fail = False
        self.calls: list[dict[str, Any]] = []
        self.delay = 0.0

    async def get_json(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        self.calls.append(dict(params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderUnavailableError("HTTP 500", status_code=500)
        vendor = self.statuses.get(params["flight_iata"])
        if vendor is None:
            return {"data": []}
        return {"data": [{"flight_status": vendor, "departure": {"delay": None}}]}


def _guest_json(name: str, flight: str = "100", eta: str = "2026-05-01T14:30:00Z") -> dict[str, Any]:
    return {
        "name": name,
        "phone": "+15550100",
        "legs": [
            {"flight": flight, "airline": "XY", "origin": "LHR", "destination": "TLV", "eta": eta},
        ],
    }


def _manager(store: PickupStore, transport: _FakeTransport, **config: Any) -> PickupManager:
    settings: dict[str, Any] = {"database_url": "sqlite://", "aviationstack_api_key": "k3y", **config}
    return PickupManager(PickupConfig(**settings), store=store, transport=transport, clock=_clock)


@pytest.mark.asyncio
async def test_guest_lifecycle(store: PickupStore) -> None:
    async with _manager(store, _FakeTransport()) as manager:
        guest = await manager.create_guest(_guest_json("Ada"))
        assert guest.final_destination == "TLV"
        assert guest.status is FlightStatus.ON_TIME

        two_legs = {
            "name": "Ada",
            "legs": [
                {"flight": "9", "airline": "ZZ", "origin": "JFK", "destination": "LHR", "eta": "2026-05-01T06:00:00Z"},
                {"flight": "100", "airline": "XY", "origin": "LHR", "destination": "ETM", "eta": "2026-05-01T14:30:00Z"},
            ],
        }
        updated = await manager.update_guest(guest.id, two_legs)
        assert [leg.flight_code for leg in updated.legs] == ["ZZ9", "XY100"]
        assert updated.final_destination == "ETM"

        replaced = await manager.replace_guest_legs(guest.id, [two_legs["legs"][0]])
        assert replaced.final_destination == "LHR"

        await manager.delete_guest(guest.id)
        assert await manager.list_guests() == []
        with pytest.raises(PickupNotFoundError):
            await manager.get_guest(guest.id)


@pytest.mark.asyncio
async def test_invalid_payload_reports_field_errors(store: PickupStore) -> None:
    async with _manager(store, _FakeTransport()) as manager:
        with pytest.raises(PickupValidationError) as excinfo:
            await manager.create_guest({"name": "Ada", "legs": [{"flight": "100"}]})

    locations = {tuple(error["loc"]) for error in excinfo.value.errors}
    assert ("legs", 0, "airline") in locations
    assert ("legs", 0, "eta") in locations


@pytest.mark.asyncio
async def test_auto_assign_rebuilds_cars(store: PickupStore) -> None:
    async with _manager(store, _FakeTransport()) as manager:
        ids = [(await manager.create_guest(_guest_json(f"Guest {n}"))).id for n in range(6)]
        other = (await manager.create_guest(_guest_json("Solo", flight="200"))).id
        await manager.save_car({"id": 40, "passengers": [ids[0]], "driverName": "Sam"})

        cars = await manager.auto_assign_cars()

        assert [(car.id, car.passengers) for car in cars] == [
            (1, tuple(ids[:5])),
            (2, (ids[5],)),
            (3, (other,)),
        ]
        assert [car.id for car in await manager.list_cars()] == [1, 2, 3]
        assert (await manager.get_guest(ids[5])).car_assigned == 2

        smaller = await manager.auto_assign_cars(capacity=4)
        assert [len(car.passengers) for car in smaller] == [4, 2, 1]

        assert await manager.delete_all_cars() == 3
        assert (await manager.get_guest(ids[0])).car_assigned is None


@pytest.mark.asyncio
async def test_manual_car_edits(store: PickupStore) -> None:
    async with _manager(store, _FakeTransport()) as manager:
        ada = (await manager.create_guest(_guest_json("Ada"))).id
        car = await manager.save_car({"passengers": [ada], "capacity": 4, "notes": "van"})
        assert car.id == 1

        car = await manager.update_car(car.id, {"passengers": [], "capacity": 4, "driverPhone": "555"})
        assert car.passengers == ()
        assert car.driver_phone == "555"
        assert (await manager.get_car(car.id)).notes == ""

        await manager.delete_car(car.id)
        with pytest.raises(PickupNotFoundError):
            await manager.get_car(car.id)


@pytest.mark.asyncio
async def test_import_uses_configured_destination(store: PickupStore) -> None:
    rows = [
        {"name": "Ada", "phone": "", "flight": "100", "airline": "xy", "origin": "LHR", "destination": "",
         "date": "2026-05-01", "time": "14:30"},
    ]
    async with _manager(store, _FakeTransport(), default_destination="Hotel Dan") as manager:
        guests = await manager.import_guests(rows)

    assert guests[0].final_destination == "Hotel Dan"
    assert guests[0].legs[0].flight_code == "XY100"


@pytest.mark.asyncio
async def test_import_with_overlong_fields_is_a_validation_error(store: PickupStore) -> None:
    row = {"name": "Ada", "flight": "100", "airline": "XY", "origin": "LHR", "date": "2026-05-01", "time": "14:30"}
    async with _manager(store, _FakeTransport(), default_destination="D" * 80) as manager:
        with pytest.raises(PickupValidationError):
            await manager.import_guests([{**row, "phone": "1" * 80, "destination": "TLV"}])
        with pytest.raises(PickupValidationError):
            await manager.import_guests([row])

        assert await manager.list_guests() == []


@pytest.mark.asyncio
async def test_flight_status_lookup(store: PickupStore) -> None:
    transport = _FakeTransport()
    transport.statuses["XY100"] = "landed"
    async with _manager(store, transport) as manager:
        assert await manager.flight_status("100", "XY") is FlightStatus.LANDED
        assert transport.calls[-1]["flight_date"] == "2026-05-01"

        assert await manager.flight_status("200", "XY", date(2026, 5, 2)) is FlightStatus.ON_TIME
        assert transport.calls[-1]["flight_date"] == "2026-05-02"

        transport.fail = True
        assert await manager.flight_status("100", "XY") is FlightStatus.ON_TIME

        with pytest.raises(PickupValidationError):
            await manager.flight_status("", "XY")


@pytest.mark.asyncio
async def test_flight_status_without_key_is_on_time(store: PickupStore) -> None:
    transport = _FakeTransport()
    transport.statuses["XY100"] = "cancelled"
    async with _manager(store, transport, aviationstack_api_key=None) as manager:
        assert await manager.flight_status("100", "XY") is FlightStatus.ON_TIME
    assert transport.calls == []


@pytest.mark.asyncio
async def test_slow_flight_status_lookup_is_on_time(store: PickupStore) -> None:
    transport = _FakeTransport()
    transport.statuses["XY100"] = "cancelled"
    transport.delay = 1.0
    async with _manager(store, transport, provider_timeout=0.01) as manager:
        assert await manager.flight_status("100", "XY") is FlightStatus.ON_TIME


@pytest.mark.asyncio
async def test_reconcile_now_updates_statuses(store: PickupStore) -> None:
    transport = _FakeTransport()
    transport.statuses["XY100"] = "cancelled"
    async with _manager(store, transport) as manager:
        cancelled = await manager.create_guest(_guest_json("Ada"))
        past = await manager.create_guest(_guest_json("Ben", flight="200", eta="2026-05-01T11:00:00Z"))

        report = await manager.reconcile_now()

        assert (report.checked, report.changed, report.unavailable) == (2, 2, 1)
        assert (await manager.get_guest(cancelled.id)).status is FlightStatus.CANCELLED
        assert (await manager.get_guest(past.id)).status is FlightStatus.LANDED

        manager.start_auto_refresh(interval=3600)
        await manager.stop_auto_refresh()


@pytest.mark.asyncio
async def test_requires_context_manager(store: PickupStore) -> None:
    manager = _manager(store, _FakeTransport())
    with pytest.raises(PickupError, match="not initialized"):
        await manager.flight_status("100", "XY")
    with pytest.raises(PickupError, match="not initialized"):
        await manager.reconcile_now()
