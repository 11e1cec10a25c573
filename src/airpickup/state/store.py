"""Persistent store for guests, flight legs and cars.

Every write runs as one unit of work: it either commits completely or is
rolled back. Database failures surface as
:class:`~airpickup.exceptions.PickupPersistenceError`; anything else
(validation, not-found) is rolled back and re-raised unchanged.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Engine, create_engine, delete, event, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from sqlalchemy.pool import StaticPool

from airpickup._redact import redact_for_log
from airpickup.config import PickupConfig
from airpickup.exceptions import PickupNotFoundError, PickupPersistenceError, PickupValidationError
from airpickup.models._base import as_utc
from airpickup.models.car import Car, CarPlan, CarSave
from airpickup.models.guest import FlightLeg, Guest, GuestCreate, LegPayload
from airpickup.models.import_row import ImportRow
from airpickup.models.status import TERMINAL_STATUSES, FlightStatus
from airpickup.state.schema import Base, CarPassengerRecord, CarRecord, FlightLegRecord, GuestRecord

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LegRef:
    """What a reconciliation pass needs to know about one leg."""

    leg_id: int
    guest_id: int
    flight_number: str
    airline: str
    eta: datetime
    status: FlightStatus


# ------------------------------------------------------------------
# Record <-> model conversion
# ------------------------------------------------------------------


def _leg_record(guest_id: int | None, position: int, payload: LegPayload) -> FlightLegRecord:
    record = FlightLegRecord(
        leg_order=position,
        flight_number=payload.flight,
        airline=payload.airline,
        origin=payload.origin,
        destination=payload.destination,
        eta=as_utc(payload.eta),
        status=payload.status,
    )
    if guest_id is not None:
        record.guest_id = guest_id
    return record


def _leg_view(record: FlightLegRecord) -> FlightLeg:
    return FlightLeg(
        id=record.id,
        guest_id=record.guest_id,
        leg_order=record.leg_order,
        flight=record.flight_number,
        airline=record.airline,
        origin=record.origin,
        destination=record.destination,
        eta=record.eta,
        status=record.status,
    )


def _guest_view(record: GuestRecord) -> Guest:
    return Guest(
        id=record.id,
        name=record.name,
        phone=record.phone,
        created_at=record.created_at,
        legs=tuple(_leg_view(leg) for leg in record.legs),
        car_assigned=record.seat.car_id if record.seat is not None else None,
    )


def _car_view(record: CarRecord) -> Car:
    return Car(
        id=record.id,
        passengers=tuple(seat.guest_id for seat in record.seats),
        capacity=record.capacity,
        destination=record.destination,
        eta=record.eta,
        flight=record.flight,
        driver_name=record.driver_name,
        driver_phone=record.driver_phone,
        notes=record.notes,
    )


def _unique(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    ordered: list[int] = []
    for guest_id in ids:
        if guest_id not in seen:
            seen.add(guest_id)
            ordered.append(guest_id)
    return ordered


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for *url*.

    SQLite databases are shared with worker threads; in-memory SQLite uses
    a single static connection so every session sees the same data.
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in {"sqlite://", "sqlite:///:memory:"} or "mode=memory" in url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class PickupStore:
    """Guest, leg and car persistence over a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessionmaker = sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_config(cls, config: PickupConfig) -> PickupStore:
        return cls(build_engine(config.database_url, echo=config.sql_echo))

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create missing tables."""
        Base.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    @contextlib.contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Open a session whose work commits on success and rolls back on error."""
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PickupPersistenceError(f"Database write failed: {exc}") from exc
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Guests
    # ------------------------------------------------------------------

    def _require_guest(self, session: Session, guest_id: int) -> GuestRecord:
        record = session.get(GuestRecord, guest_id)
        if record is None:
            raise PickupNotFoundError("Guest", guest_id)
        return record

    def _insert_guest(self, session: Session, payload: GuestCreate) -> GuestRecord:
        record = GuestRecord(
            name=payload.name,
            phone=payload.phone,
            legs=[_leg_record(None, position, leg) for position, leg in enumerate(payload.legs)],
        )
        session.add(record)
        return record

    def create_guest(self, payload: GuestCreate) -> Guest:
        """Insert a guest together with its legs."""
        with self.unit_of_work() as session:
            record = self._insert_guest(session, payload)
            session.flush()
            guest = _guest_view(record)
        _logger.debug("Created guest %s: %s", guest.id, redact_for_log(payload))
        return guest

    def get_guest(self, guest_id: int) -> Guest:
        with self.unit_of_work() as session:
            return _guest_view(self._require_guest(session, guest_id))

    def list_guests(self) -> list[Guest]:
        """All guests, newest first, each with legs in itinerary order."""
        stmt = (
            select(GuestRecord)
            .options(selectinload(GuestRecord.legs), selectinload(GuestRecord.seat))
            .order_by(GuestRecord.created_at.desc(), GuestRecord.id.desc())
        )
        with self.unit_of_work() as session:
            return [_guest_view(record) for record in session.scalars(stmt)]

    def _replace_legs(self, session: Session, record: GuestRecord, legs: Sequence[LegPayload]) -> None:
        session.execute(delete(FlightLegRecord).where(FlightLegRecord.guest_id == record.id))
        for position, leg in enumerate(legs):
            session.add(_leg_record(record.id, position, leg))
        session.flush()
        session.expire(record)

    def replace_guest_legs(self, guest_id: int, legs: Sequence[LegPayload]) -> Guest:
        """Swap the whole itinerary of a guest in one transaction.

        Raises
        ------
        PickupNotFoundError
            If the guest does not exist.
        """
        if not legs:
            raise PickupValidationError("a guest needs at least one flight leg")
        with self.unit_of_work() as session:
            record = self._require_guest(session, guest_id)
            self._replace_legs(session, record, legs)
            return _guest_view(record)

    def update_guest(self, guest_id: int, payload: GuestCreate) -> Guest:
        """Replace name, phone and the full leg set of a guest atomically."""
        _logger.debug("Updating guest %s: %s", guest_id, redact_for_log(payload))
        with self.unit_of_work() as session:
            record = self._require_guest(session, guest_id)
            record.name = payload.name
            record.phone = payload.phone
            self._replace_legs(session, record, payload.legs)
            return _guest_view(record)

    def delete_guest(self, guest_id: int) -> None:
        """Delete a guest, its legs and its seat in any car."""
        with self.unit_of_work() as session:
            record = self._require_guest(session, guest_id)
            session.execute(delete(CarPassengerRecord).where(CarPassengerRecord.guest_id == guest_id))
            session.delete(record)
        _logger.debug("Deleted guest %s", guest_id)

    def import_guests(self, rows: Sequence[ImportRow], default_destination: str | None = None) -> list[Guest]:
        """Insert one single-leg guest per row; all rows or none."""
        payloads = [row.to_guest(default_destination) for row in rows]
        with self.unit_of_work() as session:
            records = [self._insert_guest(session, payload) for payload in payloads]
            session.flush()
            guests = [_guest_view(record) for record in records]
        _logger.info("Imported %d guest(s)", len(guests))
        return guests

    # ------------------------------------------------------------------
    # Leg status
    # ------------------------------------------------------------------

    def list_reconcilable_legs(self) -> list[LegRef]:
        """Every leg whose status is not terminal, in a stable order."""
        stmt = (
            select(FlightLegRecord)
            .where(FlightLegRecord.status.not_in(sorted(TERMINAL_STATUSES)))
            .order_by(FlightLegRecord.eta, FlightLegRecord.id)
        )
        with self.unit_of_work() as session:
            return [
                LegRef(
                    leg_id=leg.id,
                    guest_id=leg.guest_id,
                    flight_number=leg.flight_number,
                    airline=leg.airline,
                    eta=as_utc(leg.eta),
                    status=leg.status,
                )
                for leg in session.scalars(stmt)
            ]

    def set_leg_status(self, leg_id: int, status: FlightStatus) -> bool:
        """Record a new status for one leg.

        Returns ``False`` when nothing changed, including when the leg was
        deleted since it was read.
        """
        with self.unit_of_work() as session:
            leg = session.get(FlightLegRecord, leg_id)
            if leg is None or leg.status == status:
                return False
            leg.status = status
            return True

    # ------------------------------------------------------------------
    # Cars
    # ------------------------------------------------------------------

    def _require_car(self, session: Session, car_id: int) -> CarRecord:
        record = session.get(CarRecord, car_id)
        if record is None:
            raise PickupNotFoundError("Car", car_id)
        return record

    def _check_guests_exist(self, session: Session, guest_ids: Sequence[int]) -> None:
        if not guest_ids:
            return
        found = set(session.scalars(select(GuestRecord.id).where(GuestRecord.id.in_(guest_ids))))
        for guest_id in guest_ids:
            if guest_id not in found:
                raise PickupNotFoundError("Guest", guest_id)

    def _write_car(self, session: Session, car_id: int, payload: CarSave) -> CarRecord:
        _logger.debug("Writing car %s: %s", car_id, redact_for_log(payload))
        passengers = _unique(payload.passengers)
        self._check_guests_exist(session, passengers)
        if len(passengers) > payload.capacity:
            _logger.warning("Car %s has %d passengers for %d seats", car_id, len(passengers), payload.capacity)

        # A guest rides in one car only: drop their old seats first.
        session.execute(
            delete(CarPassengerRecord).where(
                (CarPassengerRecord.car_id == car_id) | CarPassengerRecord.guest_id.in_(passengers)
            )
        )

        record = session.get(CarRecord, car_id)
        if record is None:
            record = CarRecord(id=car_id)
            session.add(record)
        record.capacity = payload.capacity
        record.destination = payload.destination
        record.eta = as_utc(payload.eta) if payload.eta is not None else None
        record.flight = payload.flight
        record.driver_name = payload.driver_name
        record.driver_phone = payload.driver_phone
        record.notes = payload.notes
        session.flush()

        for seat, guest_id in enumerate(passengers):
            session.add(CarPassengerRecord(car_id=car_id, guest_id=guest_id, seat=seat))
        session.flush()
        session.expire(record)
        return record

    def list_cars(self) -> list[Car]:
        stmt = select(CarRecord).options(selectinload(CarRecord.seats)).order_by(CarRecord.id)
        with self.unit_of_work() as session:
            return [_car_view(record) for record in session.scalars(stmt)]

    def get_car(self, car_id: int) -> Car:
        with self.unit_of_work() as session:
            return _car_view(self._require_car(session, car_id))

    def save_car(self, payload: CarSave) -> Car:
        """Insert or overwrite a car; without an id the next free number is used."""
        with self.unit_of_work() as session:
            car_id = payload.id
            if car_id is None:
                car_id = (session.scalar(select(func.max(CarRecord.id))) or 0) + 1
            return _car_view(self._write_car(session, car_id, payload))

    def update_car(self, car_id: int, payload: CarSave) -> Car:
        """Overwrite an existing car.

        Raises
        ------
        PickupNotFoundError
            If the car does not exist.
        """
        with self.unit_of_work() as session:
            self._require_car(session, car_id)
            return _car_view(self._write_car(session, car_id, payload))

    def delete_car(self, car_id: int) -> None:
        with self.unit_of_work() as session:
            record = self._require_car(session, car_id)
            session.execute(delete(CarPassengerRecord).where(CarPassengerRecord.car_id == car_id))
            session.delete(record)

    def delete_all_cars(self) -> int:
        """Remove every car and every seat; returns the number of cars removed."""
        with self.unit_of_work() as session:
            session.execute(delete(CarPassengerRecord))
            result = session.execute(delete(CarRecord))
            return int(getattr(result, "rowcount", 0) or 0)

    def replace_cars(self, plans: Sequence[CarPlan]) -> list[Car]:
        """Drop all cars and persist a fresh assignment in one transaction."""
        with self.unit_of_work() as session:
            session.execute(delete(CarPassengerRecord))
            session.execute(delete(CarRecord))
            records: list[CarRecord] = []
            for plan in plans:
                payload = CarSave(
                    id=plan.number,
                    passengers=list(plan.passengers),
                    capacity=plan.capacity,
                    destination=plan.destination,
                    eta=plan.eta,
                    flight=plan.flight,
                )
                records.append(self._write_car(session, plan.number, payload))
            return [_car_view(record) for record in records]
