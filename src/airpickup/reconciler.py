"""Flight status reconciliation passes.

A pass reads every non-terminal leg, asks the resolver about it once,
runs the answer through :func:`airpickup.state.policy.reconcile` and
writes back changed statuses one leg per transaction. Provider trouble
never escapes a pass: a lookup that fails or times out counts as
``UNAVAILABLE``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from airpickup.exceptions import PickupError, ProviderUnavailableError
from airpickup.models.status import UNAVAILABLE, FlightStatus, ResolverResult
from airpickup.state.policy import reconcile
from airpickup.state.store import LegRef, PickupStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StatusResolver(Protocol):
    async def resolve(self, flight_number: str, airline_code: str, flight_date: date) -> ResolverResult:
        ...


@dataclass(slots=True)
class ReconcileReport:
    """Counters for one reconciliation pass."""

    checked: int = 0
    changed: int = 0
    unavailable: int = 0
    failed_writes: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def duration(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


class StatusReconciler:
    """Refresh leg statuses from the flight-data provider.

    Parameters
    ----------
    store : PickupStore
        Source of legs and target of status writes.
    resolver : StatusResolver
        Provider lookup, usually a :class:`~airpickup.providers.FlightStatusResolver`.
    timeout : float
        Upper bound in seconds for a single lookup.
    max_concurrency : int
        Lookups allowed in flight at once; ``1`` checks legs sequentially.
    clock : callable
        Returns the current aware UTC time; used by the past-ETA fallback.
    """

    def __init__(
        self,
        store: PickupStore,
        resolver: StatusResolver,
        *,
        timeout: float,
        max_concurrency: int = 1,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._timeout = timeout
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._pass_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _lookup(self, leg: LegRef) -> ResolverResult:
        try:
            return await asyncio.wait_for(
                self._resolver.resolve(leg.flight_number, leg.airline, leg.eta.date()),
                timeout=self._timeout,
            )
        except TimeoutError:
            _logger.warning(
                "Status lookup for %s%s timed out after %.1fs", leg.airline, leg.flight_number, self._timeout
            )
            return UNAVAILABLE
        except ProviderUnavailableError as exc:
            _logger.warning("Status lookup for %s%s failed: %s", leg.airline, leg.flight_number, exc)
            return UNAVAILABLE

    async def _reconcile_leg(self, leg: LegRef, semaphore: asyncio.Semaphore, report: ReconcileReport) -> None:
        async with semaphore:
            await self._check_leg(leg, report)

    async def _check_leg(self, leg: LegRef, report: ReconcileReport) -> None:
        result = await self._lookup(leg)
        report.checked += 1
        if result is UNAVAILABLE:
            report.unavailable += 1

        new_status: FlightStatus = reconcile(leg.status, result, leg.eta, self._clock())
        if new_status == leg.status:
            return

        try:
            changed = await asyncio.to_thread(self._store.set_leg_status, leg.leg_id, new_status)
        except PickupError as exc:
            report.failed_writes += 1
            _logger.error("Could not record status %s for leg %s: %s", new_status, leg.leg_id, exc)
            return

        if changed:
            report.changed += 1
            _logger.info(
                "Leg %s (%s%s) status %s -> %s",
                leg.leg_id,
                leg.airline,
                leg.flight_number,
                leg.status,
                new_status,
            )

    async def run_pass(self) -> ReconcileReport:
        """Run one reconciliation pass over every non-terminal leg."""
        async with self._pass_lock:
            report = ReconcileReport(started_at=self._clock())
            legs = await asyncio.to_thread(self._store.list_reconcilable_legs)
            semaphore = asyncio.Semaphore(self._max_concurrency)
            await asyncio.gather(*(self._reconcile_leg(leg, semaphore, report) for leg in legs))
            report.finished_at = self._clock()

        _logger.info(
            "Reconciliation pass: checked=%d changed=%d unavailable=%d failed_writes=%d",
            report.checked,
            report.changed,
            report.unavailable,
            report.failed_writes,
        )
        return report

    async def _run_forever(self, interval: float) -> None:
        while True:
            try:
                await self.run_pass()
            except Exception:
                _logger.exception("Reconciliation pass failed")
            await asyncio.sleep(interval)

    def start(self, interval: float) -> None:
        """Run a pass now and then every ``interval`` seconds on the running loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run_forever(interval), name="airpickup-reconciler")

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
