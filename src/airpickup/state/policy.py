"""Deterministic flight-status reconciliation policy.

This module contains no I/O. The resolver produces the provider answer,
the reconciler applies the result; this is the single place that decides
what a leg's recorded status becomes.
"""

from __future__ import annotations

from datetime import datetime

from airpickup.models._base import as_utc
from airpickup.models.status import UNAVAILABLE, FlightStatus, ResolverResult


def is_terminal(status: FlightStatus) -> bool:
    """Landed and Cancelled legs are excluded from provider lookups."""
    return status.is_terminal


def reconcile(
    current_status: FlightStatus,
    resolver_result: ResolverResult,
    scheduled_eta: datetime,
    now: datetime,
) -> FlightStatus:
    """Decide the new recorded status of a leg.

    Policy:
    - Terminal statuses are sticky whatever the provider says.
    - A concrete provider answer replaces the current status.
    - Without an answer the status is kept, except that an On Time leg
      whose ETA has passed is assumed Landed.

    The past-ETA fallback is a guess: a delayed flight the provider never
    reported as delayed is marked Landed once its original ETA passes.
    """
    if is_terminal(current_status):
        return current_status

    if resolver_result is not UNAVAILABLE:
        return resolver_result

    if current_status is FlightStatus.ON_TIME and as_utc(scheduled_eta) < as_utc(now):
        return FlightStatus.LANDED
    return current_status
