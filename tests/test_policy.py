from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from airpickup.models.status import UNAVAILABLE, FlightStatus
from airpickup.state.policy import is_terminal, reconcile

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
PAST = NOW - timedelta(minutes=30)
FUTURE = NOW + timedelta(hours=2)


def test_unavailable_with_past_eta_falls_back_to_landed() -> None:
    assert reconcile(FlightStatus.ON_TIME, UNAVAILABLE, PAST, NOW) is FlightStatus.LANDED


def test_unavailable_with_future_eta_keeps_on_time() -> None:
    assert reconcile(FlightStatus.ON_TIME, UNAVAILABLE, FUTURE, NOW) is FlightStatus.ON_TIME


def test_unavailable_keeps_delayed_even_after_eta() -> None:
    assert reconcile(FlightStatus.DELAYED, UNAVAILABLE, PAST, NOW) is FlightStatus.DELAYED


def test_eta_equal_to_now_is_not_past() -> None:
    assert reconcile(FlightStatus.ON_TIME, UNAVAILABLE, NOW, NOW) is FlightStatus.ON_TIME


@pytest.mark.parametrize("answer", [FlightStatus.DELAYED, FlightStatus.LANDED, FlightStatus.CANCELLED])
def test_provider_answer_replaces_current(answer: FlightStatus) -> None:
    assert reconcile(FlightStatus.ON_TIME, answer, FUTURE, NOW) is answer


def test_provider_on_time_overrides_past_eta_fallback() -> None:
    assert reconcile(FlightStatus.DELAYED, FlightStatus.ON_TIME, PAST, NOW) is FlightStatus.ON_TIME


@pytest.mark.parametrize("terminal", [FlightStatus.LANDED, FlightStatus.CANCELLED])
@pytest.mark.parametrize("answer", [UNAVAILABLE, FlightStatus.ON_TIME, FlightStatus.DELAYED, FlightStatus.LANDED])
def test_terminal_statuses_are_sticky(terminal: FlightStatus, answer: FlightStatus) -> None:
    assert reconcile(terminal, answer, PAST, NOW) is terminal
    assert reconcile(terminal, answer, FUTURE, NOW) is terminal


def test_reconcile_is_idempotent() -> None:
    first = reconcile(FlightStatus.ON_TIME, UNAVAILABLE, PAST, NOW)
    second = reconcile(FlightStatus.ON_TIME, UNAVAILABLE, PAST, NOW)
    assert first is second is FlightStatus.LANDED


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive_past = PAST.replace(tzinfo=None)
    assert reconcile(FlightStatus.ON_TIME, UNAVAILABLE, naive_past, NOW) is FlightStatus.LANDED


def test_is_terminal() -> None:
    assert is_terminal(FlightStatus.LANDED)
    assert is_terminal(FlightStatus.CANCELLED)
    assert not is_terminal(FlightStatus.ON_TIME)
    assert not is_terminal(FlightStatus.DELAYED)
