"""Car assignment engine.

Guests arriving on the same flight are grouped and packed, in a fixed
order, into consecutive cars of at most ``capacity`` seats. The function
is pure: the same guests and capacity always yield the same car numbers
and passenger lists. Persisting the result is the caller's concern.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from itertools import groupby

from airpickup.exceptions import PickupValidationError
from airpickup.models._base import as_utc
from airpickup.models.car import CarPlan
from airpickup.models.guest import Guest

_logger = logging.getLogger(__name__)

GroupKey = tuple[str, datetime]


def group_key(guest: Guest) -> GroupKey:
    """Flight code and ETA of the leg the guest is picked up from."""
    leg = guest.final_leg
    return leg.flight_code, as_utc(leg.eta)


def _sort_key(guest: Guest) -> tuple[str, datetime, datetime, int]:
    flight_code, eta = group_key(guest)
    return flight_code, eta, as_utc(guest.created_at), guest.id


def _chunks(items: Sequence[Guest], size: int) -> Iterable[Sequence[Guest]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def assign_cars(guests: Iterable[Guest], capacity: int) -> list[CarPlan]:
    """Pack guests into cars, one flight at a time.

    Guests are ordered by flight code, ETA, creation time and id. Each run
    of guests sharing a flight code and ETA is cut into chunks of at most
    ``capacity``; car numbers count up from 1 across the whole run. Guests
    from different flights never share a car.

    Raises
    ------
    PickupValidationError
        If ``capacity`` is below 1.
    """
    if capacity < 1:
        raise PickupValidationError(f"capacity must be at least 1, got {capacity}")

    ordered = sorted(guests, key=_sort_key)
    plans: list[CarPlan] = []
    for (flight_code, eta), members in groupby(ordered, key=group_key):
        group = list(members)
        destination = group[0].final_destination
        for chunk in _chunks(group, capacity):
            plans.append(
                CarPlan(
                    number=len(plans) + 1,
                    capacity=capacity,
                    passengers=tuple(guest.id for guest in chunk),
                    destination=destination,
                    eta=eta,
                    flight=flight_code,
                )
            )

    _logger.debug("Assigned %d guest(s) to %d car(s)", len(ordered), len(plans))
    return plans
