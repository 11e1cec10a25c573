from __future__ import annotations

from collections.abc import Iterator

import pytest

from airpickup.state.store import PickupStore, build_engine


@pytest.fixture
def store() -> Iterator[PickupStore]:
    pickup_store = PickupStore(build_engine("sqlite://"))
    pickup_store.create_schema()
    yield pickup_store
    pickup_store.dispose()
