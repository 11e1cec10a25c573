"""Library configuration for airpickup."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from airpickup._constants import (
    AVIATIONSTACK_BASE_URL,
    DEFAULT_CAR_CAPACITY,
    DEFAULT_PROVIDER_TIMEOUT,
    DEFAULT_REFRESH_INTERVAL,
)
from airpickup.exceptions import PickupConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, raw: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(raw)
    except ValueError as exc:
        raise PickupConfigError(f"{env_key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class PickupConfig:
    """Library configuration.

    Parameters
    ----------
    database_url : str
        SQLAlchemy URL of the guest/car store.
    aviationstack_api_key : str or None
        AviationStack access key. When unset the flight status resolver
        answers ``UNAVAILABLE`` for every lookup without touching the
        network.
    aviationstack_base_url : str
        AviationStack API root.
    provider_timeout : float
        Upper bound in seconds for a single provider lookup.
    car_capacity : int
        Default number of seats per pickup car.
    refresh_interval : float
        Seconds between automatic reconciliation passes.
    refresh_concurrency : int
        Maximum provider lookups in flight during a pass. ``1`` checks
        legs strictly one after the other.
    default_destination : str or None
        Destination used for bulk-import rows that do not carry one.
    sql_echo : bool
        Echo SQL statements through SQLAlchemy's logger.
    """

    database_url: str = "sqlite:///airpickup.db"
    aviationstack_api_key: str | None = None
    aviationstack_base_url: str = AVIATIONSTACK_BASE_URL
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT
    car_capacity: int = DEFAULT_CAR_CAPACITY
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    refresh_concurrency: int = 1
    default_destination: str | None = None
    sql_echo: bool = False

    def __post_init__(self) -> None:
        if self.car_capacity < 1:
            raise PickupConfigError(f"car_capacity must be at least 1, got {self.car_capacity}")
        if self.provider_timeout <= 0:
            raise PickupConfigError(f"provider_timeout must be positive, got {self.provider_timeout}")
        if self.refresh_concurrency < 1:
            raise PickupConfigError(f"refresh_concurrency must be at least 1, got {self.refresh_concurrency}")

    @property
    def has_provider_credentials(self) -> bool:
        return bool(self.aviationstack_api_key and self.aviationstack_api_key.strip())

    @classmethod
    def from_env(cls, **overrides: Any) -> PickupConfig:
        """Create configuration from environment variables.

        Reads ``DATABASE_URL``, ``AVIATIONSTACK_API_KEY`` and the optional
        ``PICKUP_*`` variables. Explicit keyword arguments override
        environment values.

        Raises
        ------
        PickupConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "DATABASE_URL": "database_url",
            "AVIATIONSTACK_API_KEY": "aviationstack_api_key",
            "AVIATIONSTACK_BASE_URL": "aviationstack_base_url",
            "PICKUP_DEFAULT_DESTINATION": "default_destination",
        }
        _ENV_NUM_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "PICKUP_PROVIDER_TIMEOUT": ("provider_timeout", float),
            "PICKUP_CAR_CAPACITY": ("car_capacity", int),
            "PICKUP_REFRESH_INTERVAL": ("refresh_interval", float),
            "PICKUP_REFRESH_CONCURRENCY": ("refresh_concurrency", int),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        for env_key, (field_name, cast) in _ENV_NUM_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "sql_echo" not in overrides:
            config_kwargs["sql_echo"] = _env_bool(env.get("PICKUP_SQL_ECHO"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
