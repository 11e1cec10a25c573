"""Custom exception hierarchy for airpickup."""

from __future__ import annotations

from typing import Any


class PickupError(Exception):
    """Base exception for all airpickup errors."""


class PickupConfigError(PickupError):
    """Invalid or missing configuration."""


class PickupValidationError(PickupError):
    """A payload is missing required fields or carries malformed values.

    When raised from a pydantic validation failure, ``errors`` holds the
    list returned by ``ValidationError.errors()`` so an API layer can echo
    field-level detail back to the client.
    """

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class PickupNotFoundError(PickupError):
    """An operation referenced a guest, car or leg that does not exist."""

    def __init__(self, kind: str, identifier: Any) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class ProviderUnavailableError(PickupError):
    """The flight-data provider could not answer (network, HTTP, payload).

    Only raised inside :mod:`airpickup.providers`; the resolver turns it
    into :data:`airpickup.models.UNAVAILABLE` before it reaches callers.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class PickupPersistenceError(PickupError):
    """A transactional write failed and was rolled back."""
