"""Debug-log scrubbing for provider queries and guest/car payloads.

AviationStack queries carry the access key; guest and car payloads carry
phone numbers. Both pass through :func:`redact_for_log` before they reach
a DEBUG record.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

_REDACTED = "<redacted>"

# Compared after lower-casing and dropping underscores, so ``driver_phone``
# and ``driverPhone`` match the same entry.
_SECRET_KEYS: frozenset[str] = frozenset({"accesskey", "apikey", "phone", "driverphone"})


def _is_secret(key: object) -> bool:
    return str(key).lower().replace("_", "") in _SECRET_KEYS


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a log-safe copy of a query mapping or pickup payload.

    Pydantic models are dumped to plain JSON data first. Secret keys are
    replaced at any depth and strings longer than *max_string* are cut.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")

    if isinstance(value, Mapping):
        return {
            str(key): _REDACTED if _is_secret(key) else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string) for item in value]
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value
