"""HTTP transport for the AviationStack flight-data API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from airpickup._constants import USER_AGENT
from airpickup._redact import redact_for_log
from airpickup.config import PickupConfig
from airpickup.exceptions import ProviderUnavailableError

_logger = logging.getLogger(__name__)


class FlightDataTransport(Protocol):
    """Structural transport interface used by the resolver.

    Tests pass doubles that implement ``get_json``; production code uses
    :class:`AviationStackTransport`.
    """

    async def get_json(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        ...


class AviationStackTransport:
    """GET JSON documents from AviationStack with a bounded timeout."""

    def __init__(self, config: PickupConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.provider_timeout)

    async def get_json(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch ``path`` and return the decoded JSON object.

        The configured access key is added to the query string.

        Raises
        ------
        ProviderUnavailableError
            On network errors, timeouts, non-200 responses, undecodable
            bodies and AviationStack ``error`` objects.
        """
        query: dict[str, Any] = {"access_key": self._config.aviationstack_api_key, **params}
        url = f"{self._config.aviationstack_base_url.rstrip('/')}{path}"

        _logger.debug("GET %s params=%s", url, redact_for_log(query))

        try:
            async with self._http.get(
                url,
                params=query,
                headers={"accept": "application/json", "user-agent": USER_AGENT},
                timeout=self._timeout,
            ) as resp:
                raw = await resp.read()
                if resp.status != 200:
                    raise ProviderUnavailableError(
                        f"HTTP {resp.status} from {path}: {raw[:200].decode('utf-8', 'replace')}",
                        status_code=resp.status,
                    )
        except ProviderUnavailableError:
            raise
        except TimeoutError as exc:
            raise ProviderUnavailableError(
                f"Request to {path} timed out after {self._config.provider_timeout}s"
            ) from exc
        except aiohttp.ClientError as exc:
            raise ProviderUnavailableError(f"Request to {path} failed: {exc}") from exc

        try:
            body: Any = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise ProviderUnavailableError(f"Undecodable body from {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ProviderUnavailableError(f"Invalid JSON from {path}: {raw[:200]!r}") from exc

        if not isinstance(body, dict):
            raise ProviderUnavailableError(f"Unexpected payload type from {path}: {type(body).__name__}")

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else error
            raise ProviderUnavailableError(f"{path} returned provider error {code}")

        return body
