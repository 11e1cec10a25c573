from __future__ import annotations

from datetime import date
from typing import Any

import aiohttp
import pytest

from airpickup.config import PickupConfig
from airpickup.exceptions import ProviderUnavailableError
from airpickup.models.status import UNAVAILABLE
from airpickup.providers.resolver import FlightStatusResolver
from airpickup.providers.transport import AviationStackTransport


class _FakeResponse:
    def __init__(self, status: int, body: str | bytes) -> None:
        self.status = status
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self.response = response
        self.requests: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.requests.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


_CONFIG = PickupConfig(aviationstack_api_key="k3y", aviationstack_base_url="https://flights.test/v1/")


def _transport(response: _FakeResponse | Exception) -> tuple[AviationStackTransport, _FakeSession]:
    session = _FakeSession(response)
    return AviationStackTransport(_CONFIG, session), session  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_get_json_adds_access_key() -> None:
    transport, session = _transport(_FakeResponse(200, '{"data": []}'))

    body = await transport.get_json("/flights", {"flight_iata": "XY100", "limit": 1})

    assert body == {"data": []}
    request = session.requests[0]
    assert request["url"] == "https://flights.test/v1/flights"
    assert request["params"] == {"access_key": "k3y", "flight_iata": "XY100", "limit": 1}
    assert request["timeout"].total == _CONFIG.provider_timeout


@pytest.mark.asyncio
async def test_non_200_raises_with_status_code() -> None:
    transport, _ = _transport(_FakeResponse(503, "busy"))

    with pytest.raises(ProviderUnavailableError) as excinfo:
        await transport.get_json("/flights", {})
    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [aiohttp.ClientConnectionError("refused"), TimeoutError()],
)
async def test_network_failures_raise(failure: Exception) -> None:
    transport, _ = _transport(failure)

    with pytest.raises(ProviderUnavailableError):
        await transport.get_json("/flights", {})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    [
        "<html>oops</html>",
        "[1, 2]",
        '{"error": {"code": "invalid_access_key", "message": "bad key"}}',
    ],
)
async def test_bad_payloads_raise(text: str) -> None:
    transport, _ = _transport(_FakeResponse(200, text))

    with pytest.raises(ProviderUnavailableError):
        await transport.get_json("/flights", {})


_NOT_UTF8 = b'{"data": [{"flight_status": "\xff\xfe"}]}'


@pytest.mark.asyncio
async def test_body_that_is_not_utf8_raises() -> None:
    transport, _ = _transport(_FakeResponse(200, _NOT_UTF8))

    with pytest.raises(ProviderUnavailableError, match="Undecodable"):
        await transport.get_json("/flights", {})


@pytest.mark.asyncio
async def test_resolver_treats_undecodable_body_as_unavailable() -> None:
    transport, _ = _transport(_FakeResponse(200, _NOT_UTF8))
    resolver = FlightStatusResolver(_CONFIG, transport)

    assert await resolver.resolve("100", "XY", date(2026, 5, 1)) is UNAVAILABLE


@pytest.mark.asyncio
async def test_error_status_with_binary_body_keeps_status_code() -> None:
    transport, _ = _transport(_FakeResponse(502, b"\xff\xfe gateway"))

    with pytest.raises(ProviderUnavailableError) as excinfo:
        await transport.get_json("/flights", {})
    assert excinfo.value.status_code == 502
