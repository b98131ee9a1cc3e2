"""Pytest fixtures for Fluxez Realtime tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from fluxez.client import RealtimeClient
from fluxez.config import FluxezConfig


class FakeTransport:
    """In-memory transport driven by the test."""

    def __init__(self, url, headers, *, on_open, on_message, on_close, on_error) -> None:
        self.url = url
        self.headers = headers
        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close
        self._on_error = on_error
        self.sent: list[dict[str, Any]] = []
        self.started = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def send(self, payload: str) -> None:
        self.sent.append(json.loads(payload))

    async def close(self) -> None:
        self.closed = True

    async def open(self) -> None:
        await self._on_open()

    async def receive(self, message: dict[str, Any] | str) -> None:
        raw = message if isinstance(message, str) else json.dumps(message)
        await self._on_message(raw)

    async def drop(self, code: int = 1006, reason: str = "") -> None:
        await self._on_close(code, reason)

    async def fail(self, error: Exception) -> None:
        await self._on_error(error)

    def sent_of_type(self, type_: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == type_]


class FakeHttp:
    """Records control-plane calls and returns canned responses."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self.responses: dict[str, Any] = {}
        self.error: Exception | None = None
        self.closed = False

    async def get(self, path: str) -> Any:
        return self._record("GET", path, None)

    async def post(self, path: str, json: Any = None) -> Any:
        return self._record("POST", path, json)

    async def close(self) -> None:
        self.closed = True

    def _record(self, method: str, path: str, payload: Any) -> Any:
        self.calls.append((method, path, payload))
        if self.error is not None:
            raise self.error
        return self.responses.get(path)


async def _settle(rounds: int = 10) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def config() -> FluxezConfig:
    """Create a test configuration."""
    return FluxezConfig(
        api_key="service_test-key",
        base_url="http://localhost:3000/api/v1",
        reconnect_interval=0.0,
        max_reconnect_attempts=3,
    )


@pytest.fixture
def settle():
    """Coroutine function that lets scheduled tasks run."""
    return _settle


@pytest.fixture
def transports() -> list[FakeTransport]:
    """Every transport created by the client, in order."""
    return []


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def client(config: FluxezConfig, transports: list[FakeTransport], http: FakeHttp) -> RealtimeClient:
    """Client wired to fake transport and HTTP collaborators."""

    def factory(url, headers, **callbacks):
        transport = FakeTransport(url, headers, **callbacks)
        transports.append(transport)
        return transport

    return RealtimeClient(config=config, transport_factory=factory, http=http)  # type: ignore[arg-type]
