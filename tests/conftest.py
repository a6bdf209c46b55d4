"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - relay_config: RelayConfig pointing at a fake vendor host
    - clock: Controllable clock for the rate limiter
    - limiter: Small-quota RateLimiter driven by ``clock``
    - vendor: Scriptable stand-in for the vendor API (httpx MockTransport)
    - relay: VendorRelay wired to ``vendor``
    - app / async_client: FastAPI app with the above injected, and an
      HTTPX client talking to it over ASGITransport

No test talks to the real vendor.
"""

import json
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterable
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from coach_relay.api.app import create_app
from coach_relay.relay.config import RelayConfig, get_relay_config
from coach_relay.relay.rate_limiter import RateLimiter, get_rate_limiter
from coach_relay.relay.vendor import VendorRelay, get_vendor_relay

VENDOR_BASE_URL = "https://vendor.test"
TEST_API_KEY = "sk-ant-test-key"


def vendor_reply(text: str | None = "Hello! What role are you defining outcomes for?") -> dict:
    """A minimal non-streaming vendor response body."""
    content = [] if text is None else [{"type": "text", "text": text}]
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "content": content,
        "stop_reason": "end_turn",
    }


def sse_line(payload: dict | str) -> str:
    """One vendor SSE data record."""
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


def delta_line(text: str) -> str:
    return sse_line(
        {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}}
    )


def parse_sse(body: str) -> list[dict]:
    """Decode a caller-facing event stream body into its JSON records."""
    return [
        json.loads(line.removeprefix("data: "))
        for line in body.split("\n")
        if line.startswith("data: ")
    ]


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks, recording whether it was closed."""

    def __init__(self, chunks: Iterable[bytes | str], error: Exception | None = None) -> None:
        self._chunks = [c.encode() if isinstance(c, str) else c for c in chunks]
        self._error = error
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class VendorStub:
    """Scriptable vendor API.

    Each request is recorded; the response comes from the current handler,
    which defaults to a short successful reply.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json=vendor_reply()
        )
        self.transport = httpx.MockTransport(self._dispatch)

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_payload(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)

    def reply_json(self, body: Any, status_code: int = 200) -> None:
        self.handler = lambda request: httpx.Response(status_code, json=body)

    def reply_text(self, text: str, status_code: int = 200) -> None:
        self.handler = lambda request: httpx.Response(status_code, text=text)

    def reply_stream(self, chunks: Iterable[bytes | str], error: Exception | None = None) -> ChunkStream:
        stream = ChunkStream(chunks, error=error)
        self.handler = lambda request: httpx.Response(
            200, headers={"content-type": "text/event-stream"}, stream=stream
        )
        return stream

    def fail_with(self, exc_type: type[httpx.RequestError], message: str = "boom") -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type(message, request=request)

        self.handler = handler


@pytest.fixture
def relay_config() -> RelayConfig:
    """Relay configuration independent of the process environment."""
    return RelayConfig(
        api_key=TEST_API_KEY,
        base_url=VENDOR_BASE_URL,
        request_timeout=5.0,
        rate_limit_window_seconds=60,
        rate_limit_max_requests=3,
        merge_consecutive_roles=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(relay_config: RelayConfig, clock: FakeClock) -> RateLimiter:
    return RateLimiter(
        window_seconds=relay_config.rate_limit_window_seconds,
        max_requests=relay_config.rate_limit_max_requests,
        clock=clock,
    )


@pytest.fixture
def vendor() -> VendorStub:
    return VendorStub()


@pytest.fixture
async def relay(relay_config: RelayConfig, vendor: VendorStub) -> AsyncGenerator[VendorRelay]:
    """VendorRelay whose HTTP traffic goes to the vendor stub."""
    vendor_relay = VendorRelay(config=relay_config, transport=vendor.transport)
    yield vendor_relay
    await vendor_relay.aclose()


@pytest.fixture
def app(relay_config: RelayConfig, limiter: RateLimiter, relay: VendorRelay) -> FastAPI:
    """Application with config, limiter and relay injected."""
    application = create_app()
    application.dependency_overrides[get_relay_config] = lambda: relay_config
    application.dependency_overrides[get_rate_limiter] = lambda: limiter
    application.dependency_overrides[get_vendor_relay] = lambda: relay
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
