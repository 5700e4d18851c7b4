from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from chat_relay.config.app_config import AppConfig
from chat_relay.config.llm_config import LlmConfig
from chat_relay.main import create_app
from chat_relay.services.completion_service import CompletionService
from chat_relay.services.rate_limiter import RateLimiter


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeProvider:
    """Records outbound requests and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": "Hello there!"}}]},
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(app_env="development", log_level="WARNING", log_file=None)


@pytest.fixture
def llm_config() -> LlmConfig:
    return LlmConfig(
        TOGETHER_API_KEY="test-key",
        TOGETHER_MODEL="configured/model",
        TOGETHER_BASE_URL="https://provider.test/v1",
    )


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(window_ms=2000, clock=clock)


@pytest.fixture
def make_client(
    app_config: AppConfig,
    rate_limiter: RateLimiter,
    provider: FakeProvider,
) -> Callable[..., TestClient]:
    def _make(llm_config: LlmConfig) -> TestClient:
        app = create_app(
            app_config=app_config,
            rate_limiter=rate_limiter,
            completion_service=CompletionService(llm_config, transport=provider.transport()),
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client: Callable[..., TestClient], llm_config: LlmConfig) -> TestClient:
    return make_client(llm_config)
