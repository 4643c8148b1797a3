import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional

import pytest
from typer.testing import CliRunner

import dramagate.main as main_module
from dramagate.domain.events.dispatcher import RecordingEventDispatcher
from dramagate.domain.exceptions import CredentialSourceError
from dramagate.domain.interfaces.credential_source import CredentialSource
from dramagate.domain.interfaces.request_executor import RequestExecutor
from dramagate.domain.models.credentials import Credential
from dramagate.domain.models.upstream import UpstreamRequestSpec, UpstreamResponse
from dramagate.infrastructure.config.settings import GatewaySettings, clear_test_config


class FakeCredentialSource(CredentialSource):
    """Issues token-1, token-2, ... and counts fetches. Can be told to fail."""

    def __init__(self, device_id: str = "device-1"):
        self.device_id = device_id
        self.calls = 0
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self) -> Credential:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return Credential(secret=f"token-{self.calls}", device_id=self.device_id)


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


Responder = Callable[[UpstreamRequestSpec, Mapping[str, str]], Any]


class ScriptedExecutor(RequestExecutor):
    """Answers each call with `responder(spec, headers)`; exceptions it returns are raised."""

    def __init__(self, responder: Responder):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    async def execute(self, spec: UpstreamRequestSpec, headers: Mapping[str, str]) -> UpstreamResponse:
        self.calls.append({"spec": spec, "headers": dict(headers)})
        result = self.responder(spec, headers)
        if asyncio.iscoroutine(result):
            result = await result
        if isinstance(result, Exception):
            raise result
        if isinstance(result, UpstreamResponse):
            return result
        return UpstreamResponse(status_code=200, body=result)


class SleepRecorder:
    """Stand-in for asyncio.sleep that returns immediately and records delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def credential_source():
    return FakeCredentialSource()


@pytest.fixture
def failing_credential_source():
    source = FakeCredentialSource()
    source.fail_with = CredentialSourceError("token service down")
    return source


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher():
    return RecordingEventDispatcher()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def scripted_executor():
    """Factory fixture: scripted_executor(responder) -> ScriptedExecutor."""
    return ScriptedExecutor


@pytest.fixture
def gateway_settings():
    return GatewaySettings(
        upstream_base_url="https://upstream.test",
        upstream_language="in",
        upstream_time_zone="+0800",
        user_agent="okhttp/4.10.0",
        credential_source_url="https://token.test/api/token",
        credential_ttl_seconds=1800,
        credential_fetch_timeout_seconds=10,
        max_retries=2,
        backoff_seconds=0.0,
        catalog_timeout_seconds=15,
        batch_timeout_seconds=20,
        catalog_page_size=20,
        catalog_channel_id=43,
    )


@pytest.fixture
def make_chapter():
    """Factory fixture for raw chapter records as returned by the batch endpoint."""
    def _make(number: int, url: Optional[str] = None, name: Optional[str] = None, videos: Optional[list] = None):
        if videos is None:
            videos = [{"videoPath": url or f"https://cdn.test/{number}.mp4", "isDefault": 1}]
        return {
            "chapterId": str(number),
            "chapterName": name if name is not None else f"EP {number}",
            "cdnList": [{"cdnDomain": "cdn.test", "videoPathList": videos}],
        }
    return _make


@pytest.fixture
def batch_body():
    """Factory fixture wrapping chapters into a batch-load response body."""
    def _body(chapters: list, total: Optional[int] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {"chapterList": chapters}
        if total is not None:
            data["chapterCount"] = total
        return {"success": True, "data": data}
    return _body


@pytest.fixture(autouse=True)
def reset_global_state():
    """Keeps configuration overrides and lazily built CLI dependencies test-local."""
    clear_test_config()
    main_module._dependencies = None
    yield
    clear_test_config()
    main_module._dependencies = None
