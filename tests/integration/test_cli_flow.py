import json
from typing import Dict, List

import httpx
import pytest
from typer.testing import CliRunner

# Import the app instance from main
from dramagate.main import app, create_dependencies
from dramagate.domain.events.api_events import CredentialInvalidated
from dramagate.infrastructure.cli.display import ConsoleDisplay
from dramagate.infrastructure.config.settings import set_config_for_testing

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner
# gateway_settings: GatewaySettings pointing at https://upstream.test with zero backoff
# make_chapter: raw upstream chapter builder
# dispatcher: RecordingEventDispatcher


class FakeUpstream:
    """httpx.MockTransport handler emulating the token service and the upstream API."""

    def __init__(self, chapters: List[dict], batch_size: int = 20):
        self.chapters = chapters
        self.batch_size = batch_size
        self.requests: List[httpx.Request] = []
        self.token_calls = 0
        self.status_overrides: Dict[str, List[int]] = {}
        self.corrupt_paths: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.url.host == "token.test":
            self.token_calls += 1
            return httpx.Response(200, json={"data": {"token": f"tok-{self.token_calls}", "deviceId": "dev"}})

        if path in self.corrupt_paths:
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")
        pending = self.status_overrides.get(path)
        if pending:
            return httpx.Response(pending.pop(0), text="rejected")

        body = json.loads(request.content)
        if path == "/drama-box/he001/theater":
            return httpx.Response(200, json={"data": {"columnVoList": [
                {"bookList": [{"bookId": "1", "bookName": "First Love"}]},
                {"bookList": [{"bookId": "1", "bookName": "First Love"}, {"bookId": "2", "bookName": "Second Act"}]},
            ]}})
        if path == "/drama-box/search/suggest":
            hits = [{"bookId": "7", "bookName": "Love at Sea"}] if "love" in body["keyword"].lower() else []
            return httpx.Response(200, json={"data": {"suggestList": hits}})
        if path == "/drama-box/chapterv2/batch/load":
            start = body["index"]
            batch = self.chapters[start - 1:start - 1 + self.batch_size]
            return httpx.Response(200, json={"data": {"chapterList": batch, "chapterCount": len(self.chapters)}})
        return httpx.Response(404)

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests if r.url.host != "token.test"]


@pytest.fixture
def upstream(make_chapter):
    return FakeUpstream([make_chapter(n) for n in range(1, 46)])


@pytest.fixture
def wired_cli(mocker, gateway_settings, upstream, dispatcher):
    """Routes the CLI's dependencies to the fake upstream."""
    dependencies = {
        'ui': ConsoleDisplay(),
        'settings': gateway_settings,
        'dispatcher': dispatcher,
        'transport': httpx.MockTransport(upstream),
    }
    mocker.patch('dramagate.main.get_dependencies', return_value=dependencies)
    return dependencies


def test_latest_command_flow(runner: CliRunner, wired_cli, upstream):
    result = runner.invoke(app, ["latest", "--page", "2", "--json"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    entries = json.loads(result.stdout)
    assert [e["id"] for e in entries] == ["1", "2"]
    sent = json.loads(upstream.requests[-1].content)
    assert sent["pageNo"] == 2 and sent["index"] == 20
    assert upstream.requests[-1].headers["tn"] == "Bearer tok-1"
    assert upstream.requests[-1].headers["device-id"] == "dev"


def test_latest_command_renders_table(runner: CliRunner, wired_cli):
    result = runner.invoke(app, ["latest"])

    assert result.exit_code == 0
    assert "First" in result.stdout
    assert "Second" in result.stdout


def test_search_command_flow(runner: CliRunner, wired_cli):
    result = runner.invoke(app, ["search", "love", "--json"])

    assert result.exit_code == 0
    assert [e["name"] for e in json.loads(result.stdout)] == ["Love at Sea"]


def test_search_without_results(runner: CliRunner, wired_cli):
    result = runner.invoke(app, ["search", "zzz"])

    assert result.exit_code == 0
    assert "No titles match" in result.stdout


def test_episodes_command_flow(runner: CliRunner, wired_cli, upstream):
    result = runner.invoke(app, ["episodes", "41000100", "--json"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    payload = json.loads(result.stdout)
    assert payload["titleId"] == "41000100"
    assert [e["number"] for e in payload["episodes"]] == list(range(1, 46))
    batch_indices = sorted(
        json.loads(r.content)["index"] for r in upstream.requests
        if r.url.path == "/drama-box/chapterv2/batch/load"
    )
    assert batch_indices == [1, 21, 41]
    # Batch loading always uses a freshly fetched credential
    assert upstream.token_calls >= 2


def test_rejected_credential_is_refreshed(runner: CliRunner, wired_cli, upstream, dispatcher):
    upstream.status_overrides["/drama-box/he001/theater"] = [401]

    result = runner.invoke(app, ["latest", "--json"])

    assert result.exit_code == 0
    assert upstream.paths() == ["/drama-box/he001/theater", "/drama-box/he001/theater"]
    assert upstream.token_calls == 2
    assert len(dispatcher.of_type(CredentialInvalidated)) == 1


def test_unavailable_upstream_exits_with_code_2(runner: CliRunner, wired_cli, upstream):
    upstream.status_overrides["/drama-box/search/suggest"] = [503, 503, 503]

    result = runner.invoke(app, ["search", "love"])

    assert result.exit_code == 2
    assert "temporarily unavailable" in result.stdout
    assert upstream.paths().count("/drama-box/search/suggest") == 3


def test_unreadable_upstream_body_exits_with_code_2(runner: CliRunner, wired_cli, upstream):
    upstream.corrupt_paths.append("/drama-box/he001/theater")

    result = runner.invoke(app, ["latest"])

    assert result.exit_code == 2
    assert "temporarily unavailable" in result.stdout
    assert upstream.paths().count("/drama-box/he001/theater") == 3


def test_health_command(runner: CliRunner, wired_cli, upstream):
    result = runner.invoke(app, ["health"])

    assert result.exit_code == 0
    assert "Status: OK" in result.stdout
    assert upstream.requests == []


def test_invalid_page_is_rejected(runner: CliRunner, wired_cli):
    result = runner.invoke(app, ["latest", "--page", "0"])

    assert result.exit_code != 0


def test_create_dependencies_wires_settings(mocker, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    setup_logging = mocker.patch('dramagate.main.setup_logging')
    mocker.patch('dramagate.infrastructure.config.settings._loaded', True)
    set_config_for_testing({'upstream.base_url': "https://upstream.test", 'logging.level': "DEBUG"})

    dependencies = create_dependencies()

    assert dependencies['settings'].upstream_base_url == "https://upstream.test"
    assert isinstance(dependencies['ui'], ConsoleDisplay)
    setup_logging.assert_called_once()
    assert setup_logging.call_args.kwargs['log_level'] == 10
