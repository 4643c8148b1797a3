import pytest

from dramagate.domain.exceptions import UpstreamHttpError, UpstreamTimeout, UpstreamUnavailable
from dramagate.domain.models.catalog import CatalogEntry, Episode
from dramagate.domain.models.credentials import Credential
from dramagate.domain.models.upstream import RetryOutcome, UpstreamRequestSpec


def test_credential_requires_both_parts():
    with pytest.raises(ValueError):
        Credential(secret="", device_id="dev")
    with pytest.raises(ValueError):
        Credential(secret="abc", device_id="")


def test_episode_requires_stream_url():
    with pytest.raises(ValueError):
        Episode(number=1, title="EP 1", stream_url="")


def test_catalog_entry_falls_back_to_cover_and_plain_tags():
    entry = CatalogEntry.from_record({"bookId": 5, "cover": "https://img.test/c.jpg", "tags": ["Drama", ""]})

    assert entry.id == "5"
    assert entry.cover_url == "https://img.test/c.jpg"
    assert entry.tags == ["Drama"]
    assert entry.chapter_count is None


def test_retry_outcome():
    ok = RetryOutcome.success("value", attempts=2)
    failed = RetryOutcome.failure(UpstreamTimeout("slow"), attempts=3)

    assert ok.ok and ok.value == "value" and ok.attempts == 2
    assert not failed.ok
    assert isinstance(failed.error, UpstreamTimeout) and failed.value is None


def test_request_spec_timeout_seconds():
    assert UpstreamRequestSpec(target_path="/x", timeout_ms=20_000).timeout_seconds == 20.0


def test_http_error_message_and_auth_flag():
    error = UpstreamHttpError(401, "token expired")

    assert str(error) == "401 HTTP error: token expired"
    assert error.is_auth_failure
    assert not UpstreamHttpError(500).is_auth_failure


def test_unavailable_keeps_last_error():
    cause = UpstreamTimeout("slow")
    error = UpstreamUnavailable("catalog page 1", cause)

    assert error.last_error is cause
    assert "catalog page 1" in str(error)
