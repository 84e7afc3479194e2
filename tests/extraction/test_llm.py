"""Tests for the Anthropic port."""

import anthropic
import httpx
import pytest

from zirkel_inventory.core.errors import ErrorKind, RemoteServiceError
from zirkel_inventory.extraction.llm import classify_anthropic_error, complete

from conftest import FakeAnthropic

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def status_error(cls, status):
    return cls("error", response=httpx.Response(status, request=REQUEST), body=None)


def test_classify_anthropic_error():
    assert classify_anthropic_error(status_error(anthropic.RateLimitError, 429)) == ErrorKind.RATE_LIMITED
    assert classify_anthropic_error(status_error(anthropic.InternalServerError, 503)) == ErrorKind.TRANSIENT
    assert classify_anthropic_error(status_error(anthropic.BadRequestError, 400)) == ErrorKind.PERMANENT
    assert classify_anthropic_error(anthropic.APIConnectionError(request=REQUEST)) == ErrorKind.TRANSIENT


def test_complete_returns_text(fast_retry):
    client = FakeAnthropic(["[]"])
    text = complete(
        client,
        model="claude-test",
        max_tokens=100,
        messages=[{"role": "user", "content": "hola"}],
        system="sistema",
        policy=fast_retry,
    )
    assert text == "[]"
    assert client.calls == [{
        "model": "claude-test",
        "max_tokens": 100,
        "messages": [{"role": "user", "content": "hola"}],
        "system": "sistema",
    }]


def test_complete_omits_empty_system(fast_retry):
    client = FakeAnthropic(["ok"])
    complete(client, "claude-test", 10, [{"role": "user", "content": "x"}], policy=fast_retry)
    assert "system" not in client.calls[0]


def test_complete_retries_sdk_rate_limit(fast_retry):
    """SDK 429s are classified as rate limits and retried."""
    client = FakeAnthropic([status_error(anthropic.RateLimitError, 429), "ok"])
    assert complete(client, "claude-test", 10, [], policy=fast_retry) == "ok"
    assert len(client.calls) == 2


def test_complete_surfaces_permanent_errors(fast_retry):
    client = FakeAnthropic([status_error(anthropic.BadRequestError, 400), "never"])
    with pytest.raises(RemoteServiceError) as exc_info:
        complete(client, "claude-test", 10, [], policy=fast_retry)
    assert exc_info.value.kind == ErrorKind.PERMANENT
    assert exc_info.value.status_code == 400
    assert len(client.calls) == 1
