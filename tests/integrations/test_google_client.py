"""Tests for the base Google API client."""

import pytest
import requests

from zirkel_inventory.core.errors import ErrorKind
from zirkel_inventory.integrations.google.client import (
    GoogleAPIError,
    GoogleClient,
    classify_google_error,
)

from conftest import FakeResponse, FakeSession

URL = "https://sheets.googleapis.com/v4/spreadsheets/abc"


def make_client(session):
    return GoogleClient(client_id="id", client_secret="secret", refresh_token="refresh", session=session)


def test_classify_google_error_by_status():
    assert classify_google_error(429, None) == ErrorKind.RATE_LIMITED
    assert classify_google_error(500, {}) == ErrorKind.TRANSIENT
    assert classify_google_error(404, {"error": {"message": "not found"}}) == ErrorKind.PERMANENT


def test_classify_google_error_by_reason():
    """Quota errors reported as 403 are still rate limits."""
    body = {"error": {"code": 403, "errors": [{"reason": "userRateLimitExceeded"}]}}
    assert classify_google_error(403, body) == ErrorKind.RATE_LIMITED
    assert classify_google_error(403, {"error": {"status": "RESOURCE_EXHAUSTED"}}) == ErrorKind.RATE_LIMITED
    assert classify_google_error(403, {"error": {"status": "PERMISSION_DENIED"}}) == ErrorKind.PERMANENT


def test_token_is_refreshed_once():
    """The access token should be cached between requests."""
    session = FakeSession([FakeResponse(200, {"a": 1}), FakeResponse(200, {"b": 2})])
    client = make_client(session)

    assert client._make_request("GET", URL) == {"a": 1}
    assert client._make_request("GET", URL) == {"b": 2}

    assert len(session.token_posts) == 1
    assert session.token_posts[0]["data"]["grant_type"] == "refresh_token"
    assert session.requests[0]["headers"]["Authorization"] == "Bearer token-1"


def test_empty_response_body():
    session = FakeSession([FakeResponse(200)])
    assert make_client(session)._make_request("POST", URL, json_data={"x": 1}) == {}
    assert session.requests[0]["json"] == {"x": 1}


def test_http_error_is_classified():
    session = FakeSession([FakeResponse(429, {"error": {"message": "Quota exceeded"}})])
    with pytest.raises(GoogleAPIError) as exc_info:
        make_client(session)._make_request("GET", URL)

    error = exc_info.value
    assert error.is_rate_limited
    assert error.status_code == 429
    assert "Quota exceeded" in error.message


def test_non_json_error_body():
    session = FakeSession([FakeResponse(502, text="<html>Bad Gateway</html>")])
    with pytest.raises(GoogleAPIError) as exc_info:
        make_client(session)._make_request("GET", URL)
    assert exc_info.value.kind == ErrorKind.TRANSIENT
    assert "Bad Gateway" in exc_info.value.message


def test_connection_error_is_transient():
    session = FakeSession([requests.ConnectionError("reset by peer")])
    with pytest.raises(GoogleAPIError) as exc_info:
        make_client(session)._make_request("GET", URL)
    assert exc_info.value.kind == ErrorKind.TRANSIENT


def test_token_refresh_failure():
    session = FakeSession()
    session.token_response = FakeResponse(400, {"error": "invalid_grant"})
    with pytest.raises(GoogleAPIError, match="invalid_grant") as exc_info:
        make_client(session)._make_request("GET", URL)
    assert exc_info.value.kind == ErrorKind.PERMANENT
    assert session.requests == []
