"""Tests for the error taxonomy."""

from zirkel_inventory.core.errors import (
    ErrorCode,
    ErrorKind,
    ExtractionError,
    MissingConfigurationError,
    ReconciliationError,
    RemoteServiceError,
    ZirkelError,
    classify_status,
)


def test_classify_status():
    assert classify_status(429) == ErrorKind.RATE_LIMITED
    assert classify_status(503) == ErrorKind.TRANSIENT
    assert classify_status(529) == ErrorKind.TRANSIENT
    assert classify_status(400) == ErrorKind.PERMANENT
    assert classify_status(None) == ErrorKind.PERMANENT


def test_error_codes_per_class():
    assert ExtractionError("x").code == ErrorCode.PARSE_FAILURE
    assert ReconciliationError("x").code == ErrorCode.RECONCILIATION_FAILURE
    assert MissingConfigurationError(["A missing"]).code == ErrorCode.MISSING_CONFIGURATION


def test_remote_error_code_follows_kind():
    rate_limited = RemoteServiceError("slow down", kind=ErrorKind.RATE_LIMITED, status_code=429)
    assert rate_limited.is_rate_limited
    assert rate_limited.code == ErrorCode.RATE_LIMITED

    permanent = RemoteServiceError("bad request", status_code=400)
    assert not permanent.is_rate_limited
    assert permanent.code == ErrorCode.REMOTE_SERVICE_FAILURE


def test_errors_share_base_class():
    assert isinstance(ExtractionError("x"), ZirkelError)
    assert isinstance(RemoteServiceError("x"), ZirkelError)
    assert str(ExtractionError("boom")) == "boom"
