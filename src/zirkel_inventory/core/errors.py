"""
Error taxonomy for the extraction and reconciliation pipeline.

Every failure that crosses a module boundary is a ``ZirkelError`` carrying an
``ErrorCode``, so callers can report a stable code instead of an opaque string.
Remote ports (Anthropic, Google Sheets/Slides) raise ``RemoteServiceError``
already classified into an ``ErrorKind``; only ``RATE_LIMITED`` is retried.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional


class ErrorCode(str, Enum):
    """Stable, user-visible error codes."""
    PARSE_FAILURE = "parse_failure"
    IMAGE_RESOLUTION_FAILURE = "image_resolution_failure"
    IMAGE_SELECTION_AMBIGUOUS = "image_selection_ambiguous"
    RATE_LIMITED = "rate_limited"
    RECONCILIATION_FAILURE = "reconciliation_failure"
    MISSING_CONFIGURATION = "missing_configuration"
    PROPOSAL_FAILURE = "proposal_failure"
    REMOTE_SERVICE_FAILURE = "remote_service_failure"


class ErrorKind(str, Enum):
    """Classification of a remote failure, decided at the port boundary."""
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


RATE_LIMIT_STATUS_CODES = frozenset({429})
TRANSIENT_STATUS_CODES = frozenset({500, 502, 503, 504, 529})


def classify_status(status_code: Optional[int]) -> ErrorKind:
    """Map an HTTP status code onto an ErrorKind."""
    if status_code in RATE_LIMIT_STATUS_CODES:
        return ErrorKind.RATE_LIMITED
    if status_code in TRANSIENT_STATUS_CODES:
        return ErrorKind.TRANSIENT
    return ErrorKind.PERMANENT


class ZirkelError(Exception):
    """Base class for every pipeline error."""

    code: ErrorCode = ErrorCode.REMOTE_SERVICE_FAILURE

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class ExtractionError(ZirkelError):
    """The document could not be opened, or the model response did not match the schema."""
    code = ErrorCode.PARSE_FAILURE


class ReconciliationError(ZirkelError):
    """A batch could not be merged into the inventory; rows already written stay written."""
    code = ErrorCode.RECONCILIATION_FAILURE


class ProposalError(ZirkelError):
    """A proposal deck could not be assembled."""
    code = ErrorCode.PROPOSAL_FAILURE


class MissingConfigurationError(ZirkelError):
    """A required credential or identifier is absent. Never retried."""
    code = ErrorCode.MISSING_CONFIGURATION

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__("Configuration error(s): " + "; ".join(self.missing))


class RemoteServiceError(ZirkelError):
    """Exception raised by a remote port (AI service, spreadsheet, slide deck)."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.PERMANENT,
        status_code: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        self.response = response
        code = ErrorCode.RATE_LIMITED if kind == ErrorKind.RATE_LIMITED else ErrorCode.REMOTE_SERVICE_FAILURE
        super().__init__(message, code=code)

    @property
    def is_rate_limited(self) -> bool:
        return self.kind == ErrorKind.RATE_LIMITED


class ImageResolutionError(ZirkelError):
    """A single image object on a page could not be resolved. Recovered by skipping it."""
    code = ErrorCode.IMAGE_RESOLUTION_FAILURE
