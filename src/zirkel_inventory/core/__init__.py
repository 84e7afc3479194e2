"""Core infrastructure: configuration, errors, retry, schema, pipeline context."""

from zirkel_inventory.core.config import (
    validate_config,
    get_config_summary,
    RetryPolicy,
    ANTHROPIC_API_KEY,
)
from zirkel_inventory.core.errors import (
    ErrorCode,
    ErrorKind,
    ZirkelError,
    ExtractionError,
    ReconciliationError,
    ProposalError,
    MissingConfigurationError,
    RemoteServiceError,
)
from zirkel_inventory.core.schema import (
    ExtractedMediaRecord,
    MediaData,
    ZirkelMediaData,
    Provider,
)

__all__ = [
    "validate_config",
    "get_config_summary",
    "RetryPolicy",
    "ANTHROPIC_API_KEY",
    "ErrorCode",
    "ErrorKind",
    "ZirkelError",
    "ExtractionError",
    "ReconciliationError",
    "ProposalError",
    "MissingConfigurationError",
    "RemoteServiceError",
    "ExtractedMediaRecord",
    "MediaData",
    "ZirkelMediaData",
    "Provider",
]
