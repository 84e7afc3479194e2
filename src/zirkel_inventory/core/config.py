#!/usr/bin/env python3
"""
Configuration for the Zirkel media inventory pipeline.
Handles environment variable loading and validation.
"""

import os
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from dotenv import load_dotenv

from zirkel_inventory.core.errors import MissingConfigurationError

load_dotenv()


# =============================================================================
# Anthropic
# =============================================================================

ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY")

# Whole-document structuring call
EXTRACTION_MODEL_ID: str = os.getenv("EXTRACTION_MODEL_ID", "claude-opus-4-5-20251101")
EXTRACTION_MAX_TOKENS: int = int(os.getenv("EXTRACTION_MAX_TOKENS", "32768"))

# Per-record image ranking call
SELECTION_MODEL_ID: str = os.getenv("SELECTION_MODEL_ID", "claude-sonnet-4-5-20250929")
SELECTION_MAX_TOKENS: int = int(os.getenv("SELECTION_MAX_TOKENS", "1024"))


# =============================================================================
# Document Limits
# =============================================================================

# Long edge of the JPEG thumbnails produced for candidate images
THUMBNAIL_MAX_EDGE: int = int(os.getenv("THUMBNAIL_MAX_EDGE", "600"))

# Spreadsheet uploads are serialized to text before reaching the model
MAX_TEXT_CHARS_BEFORE_LLM: int = int(os.getenv("MAX_TEXT_CHARS_BEFORE_LLM", "120000"))


# =============================================================================
# Rate-Limit Backoff
# =============================================================================

RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "5"))
RETRY_BASE_DELAY: float = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
RETRY_MAX_DELAY: float = float(os.getenv("RETRY_MAX_DELAY", "32.0"))
RETRY_JITTER: float = float(os.getenv("RETRY_JITTER", "1.0"))


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff applied to rate-limited remote calls."""
    max_attempts: int = RETRY_MAX_ATTEMPTS
    base_delay: float = RETRY_BASE_DELAY
    max_delay: float = RETRY_MAX_DELAY
    jitter: float = RETRY_JITTER


DEFAULT_RETRY_POLICY = RetryPolicy()


# =============================================================================
# Inventory Sheet Layout
# =============================================================================

INVENTORY_SHEET_NAME: str = os.getenv("INVENTORY_SHEET_NAME", "INVENTARIO")
PROVIDERS_SHEET_NAME: str = os.getenv("PROVIDERS_SHEET_NAME", "PROVEEDORES")

# Full-range fetch used for every reconciliation / lookup
INVENTORY_READ_RANGE: str = os.getenv("INVENTORY_READ_RANGE", "A:Z")
PROVIDERS_READ_RANGE: str = os.getenv("PROVIDERS_READ_RANGE", "A:AA")

# First header containing this marker starts the read-only pricing columns
PRICE_COLUMN_MARKER: str = os.getenv("PRICE_COLUMN_MARKER", "TARIFA")


# =============================================================================
# Media Images
# =============================================================================

# Local directory where companion images are stored as <ZirkelKey>.<ext>
IMAGES_PATH: str = os.getenv("IMAGES_PATH", "media")

# Public base URL of the static file server publishing IMAGES_PATH under /media
MEDIA_BASE_URL: str = os.getenv("MEDIA_BASE_URL", "http://localhost:3002")


# =============================================================================
# Validation
# =============================================================================

# Environment variable name -> current value, grouped by the feature needing it
REQUIRED_SETTINGS: Dict[str, Dict[str, Optional[str]]] = {
    "extraction": {
        "ANTHROPIC_API_KEY": ANTHROPIC_API_KEY,
    },
}


def validate_config(require: Iterable[str] = ("extraction",)) -> None:
    """
    Validate that the configuration values needed by the given features are present.

    Args:
        require: Feature groups to check ("extraction", "sheets", "slides")

    Raises:
        MissingConfigurationError: Listing every missing variable
    """
    from zirkel_inventory.integrations.google.config import REQUIRED_GOOGLE_SETTINGS

    groups = dict(REQUIRED_SETTINGS)
    groups.update(REQUIRED_GOOGLE_SETTINGS)

    errors = []
    for feature in require:
        if feature not in groups:
            raise ValueError(f"Unknown configuration group: {feature}")
        for name, value in groups[feature].items():
            if not value:
                errors.append(f"{name} environment variable is required")

    if errors:
        raise MissingConfigurationError(errors)


def mask_secret(value: Optional[str]) -> str:
    """Mask all but the first and last four characters of a secret."""
    if value and len(value) > 8:
        return f"{value[:4]}...{value[-4:]}"
    return "Not set" if not value else "****"


def get_config_summary() -> str:
    """
    Get a summary of the current configuration (for logging).
    Sensitive values are masked.
    """
    from zirkel_inventory.integrations.google.config import get_google_config_summary

    return f"""
Zirkel Inventory Configuration:
  Anthropic:
    - API Key: {mask_secret(ANTHROPIC_API_KEY)}
    - Extraction Model: {EXTRACTION_MODEL_ID} (max tokens {EXTRACTION_MAX_TOKENS})
    - Selection Model: {SELECTION_MODEL_ID} (max tokens {SELECTION_MAX_TOKENS})

  Documents:
    - Thumbnail Max Edge: {THUMBNAIL_MAX_EDGE}px
    - Max Text Chars: {MAX_TEXT_CHARS_BEFORE_LLM:,}

  Backoff:
    - Max Attempts: {RETRY_MAX_ATTEMPTS}
    - Delay: {RETRY_BASE_DELAY}s base, {RETRY_MAX_DELAY}s cap, {RETRY_JITTER}s jitter

  Inventory:
    - Sheet: {INVENTORY_SHEET_NAME}!{INVENTORY_READ_RANGE}
    - Providers: {PROVIDERS_SHEET_NAME}!{PROVIDERS_READ_RANGE}
    - Price Column Marker: {PRICE_COLUMN_MARKER}

  Media Images:
    - Images Path: {IMAGES_PATH}
    - Base URL: {MEDIA_BASE_URL}
{get_google_config_summary()}"""
