#!/usr/bin/env python3
"""
Google Workspace configuration for the inventory spreadsheet and proposal decks.

Authentication uses an OAuth2 refresh token exchanged for short-lived access
tokens, shared by the Sheets, Slides and Drive APIs.
"""

import os
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()


# =============================================================================
# OAuth Configuration
# =============================================================================

GOOGLE_CLIENT_ID: Optional[str] = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET: Optional[str] = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REFRESH_TOKEN: Optional[str] = os.getenv("GOOGLE_REFRESH_TOKEN")

GOOGLE_TOKEN_URL: str = os.getenv("GOOGLE_TOKEN_URL", "https://oauth2.googleapis.com/token")

# Request timeout in seconds for every Google API call
GOOGLE_REQUEST_TIMEOUT: float = float(os.getenv("GOOGLE_REQUEST_TIMEOUT", "60"))


# =============================================================================
# API Endpoints
# =============================================================================

SHEETS_API_BASE_URL: str = os.getenv("SHEETS_API_BASE_URL", "https://sheets.googleapis.com/v4")
SLIDES_API_BASE_URL: str = os.getenv("SLIDES_API_BASE_URL", "https://slides.googleapis.com/v1")
DRIVE_API_BASE_URL: str = os.getenv("DRIVE_API_BASE_URL", "https://www.googleapis.com/drive/v3")


# =============================================================================
# Documents
# =============================================================================

# Spreadsheet holding the INVENTARIO and PROVEEDORES sheets
GOOGLE_SHEETS_ID: Optional[str] = os.getenv("GOOGLE_SHEETS_ID")

# Slides template (cover + one media slide) and the Drive folder for copies
GOOGLE_SLIDES_PROPOSAL_TEMPLATE: Optional[str] = os.getenv("GOOGLE_SLIDES_PROPOSAL_TEMPLATE")
GOOGLE_DRIVE_PROPOSAL_FOLDER: Optional[str] = os.getenv("GOOGLE_DRIVE_PROPOSAL_FOLDER")


# =============================================================================
# Validation
# =============================================================================

_OAUTH_SETTINGS: Dict[str, Optional[str]] = {
    "GOOGLE_CLIENT_ID": GOOGLE_CLIENT_ID,
    "GOOGLE_CLIENT_SECRET": GOOGLE_CLIENT_SECRET,
    "GOOGLE_REFRESH_TOKEN": GOOGLE_REFRESH_TOKEN,
}

REQUIRED_GOOGLE_SETTINGS: Dict[str, Dict[str, Optional[str]]] = {
    "sheets": {
        **_OAUTH_SETTINGS,
        "GOOGLE_SHEETS_ID": GOOGLE_SHEETS_ID,
    },
    "slides": {
        **_OAUTH_SETTINGS,
        "GOOGLE_SLIDES_PROPOSAL_TEMPLATE": GOOGLE_SLIDES_PROPOSAL_TEMPLATE,
        "GOOGLE_DRIVE_PROPOSAL_FOLDER": GOOGLE_DRIVE_PROPOSAL_FOLDER,
    },
}


def get_google_config_summary() -> str:
    """
    Get a summary of the current Google configuration (for logging).
    Sensitive values are masked.
    """
    from zirkel_inventory.core.config import mask_secret

    return f"""
  Google:
    - Client ID: {mask_secret(GOOGLE_CLIENT_ID)}
    - Refresh Token: {mask_secret(GOOGLE_REFRESH_TOKEN)}
    - Spreadsheet ID: {GOOGLE_SHEETS_ID or "Not set"}
    - Proposal Template: {GOOGLE_SLIDES_PROPOSAL_TEMPLATE or "Not set"}
    - Proposal Folder: {GOOGLE_DRIVE_PROPOSAL_FOLDER or "Not set"}
"""
