#!/usr/bin/env python3
"""
Google Sheets implementation of the TabularStore port.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from zirkel_inventory.integrations.google.client import GoogleClient
from zirkel_inventory.integrations.google.config import GOOGLE_SHEETS_ID, SHEETS_API_BASE_URL
from zirkel_inventory.integrations.ports import Rows

logger = logging.getLogger(__name__)


class SheetsClient(GoogleClient):
    """
    Range-addressed reads and writes against one spreadsheet.

    Values are read unformatted and written RAW so numbers round-trip
    without locale formatting.
    """

    def __init__(
        self,
        spreadsheet_id: Optional[str] = None,
        base_url: str = SHEETS_API_BASE_URL,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.spreadsheet_id = spreadsheet_id or GOOGLE_SHEETS_ID
        self.base_url = base_url.rstrip("/")

    def _values_url(self, range_: str, suffix: str = "") -> str:
        return (
            f"{self.base_url}/spreadsheets/{self.spreadsheet_id}"
            f"/values/{quote(range_, safe='')}{suffix}"
        )

    def read(self, range_: str) -> Rows:
        """Return every row in the range (empty list for an empty sheet)."""
        data = self._make_request(
            "GET",
            self._values_url(range_),
            params={"valueRenderOption": "UNFORMATTED_VALUE", "majorDimension": "ROWS"},
        )
        rows = data.get("values") or []
        logger.debug(f"Read {len(rows)} rows from {range_}")
        return rows

    def write(self, range_: str, rows: Rows) -> Dict[str, Any]:
        """Overwrite the range with ``rows``."""
        logger.debug(f"Writing {len(rows)} rows to {range_}")
        return self._make_request(
            "PUT",
            self._values_url(range_),
            params={"valueInputOption": "RAW"},
            json_data={"range": range_, "majorDimension": "ROWS", "values": rows},
        )

    def append(self, range_: str, rows: Rows) -> Dict[str, Any]:
        """Insert ``rows`` as new rows after the table in the range."""
        logger.debug(f"Appending {len(rows)} rows to {range_}")
        return self._make_request(
            "POST",
            self._values_url(range_, ":append"),
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json_data={"majorDimension": "ROWS", "values": rows},
        )
