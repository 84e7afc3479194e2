#!/usr/bin/env python3
"""
Google Slides / Drive implementation of the DeckStore port.
"""

import logging
from typing import Any, Dict, List

from zirkel_inventory.integrations.google.client import GoogleClient
from zirkel_inventory.integrations.google.config import DRIVE_API_BASE_URL, SLIDES_API_BASE_URL

logger = logging.getLogger(__name__)


class SlidesClient(GoogleClient):
    """Template copy (Drive) plus presentation reads and batch updates (Slides)."""

    def __init__(
        self,
        slides_base_url: str = SLIDES_API_BASE_URL,
        drive_base_url: str = DRIVE_API_BASE_URL,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.slides_base_url = slides_base_url.rstrip("/")
        self.drive_base_url = drive_base_url.rstrip("/")

    def copy_template(self, template_id: str, name: str, folder_id: str) -> str:
        """Copy the template into ``folder_id`` and return the new file ID."""
        data = self._make_request(
            "POST",
            f"{self.drive_base_url}/files/{template_id}/copy",
            params={"supportsAllDrives": "true"},
            json_data={"name": name, "parents": [folder_id]},
        )
        presentation_id = data.get("id")
        logger.info(f"Copied template {template_id} as '{name}' ({presentation_id})")
        return presentation_id

    def get_presentation(self, presentation_id: str) -> Dict[str, Any]:
        return self._make_request("GET", f"{self.slides_base_url}/presentations/{presentation_id}")

    def batch_update(self, presentation_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        logger.debug(f"Applying {len(requests)} requests to presentation {presentation_id}")
        return self._make_request(
            "POST",
            f"{self.slides_base_url}/presentations/{presentation_id}:batchUpdate",
            json_data={"requests": requests},
        )
