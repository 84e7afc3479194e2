"""Google Workspace integration: inventory spreadsheet and proposal decks."""

from zirkel_inventory.integrations.google.client import GoogleAPIError, GoogleClient
from zirkel_inventory.integrations.google.sheets import SheetsClient
from zirkel_inventory.integrations.google.slides import SlidesClient

__all__ = [
    "GoogleAPIError",
    "GoogleClient",
    "SheetsClient",
    "SlidesClient",
]
