"""Remote store ports and their Google implementations."""

from zirkel_inventory.integrations.ports import DeckStore, Rows, TabularStore

__all__ = ["DeckStore", "Rows", "TabularStore"]
