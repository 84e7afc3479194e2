"""Inventory sheet: providers, key assignment, reconciliation and lookup."""

from zirkel_inventory.inventory.keys import build_zirkel_key, next_sequential_key
from zirkel_inventory.inventory.lookup import get_medias_by_keys
from zirkel_inventory.inventory.media_images import save_data_uri_image, save_media_image
from zirkel_inventory.inventory.providers import find_provider_code, get_providers
from zirkel_inventory.inventory.reconciler import InventoryReconciler, ReconciliationSummary

__all__ = [
    "build_zirkel_key",
    "next_sequential_key",
    "get_medias_by_keys",
    "save_data_uri_image",
    "save_media_image",
    "find_provider_code",
    "get_providers",
    "InventoryReconciler",
    "ReconciliationSummary",
]
