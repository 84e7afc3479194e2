"""
zirkel_inventory - Media inventory extraction and reconciliation

Extracts advertising-media records and representative images from
provider documents (PDF, Excel, CSV) with Claude, merges them into the
Google Sheets inventory, and assembles Google Slides proposals.
"""

__version__ = "1.0.0"

from zirkel_inventory.core.config import validate_config, get_config_summary
from zirkel_inventory.core.context import PipelineContext
from zirkel_inventory.core.schema import ExtractedMediaRecord, MediaData
from zirkel_inventory.inventory.reconciler import InventoryReconciler
from zirkel_inventory.pipelines.extract import process_document
from zirkel_inventory.pipelines.proposal import ProposalAssembler

__all__ = [
    "validate_config",
    "get_config_summary",
    "PipelineContext",
    "ExtractedMediaRecord",
    "MediaData",
    "InventoryReconciler",
    "process_document",
    "ProposalAssembler",
]
