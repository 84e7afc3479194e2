"""End-to-end pipelines: document extraction and proposal assembly."""

from zirkel_inventory.pipelines.extract import process_document, process_file, to_media_data
from zirkel_inventory.pipelines.proposal import ProposalAssembler, ProposalResult

__all__ = [
    "process_document",
    "process_file",
    "to_media_data",
    "ProposalAssembler",
    "ProposalResult",
]
