"""Document reading, image extraction, AI structuring and image selection."""

from zirkel_inventory.extraction.images import (
    CandidatePolicy,
    PageImageCandidate,
    extract_candidate_images,
)
from zirkel_inventory.extraction.processor import extract_records
from zirkel_inventory.extraction.selector import select_best_image

__all__ = [
    "CandidatePolicy",
    "PageImageCandidate",
    "extract_candidate_images",
    "extract_records",
    "select_best_image",
]
