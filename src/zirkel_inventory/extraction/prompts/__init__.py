"""Prompts sent to the model."""

from zirkel_inventory.extraction.prompts.document import EXTRACTION_PROMPT
from zirkel_inventory.extraction.prompts.image_selection import build_image_selection_prompt

__all__ = [
    "EXTRACTION_PROMPT",
    "build_image_selection_prompt",
]
