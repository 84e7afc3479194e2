"""Per-record image ranking prompt."""

import json
from typing import Any, Dict

IMAGE_SELECTION_PROMPT_TEMPLATE = """The images above were found on the document page describing this advertising medium:
{record_json}

Select the image that best represents this medium. The images are numbered in order starting at 0.
- Prefer on-site photographs of the medium.
- If there is no photograph, prefer a map of its location.
- Otherwise choose the best available image.

Respond only with JSON using this schema: {{"index": number}}"""


def build_image_selection_prompt(record: Dict[str, Any]) -> str:
    """Render the ranking instruction for one record's wire dict."""
    return IMAGE_SELECTION_PROMPT_TEMPLATE.format(
        record_json=json.dumps(record, ensure_ascii=False, indent=2)
    )
