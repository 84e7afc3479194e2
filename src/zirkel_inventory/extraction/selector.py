"""
Image Selector - ask the model which candidate image best represents a record.

Degrades to "no image" instead of raising: an empty candidate list, a
malformed or out-of-range answer, or a failed model call all yield None.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from zirkel_inventory.core.context import PipelineContext
from zirkel_inventory.core.errors import ErrorCode, RemoteServiceError
from zirkel_inventory.core.schema import ExtractedMediaRecord
from zirkel_inventory.extraction.processor import extract_json_from_response
from zirkel_inventory.extraction.llm import complete
from zirkel_inventory.extraction.prompts import build_image_selection_prompt

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/jpeg;base64,"


def _image_block(data_uri: str) -> Dict[str, Any]:
    data = data_uri[len(DATA_URI_PREFIX):] if data_uri.startswith(DATA_URI_PREFIX) else data_uri
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/jpeg", "data": data},
    }


def parse_selected_index(response_text: str, candidate_count: int) -> Optional[int]:
    """
    Read ``{"index": n}`` from a response.

    Returns:
        The index when it is an integer in ``[0, candidate_count)``, else None
    """
    try:
        payload = extract_json_from_response(response_text)
    except ValueError:
        logger.warning(f"[{ErrorCode.IMAGE_SELECTION_AMBIGUOUS.value}] Unparseable selection: {response_text[:200]!r}")
        return None

    index = payload.get("index") if isinstance(payload, dict) else None
    if isinstance(index, bool) or not isinstance(index, int):
        logger.warning(f"[{ErrorCode.IMAGE_SELECTION_AMBIGUOUS.value}] Missing integer index: {payload!r}")
        return None

    if not 0 <= index < candidate_count:
        logger.warning(
            f"[{ErrorCode.IMAGE_SELECTION_AMBIGUOUS.value}] Model returned invalid index {index} "
            f"for {candidate_count} image(s)"
        )
        return None

    return index


def select_best_image(
    candidates: Sequence[str],
    record: ExtractedMediaRecord,
    context: PipelineContext,
) -> Optional[str]:
    """
    Pick the candidate that best represents a record.

    Args:
        candidates: JPEG data URIs from the record's page
        record: The record the image is for
        context: Pipeline context with an Anthropic client

    Returns:
        One of ``candidates``, or None
    """
    if not candidates:
        return None

    content: List[Dict[str, Any]] = [_image_block(uri) for uri in candidates]
    content.append({
        "type": "text",
        "text": build_image_selection_prompt(record.to_dict(include_image=False)),
    })

    try:
        response_text = complete(
            context.anthropic,
            model=context.selection_model,
            max_tokens=context.selection_max_tokens,
            messages=[{"role": "user", "content": content}],
            purpose="image selection",
            policy=context.retry_policy,
        )
    except RemoteServiceError as e:
        logger.error(f"Image selection failed for page {record.pagina}: {e.message}")
        return None

    index = parse_selected_index(response_text, len(candidates))
    if index is None:
        return None

    logger.debug(f"Page {record.pagina}: selected image {index} of {len(candidates)}")
    return candidates[index]
