#!/usr/bin/env python3
"""
Document Structurer - turn an uploaded inventory document into typed records.

The whole document is sent to Claude with the extraction prompt. PDFs go in
as a document block; spreadsheets are flattened to text first. The response
must be a JSON list of records; anything else fails the whole request.

Usage:
    from zirkel_inventory.extraction.processor import extract_records

    records = extract_records(pdf_bytes, "application/pdf", context)
"""

import base64
import json
import logging
from typing import Any, Dict, List, Union

from zirkel_inventory.core.context import PipelineContext
from zirkel_inventory.core.errors import ExtractionError
from zirkel_inventory.core.schema import ExtractedMediaRecord
from zirkel_inventory.extraction.llm import complete
from zirkel_inventory.extraction.prompts import EXTRACTION_PROMPT
from zirkel_inventory.extraction.readers import check_mime_type, is_pdf, spreadsheet_to_text

logger = logging.getLogger(__name__)

# Keys a model sometimes wraps the record list in
_LIST_WRAPPER_KEYS = ("medios", "records", "data")


# =============================================================================
# Response Parsing
# =============================================================================

def extract_json_from_response(response_text: str) -> Union[Dict[str, Any], List[Any]]:
    """
    Extract JSON from Claude's response, handling code blocks if present.

    Args:
        response_text: Raw response text from Claude

    Returns:
        Parsed JSON (object or list)

    Raises:
        ValueError: If JSON cannot be extracted/parsed
    """
    response_text = response_text.strip()

    # If response starts with ```, try to extract JSON from code block
    if response_text.startswith("```"):
        lines = response_text.split("\n")
        json_lines = []
        in_json = False
        for line in lines:
            if line.startswith("```") and not in_json:
                in_json = True
                continue
            elif line.startswith("```") and in_json:
                break
            elif in_json:
                json_lines.append(line)
        response_text = "\n".join(json_lines)

    try:
        return json.loads(response_text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse JSON: {e}\nResponse: {response_text[:500]}...")


def parse_records(payload: Any) -> List[ExtractedMediaRecord]:
    """
    Validate a parsed model response into records.

    Accepts a JSON list, or an object wrapping the list under ``medios``.

    Raises:
        ExtractionError: If the payload or any record does not match the schema
    """
    if isinstance(payload, dict):
        for key in _LIST_WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break

    if not isinstance(payload, list):
        raise ExtractionError(f"Expected a JSON list of records, got {type(payload).__name__}")

    records = []
    for i, item in enumerate(payload):
        try:
            records.append(ExtractedMediaRecord.from_dict(item))
        except ValueError as e:
            raise ExtractionError(f"Record {i} does not match the schema: {e}")
    return records


# =============================================================================
# Structuring
# =============================================================================

def build_document_content(data: bytes, mime_type: str) -> List[Dict[str, Any]]:
    """Build the user message content blocks for a document."""
    if is_pdf(mime_type):
        return [
            {
                "type": "document",
                "source": {
                    "type": "base64",
                    "media_type": "application/pdf",
                    "data": base64.standard_b64encode(data).decode("utf-8"),
                },
            },
            {"type": "text", "text": "Extrae los medios de este documento."},
        ]

    return [
        {
            "type": "text",
            "text": "Extrae los medios de estas hojas de cálculo:\n\n"
            + spreadsheet_to_text(data, mime_type),
        }
    ]


def extract_records(
    data: bytes,
    mime_type: str,
    context: PipelineContext,
) -> List[ExtractedMediaRecord]:
    """
    Structure a document into media records (without images).

    Args:
        data: Raw document bytes
        mime_type: Declared MIME type (PDF, XLSX or CSV)
        context: Pipeline context with an Anthropic client

    Returns:
        Records in document order, each with its 1-based page number

    Raises:
        ExtractionError: If the document cannot be read or the response is not
            a valid record list
        RemoteServiceError: If the model call fails
    """
    check_mime_type(mime_type)
    logger.info(f"Structuring document ({mime_type}, {len(data):,} bytes)")

    content = build_document_content(data, mime_type)
    response_text = complete(
        context.anthropic,
        model=context.extraction_model,
        max_tokens=context.extraction_max_tokens,
        system=EXTRACTION_PROMPT,
        messages=[{"role": "user", "content": content}],
        purpose="extraction",
        policy=context.retry_policy,
    )

    try:
        payload = extract_json_from_response(response_text)
    except ValueError as e:
        raise ExtractionError(str(e))

    records = parse_records(payload)
    logger.info(f"Model structured {len(records)} record(s)")
    return records
