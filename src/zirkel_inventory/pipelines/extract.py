#!/usr/bin/env python3
"""
Document extraction pipeline.

Flow:
1. Open the document (PDFs are parsed up front so a broken file fails
   before any model call)
2. Structure it into records with the model
3. For each record, extract the candidate images of its page (once per page)
4. Attach the best image: AI ranking over all candidates, or the largest one

Usage:
    context = PipelineContext.from_env()
    records = process_file("inventario.pdf", context)
    media = to_media_data(records, provider)
"""

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pypdf import PdfReader

from zirkel_inventory.core import config
from zirkel_inventory.core.context import PipelineContext
from zirkel_inventory.core.errors import ExtractionError
from zirkel_inventory.core.schema import ExtractedMediaRecord, MediaData, Provider
from zirkel_inventory.extraction.images import CandidatePolicy, apply_policy, extract_candidate_images
from zirkel_inventory.extraction.processor import extract_records
from zirkel_inventory.extraction.readers import check_mime_type, is_pdf, open_pdf
from zirkel_inventory.extraction.selector import select_best_image
from zirkel_inventory.inventory.keys import build_zirkel_key

logger = logging.getLogger(__name__)


# =============================================================================
# Page Images
# =============================================================================

def page_thumbnails(
    reader: PdfReader,
    page_number: int,
    policy: CandidatePolicy = CandidatePolicy.ALL,
    max_edge: int = config.THUMBNAIL_MAX_EDGE,
) -> List[str]:
    """
    JPEG data URIs of the candidate images on a 1-based page.

    Never raises: unreadable pages and images yield fewer (or no) thumbnails.
    """
    page_index = page_number - 1
    try:
        page = reader.pages[page_index]
    except Exception as e:
        logger.error(f"Cannot read page {page_number}: {e}")
        return []
    candidates = apply_policy(extract_candidate_images(page, page_index), policy)

    thumbnails = []
    for candidate in candidates:
        try:
            thumbnails.append(candidate.to_data_uri(max_edge))
        except Exception as e:
            logger.warning(f"Page {page_number}: could not encode image {candidate.source_object_id}: {e}")
    return thumbnails


def attach_images(
    records: List[ExtractedMediaRecord],
    reader: PdfReader,
    context: PipelineContext,
    policy: CandidatePolicy = CandidatePolicy.ALL,
) -> None:
    """Set ``selected_image`` on each record from its page's images."""
    page_count = len(reader.pages)
    cache: Dict[int, List[str]] = {}

    for record in records:
        if record.pagina > page_count:
            logger.warning(
                f"Record references page {record.pagina} but the document has {page_count}; no image"
            )
            record.selected_image = None
            continue

        if record.pagina not in cache:
            cache[record.pagina] = page_thumbnails(reader, record.pagina, policy, context.thumbnail_max_edge)
        thumbnails = cache[record.pagina]

        if policy == CandidatePolicy.LARGEST:
            record.selected_image = thumbnails[0] if thumbnails else None
        else:
            record.selected_image = select_best_image(thumbnails, record, context)


# =============================================================================
# Entry Points
# =============================================================================

def process_document(
    data: bytes,
    mime_type: str,
    context: PipelineContext,
    policy: CandidatePolicy = CandidatePolicy.ALL,
) -> List[ExtractedMediaRecord]:
    """
    Extract media records, with a representative image each, from a document.

    Spreadsheets carry no images: their records come back with
    ``selected_image`` set to None.

    Args:
        data: Raw document bytes
        mime_type: Declared MIME type
        context: Pipeline context with an Anthropic client
        policy: Candidate image policy

    Returns:
        Records in document order

    Raises:
        ExtractionError: If the document cannot be opened or structured
        RemoteServiceError: If the structuring call fails
    """
    check_mime_type(mime_type)
    reader = open_pdf(data) if is_pdf(mime_type) else None

    records = extract_records(data, mime_type, context)

    if reader is not None:
        attach_images(records, reader, context, policy)

    with_image = sum(1 for r in records if r.selected_image)
    logger.info(f"Extracted {len(records)} record(s), {with_image} with an image")
    return records


def process_file(
    path: Union[str, Path],
    context: PipelineContext,
    policy: CandidatePolicy = CandidatePolicy.ALL,
    mime_type: Optional[str] = None,
) -> List[ExtractedMediaRecord]:
    """
    Run :func:`process_document` on a file, guessing its MIME type from the name.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ExtractionError: If the type is unknown or extraction fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    mime_type = mime_type or mimetypes.guess_type(path.name)[0]
    if not mime_type:
        raise ExtractionError(f"Cannot determine the document type of {path.name}")

    logger.info(f"Processing document: {path}")
    return process_document(path.read_bytes(), mime_type, context, policy)


# =============================================================================
# Conversion
# =============================================================================

def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def to_media_data(records: List[ExtractedMediaRecord], provider: Optional[Provider] = None) -> List[MediaData]:
    """
    Turn extraction records into upsert-ready records.

    With a provider, records that carry the provider's own site key get the
    ZirkelKey ``ZM<providerCode><clave>``; the rest are left for sequential
    key synthesis. Empty fields become None so they never blank out an
    existing cell.
    """
    media = []
    for record in records:
        key = None
        if provider is not None and provider.clave and record.clave:
            key = build_zirkel_key(provider.clave, record.clave)

        media.append(MediaData(
            proveedor=provider.proveedor if provider is not None else None,
            clave_original_sitio=record.clave,
            clave_zirkel=key,
            base=record.base,
            altura=record.altura,
            ciudad=_blank_to_none(record.ciudad),
            estado=_blank_to_none(record.estado),
            tipo_medio=_blank_to_none(record.tipo_medio),
            costo=record.costo,
            costo_instalacion=record.costo_instalacion,
            iluminacion=_blank_to_none(record.iluminacion),
            vista=_blank_to_none(record.vista),
            orientacion=_blank_to_none(record.orientacion),
            caracteristica=_blank_to_none(record.caracteristica),
            impactos_mes=record.impactos_mes,
            latitud=record.latitud,
            longitud=record.longitud,
            direccion=_blank_to_none(record.direccion),
            delegacion=_blank_to_none(record.delegacion),
            colonia=_blank_to_none(record.colonia),
            codigo_postal=_blank_to_none(record.codigo_postal),
        ))
    return media


def save_json_output(data: Any, output_path: Union[str, Path]) -> str:
    """
    Save extracted data (wire-format dicts) to a JSON file.

    Returns:
        Path to the saved JSON file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved output to: {output_path}")
    return str(output_path)
