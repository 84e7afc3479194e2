"""
Document readers.

PDFs are opened with pypdf (page count and page handles for image
extraction; the model receives the raw bytes). Spreadsheets are flattened
into JSON text, one block per sheet, because the model reads them as text.
"""

import io
import json
import logging
from typing import Any, Dict, List, Tuple

import pandas as pd
from openpyxl import load_workbook
from pypdf import PdfReader

from zirkel_inventory.core import config
from zirkel_inventory.core.errors import ExtractionError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIME_TYPES = frozenset({"text/csv", "application/csv"})

SUPPORTED_MIME_TYPES = frozenset({PDF_MIME_TYPE, XLSX_MIME_TYPE}) | CSV_MIME_TYPES


def is_pdf(mime_type: str) -> bool:
    return mime_type == PDF_MIME_TYPE


def check_mime_type(mime_type: str) -> None:
    """
    Raises:
        ExtractionError: If the MIME type is not a supported document type
    """
    if mime_type not in SUPPORTED_MIME_TYPES:
        supported = ", ".join(sorted(SUPPORTED_MIME_TYPES))
        raise ExtractionError(f"Unsupported document type '{mime_type}' (supported: {supported})")


# =============================================================================
# PDF
# =============================================================================

def open_pdf(data: bytes) -> PdfReader:
    """
    Open PDF bytes.

    Raises:
        ExtractionError: If the bytes are not a readable PDF
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        page_count = len(reader.pages)
    except Exception as e:
        raise ExtractionError(f"Cannot open PDF document: {e}")

    logger.debug(f"Opened PDF with {page_count} page(s)")
    return reader


# =============================================================================
# Spreadsheets
# =============================================================================

def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float, str, bool)):
        return value
    # dates and times
    return str(value)


def read_xlsx_sheets(data: bytes) -> List[Tuple[str, List[Dict[str, Any]]]]:
    """
    Read every worksheet, row 1 = headers, rows 2+ = data.

    Empty rows are skipped.

    Returns:
        (sheet title, row dicts) per worksheet
    """
    try:
        wb = load_workbook(io.BytesIO(data), data_only=True, read_only=True)
    except Exception as e:
        raise ExtractionError(f"Cannot read Excel file (is it corrupted or wrong format?): {e}")

    sheets = []
    try:
        for ws in wb.worksheets:
            rows_iter = ws.iter_rows(values_only=True)
            header_row = next(rows_iter, None)
            if header_row is None:
                sheets.append((ws.title, []))
                continue

            headers = [
                str(h).strip() if h is not None else f"col_{c}"
                for c, h in enumerate(header_row, start=1)
            ]

            rows: List[Dict[str, Any]] = []
            for values in rows_iter:
                if all(v in (None, "") for v in values):
                    continue
                rows.append({
                    header: _cell_value(values[i] if i < len(values) else None)
                    for i, header in enumerate(headers)
                })
            sheets.append((ws.title, rows))
    finally:
        wb.close()

    return sheets


def read_csv_rows(data: bytes) -> List[Dict[str, Any]]:
    """Read CSV bytes into row dicts (all values as text, empty rows dropped)."""
    try:
        df = pd.read_csv(io.BytesIO(data), dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except Exception as e:
        raise ExtractionError(f"Cannot read CSV file: {e}")

    df = df.loc[~(df == "").all(axis=1)]
    return df.to_dict(orient="records")


def spreadsheet_to_text(data: bytes, mime_type: str) -> str:
    """
    Flatten a spreadsheet document into text for the model.

    Each sheet is numbered as a page so the model can fill ``pagina``.

    Raises:
        ExtractionError: If the file cannot be read or is too large
    """
    if mime_type == XLSX_MIME_TYPE:
        sheets = read_xlsx_sheets(data)
    else:
        sheets = [("CSV", read_csv_rows(data))]

    blocks = []
    for page, (title, rows) in enumerate(sheets, start=1):
        blocks.append(
            f"Hoja {page} ('{title}', pagina {page}):\n"
            + json.dumps(rows, ensure_ascii=False, indent=1)
        )
    text = "\n\n".join(blocks)

    if len(text) > config.MAX_TEXT_CHARS_BEFORE_LLM:
        raise ExtractionError(
            f"Spreadsheet text is {len(text):,} characters, "
            f"over the {config.MAX_TEXT_CHARS_BEFORE_LLM:,} limit"
        )

    logger.info(f"Spreadsheet flattened: {len(sheets)} sheet(s), {len(text):,} characters")
    return text
