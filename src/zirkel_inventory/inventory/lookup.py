"""Read inventory rows back by ZirkelKey."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from zirkel_inventory.core import config
from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.retry import call_with_backoff
from zirkel_inventory.core.schema import MEDIA_WIRE_NAMES, ZirkelMediaData, parse_number
from zirkel_inventory.integrations.ports import TabularStore
from zirkel_inventory.inventory.columns import COLUMN_HEADERS, ColumnMap, cell_text, parse_coordinates

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = {"base", "altura", "costo", "costo_instalacion", "impactos_mes", "tarifa"}


def media_image_url(key: str, base_url: str = config.MEDIA_BASE_URL) -> str:
    """Public URL of a media item's companion image."""
    return f"{base_url.rstrip('/')}/media/{key}.jpeg"


def _number(value: Any) -> Optional[float]:
    try:
        number = parse_number(value)
    except ValueError:
        logger.debug(f"Ignoring non-numeric cell {value!r}")
        return None
    if number is not None and number < 0:
        return None
    return number


def row_to_media(columns: ColumnMap, row: List[Any], base_url: str = config.MEDIA_BASE_URL) -> ZirkelMediaData:
    """Convert one inventory row into a ZirkelMediaData."""
    data: Dict[str, Any] = {}
    for field_name in COLUMN_HEADERS:
        if field_name == "coordenadas" or field_name not in columns:
            continue
        value = columns.cell(row, field_name)
        if field_name in _NUMERIC_FIELDS:
            data[MEDIA_WIRE_NAMES[field_name]] = _number(value)
        else:
            data[MEDIA_WIRE_NAMES[field_name]] = cell_text(value)

    latitud, longitud = parse_coordinates(columns.cell(row, "coordenadas"))
    data["latitud"] = latitud
    data["longitud"] = longitud

    media = ZirkelMediaData.from_dict(data)
    if media.clave_zirkel:
        media.image_url = media_image_url(media.clave_zirkel, base_url)
    return media


def get_medias_by_keys(
    store: TabularStore,
    keys: Iterable[str],
    policy: Optional[RetryPolicy] = None,
    sheet_name: str = config.INVENTORY_SHEET_NAME,
    read_range: str = config.INVENTORY_READ_RANGE,
    base_url: str = config.MEDIA_BASE_URL,
) -> List[ZirkelMediaData]:
    """
    Fetch the inventory rows for a set of ZirkelKeys.

    Args:
        store: Tabular store holding the inventory sheet
        keys: ZirkelKeys to look up
        policy: Backoff policy for rate-limited reads

    Returns:
        Matching items in sheet order; unknown keys are left out

    Raises:
        RemoteServiceError: If the read fails
    """
    wanted = {str(k).strip() for k in keys}
    rows = call_with_backoff(store.read, f"{sheet_name}!{read_range}", policy=policy)
    if not rows:
        return []

    columns = ColumnMap(rows[0])
    if "clave_zirkel" not in columns:
        logger.warning(f"Sheet {sheet_name} has no CLAVE column")
        return []

    medias = [
        row_to_media(columns, row, base_url)
        for row in rows[1:]
        if cell_text(columns.cell(row, "clave_zirkel")) in wanted
    ]

    logger.info(f"Found {len(medias)} media item(s) for {len(wanted)} key(s)")
    return medias
