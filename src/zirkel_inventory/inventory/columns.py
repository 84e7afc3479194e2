"""
Inventory sheet column layout.

The INVENTARIO sheet has no fixed schema: columns are located by exact
header name on every read, and every column from the first price header
onwards is read-only to this package.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from zirkel_inventory.core import config

# Logical field -> accepted header names (exact match, first hit wins)
COLUMN_HEADERS: Dict[str, Tuple[str, ...]] = {
    "proveedor": ("PROVEEDOR",),
    "clave_zirkel": ("CLAVE",),
    "clave_original_sitio": ("CLAVE ORIGINAL",),
    "costo": ("COSTO",),
    "costo_instalacion": ("COSTO DE INSTALACIÓN",),
    "tipo_medio": ("MEDIO",),
    "estado": ("ESTADO ", "ESTADO"),
    "ciudad": ("CIUDAD",),
    "base": ("BASE",),
    "altura": ("ALTURA",),
    "iluminacion": ("ILUMINACIÓN",),
    "vista": ("VISTA",),
    "orientacion": ("ORIENTACIÓN",),
    "caracteristica": ("CARACTERISTICAS",),
    "coordenadas": ("COORDENADAS",),
    "direccion": ("DIRECCIÓN",),
    "delegacion": ("DELEGACIÓN / MUNICIPIO",),
    "colonia": ("COLONIA",),
    "codigo_postal": ("CÓDIGO POSTAL",),
    "impactos_mes": ("IMPACTOS MES",),
    "tarifa": ("TARIFA",),
}

# Fields copied one-to-one from a MediaData record into its row
RECORD_FIELDS: Tuple[str, ...] = tuple(
    name for name in COLUMN_HEADERS if name not in ("coordenadas", "tarifa")
)


def protected_boundary(header: Sequence[Any], marker: str = config.PRICE_COLUMN_MARKER) -> int:
    """
    Index of the first header containing the price marker.

    Columns at or after it are never written. Without a price column the
    whole header is writable.
    """
    marker = marker.upper()
    for index, name in enumerate(header):
        if marker in str(name).upper():
            return index
    return len(header)


class ColumnMap:
    """
    Logical field -> column index for one header row.

    Only valid for the reconciliation call that read the header; build a
    new one whenever the header is re-read.
    """

    def __init__(self, header: Sequence[Any], marker: str = config.PRICE_COLUMN_MARKER):
        self.header: List[str] = ["" if h is None else str(h) for h in header]
        self.boundary = protected_boundary(self.header, marker)
        self.indices: Dict[str, int] = {}
        for field_name, names in COLUMN_HEADERS.items():
            for name in names:
                if name in self.header:
                    self.indices[field_name] = self.header.index(name)
                    break

    def __contains__(self, field_name: str) -> bool:
        return field_name in self.indices

    def index(self, field_name: str) -> Optional[int]:
        """Column of a field, or None when the header lacks it."""
        return self.indices.get(field_name)

    def writable_index(self, field_name: str) -> Optional[int]:
        """Column of a field when it lies before the protected boundary."""
        index = self.indices.get(field_name)
        if index is None or index >= self.boundary:
            return None
        return index

    def cell(self, row: Sequence[Any], field_name: str) -> Any:
        """Value of a field in a row (None if absent or past the row's end)."""
        index = self.indices.get(field_name)
        if index is None or index >= len(row):
            return None
        return row[index]


def column_letter(index: int) -> str:
    """0-based column index -> A1 column letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def cell_value(value: Any) -> Any:
    """Prepare a record value for a RAW sheet write (13.0 -> 13)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(cell_value(value)).strip()


def format_coordinates(latitud: Optional[float], longitud: Optional[float]) -> str:
    """Combine coordinates into one ``"lat, lng"`` cell, or "" unless both are set."""
    if not latitud or not longitud:
        return ""
    return f"{cell_value(latitud)}, {cell_value(longitud)}"


def parse_coordinates(cell: Any) -> Tuple[Optional[float], Optional[float]]:
    """Split a ``"lat, lng"`` cell; malformed cells give ``(None, None)``."""
    if not isinstance(cell, str) or "," not in cell:
        return None, None
    parts = cell.split(",")
    if len(parts) != 2:
        return None, None
    try:
        return float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        return None, None
