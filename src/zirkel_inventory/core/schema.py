"""
Record schema for the media inventory pipeline.

Three shapes flow through the system:

1. ExtractedMediaRecord - what the model structures out of an uploaded
   document, plus the representative image chosen for it.
2. MediaData - an upsert-ready inventory record keyed by its ZirkelKey
   (the reconciliation target).
3. ZirkelMediaData - an inventory row read back by key, with the
   read-only price (TARIFA) and the computed public image URL.

Attributes are snake_case; the JSON wire format (model output, CLI input
and output) keeps the camelCase names the inventory front end uses.
"""

import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


# ============================================================================
# VALUE PARSING
# ============================================================================

_NUMBER_NOISE = re.compile(r"[\s$]|MTS?\.?$|M$", re.IGNORECASE)


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric cell or model value.

    Accepts numbers and strings such as "13", "4.20", "4,20", "$15,000" or
    "150,000". A single comma followed by anything other than three digits is
    read as a decimal separator. Empty values return None.

    Raises:
        ValueError: If the value is not numeric
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    text = _NUMBER_NOISE.sub("", str(value).strip())
    if not text:
        return None

    if "," in text and "." in text:
        text = text.replace(",", "")
    elif text.count(",") == 1 and len(text.split(",")[1]) != 3:
        text = text.replace(",", ".")
    else:
        text = text.replace(",", "")

    return float(text)


def _non_negative(name: str, value: Optional[float]) -> Optional[float]:
    if value is not None and value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


# ============================================================================
# EXTRACTION RECORD
# ============================================================================

@dataclass
class ExtractedMediaRecord:
    """
    One inventory item structured out of an uploaded document.

    ``pagina`` is the 1-based page the item was found on and is the join key
    with the page-level image candidates. ``selected_image`` is a base64 JPEG
    data URI, or None when no suitable image exists.
    """
    pagina: int
    base: Optional[float] = None            # metres
    altura: Optional[float] = None          # metres
    ciudad: str = ""
    estado: str = ""
    tipo_medio: str = ""
    costo: Optional[float] = None
    costo_instalacion: Optional[float] = None
    iluminacion: str = ""                   # "Si" | "No" | open
    vista: str = ""
    orientacion: str = ""
    caracteristica: Optional[str] = None
    impactos_mes: Optional[float] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None
    direccion: str = ""
    delegacion: str = ""
    colonia: str = ""
    codigo_postal: str = ""
    clave: Optional[str] = None             # provider's original site key
    selected_image: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedMediaRecord":
        """
        Build a record from the model's camelCase JSON object.

        Raises:
            ValueError: If a field does not match the schema
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object per record, got {type(data).__name__}")

        raw_page = data.get("pagina", data.get("pageNumber"))
        page = parse_number(raw_page)
        if page is None or not page.is_integer() or page < 1:
            raise ValueError(f"Record is missing a valid 1-based 'pagina': {raw_page!r}")

        return cls(
            pagina=int(page),
            base=_non_negative("base", parse_number(data.get("base"))),
            altura=_non_negative("altura", parse_number(data.get("altura"))),
            ciudad=_text(data.get("ciudad")),
            estado=_text(data.get("estado")),
            tipo_medio=_text(data.get("tipoMedio")),
            costo=_non_negative("costo", parse_number(data.get("costo"))),
            costo_instalacion=_non_negative(
                "costoInstalacion", parse_number(data.get("costoInstalacion"))
            ),
            iluminacion=_text(data.get("iluminacion")),
            vista=_text(data.get("vista")),
            orientacion=_text(data.get("orientacion")),
            caracteristica=_optional_text(data.get("caracteristica")),
            impactos_mes=_non_negative("impactosMes", parse_number(data.get("impactosMes"))),
            latitud=parse_number(data.get("latitud")),
            longitud=parse_number(data.get("longitud")),
            direccion=_text(data.get("direccion")),
            delegacion=_text(data.get("delegacion")),
            colonia=_text(data.get("colonia")),
            codigo_postal=_text(data.get("codigoPostal")),
            clave=_optional_text(data.get("clave")),
            selected_image=data.get("selectedImage"),
        )

    def to_dict(self, include_image: bool = True) -> Dict[str, Any]:
        """Serialize to the camelCase wire format."""
        result = {
            "clave": self.clave,
            "base": self.base,
            "altura": self.altura,
            "ciudad": self.ciudad,
            "estado": self.estado,
            "tipoMedio": self.tipo_medio,
            "costo": self.costo,
            "costoInstalacion": self.costo_instalacion,
            "iluminacion": self.iluminacion,
            "vista": self.vista,
            "orientacion": self.orientacion,
            "caracteristica": self.caracteristica,
            "impactosMes": self.impactos_mes,
            "latitud": self.latitud,
            "longitud": self.longitud,
            "pagina": self.pagina,
            "direccion": self.direccion,
            "delegacion": self.delegacion,
            "colonia": self.colonia,
            "codigoPostal": self.codigo_postal,
        }
        if include_image:
            result["selectedImage"] = self.selected_image
        return result


# ============================================================================
# INVENTORY RECORDS
# ============================================================================

# snake_case attribute -> camelCase wire name
MEDIA_WIRE_NAMES: Dict[str, str] = {
    "proveedor": "proveedor",
    "clave_original_sitio": "claveOriginalSitio",
    "clave_zirkel": "claveZirkel",
    "base": "base",
    "altura": "altura",
    "ciudad": "ciudad",
    "estado": "estado",
    "tipo_medio": "tipoMedio",
    "costo": "costo",
    "costo_instalacion": "costoInstalacion",
    "iluminacion": "iluminacion",
    "vista": "vista",
    "orientacion": "orientacion",
    "caracteristica": "caracteristica",
    "impactos_mes": "impactosMes",
    "latitud": "latitud",
    "longitud": "longitud",
    "direccion": "direccion",
    "delegacion": "delegacion",
    "colonia": "colonia",
    "codigo_postal": "codigoPostal",
    "image_url": "imageUrl",
    "tarifa": "tarifa",
}

_NUMERIC_FIELDS = {
    "base", "altura", "costo", "costo_instalacion", "impactos_mes", "latitud", "longitud", "tarifa",
}
_NON_NEGATIVE_FIELDS = {"base", "altura", "costo", "costo_instalacion", "impactos_mes", "tarifa"}


@dataclass
class MediaData:
    """
    Upsert-ready inventory record.

    Fields left as None are not written to the inventory row. A record with
    no ``clave_zirkel`` gets a sequential key synthesized from its provider.
    """
    proveedor: Optional[str] = None
    clave_original_sitio: Optional[str] = None
    clave_zirkel: Optional[str] = None
    base: Optional[float] = None
    altura: Optional[float] = None
    ciudad: Optional[str] = None
    estado: Optional[str] = None
    tipo_medio: Optional[str] = None
    costo: Optional[float] = None
    costo_instalacion: Optional[float] = None
    iluminacion: Optional[str] = None
    vista: Optional[str] = None
    orientacion: Optional[str] = None
    caracteristica: Optional[str] = None
    impactos_mes: Optional[float] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None
    direccion: Optional[str] = None
    delegacion: Optional[str] = None
    colonia: Optional[str] = None
    codigo_postal: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaData":
        """
        Build a record from a camelCase JSON object.

        Raises:
            ValueError: If a numeric field is malformed or negative
        """
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            wire = MEDIA_WIRE_NAMES[f.name]
            if wire not in data:
                continue
            value = data[wire]
            if f.name in _NUMERIC_FIELDS:
                value = parse_number(value)
                if f.name in _NON_NEGATIVE_FIELDS:
                    value = _non_negative(wire, value)
            elif value is not None:
                value = _text(value)
            kwargs[f.name] = value
        if kwargs.get("clave_zirkel") == "":
            kwargs["clave_zirkel"] = None
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire format."""
        return {MEDIA_WIRE_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}


@dataclass
class ZirkelMediaData(MediaData):
    """Inventory row read back by ZirkelKey, including the read-only price."""
    tarifa: Optional[float] = None


# ============================================================================
# PROVIDERS
# ============================================================================

# Media-type coverage flags in PROVEEDORES column order (columns F..W)
PROVIDER_MEDIA_FLAGS: List[str] = [
    "carteleras",
    "pantallas",
    "puentes",
    "muros",
    "sitiosTaxis",
    "vallasFijas",
    "aeropuertos",
    "vallasMoviles",
    "gimnasios",
    "suburbano",
    "metro",
    "mupisDigitales",
    "centrosComerciales",
    "totemDigital",
    "autobuses",
    "universidades",
    "otrosAlternativos",
    "impresion",
]


@dataclass
class Provider:
    """A media provider from the PROVEEDORES sheet. ``clave`` is the code used in ZirkelKeys."""
    clave: str
    proveedor: str
    razon_social: str = ""
    negociacion: str = ""
    cobertura: str = ""
    medios: Dict[str, bool] = field(default_factory=dict)
    contacto: str = ""
    telefono: str = ""
    email: str = ""
    restricciones: str = ""

    @classmethod
    def from_row(cls, row: List[Any]) -> "Provider":
        """Build a provider from a positional PROVEEDORES row."""
        def cell(index: int) -> str:
            return _text(row[index]) if index < len(row) else ""

        flags_start = 5
        medios = {
            name: cell(flags_start + offset).lower() == "x"
            for offset, name in enumerate(PROVIDER_MEDIA_FLAGS)
        }
        tail = flags_start + len(PROVIDER_MEDIA_FLAGS)
        return cls(
            clave=cell(0),
            proveedor=cell(1),
            razon_social=cell(2),
            negociacion=cell(3),
            cobertura=cell(4),
            medios=medios,
            contacto=cell(tail),
            telefono=cell(tail + 1),
            email=cell(tail + 2),
            restricciones=cell(tail + 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "clave": self.clave,
            "proveedor": self.proveedor,
            "razonSocial": self.razon_social,
            "negociacion": self.negociacion,
            "cobertura": self.cobertura,
        }
        result.update(self.medios)
        result.update({
            "contacto": self.contacto,
            "telefono": self.telefono,
            "email": self.email,
            "restricciones": self.restricciones,
        })
        return result
