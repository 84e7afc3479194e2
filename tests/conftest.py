"""Shared test fixtures for zirkel_inventory tests."""

import copy
import io
import json
import re
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.context import PipelineContext

INVENTORY_HEADER = [
    "PROVEEDOR", "CLAVE", "CLAVE ORIGINAL", "MEDIO", "ESTADO ", "CIUDAD",
    "BASE", "ALTURA", "ILUMINACIÓN", "VISTA", "ORIENTACIÓN", "CARACTERISTICAS",
    "COORDENADAS", "DIRECCIÓN", "DELEGACIÓN / MUNICIPIO", "COLONIA", "CÓDIGO POSTAL",
    "IMPACTOS MES", "COSTO", "COSTO DE INSTALACIÓN", "TARIFA", "TARIFA PUBLICO",
]


# =============================================================================
# Tabular store double
# =============================================================================

_RANGE = re.compile(r"^(?P<sheet>[^!]+)!(?P<c1>[A-Z]+)(?P<r1>\d*)(?::(?P<c2>[A-Z]+)(?P<r2>\d*))?$")


def column_index(letters: str) -> int:
    index = 0
    for ch in letters:
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index - 1


def _trim(row: List[Any]) -> List[Any]:
    row = list(row)
    while row and row[-1] in ("", None):
        row.pop()
    return row


class InMemoryTabularStore:
    """
    TabularStore over in-memory sheets, with the A1 semantics the inventory uses.

    Reads trim trailing empty cells and trailing empty rows like the Sheets API.
    ``failures`` holds exceptions raised (one per call) before any operation.
    """

    def __init__(self, sheets: Optional[Dict[str, List[List[Any]]]] = None):
        self.sheets: Dict[str, List[List[Any]]] = {
            name: [list(r) for r in rows] for name, rows in (sheets or {}).items()
        }
        self.calls: List[tuple] = []
        self.failures: List[Exception] = []

    def _maybe_fail(self) -> None:
        if self.failures:
            raise self.failures.pop(0)

    def _parse(self, range_: str):
        match = _RANGE.match(range_)
        assert match, f"bad range {range_}"
        c1 = column_index(match.group("c1"))
        c2 = column_index(match.group("c2") or match.group("c1"))
        r1 = int(match.group("r1")) if match.group("r1") else None
        return match.group("sheet"), c1, c2, r1

    def read(self, range_: str) -> List[List[Any]]:
        self.calls.append(("read", range_))
        self._maybe_fail()
        sheet, c1, c2, _ = self._parse(range_)
        rows = [_trim(row[c1:c2 + 1]) for row in self.sheets.get(sheet, [])]
        while rows and not rows[-1]:
            rows.pop()
        return copy.deepcopy(rows)

    def write(self, range_: str, rows: List[List[Any]]) -> Dict[str, Any]:
        self.calls.append(("write", range_, copy.deepcopy(rows)))
        self._maybe_fail()
        sheet, c1, c2, r1 = self._parse(range_)
        table = self.sheets.setdefault(sheet, [])
        for offset, values in enumerate(rows):
            index = r1 - 1 + offset
            while len(table) <= index:
                table.append([])
            target = table[index]
            while len(target) < c1 + len(values):
                target.append("")
            for i, value in enumerate(values):
                target[c1 + i] = value
        return {"updatedRows": len(rows)}

    def append(self, range_: str, rows: List[List[Any]]) -> Dict[str, Any]:
        self.calls.append(("append", range_, copy.deepcopy(rows)))
        self._maybe_fail()
        sheet, _, _, _ = self._parse(range_)
        table = self.sheets.setdefault(sheet, [])
        while table and not _trim(table[-1]):
            table.pop()
        table.extend(list(r) for r in rows)
        return {"updates": {"updatedRows": len(rows)}}

    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("write", "append")]


# =============================================================================
# Deck store double
# =============================================================================

def item_slide(object_id: str = "slide_item") -> Dict[str, Any]:
    return {
        "objectId": object_id,
        "pageElements": [
            {"objectId": f"{object_id}_table", "table": {"rows": 8, "columns": 2}},
            {
                "objectId": f"{object_id}_img",
                "size": {"width": {"magnitude": 400, "unit": "PT"}},
                "transform": {"scaleX": 1, "scaleY": 1, "unit": "PT"},
                "shape": {"text": {"textElements": [{"textRun": {"content": "Imagen\n"}}]}},
            },
        ],
    }


class FakeDeckStore:
    """DeckStore keeping one presentation per copy and recording every batch."""

    def __init__(self, template: Optional[Dict[str, Any]] = None):
        self.template = template or {"slides": [{"objectId": "cover", "pageElements": []}, item_slide()]}
        self.presentations: Dict[str, Dict[str, Any]] = {}
        self.copies: List[tuple] = []
        self.batches: List[tuple] = []

    def copy_template(self, template_id: str, name: str, folder_id: str) -> str:
        presentation_id = f"pres{len(self.copies) + 1}"
        self.copies.append((template_id, name, folder_id))
        self.presentations[presentation_id] = copy.deepcopy(self.template)
        return presentation_id

    def get_presentation(self, presentation_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self.presentations[presentation_id])

    def batch_update(self, presentation_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        self.batches.append((presentation_id, copy.deepcopy(requests)))
        slides = self.presentations[presentation_id]["slides"]
        for request in requests:
            if "duplicateObject" in request:
                source_id = request["duplicateObject"]["objectId"]
                position = next(i for i, s in enumerate(slides) if s["objectId"] == source_id)
                duplicate = item_slide(f"{source_id}_copy{len(slides)}")
                slides.insert(position + 1, duplicate)
        return {"replies": [{} for _ in requests]}


# =============================================================================
# Anthropic double
# =============================================================================

class _FakeStream:
    def __init__(self, outcome: Any):
        self.outcome = outcome

    def __enter__(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self

    def __exit__(self, *exc):
        return False

    def get_final_message(self):
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=self.outcome)],
            usage=SimpleNamespace(input_tokens=100, output_tokens=20),
        )


class FakeAnthropic:
    """
    Stand-in for ``anthropic.Anthropic``: each ``messages.stream`` call consumes
    the next queued response (a string, or an exception to raise).
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses: List[Any] = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        self.messages = SimpleNamespace(stream=self._stream)

    def _stream(self, **kwargs):
        self.calls.append(kwargs)
        assert self.responses, "unexpected model call"
        return _FakeStream(self.responses.pop(0))


# =============================================================================
# HTTP double
# =============================================================================

class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.text = text
        else:
            self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """
    Stand-in for ``requests.Session``. Token refreshes always succeed; API
    requests consume queued responses (or exceptions) in order.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses: List[Any] = list(responses or [])
        self.requests: List[Dict[str, Any]] = []
        self.token_posts: List[Dict[str, Any]] = []
        self.token_response = FakeResponse(200, {"access_token": "token-1", "expires_in": 3600})

    def post(self, url, data=None, timeout=None):
        self.token_posts.append({"url": url, "data": data})
        return self.token_response

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.requests.append({
            "method": method, "url": url, "headers": headers, "params": params, "json": json,
        })
        assert self.responses, f"unexpected request {method} {url}"
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fast_retry():
    """Retry policy without delays."""
    return RetryPolicy(max_attempts=3, base_delay=0, max_delay=0, jitter=0)


@pytest.fixture
def inventory_header():
    return list(INVENTORY_HEADER)


@pytest.fixture
def store(inventory_header):
    """Inventory with a header only, plus a provider directory."""
    return InMemoryTabularStore({
        "INVENTARIO": [inventory_header],
        "PROVEEDORES": [
            ["CLAVE", "PROVEEDOR", "RAZÓN SOCIAL"],
            ["IMU", "Imágenes Urbanas", "Imágenes Urbanas SA de CV"],
            ["GEX", "Grupo Exterior", "Grupo Exterior SA"],
        ],
    })


@pytest.fixture
def fake_anthropic():
    return FakeAnthropic()


@pytest.fixture
def deck_store():
    return FakeDeckStore()


@pytest.fixture
def context(fake_anthropic, store, deck_store, fast_retry):
    return PipelineContext(
        anthropic=fake_anthropic,
        inventory=store,
        decks=deck_store,
        retry_policy=fast_retry,
    )


# =============================================================================
# Documents
# =============================================================================

def make_image(size=(120, 80), color=(200, 30, 30)) -> Image.Image:
    return Image.new("RGB", size, color)


def make_pdf(pages: List[Image.Image]) -> bytes:
    """Build a PDF with one full-page image per page (Pillow paints each with cm + Do)."""
    buffer = io.BytesIO()
    pages[0].save(buffer, format="PDF", save_all=True, append_images=pages[1:], resolution=72.0)
    return buffer.getvalue()


def record_json(**overrides: Any) -> Dict[str, Any]:
    record = {
        "clave": "101",
        "base": 13,
        "altura": 4.2,
        "ciudad": "Ciudad de México",
        "estado": "Ciudad de México",
        "tipoMedio": "Carteleras",
        "costo": 15000,
        "iluminacion": "Si",
        "vista": "Natural",
        "orientacion": "Norte",
        "latitud": 19.4326,
        "longitud": -99.1332,
        "pagina": 1,
        "direccion": "Av. Reforma 222",
        "delegacion": "Cuauhtémoc",
        "colonia": "Juárez",
        "codigoPostal": "06600",
    }
    record.update(overrides)
    return record


def model_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


@pytest.fixture
def two_page_pdf():
    """Page 1 carries a photo-like image, page 2 a smaller one."""
    return make_pdf([make_image((120, 80)), make_image((60, 40), (10, 10, 200))])
