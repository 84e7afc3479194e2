#!/usr/bin/env python3
"""
Proposal Assembler - build a slide-deck proposal from inventory keys.

Flow:
1. Fetch the media items for the keys from the inventory sheet
2. Copy the proposal template into the output folder as <YYYY-MM-DD>_<xxxx>
3. Stamp the month and year on the cover (the FECHA placeholder)
4. Duplicate the item slide (the template's second slide) once per extra item
5. Fill each item slide: table placeholders, the item image in place of the
   "Imagen" shape, and an off-screen text box with every field

Usage:
    assembler = ProposalAssembler(context.decks, context.inventory)
    result = assembler.build_proposal(["ZMIMU101", "ZMIMU102"])
    print(result.url)
"""

import logging
import random
import string
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from zirkel_inventory.core import config
from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.errors import MissingConfigurationError, ProposalError, RemoteServiceError
from zirkel_inventory.core.retry import call_with_backoff
from zirkel_inventory.core.schema import ZirkelMediaData
from zirkel_inventory.integrations.google import config as google_config
from zirkel_inventory.integrations.ports import DeckStore, TabularStore
from zirkel_inventory.inventory.columns import cell_value, format_coordinates
from zirkel_inventory.inventory.lookup import get_medias_by_keys

logger = logging.getLogger(__name__)

SPANISH_MONTHS = [
    "ENERO", "FEBRERO", "MARZO", "ABRIL", "MAYO", "JUNIO",
    "JULIO", "AGOSTO", "SEPTIEMBRE", "OCTUBRE", "NOVIEMBRE", "DICIEMBRE",
]

MISSING_VALUE = "Consultar"
IMAGE_PLACEHOLDER_TEXT = "Imagen"
PRESENTATION_URL = "https://docs.google.com/presentation/d/{presentation_id}/edit"


@dataclass
class ProposalResult:
    """Handle of a created proposal deck."""
    presentation_id: str
    name: str
    url: str
    media_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "presentationId": self.presentation_id,
            "name": self.name,
            "presentationUrl": self.url,
            "mediaCount": self.media_count,
        }


# =============================================================================
# Formatting
# =============================================================================

def proposal_name(today: date, rng: random.Random = random) -> str:
    """``<YYYY-MM-DD>_<4 random lowercase letters/digits>``."""
    suffix = "".join(rng.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{today.isoformat()}_{suffix}"


def month_year_label(today: date) -> str:
    """Cover date, e.g. ``OCTUBRE DE 2026``."""
    return f"{SPANISH_MONTHS[today.month - 1]} DE {today.year}"


def format_price(value: Optional[float]) -> str:
    """``$1,234`` / ``$1,234.5``; missing or zero prices read ``Consultar``."""
    if not value:
        return MISSING_VALUE
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"${text}"


def slide_replacements(media: ZirkelMediaData) -> List[Dict[str, str]]:
    """Placeholder text -> value for an item slide, in replacement order."""
    medida = MISSING_VALUE
    if media.base and media.altura:
        medida = f"{cell_value(media.base)}x{cell_value(media.altura)}"

    return [
        {"find": "CLAVE", "value": media.clave_zirkel or MISSING_VALUE},
        {"find": "CIUDAD", "value": media.ciudad or MISSING_VALUE},
        {"find": "DIRECCIÓN", "value": media.direccion or MISSING_VALUE},
        {"find": "MEDIDA", "value": medida},
        {"find": "TIPO", "value": media.tipo_medio or MISSING_VALUE},
        {"find": "COORDENADAS", "value": format_coordinates(media.latitud, media.longitud) or MISSING_VALUE},
        {"find": "IMPACTOS", "value": str(cell_value(media.impactos_mes)) if media.impactos_mes else MISSING_VALUE},
        {"find": "PRECIO", "value": format_price(media.tarifa)},
    ]


def data_text(media: ZirkelMediaData) -> str:
    """Every non-empty field as ``name: value`` lines."""
    lines = []
    for name, value in media.to_dict().items():
        if value is None or value == "":
            continue
        lines.append(f"{name}: {cell_value(value)}")
    return "\n".join(lines) + "\n"


def _find_image_placeholder(slide: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for element in slide.get("pageElements", []):
        text_elements = element.get("shape", {}).get("text", {}).get("textElements", [])
        for text_element in text_elements:
            if IMAGE_PLACEHOLDER_TEXT in text_element.get("textRun", {}).get("content", ""):
                return element
    return None


def _find_table(slide: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for element in slide.get("pageElements", []):
        if "table" in element:
            return element
    return None


# =============================================================================
# Assembler
# =============================================================================

class ProposalAssembler:
    """
    Builds proposal decks from the inventory.

    Args:
        decks: Deck store holding the template
        inventory: Tabular store holding the inventory sheet
        policy: Backoff policy for rate-limited remote calls
        template_id: Template presentation ID
        folder_id: Folder receiving the proposal copies
        today: Date provider (replaceable in tests)
    """

    def __init__(
        self,
        decks: DeckStore,
        inventory: TabularStore,
        policy: Optional[RetryPolicy] = None,
        template_id: Optional[str] = None,
        folder_id: Optional[str] = None,
        today: Callable[[], date] = date.today,
    ):
        self.decks = decks
        self.inventory = inventory
        self.policy = policy
        self.template_id = template_id or google_config.GOOGLE_SLIDES_PROPOSAL_TEMPLATE
        self.folder_id = folder_id or google_config.GOOGLE_DRIVE_PROPOSAL_FOLDER
        self.today = today

    def _call(self, action: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return call_with_backoff(func, *args, policy=self.policy)
        except RemoteServiceError as e:
            logger.error(f"Proposal {action} failed: {e.message}")
            raise ProposalError(f"Proposal {action} failed: {e.message}") from e

    def _fill_slide(self, presentation_id: str, slide: Dict[str, Any], media: ZirkelMediaData) -> bool:
        slide_id = slide.get("objectId")
        table = _find_table(slide)
        placeholder = _find_image_placeholder(slide)
        if not slide_id or table is None:
            logger.warning(f"Could not find the table on slide {slide_id} for {media.clave_zirkel}")
            return False
        if placeholder is None or not placeholder.get("objectId"):
            logger.warning(f"Could not find the image placeholder on slide {slide_id}")
            return False

        requests: List[Dict[str, Any]] = [
            {
                "replaceAllText": {
                    "containsText": {"text": item["find"]},
                    "replaceText": str(item["value"]),
                    "pageObjectIds": [slide_id],
                }
            }
            for item in slide_replacements(media)
        ]

        if media.image_url:
            requests.append({
                "createImage": {
                    "url": media.image_url,
                    "elementProperties": {
                        "pageObjectId": slide_id,
                        "size": placeholder.get("size"),
                        "transform": placeholder.get("transform"),
                    },
                }
            })
            requests.append({"deleteObject": {"objectId": placeholder["objectId"]}})

        self._call("slide update", self.decks.batch_update, presentation_id, requests)

        box_id = f"data_{slide_id}"
        self._call("data box", self.decks.batch_update, presentation_id, [
            {
                "createShape": {
                    "objectId": box_id,
                    "shapeType": "TEXT_BOX",
                    "elementProperties": {
                        "pageObjectId": slide_id,
                        "size": {
                            "width": {"magnitude": 300, "unit": "PT"},
                            "height": {"magnitude": 500, "unit": "PT"},
                        },
                        # off-screen, to the right of the slide
                        "transform": {
                            "scaleX": 1, "scaleY": 1, "translateX": 1000, "translateY": 0, "unit": "PT",
                        },
                    },
                }
            },
            {"insertText": {"objectId": box_id, "text": data_text(media)}},
        ])
        return True

    def build_proposal(self, keys: List[str]) -> ProposalResult:
        """
        Create a proposal deck for the given ZirkelKeys.

        Args:
            keys: ZirkelKeys to include

        Returns:
            ProposalResult with the new presentation's ID, name and URL

        Raises:
            MissingConfigurationError: If the template or folder ID is not set
            ProposalError: If no key is found, the template is unusable, or a
                remote call fails
        """
        missing = []
        if not self.template_id:
            missing.append("GOOGLE_SLIDES_PROPOSAL_TEMPLATE environment variable is required")
        if not self.folder_id:
            missing.append("GOOGLE_DRIVE_PROPOSAL_FOLDER environment variable is required")
        if missing:
            raise MissingConfigurationError(missing)

        logger.info(f"Creating proposal with {len(keys)} key(s): {', '.join(keys)}")

        try:
            medias = get_medias_by_keys(self.inventory, keys, self.policy)
        except RemoteServiceError as e:
            raise ProposalError(f"Inventory lookup failed: {e.message}") from e
        if not medias:
            raise ProposalError("No media found with the provided Zirkel keys")

        today = self.today()
        name = proposal_name(today)
        presentation_id = self._call("copy", self.decks.copy_template, self.template_id, name, self.folder_id)
        if not presentation_id:
            raise ProposalError(f"Copying template {self.template_id} returned no presentation ID")
        logger.info(f"Created presentation {name} ({presentation_id})")

        presentation = self._call("read", self.decks.get_presentation, presentation_id)
        slides = presentation.get("slides", [])
        if len(slides) < 2:
            raise ProposalError("Template presentation needs a cover slide and an item slide")

        cover_id = slides[0]["objectId"]
        item_slide_id = slides[1]["objectId"]

        requests: List[Dict[str, Any]] = [{
            "replaceAllText": {
                "containsText": {"text": "FECHA"},
                "replaceText": month_year_label(today),
                "pageObjectIds": [cover_id],
            }
        }]
        requests.extend({"duplicateObject": {"objectId": item_slide_id}} for _ in medias[1:])
        self._call("duplicate", self.decks.batch_update, presentation_id, requests)

        slides = self._call("read", self.decks.get_presentation, presentation_id).get("slides", [])

        filled = 0
        for i, media in enumerate(medias):
            if i + 1 >= len(slides):
                logger.warning(f"No slide left for {media.clave_zirkel}")
                continue
            if self._fill_slide(presentation_id, slides[i + 1], media):
                filled += 1

        logger.info(f"Proposal {name} filled {filled}/{len(medias)} slide(s)")
        return ProposalResult(
            presentation_id=presentation_id,
            name=name,
            url=PRESENTATION_URL.format(presentation_id=presentation_id),
            media_count=filled,
        )
