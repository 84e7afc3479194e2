"""
Binary image extraction from PDF pages.

A page's content stream is decoded once into a typed operator sequence
(PaintImage / SetTransform / OtherOperator). For every paint operation the
referenced XObject is resolved into a PageImageCandidate, and its on-page
size is computed from the nearest preceding ``cm`` transform.

Usage:
    from zirkel_inventory.extraction.images import extract_candidate_images

    reader = open_pdf(data)
    candidates = extract_candidate_images(reader.pages[0], page_index=0)
    uris = [c.to_data_uri() for c in candidates]
"""

import base64
import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from PIL import Image
from pypdf import PageObject
from pypdf.generic import ContentStream

from zirkel_inventory.core import config
from zirkel_inventory.core.errors import ImageResolutionError

logger = logging.getLogger(__name__)

Matrix = Tuple[float, float, float, float, float, float]

IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

# Nested form XObjects are inlined up to this depth
MAX_FORM_DEPTH = 8


# =============================================================================
# Operator Stream
# =============================================================================

@dataclass(frozen=True)
class PaintImage:
    """``Do`` on a named XObject, with the resource dictionary it is looked up in."""
    name: str
    resources: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class SetTransform:
    """``cm`` with its six matrix operands."""
    matrix: Matrix


@dataclass(frozen=True)
class OtherOperator:
    operator: str


Operator = Union[PaintImage, SetTransform, OtherOperator]


def _operator_name(operator: Any) -> str:
    if isinstance(operator, bytes):
        return operator.decode("latin-1")
    return str(operator)


def _get_object(value: Any) -> Any:
    return value.get_object() if hasattr(value, "get_object") else value


def _xobject(resources: Any, name: str) -> Any:
    """Look up an XObject by name in a resource dictionary, or None."""
    resources = _get_object(resources)
    if not resources or "/XObject" not in resources:
        return None
    xobjects = _get_object(resources["/XObject"])
    if name not in xobjects:
        return None
    return _get_object(xobjects[name])


def _form_xobject(resources: Any, name: str) -> Any:
    try:
        xobj = _xobject(resources, name)
    except Exception as e:
        logger.debug(f"Could not look up XObject {name}: {e}")
        return None
    if xobj is not None and xobj.get("/Subtype") == "/Form":
        return xobj
    return None


def decode_operations(
    operations: Iterable[Tuple[Sequence[Any], Any]],
    resources: Any = None,
    pdf: Any = None,
    depth: int = 0,
) -> List[Operator]:
    """
    Decode raw ``(operands, operator)`` pairs into typed operators.

    ``Do`` on a form XObject is replaced by the form's own operators, so
    images drawn inside forms are seen in drawing order like pdf.js sees them.

    Args:
        operations: Raw operations, as in ``ContentStream.operations``
        resources: Resource dictionary the names resolve against
        pdf: Owning reader, needed to parse nested form streams
        depth: Current form nesting depth

    Returns:
        Typed operator sequence
    """
    decoded: List[Operator] = []
    for operands, operator in operations:
        op = _operator_name(operator)

        if op == "cm" and len(operands) == 6:
            try:
                decoded.append(SetTransform(tuple(float(v) for v in operands)))
            except (TypeError, ValueError):
                decoded.append(OtherOperator(op))

        elif op == "Do" and operands:
            name = str(operands[0])
            form = _form_xobject(resources, name) if depth < MAX_FORM_DEPTH else None
            if form is None:
                decoded.append(PaintImage(name, resources))
                continue
            form_resources = form.get("/Resources") or resources
            try:
                form_ops = ContentStream(form, pdf).operations
            except Exception as e:
                logger.debug(f"Skipping unreadable form XObject {name}: {e}")
                continue
            decoded.extend(decode_operations(form_ops, form_resources, pdf, depth + 1))

        else:
            decoded.append(OtherOperator(op))

    return decoded


def decode_page_operators(page: PageObject) -> List[Operator]:
    """Decode a page's content stream into typed operators."""
    contents = page.get_contents()
    if contents is None:
        return []
    if not isinstance(contents, ContentStream):
        contents = ContentStream(contents, page.pdf)
    return decode_operations(contents.operations, page.get("/Resources"), page.pdf)


def transform_before(operators: Sequence[Operator], index: int) -> Matrix:
    """Return the nearest SetTransform preceding ``index``, or the identity."""
    for i in range(index - 1, -1, -1):
        op = operators[i]
        if isinstance(op, SetTransform):
            return op.matrix
    return IDENTITY


# =============================================================================
# Candidates
# =============================================================================

@dataclass
class PageImageCandidate:
    """A raster image painted on a page, before selection."""
    source_object_id: str
    pixel_width: int
    pixel_height: int
    image: Image.Image          # RGB, 3 channels
    scaled_width: float
    scaled_height: float
    page_index: int             # 0-based

    @property
    def scaled_area(self) -> float:
        return self.scaled_width * self.scaled_height

    def to_data_uri(self, max_edge: int = config.THUMBNAIL_MAX_EDGE) -> str:
        """Encode as a JPEG data URI, long edge at most ``max_edge`` pixels."""
        return encode_thumbnail(self.image, max_edge)


class CandidatePolicy(str, Enum):
    """Which candidates of a page go on to selection."""
    ALL = "all"
    LARGEST = "largest"


def encode_thumbnail(image: Image.Image, max_edge: int = config.THUMBNAIL_MAX_EDGE) -> str:
    """
    Re-encode an image as a base64 JPEG data URI.

    The image is fitted inside ``max_edge`` x ``max_edge`` preserving its
    aspect ratio; smaller images keep their size.
    """
    thumb = image.convert("RGB")
    thumb.thumbnail((max_edge, max_edge))
    buffer = io.BytesIO()
    thumb.save(buffer, format="JPEG", quality=85)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


def _resolve_image(resources: Any, name: str) -> Tuple[str, int, int, Image.Image]:
    """
    Resolve a painted XObject into ``(object_id, width, height, rgb_image)``.

    Raises:
        ImageResolutionError: If the object is missing, is not an image,
            lacks dimensions or cannot be decoded
    """
    try:
        xobjects = _get_object(_get_object(resources)["/XObject"])
        ref = xobjects.raw_get(name)
        xobj = _get_object(ref)
    except Exception as e:
        raise ImageResolutionError(f"XObject {name} not found: {e}")

    if xobj.get("/Subtype") != "/Image":
        raise ImageResolutionError(f"XObject {name} is not an image")

    width = xobj.get("/Width")
    height = xobj.get("/Height")
    if not width or not height:
        raise ImageResolutionError(f"Image {name} has no width/height")

    try:
        decoded = xobj.decode_as_image()
    except Exception as e:
        raise ImageResolutionError(f"Image {name} could not be decoded: {e}")
    if decoded is None:
        raise ImageResolutionError(f"Image {name} decoded to nothing")

    if hasattr(ref, "idnum"):
        object_id = f"{ref.idnum} {ref.generation} R"
    else:
        object_id = name

    return object_id, int(width), int(height), decoded.convert("RGB")


def extract_candidate_images(page: PageObject, page_index: int) -> List[PageImageCandidate]:
    """
    Extract every raster image painted on a page.

    Images that fail to resolve are skipped; an error while reading the page
    itself yields an empty list. Neither case raises.

    Args:
        page: Parsed PDF page
        page_index: 0-based page index, recorded on each candidate

    Returns:
        Candidates in painting order
    """
    try:
        operators = decode_page_operators(page)
    except Exception as e:
        logger.error(f"Failed to read operators of page {page_index + 1}: {e}")
        return []

    candidates = []
    for index, op in enumerate(operators):
        if not isinstance(op, PaintImage):
            continue
        try:
            object_id, width, height, image = _resolve_image(op.resources, op.name)
        except ImageResolutionError as e:
            logger.debug(f"Page {page_index + 1}: {e.message}")
            continue
        except Exception as e:
            logger.debug(f"Page {page_index + 1}: skipping image {op.name}: {e}")
            continue

        matrix = transform_before(operators, index)
        candidates.append(PageImageCandidate(
            source_object_id=object_id,
            pixel_width=width,
            pixel_height=height,
            image=image,
            scaled_width=abs(width * matrix[0]),
            scaled_height=abs(height * matrix[3]),
            page_index=page_index,
        ))

    logger.debug(f"Page {page_index + 1}: {len(candidates)} candidate image(s)")
    return candidates


def select_largest(candidates: Sequence[PageImageCandidate]) -> Optional[PageImageCandidate]:
    """Return the candidate with the largest on-page area (first wins on ties)."""
    largest = None
    for candidate in candidates:
        if largest is None or candidate.scaled_area > largest.scaled_area:
            largest = candidate
    return largest


def apply_policy(
    candidates: Sequence[PageImageCandidate],
    policy: CandidatePolicy = CandidatePolicy.ALL,
) -> List[PageImageCandidate]:
    """Reduce a page's candidates according to the selection policy."""
    if policy == CandidatePolicy.LARGEST:
        largest = select_largest(candidates)
        return [largest] if largest is not None else []
    return list(candidates)
