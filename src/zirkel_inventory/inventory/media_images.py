"""Companion image storage: one file per ZirkelKey under the images path."""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)
_SAFE_KEY = re.compile(r"^[\w.-]+$")


def extension_for(mime_type: str) -> str:
    """``image/jpeg`` -> ``jpeg``; unknown or empty subtypes give ``jpg``."""
    subtype = mime_type.split("/")[1] if "/" in mime_type else ""
    return subtype or "jpg"


def save_media_image(
    directory: Union[str, Path],
    key: str,
    data: bytes,
    mime_type: str = "image/jpeg",
) -> Path:
    """
    Write an image as ``<directory>/<key>.<ext>``, creating the directory.

    Raises:
        ValueError: If the key is not a plain file name
    """
    if not _SAFE_KEY.match(key):
        raise ValueError(f"Invalid ZirkelKey for an image file name: {key!r}")

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{key}.{extension_for(mime_type)}"
    path.write_bytes(data)

    logger.info(f"Saved image for {key}: {path}")
    return path


def save_data_uri_image(directory: Union[str, Path], key: str, data_uri: str) -> Path:
    """
    Decode a base64 data URI and save it with :func:`save_media_image`.

    Raises:
        ValueError: If the data URI is malformed
    """
    match = _DATA_URI.match(data_uri.strip())
    if not match:
        raise ValueError(f"Image for {key} is not a base64 data URI")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Image for {key} has invalid base64 data: {e}")
    return save_media_image(directory, key, data, match.group("mime"))
