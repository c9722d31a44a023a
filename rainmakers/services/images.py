"""
Normalisation of stored image references.

Image lists have been written in three shapes over the life of the event:

- ``LIST``: a JSON array of ``{url, key, width?, height?}`` objects
  (or bare URL strings in the oldest rows)
- ``ENCODED``: the same array serialised into a JSON string
- ``URLS``: an object wrapping the array as ``{"urls": [...]}``

Everything that reads, parses or transfers images goes through
:func:`normalize_images`, which turns any of them into one ordered list of
image dicts. Anything else, including malformed JSON, becomes ``[]``.
"""
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_IMAGES = 3


class ImageShape(str, Enum):
    LIST = "list"
    ENCODED = "encoded"
    URLS = "urls"


def image_shape(raw: Any) -> Optional[ImageShape]:
    """Classify a raw ``images`` value, or return None if it is not a known shape."""
    if isinstance(raw, list):
        return ImageShape.LIST
    if isinstance(raw, str):
        return ImageShape.ENCODED
    if isinstance(raw, dict) and "urls" in raw:
        return ImageShape.URLS
    return None


def _image_from_entry(entry: Any) -> Optional[Dict[str, Any]]:
    if isinstance(entry, str):
        return {"url": entry, "key": None} if entry else None
    if not isinstance(entry, dict) or not isinstance(entry.get("url"), str) or not entry["url"]:
        return None

    key = entry.get("key")
    image = {"url": entry["url"], "key": key if isinstance(key, str) else None}
    for dimension in ("width", "height"):
        value = entry.get(dimension)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            image[dimension] = value
    return image


def _images_from_entries(entries: List[Any]) -> List[Dict[str, Any]]:
    images = []
    for entry in entries:
        image = _image_from_entry(entry)
        if image is not None:
            images.append(image)
    return images


def normalize_images(raw: Any) -> List[Dict[str, Any]]:
    """
    Return the canonical ordered list of image dicts for a raw value.

    Never raises: unknown shapes and undecodable strings give an empty list.
    """
    shape = image_shape(raw)

    if shape is ImageShape.LIST:
        return _images_from_entries(raw)

    if shape is ImageShape.ENCODED:
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable image list: %.80r", raw)
            return []
        # One level only; a string inside a string is not a known shape
        if isinstance(decoded, str):
            return []
        return normalize_images(decoded)

    if shape is ImageShape.URLS:
        urls = raw["urls"]
        return _images_from_entries(urls) if isinstance(urls, list) else []

    return []


def image_urls(raw: Any) -> List[str]:
    return [image["url"] for image in normalize_images(raw)]
