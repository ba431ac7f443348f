"""Media descriptor parsing and best-stream selection."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Mapping
from urllib.parse import urlparse

from . import config_constants, models
from .exceptions import MalformedDescriptorError

logger = logging.getLogger(__name__)

MEDIA_ARRAY_KEY = config_constants.DESCRIPTOR_MEDIA_ARRAY_KEY
STREAM_ARRAY_KEY = config_constants.DESCRIPTOR_STREAM_ARRAY_KEY
QUALITY_KEY = config_constants.DESCRIPTOR_QUALITY_KEY
STREAM_URL_KEY = config_constants.DESCRIPTOR_STREAM_URL_KEY


def parse_descriptor(text: str | bytes) -> Dict[str, Any]:
    """Decode a media descriptor document.

    Raises:
        MalformedDescriptorError: If the text is not JSON or not a JSON object
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedDescriptorError(f"Descriptor is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedDescriptorError(
            f"Descriptor must be a JSON object, got {type(data).__name__}"
        )
    return data


def parse_quality(value: Any) -> models.StreamQuality:
    """Interpret a descriptor quality value.

    Integers and integer strings are numeric qualities; anything else
    ("auto", missing, booleans) is automatic.
    """
    if isinstance(value, bool):
        return models.StreamQuality.automatic()
    if isinstance(value, int):
        return models.StreamQuality.numeric(value)
    if isinstance(value, str):
        try:
            return models.StreamQuality.numeric(int(value.strip()))
        except ValueError:
            return models.StreamQuality.automatic()
    return models.StreamQuality.automatic()


def _require_list(container: Mapping[str, Any], key: str) -> List[Any]:
    value = container.get(key)
    if value is None:
        raise MalformedDescriptorError("Descriptor is missing an array", field=key)
    if not isinstance(value, list):
        raise MalformedDescriptorError(
            f"Expected an array, got {type(value).__name__}", field=key
        )
    if not value:
        raise MalformedDescriptorError("Descriptor array is empty", field=key)
    return value


def iter_stream_entries(descriptor: Mapping[str, Any]) -> Iterator[models.StreamEntry]:
    """Yield the stream entries of the descriptor's first media group.

    Only the first media group is considered; episodes carry exactly one.

    Raises:
        MalformedDescriptorError: If the media/stream array structure is absent or empty
    """
    if not isinstance(descriptor, Mapping):
        raise MalformedDescriptorError(
            f"Descriptor must be a mapping, got {type(descriptor).__name__}"
        )
    media_array = _require_list(descriptor, MEDIA_ARRAY_KEY)
    first_media = media_array[0]
    if not isinstance(first_media, Mapping):
        raise MalformedDescriptorError(
            "First media entry is not an object", field=f"{MEDIA_ARRAY_KEY}[0]"
        )
    streams = _require_list(first_media, STREAM_ARRAY_KEY)

    for idx, entry in enumerate(streams):
        if not isinstance(entry, Mapping):
            raise MalformedDescriptorError(
                "Stream entry is not an object", field=f"{STREAM_ARRAY_KEY}[{idx}]"
            )
        stream_url = entry.get(STREAM_URL_KEY)
        yield models.StreamEntry(
            quality=parse_quality(entry.get(QUALITY_KEY)),
            stream_url=stream_url if isinstance(stream_url, str) else None,
            index=idx,
        )


def select_best(descriptor: Mapping[str, Any]) -> str:
    """Return the URL of the highest-quality stream in a media descriptor.

    Numeric qualities win over automatic ones; on ties the first entry in
    array order is chosen, so a descriptor with only automatic streams yields
    its first stream.

    Args:
        descriptor: Decoded media descriptor

    Returns:
        Absolute stream URL

    Raises:
        MalformedDescriptorError: If the expected structure is missing or the
            chosen entry has no absolute stream URL
    """
    best = None
    for entry in iter_stream_entries(descriptor):
        logger.debug("Stream %d: quality=%s url=%s", entry.index, entry.quality, entry.stream_url)
        # Strict comparison keeps the first of equal-quality entries
        if best is None or entry.quality > best.quality:
            best = entry

    if best is None:  # pragma: no cover - iter_stream_entries rejects empty arrays
        raise MalformedDescriptorError("Descriptor array is empty", field=STREAM_ARRAY_KEY)

    field = f"{STREAM_ARRAY_KEY}[{best.index}].{STREAM_URL_KEY}"
    stream_url = (best.stream_url or "").strip()
    if not stream_url:
        raise MalformedDescriptorError("Selected stream has no URL", field=field)
    parsed = urlparse(stream_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise MalformedDescriptorError(
            f"Selected stream URL is not absolute: {stream_url}", field=field
        )

    logger.info("Selected stream with quality %s: %s", best.quality, stream_url)
    return stream_url


__all__ = [
    "parse_descriptor",
    "parse_quality",
    "iter_stream_entries",
    "select_best",
]
