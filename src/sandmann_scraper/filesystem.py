"""Filesystem and naming utilities for sandmann_scraper."""

from __future__ import annotations

import datetime
import logging
import os
import re
from pathlib import Path
from typing import Optional

from platformdirs import user_cache_dir, user_data_dir

from . import config_constants

logger = logging.getLogger(__name__)

ISO_DATE_FORMAT = "%Y-%m-%d"
SOURCE_ATTRIBUTION_PATTERN = re.compile(r"\s*\(Quelle.*\)")
COLON_REPLACEMENT = " -"
PATH_SEPARATORS = ("/", "\\")
_PLATFORMDIR_APP_NAMES = ("sandmann_scraper", "sandmann-scraper", "Sandmann Scraper")


def _platformdirs_safe_roots() -> set[Path]:
    """Return resolved platformdirs locations considered safe for outputs."""

    roots: set[Path] = set()
    for getter in (user_data_dir, user_cache_dir):
        for app_name in _PLATFORMDIR_APP_NAMES:
            try:
                location = getter(app_name)
            except Exception:  # nosec B112
                continue
            if not location:
                continue
            try:
                resolved = Path(location).expanduser().resolve()
            except (OSError, RuntimeError):
                continue
            roots.add(resolved)
    return roots


_PLATFORMDIR_SAFE_ROOTS = _platformdirs_safe_roots()


def strip_source_attribution(title: str) -> str:
    """Remove a trailing "(Quelle ...)" credit clause from an episode title."""
    return SOURCE_ATTRIBUTION_PATTERN.sub("", title)


def sanitize_filename(name: str) -> str:
    """Make a title safe for use as a file name or object key.

    Path separators (``/`` and ``\\``) are dropped, colons become " -" so
    subtitle and time separators stay readable, and surrounding whitespace is
    trimmed. Applying it twice gives the same result as applying it once.
    """
    cleaned = name
    for separator in PATH_SEPARATORS:
        cleaned = cleaned.replace(separator, "")
    cleaned = cleaned.replace(":", COLON_REPLACEMENT)
    return cleaned.strip()


def clean_title(title: str) -> str:
    """Strip the source credit and sanitize a title until it no longer changes.

    Dropping a separator can join the pieces of a new "(Quelle ...)" clause,
    e.g. "(Que/lle x)", so both steps repeat until a fixed point is reached.
    """
    cleaned = title or ""
    while True:
        updated = sanitize_filename(strip_source_attribution(cleaned))
        if updated == cleaned:
            return cleaned
        cleaned = updated


def build_output_filename(title: str, date: Optional[datetime.date] = None) -> str:
    """Build the dated output name for an episode, without extension.

    Args:
        title: Raw episode title from the landing page (may be empty)
        date: Date to prefix; defaults to today

    Returns:
        "YYYY-MM-DD <sanitized title>", or just the date for an empty title

    Example:
        >>> build_output_filename("Good Night Story (Quelle: rbb)", datetime.date(2024, 5, 1))
        '2024-05-01 Good Night Story'
    """
    day = date or datetime.date.today()
    safe_title = clean_title(title)
    return f"{day.strftime(ISO_DATE_FORMAT)} {safe_title}".strip()


def build_output_path(
    output_dir: str,
    filename: str,
    extension: str = config_constants.DEFAULT_MEDIA_EXTENSION,
) -> str:
    """Return the local path for an output file, appending the extension."""
    return os.path.join(output_dir, f"{filename}{extension}")


def validate_and_normalize_output_dir(path: str) -> str:
    """Validate an output directory path and return an absolute, normalized version."""
    if not path or not path.strip():
        raise ValueError("Output directory path cannot be empty")

    path_obj = Path(path).expanduser()
    try:
        resolved = path_obj.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid output directory path: {path} ({exc})")

    safe_roots = {Path.cwd().resolve(), Path.home().resolve(), *_PLATFORMDIR_SAFE_ROOTS}
    if any(resolved == root or resolved.is_relative_to(root) for root in safe_roots):
        return str(resolved)

    logger.warning(
        f"Output directory {resolved} is outside recommended locations (home or app data)."
    )
    return str(resolved)


__all__ = [
    "ISO_DATE_FORMAT",
    "strip_source_attribution",
    "sanitize_filename",
    "build_output_filename",
    "build_output_path",
    "validate_and_normalize_output_dir",
]
