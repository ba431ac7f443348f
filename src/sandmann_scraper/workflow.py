"""Core workflow orchestration: today's episode from landing page to destination."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from . import (
    config,
    downloader,
    episode_locator,
    filesystem,
    storage,
    stream_selector,
)
from .exceptions import FetchError

logger = logging.getLogger(__name__)


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Apply logging level to root logger and configure handlers.

    Args:
        level: Log level string (e.g., 'DEBUG', 'INFO', 'WARNING')
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Raises:
        ValueError: If log level is invalid
        OSError: If log file cannot be created or written to
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    # Remove existing handlers if we're setting up fresh
    if not root_logger.handlers:
        # Set up console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)
        root_logger.setLevel(numeric_level)
    else:
        # Update existing handlers
        root_logger.setLevel(numeric_level)
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)

    # Add file handler if log_file is specified
    if log_file:
        # Check if file handler already exists
        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root_logger.handlers
        )

        if not file_handler_exists:
            # Create directory if it doesn't exist
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            # Set up file handler
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.setLevel(numeric_level)


def _fetch(url: str, cfg: config.Config) -> bytes:
    body, _ = downloader.http_get(url, cfg.user_agent, cfg.timeout)
    if body is None:
        raise FetchError(url)
    return body


def resolve_stream(cfg: config.Config) -> Tuple[str, str]:
    """Find today's episode and its best stream.

    Returns:
        Tuple of (stream_url, raw_title)

    Raises:
        FetchError: If the landing page or descriptor cannot be fetched
        AmbiguousEpisodeError: If the landing page has no unique teaser link
        MalformedDescriptorError: If the descriptor has an unexpected structure
    """
    logger.info(f"Fetching landing page {cfg.landing_page_url}")
    page = episode_locator.parse_landing_page(_fetch(cfg.landing_page_url, cfg))
    episode = episode_locator.locate(page, cfg.landing_page_url)
    logger.info(f"Today's episode: {episode.title or '(untitled)'} ({episode.descriptor_url})")

    descriptor = stream_selector.parse_descriptor(_fetch(episode.descriptor_url, cfg))
    stream_url = stream_selector.select_best(descriptor)
    return stream_url, episode.title


def run_pipeline(cfg: config.Config) -> Tuple[int, str]:
    """Execute the download pipeline for today's episode.

    Steps run strictly in sequence and any failure aborts the run:

    1. Fetch the landing page and locate today's teaser link
    2. Fetch the media descriptor and select the best stream
    3. Build the dated output filename from the episode title
    4. Transfer the stream to the configured destination

    Args:
        cfg: Configuration object

    Returns:
        Tuple of (episodes_transferred, summary_message); the count is 0 for dry
        runs and skipped files.

    Raises:
        SandmannError: If any stage fails

    Example:
        >>> from sandmann_scraper import Config, run_pipeline
        >>> count, summary = run_pipeline(Config(output_dir="./videos"))
    """
    stream_url, title = resolve_stream(cfg)
    filename = filesystem.build_output_filename(title)
    destination = storage.create_destination(cfg)
    target = destination.describe(filename)

    if cfg.dry_run:
        logger.info(f"Dry run: would transfer {stream_url} to {target}")
        return 0, f"Dry run: {stream_url} -> {target}"

    result = destination.transfer(stream_url, filename)
    if result.skipped:
        return 0, f"Skipped: {result.destination} already exists"
    return 1, f"Transferred {result.bytes_transferred} bytes to {result.destination}"


__all__ = ["apply_log_level", "resolve_stream", "run_pipeline"]
