"""HTTP session management and download helpers for sandmann_scraper.

Every URL is requested once. Failed requests are logged and reported to the
caller, which aborts the run; there is no retry or backoff.
"""

from __future__ import annotations

import atexit
import logging
import os
from typing import cast, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri
from urllib3.util.retry import Retry

from . import progress
from .progress import ProgressReporter

logger = logging.getLogger(__name__)

# Track if we've suppressed urllib3 logs (lazy initialization)
_urllib3_logs_suppressed = False


def _suppress_urllib3_debug_logs() -> None:
    """Suppress verbose urllib3 debug logs when root logger is DEBUG."""
    global _urllib3_logs_suppressed
    if _urllib3_logs_suppressed:
        return

    root_logger = logging.getLogger()
    root_level = root_logger.level if root_logger.level else logging.INFO
    if root_level <= logging.DEBUG:
        for logger_name in ("urllib3", "urllib3.connectionpool", "urllib3.connection"):
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    _urllib3_logs_suppressed = True


BYTES_PER_MB = 1024 * 1024
DOWNLOAD_CHUNK_SIZE = 1024 * 256
NO_RETRIES = Retry(total=0, read=False, raise_on_status=False)

_SESSION: Optional[requests.Session] = None


def normalize_url(url: str) -> str:
    """Normalize URLs while preserving already-encoded segments."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized URL %s -> %s", url, normalized)
    return cast(str, normalized)


def _configure_http_session(session: requests.Session) -> None:
    """Mount adapters that never retry a request."""
    adapter = HTTPAdapter(max_retries=NO_RETRIES)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    logger.debug("Configured HTTP session %s without retries", hex(id(session)))


def _get_request_session() -> requests.Session:
    global _SESSION
    _suppress_urllib3_debug_logs()

    if _SESSION is None:
        _SESSION = requests.Session()
        _configure_http_session(_SESSION)
        logger.debug("Created HTTP session %s", hex(id(_SESSION)))
    return _SESSION


def _close_session() -> None:
    global _SESSION
    if _SESSION is not None:
        _SESSION.close()
        _SESSION = None


atexit.register(_close_session)


def content_length(resp: requests.Response) -> Optional[int]:
    """Return the response's declared Content-Length, if any."""
    declared = resp.headers.get("Content-Length")
    try:
        return int(declared) if declared else None
    except (TypeError, ValueError):
        return None


def fetch_url(
    url: str, user_agent: str, timeout: int, *, stream: bool = False
) -> Optional[requests.Response]:
    """Execute a single HTTP GET request and return the response if successful."""
    normalized_url = normalize_url(url)
    headers = {"User-Agent": user_agent}
    try:
        session = _get_request_session()
        logger.debug(
            "Opening HTTP connection to %s (timeout=%s, stream=%s)",
            normalized_url,
            timeout,
            stream,
        )
        resp = session.get(normalized_url, headers=headers, timeout=timeout, stream=stream)
        resp.raise_for_status()
        logger.debug(
            "HTTP request to %s succeeded with status %s and Content-Length=%s",
            normalized_url,
            resp.status_code,
            resp.headers.get("Content-Length"),
        )
        return resp
    except requests.RequestException as exc:
        logger.warning(f"Failed to fetch {url}: {exc}")
        return None


def http_get(url: str, user_agent: str, timeout: int) -> Tuple[Optional[bytes], Optional[str]]:
    """Fetch a URL and return its content and Content-Type header."""
    resp = fetch_url(url, user_agent, timeout, stream=True)
    if resp is None:
        return None, None
    try:
        ctype = resp.headers.get("Content-Type", "")
        body_parts: List[bytes] = []
        for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
            if chunk:
                body_parts.append(chunk)
        body = b"".join(body_parts)
        logger.debug("Read %d bytes from %s (content-type=%s)", len(body), url, ctype)
        return body, ctype
    except (requests.RequestException, OSError) as exc:
        logger.warning(f"Failed to read response from {url}: {exc}")
        return None, None
    finally:
        resp.close()


def http_download_to_file(
    url: str, user_agent: str, timeout: int, out_path: str
) -> Tuple[bool, int]:
    """Stream a URL to a file path.

    A partially written file is removed when the download fails.
    """
    resp = fetch_url(url, user_agent, timeout, stream=True)
    if resp is None:
        return False, 0
    try:
        total_size = content_length(resp)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        filename = os.path.basename(out_path) or os.path.basename(url)

        logger.debug(
            "Streaming download from %s to %s (content-length=%s, chunk-size=%s)",
            url,
            out_path,
            total_size,
            DOWNLOAD_CHUNK_SIZE,
        )

        total_bytes = 0
        with (
            open(out_path, "wb") as f,
            progress.progress_context(total_size, f"Downloading {filename}") as reporter,
        ):
            for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                total_bytes += len(chunk)
                cast(ProgressReporter, reporter).update(len(chunk))
        logger.debug("Finished downloading %s (%s bytes written)", url, total_bytes)
        return True, total_bytes
    except (requests.RequestException, OSError) as exc:
        logger.warning(f"Failed to download {url} to {out_path}: {exc}")
        if os.path.exists(out_path):
            os.remove(out_path)
        return False, 0
    finally:
        resp.close()


__all__ = [
    "BYTES_PER_MB",
    "DOWNLOAD_CHUNK_SIZE",
    "normalize_url",
    "fetch_url",
    "http_get",
    "http_download_to_file",
    "content_length",
]
