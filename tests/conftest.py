"""Shared fixtures and test utilities for sandmann_scraper tests.

This module contains:
- Test constants
- Builders for landing page HTML and media descriptors
- Mock HTTP responses
- Config helpers

All test files can import from this module using pytest's conftest.py mechanism.
"""

import os

os.environ["TERM"] = "dumb"  # Disable rich terminal features in tqdm

import datetime
import json

import pytest

from sandmann_scraper import config

# Test constants
TEST_BASE_URL = "https://www.sandmann.de"
TEST_LANDING_URL = f"{TEST_BASE_URL}/filme/index.html"
TEST_TEASER_REF = "/filme/sandmann-heute~automaticteaser.mediajsn.jsn"
TEST_OTHER_TEASER_REF = "/filme/sandmann-gestern~automaticteaser.mediajsn.jsn"
TEST_CLIP_REF = "/filme/clip-12~mediajsn.jsn"
TEST_DESCRIPTOR_URL = f"{TEST_BASE_URL}{TEST_TEASER_REF}"
TEST_EPISODE_TITLE = "Good Night Story (Quelle: rbb)"
TEST_STREAM_URL_240 = "https://media.example.com/sandmann_240.mp4"
TEST_STREAM_URL_480 = "https://media.example.com/sandmann_480.mp4"
TEST_STREAM_URL_720 = "https://media.example.com/sandmann_720.mp4"
TEST_STREAM_URL_AUTO = "https://media.example.com/sandmann_master.m3u8"
TEST_DATE = datetime.date(2024, 5, 1)
TEST_BUCKET = "test-bucket"
TEST_MEDIA_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


def build_teaser_div(media_ref, title=None, extra=""):
    """Build one teaser element as found on the landing page."""
    img = f'<img src="/img/teaser.jpg" title="{title}"/>' if title is not None else ""
    return f'<div class="teaser" data-media-ref="{media_ref}">{img}{extra}</div>'


def build_landing_html(*teasers):
    """Wrap teaser elements in a minimal landing page document."""
    body = "\n".join(teasers)
    return (
        "<!DOCTYPE html><html><head><title>Sandmann</title></head>"
        f"<body><main>{body}</main></body></html>"
    )


def build_descriptor(qualities, urls=None):
    """Build a media descriptor with one media group and the given stream qualities."""
    if urls is None:
        urls = [f"https://media.example.com/stream_{i}.mp4" for i in range(len(qualities))]
    streams = [{"_quality": q, "_stream": u} for q, u in zip(qualities, urls)]
    return {
        "_type": "video",
        "_isLive": False,
        "_mediaArray": [{"_plugin": 1, "_mediaStreamArray": streams}],
    }


def build_descriptor_json(qualities, urls=None):
    return json.dumps(build_descriptor(qualities, urls))


def create_test_config(**overrides):
    """Create a Config with test-friendly defaults."""
    values = {
        "landing_page_url": TEST_LANDING_URL,
        "output_dir": "output",
        "log_level": "INFO",
    }
    values.update(overrides)
    return config.Config(**values)


class MockHTTPResponse:
    """Simple mock for HTTP responses used in integration-style tests."""

    def __init__(self, *, content=b"", url="", headers=None, chunks=None, raw=None):
        self.status_code = 200
        self.content = content
        self.url = url
        self.headers = headers or {}
        self._chunks = chunks if chunks is not None else [content]
        self.raw = raw
        self.closed = False

    def raise_for_status(self):
        return None

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk

    def close(self):
        self.closed = True


def create_media_response(media_bytes, url, content_type="video/mp4"):
    """Create MockHTTPResponse for a media stream."""
    import io

    return MockHTTPResponse(
        url=url,
        headers={"Content-Type": content_type, "Content-Length": str(len(media_bytes))},
        chunks=[media_bytes],
        raw=io.BytesIO(media_bytes),
    )


@pytest.fixture(autouse=True)
def _clear_config_env(monkeypatch):
    """Keep environment fallbacks from leaking into Config defaults."""
    for name in (
        "OUTPUT_DIR",
        "LOG_FILE",
        "SANDMANN_S3_BUCKET",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
    ):
        monkeypatch.delenv(name, raising=False)
