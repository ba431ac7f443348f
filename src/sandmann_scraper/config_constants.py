"""Configuration constants for sandmann_scraper.

All constants are re-exported from config.py for convenience.
"""

# Landing page and link markers
DEFAULT_LANDING_PAGE_URL = "https://www.sandmann.de/filme/index.html"
MEDIA_REF_ATTRIBUTE = "data-media-ref"
VIDEO_SECTION_FRAGMENT = "/filme"
DAILY_TEASER_MARKER = "automaticteaser.mediajsn.jsn"

# Media descriptor keys
DESCRIPTOR_MEDIA_ARRAY_KEY = "_mediaArray"
DESCRIPTOR_STREAM_ARRAY_KEY = "_mediaStreamArray"
DESCRIPTOR_QUALITY_KEY = "_quality"
DESCRIPTOR_STREAM_URL_KEY = "_stream"

# General defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TIMEOUT_SECONDS = 30
MIN_TIMEOUT_SECONDS = 1
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0 Safari/537.36"
)

# Output defaults
DEFAULT_OUTPUT_DIR = "sandmann"
DEFAULT_MEDIA_EXTENSION = ".mp4"
DEFAULT_CONTENT_TYPE = "video/mp4"
DEFAULT_CONTENT_LANGUAGE = "de"

# Object storage defaults
DEFAULT_DESTINATION = "file"
VALID_DESTINATIONS = ("file", "s3")
DEFAULT_S3_BUCKET = "sandmann-repo"
DEFAULT_S3_REGION = "eu-central-1"

# Validation constants
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
MAX_S3_PREFIX_LENGTH = 512
