from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import config_constants


def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    import sys

    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


# Tests configure through Config objects and explicit environment variables only
if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        pass

# Re-exported for convenience
DEFAULT_LANDING_PAGE_URL = config_constants.DEFAULT_LANDING_PAGE_URL
DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_TIMEOUT_SECONDS = config_constants.DEFAULT_TIMEOUT_SECONDS
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
DEFAULT_OUTPUT_DIR = config_constants.DEFAULT_OUTPUT_DIR
DEFAULT_DESTINATION = config_constants.DEFAULT_DESTINATION
DEFAULT_S3_BUCKET = config_constants.DEFAULT_S3_BUCKET
DEFAULT_S3_REGION = config_constants.DEFAULT_S3_REGION
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS
VALID_DESTINATIONS = config_constants.VALID_DESTINATIONS
MAX_S3_PREFIX_LENGTH = config_constants.MAX_S3_PREFIX_LENGTH


def _env_fallback(value: Any, *names: str) -> Optional[str]:
    """Return the explicit value if set, else the first non-empty environment variable."""
    if value is not None and str(value).strip():
        return str(value).strip()
    for name in names:
        env_value = os.getenv(name)
        if env_value and env_value.strip():
            return env_value.strip()
    return None


class Config(BaseModel):
    """Configuration model for the episode download pipeline.

    Settings are grouped as:

    - **Source**: Landing page URL
    - **Destination**: Local directory or S3 bucket, key prefix, and region
    - **HTTP**: User agent and timeout
    - **Processing**: Skip-existing and dry-run switches
    - **Logging**: Log level and optional log file

    The model is immutable (frozen) after creation.

    Attributes:
        landing_page_url: Page listing today's teaser (alias "url").
        destination: Where the stream goes, "file" or "s3".
        output_dir: Local output directory (file destination). Can be set via OUTPUT_DIR.
        s3_bucket: Target bucket (s3 destination). Can be set via SANDMANN_S3_BUCKET.
        s3_region: Bucket region. Can be set via AWS_REGION or AWS_DEFAULT_REGION.
        s3_prefix: Optional key prefix for uploaded objects.
        user_agent: HTTP User-Agent header for requests.
        timeout: Request timeout in seconds (minimum: 1).
        skip_existing: Leave an existing local file untouched instead of overwriting it.
        dry_run: Resolve the episode and stream but transfer nothing.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path. Can be set via LOG_FILE.

    Example:
        >>> from sandmann_scraper import Config
        >>> cfg = Config(destination="s3", s3_bucket="my-bucket")
    """

    landing_page_url: str = Field(default=DEFAULT_LANDING_PAGE_URL, alias="url")
    destination: Literal["file", "s3"] = Field(default=DEFAULT_DESTINATION, alias="destination")
    output_dir: str = Field(
        default=DEFAULT_OUTPUT_DIR,
        alias="output_dir",
        validate_default=True,
        description="Local output directory. Can be set via OUTPUT_DIR environment variable.",
    )
    s3_bucket: Optional[str] = Field(
        default=None,
        alias="bucket",
        validate_default=True,
        description="Target bucket. Can be set via SANDMANN_S3_BUCKET environment variable.",
    )
    s3_region: str = Field(default=DEFAULT_S3_REGION, alias="region", validate_default=True)
    s3_prefix: Optional[str] = Field(default=None, alias="prefix")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="user_agent")
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="timeout")
    skip_existing: bool = Field(default=False, alias="skip_existing")
    dry_run: bool = Field(default=False, alias="dry_run")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="log_level")
    log_file: Optional[str] = Field(
        default=None,
        alias="log_file",
        validate_default=True,
        description="Path to log file (logs will be written to both console and file). "
        "Can be set via LOG_FILE environment variable.",
    )

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    @field_validator("landing_page_url", mode="before")
    @classmethod
    def _strip_url(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_LANDING_PAGE_URL
        return str(value).strip()

    @field_validator("landing_page_url", mode="after")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"Landing page URL must be http or https: {value}")
        if not parsed.netloc:
            raise ValueError(f"Landing page URL must have a valid hostname: {value}")
        return value

    @field_validator("destination", mode="before")
    @classmethod
    def _normalize_destination(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_DESTINATION
        return str(value).strip().lower() or DEFAULT_DESTINATION

    @field_validator("output_dir", mode="before")
    @classmethod
    def _load_output_dir_from_env(cls, value: Any) -> str:
        """Load output directory from environment variable if not provided."""
        return _env_fallback(value, "OUTPUT_DIR") or DEFAULT_OUTPUT_DIR

    @field_validator("s3_bucket", mode="before")
    @classmethod
    def _load_bucket_from_env(cls, value: Any) -> Optional[str]:
        return _env_fallback(value, "SANDMANN_S3_BUCKET")

    @field_validator("s3_region", mode="before")
    @classmethod
    def _load_region_from_env(cls, value: Any) -> str:
        return _env_fallback(value, "AWS_REGION", "AWS_DEFAULT_REGION") or DEFAULT_S3_REGION

    @field_validator("s3_prefix", mode="before")
    @classmethod
    def _strip_prefix(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("s3_prefix", mode="after")
    @classmethod
    def _validate_prefix(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if len(value) > MAX_S3_PREFIX_LENGTH:
            raise ValueError(
                f"s3_prefix must be at most {MAX_S3_PREFIX_LENGTH} characters, got {len(value)}"
            )
        if value.startswith("/"):
            raise ValueError("s3_prefix cannot start with '/'")
        if any(ord(c) < 32 for c in value):
            raise ValueError("s3_prefix cannot contain control characters")
        return value

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        return str(value).strip() or DEFAULT_USER_AGENT

    @field_validator("timeout", mode="before")
    @classmethod
    def _ensure_timeout(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_TIMEOUT_SECONDS
        try:
            timeout = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("timeout must be an integer") from exc
        return max(MIN_TIMEOUT_SECONDS, timeout)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level value."""
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the valid levels."""
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value

    @field_validator("log_file", mode="before")
    @classmethod
    def _load_log_file_from_env(cls, value: Any) -> Optional[str]:
        """Load log file path from environment variable if not provided."""
        return _env_fallback(value, "LOG_FILE")

    @model_validator(mode="after")
    def _require_bucket_for_s3(self) -> "Config":
        if self.destination == "s3" and not self.s3_bucket:
            raise ValueError(
                "s3 destination requires a bucket (set 'bucket' or SANDMANN_S3_BUCKET)"
            )
        return self


def to_alias_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rename `Config` field-name keys to their aliases (e.g. s3_bucket -> bucket).

    Keys that are already aliases or unknown to `Config` are kept as they are.
    """
    fields = Config.model_fields
    return {
        (fields[key].alias or key) if key in fields else key: value for key, value in data.items()
    }


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The format is picked from the file extension (`.json`, `.yaml`, `.yml`). The
    returned dictionary can be unpacked into `Config`.

    Args:
        path: Path to configuration file. Supports tilde expansion.

    Returns:
        Dict[str, Any]: Configuration values keyed by `Config` field names or aliases.

    Raises:
        ValueError: If the path is empty, the file does not exist, the format is
            unsupported, parsing fails, or the top level is not a mapping.

    Example:
        >>> from sandmann_scraper import Config, load_config_file, run_pipeline
        >>> cfg = Config(**load_config_file("config.yaml"))
        >>> count, summary = run_pipeline(cfg)

    Supported Formats:
        **YAML** (`.yaml`, `.yml`):

            destination: s3
            bucket: sandmann-repo
            region: eu-central-1
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:  # type: ignore[attr-defined]
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data
