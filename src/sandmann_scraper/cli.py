"""Command-line interface helpers for sandmann_scraper."""

from __future__ import annotations

import argparse
import logging
import os
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    cast,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TYPE_CHECKING,
)
from urllib.parse import urlparse

from pydantic import ValidationError

from . import __version__, config, progress, workflow
from .exceptions import SandmannError

if TYPE_CHECKING:  # pragma: no cover - typing only
    import tqdm

_LOGGER = logging.getLogger(__name__)

# Progress bar constants
TQDM_NCOLS = 80
TQDM_MIN_INTERVAL = 0.5
TQDM_MIN_ITERS = 1
BYTES_PER_KB = 1024


class _TqdmProgress:
    """Simple adapter that exposes tqdm's update interface."""

    def __init__(self, bar: "tqdm.tqdm") -> None:
        self._bar = bar

    def update(self, advance: int) -> None:
        self._bar.update(advance)


@contextmanager
def _tqdm_progress(total: Optional[int], description: str) -> Iterator[_TqdmProgress]:
    """Create a tqdm progress context matching the shared progress API."""
    from tqdm import tqdm

    kwargs: Dict[str, Any] = {"desc": description}
    if total is None:
        kwargs.update(
            total=None,
            unit="B",
            unit_scale=True,
            unit_divisor=BYTES_PER_KB,
            leave=False,
            miniters=TQDM_MIN_ITERS,
            mininterval=TQDM_MIN_INTERVAL,
            ncols=TQDM_NCOLS,
            dynamic_ncols=False,
        )
    else:
        kwargs.update(
            total=total,
            unit="B",
            unit_scale=True,
            unit_divisor=BYTES_PER_KB,
            leave=True,
        )

    with tqdm(**kwargs) as bar:
        yield _TqdmProgress(bar)


def _validate_url(url_value: str, errors: List[str]) -> None:
    """Validate the landing page URL format.

    Args:
        url_value: Landing page URL string
        errors: List to append validation errors to
    """
    if not url_value:
        errors.append("Landing page URL is required")
        return

    parsed_obj = urlparse(url_value)
    if parsed_obj.scheme not in ("http", "https"):
        errors.append(f"Landing page URL must be http or https: {url_value}")
    if not parsed_obj.netloc:
        errors.append(f"Landing page URL must have a valid hostname: {url_value}")


def _validate_destination(args: argparse.Namespace, errors: List[str]) -> None:
    """Validate destination and HTTP settings.

    Args:
        args: Parsed arguments
        errors: List to append validation errors to
    """
    if args.destination == "s3" and not (args.bucket or os.getenv("SANDMANN_S3_BUCKET")):
        errors.append("--bucket is required when --destination is s3")
    if isinstance(args.timeout, int) and args.timeout < config.MIN_TIMEOUT_SECONDS:
        errors.append(
            f"--timeout must be at least {config.MIN_TIMEOUT_SECONDS}, got: {args.timeout}"
        )


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed arguments, raising ValueError with every problem found."""
    errors: List[str] = []
    _validate_url(args.url, errors)
    _validate_destination(args, errors)
    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "url",
        nargs="?",
        default=config.DEFAULT_LANDING_PAGE_URL,
        help=f"Landing page URL (default: {config.DEFAULT_LANDING_PAGE_URL})",
    )
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument(
        "--destination",
        choices=list(config.VALID_DESTINATIONS),
        default=config.DEFAULT_DESTINATION,
        help=f"Where to store the episode (default: {config.DEFAULT_DESTINATION})",
    )
    parser.add_argument(
        "--output-dir",
        dest="output_dir",
        default=None,
        help=f"Output directory for the file destination (default: {config.DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument("--bucket", default=None, help="Target bucket for the s3 destination")
    parser.add_argument(
        "--region",
        default=None,
        help=f"Bucket region (default: {config.DEFAULT_S3_REGION})",
    )
    parser.add_argument("--prefix", default=None, help="Key prefix for uploaded objects")
    parser.add_argument(
        "--user-agent",
        dest="user_agent",
        default=config.DEFAULT_USER_AGENT,
        help="User-Agent header",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.DEFAULT_TIMEOUT_SECONDS,
        help=f"Request timeout in seconds (default: {config.DEFAULT_TIMEOUT_SECONDS})",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=config.DEFAULT_LOG_LEVEL,
        help="Logging level (e.g., DEBUG, INFO)",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Path to log file (logs to both console and file)",
    )
    parser.add_argument(
        "--skip-existing",
        dest="skip_existing",
        action="store_true",
        help="Keep an existing output file instead of downloading again",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Resolve the episode and stream without transferring anything",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")


def _load_and_merge_config(
    parser: argparse.ArgumentParser, config_path: str, argv: Optional[Sequence[str]]
) -> argparse.Namespace:
    """Load configuration file and merge with CLI arguments.

    Values given on the command line take precedence over the file. Only the
    option names are checked here; values are validated once the merged
    arguments are turned into a `Config`.

    Raises:
        ValueError: If the file cannot be read or has unknown keys
    """
    config_data = config.load_config_file(config_path)
    aliases = {name: field.alias for name, field in config.Config.model_fields.items()}
    known = set(aliases) | {alias for alias in aliases.values() if alias}
    unknown_keys = [key for key in config_data.keys() if key not in known]
    if unknown_keys:
        raise ValueError("Unknown config option(s): " + ", ".join(sorted(unknown_keys)))

    # Config aliases double as argparse destinations
    parser.set_defaults(**config.to_alias_keys(config_data))
    return parser.parse_args(argv)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = argparse.ArgumentParser(
        description="Download today's Sandmann episode in the best available quality."
    )
    _add_arguments(parser)

    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"sandmann_scraper {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    payload: Dict[str, Any] = {
        "landing_page_url": args.url,
        "destination": args.destination,
        "output_dir": args.output_dir,
        "s3_bucket": args.bucket,
        "s3_region": args.region,
        "s3_prefix": args.prefix,
        "user_agent": args.user_agent,
        "timeout": args.timeout,
        "log_level": args.log_level,
        "log_file": args.log_file,
        "skip_existing": args.skip_existing,
        "dry_run": args.dry_run,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    """Log the effective configuration."""
    logger.info("=" * 80)
    logger.info("Configuration")
    logger.info("=" * 80)
    logger.info(f"  Landing Page: {cfg.landing_page_url}")
    logger.info(f"  Destination: {cfg.destination}")
    if cfg.destination == "file":
        logger.info(f"  Output Directory: {cfg.output_dir}")
        logger.info(f"  Skip Existing: {cfg.skip_existing}")
    else:
        logger.info(f"  Bucket: {cfg.s3_bucket}")
        logger.info(f"  Region: {cfg.s3_region}")
        logger.info(f"  Prefix: {cfg.s3_prefix or 'none'}")
    logger.info(f"  Timeout: {cfg.timeout}s")
    logger.info(f"  Log Level: {cfg.log_level}")
    logger.info(f"  Log File: {cfg.log_file or 'console only'}")
    logger.info(f"  Dry Run: {cfg.dry_run}")
    logger.info("=" * 80)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    run_pipeline_fn: Optional[Callable[[config.Config], Tuple[int, str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_progress_factory(_tqdm_progress)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if run_pipeline_fn is None:
        run_pipeline_fn = workflow.run_pipeline

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    apply_log_level_fn(cfg.log_level, cfg.log_file)

    log.info("Starting Sandmann episode download")
    _log_configuration(cfg, log)

    try:
        _, summary = run_pipeline_fn(cfg)
    except SandmannError as exc:
        log.error(str(exc))
        return 1

    log.info(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
