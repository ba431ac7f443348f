"""Service API for non-interactive use of sandmann_scraper.

Two entry points are provided:

- `run_from_config_file()` / `python -m sandmann_scraper.service --config cfg.yaml`
  for cron jobs and process supervisors
- `lambda_handler()` for a scheduled AWS Lambda function that uploads the
  episode to S3

Example:
    >>> from sandmann_scraper import service
    >>> result = service.run_from_config_file("config.yaml")
    >>> if not result.success:
    ...     print(result.error)

For cron usage:
    0 19 * * * python -m sandmann_scraper.service --config /etc/sandmann.yaml
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__, config, workflow

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result of a service run.

    Attributes:
        episodes_processed: Number of episodes transferred (0 or 1)
        summary: Human-readable summary message
        success: Whether the run completed successfully
        error: Error message if success is False, None otherwise
    """

    episodes_processed: int
    summary: str
    success: bool = True
    error: Optional[str] = None


def run(cfg: config.Config) -> ServiceResult:
    """Run the pipeline with the given configuration and report the outcome.

    Args:
        cfg: Configuration object

    Returns:
        ServiceResult with processing results; failures are captured, not raised
    """
    try:
        if cfg.log_file or cfg.log_level:
            workflow.apply_log_level(level=cfg.log_level or "INFO", log_file=cfg.log_file)

        count, summary = workflow.run_pipeline(cfg)

        return ServiceResult(episodes_processed=count, summary=summary)
    except Exception as e:
        error_msg = str(e)
        logger.error(f"Pipeline execution failed: {error_msg}", exc_info=True)
        return ServiceResult(episodes_processed=0, summary="", success=False, error=error_msg)


def run_from_config_file(config_path: str | Path) -> ServiceResult:
    """Load a configuration file and run the pipeline.

    Args:
        config_path: Path to configuration file (JSON or YAML)

    Returns:
        ServiceResult with processing results
    """
    try:
        config_dict = config.load_config_file(str(config_path))
        cfg = config.Config(**config_dict)
    except Exception as exc:
        error_msg = f"Failed to load configuration file: {exc}"
        logger.error(error_msg)
        return ServiceResult(episodes_processed=0, summary="", success=False, error=error_msg)

    return run(cfg)


def lambda_handler(event: Optional[Dict[str, Any]], context: Any = None) -> Dict[str, Any]:
    """AWS Lambda entry point uploading today's episode to S3.

    The function runs with the S3 destination and the default bucket. Scheduled
    events carry no settings; an optional "config" mapping in the event (e.g.
    ``{"config": {"bucket": "...", "prefix": "..."}}``) overrides configuration
    values. Credentials and region come from the Lambda
    environment.

    Unlike `run()`, failures are raised so that the invocation is marked as
    failed.

    Returns:
        Dict with "episodes_processed" and "summary"
    """
    overrides = (event or {}).get("config") or {} if isinstance(event, dict) else {}
    settings: Dict[str, Any] = {
        "destination": "s3",
        "bucket": config.DEFAULT_S3_BUCKET,
        **config.to_alias_keys(overrides),
    }
    cfg = config.Config(**settings)
    workflow.apply_log_level(level=cfg.log_level, log_file=cfg.log_file)

    request_id = getattr(context, "aws_request_id", None)
    if request_id:
        logger.info(f"Lambda request {request_id}")

    count, summary = workflow.run_pipeline(cfg)
    logger.info(summary)
    return {"episodes_processed": count, "summary": summary}


def main() -> int:
    """Main entry point for service mode (config-file only).

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="Sandmann Scraper Service - Run pipeline from configuration file",
    )
    parser.add_argument(
        "--config",
        required=True,
        help="Path to configuration file (JSON or YAML)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sandmann_scraper {__version__}",
    )

    args = parser.parse_args()

    result = run_from_config_file(args.config)

    if result.success:
        print(result.summary)
        return 0
    else:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
