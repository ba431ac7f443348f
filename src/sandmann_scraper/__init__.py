"""Sandmann Scraper - Download today's Sandmann episode.

The pipeline finds today's episode on the Sandmann landing page, picks the
highest-quality stream from its media descriptor, and stores it under a dated
filename in a local directory or an S3 bucket.

Programmatic API Example:
    >>> import sandmann_scraper
    >>>
    >>> cfg = sandmann_scraper.Config(output_dir="./videos")
    >>> count, summary = sandmann_scraper.run_pipeline(cfg)
    >>> print(summary)

Service API Example:
    >>> from sandmann_scraper import service
    >>> result = service.run_from_config_file("config.yaml")

CLI Usage:
    $ sandmann-scraper --output-dir ./videos
    $ sandmann-scraper --destination s3 --bucket sandmann-repo
"""

from __future__ import annotations

__version__ = "1.0.0"

from .config import Config, load_config_file  # noqa: E402
from .workflow import run_pipeline  # noqa: E402

__all__ = [
    "Config",
    "load_config_file",
    "run_pipeline",
    "__version__",
]

# Cache for lazy-loaded modules
_import_cache: dict[str, object] = {}


def __getattr__(name: str):
    if name in _import_cache:
        return _import_cache[name]

    if name in ("cli", "service"):
        import importlib

        module = importlib.import_module(f"{__name__}.{name}")
        _import_cache[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
