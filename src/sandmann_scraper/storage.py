"""Transfer destinations for downloaded episodes.

A destination receives the selected stream URL and the output filename and
moves the bytes: either into a local directory or into an S3 bucket. Object
storage is optional; boto3 is only imported when an S3 destination is used.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, Protocol

from . import config, config_constants, downloader, filesystem, models, progress
from .exceptions import StorageDependencyError, TransferError

logger = logging.getLogger(__name__)


class Destination(Protocol):
    """Interface shared by all transfer destinations."""

    def describe(self, filename: str) -> str: ...

    def transfer(self, stream_url: str, filename: str) -> models.TransferResult: ...


class LocalFileDestination:
    """Write the stream to a file in a local directory."""

    def __init__(
        self,
        output_dir: str,
        *,
        user_agent: str = config_constants.DEFAULT_USER_AGENT,
        timeout: int = config_constants.DEFAULT_TIMEOUT_SECONDS,
        skip_existing: bool = False,
        extension: str = config_constants.DEFAULT_MEDIA_EXTENSION,
    ) -> None:
        self.output_dir = output_dir
        self.user_agent = user_agent
        self.timeout = timeout
        self.skip_existing = skip_existing
        self.extension = extension

    def describe(self, filename: str) -> str:
        return filesystem.build_output_path(self.output_dir, filename, self.extension)

    def transfer(self, stream_url: str, filename: str) -> models.TransferResult:
        out_path = self.describe(filename)
        if self.skip_existing and os.path.exists(out_path):
            logger.info(f"Skipping download, {out_path} already exists")
            return models.TransferResult(destination=out_path, skipped=True)

        logger.info(f"Downloading {stream_url} to {out_path}")
        ok, total_bytes = downloader.http_download_to_file(
            stream_url, self.user_agent, self.timeout, out_path
        )
        if not ok:
            raise TransferError(f"Download of {stream_url} failed", target=out_path)
        logger.info(
            f"Done downloading ({total_bytes / downloader.BYTES_PER_MB:.1f} MB) to {out_path}"
        )
        return models.TransferResult(destination=out_path, bytes_transferred=total_bytes)


class S3Destination:
    """Upload the stream to an S3 bucket.

    Credentials are taken from the environment through boto3's default chain.
    Objects are stored with the stream's content type and German content language.
    """

    def __init__(
        self,
        bucket: str,
        *,
        region: str = config_constants.DEFAULT_S3_REGION,
        prefix: Optional[str] = None,
        user_agent: str = config_constants.DEFAULT_USER_AGENT,
        timeout: int = config_constants.DEFAULT_TIMEOUT_SECONDS,
        extension: str = config_constants.DEFAULT_MEDIA_EXTENSION,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.prefix = prefix
        self.user_agent = user_agent
        self.timeout = timeout
        self.extension = extension
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                import boto3
            except ImportError as exc:
                raise StorageDependencyError("boto3") from exc
            self._client = boto3.client("s3", region_name=self.region)
            logger.debug(f"Created S3 client for region {self.region}")
        return self._client

    def object_key(self, filename: str) -> str:
        name = f"{filename}{self.extension}"
        if self.prefix:
            return f"{self.prefix.rstrip('/')}/{name}"
        return name

    def describe(self, filename: str) -> str:
        return f"s3://{self.bucket}/{self.object_key(filename)}"

    def transfer(self, stream_url: str, filename: str) -> models.TransferResult:
        key = self.object_key(filename)
        target = self.describe(filename)
        client = self.client

        resp = downloader.fetch_url(stream_url, self.user_agent, self.timeout, stream=True)
        if resp is None:
            raise TransferError(f"Could not open stream {stream_url}", target=target)

        try:
            content_type = (
                resp.headers.get("Content-Type") or config_constants.DEFAULT_CONTENT_TYPE
            )
            total_size = downloader.content_length(resp)
            logger.info(f"Uploading {stream_url} to {target}")
            logger.info(f"Content-type: {content_type}")
            if total_size is not None:
                logger.info(f"Content-length: {total_size // downloader.BYTES_PER_MB} MB")

            resp.raw.decode_content = True
            with progress.progress_context(total_size, f"Uploading {key}") as reporter:
                reader = progress.ProgressReader(resp.raw, reporter)
                client.upload_fileobj(
                    reader,
                    self.bucket,
                    key,
                    ExtraArgs={
                        "ContentType": content_type,
                        "ContentLanguage": config_constants.DEFAULT_CONTENT_LANGUAGE,
                    },
                )
        except Exception as exc:
            # boto3 raises botocore and s3transfer errors; requests raises on read
            raise TransferError(f"Upload failed: {exc}", target=target) from exc
        finally:
            resp.close()

        logger.info(f"Done uploading {reader.bytes_read} bytes to {target}")
        return models.TransferResult(destination=target, bytes_transferred=reader.bytes_read)


def create_destination(cfg: config.Config) -> Destination:
    """Create the transfer destination selected by the configuration.

    Raises:
        ValueError: If the destination type is not supported
    """
    if cfg.destination == "file":
        return LocalFileDestination(
            filesystem.validate_and_normalize_output_dir(cfg.output_dir),
            user_agent=cfg.user_agent,
            timeout=cfg.timeout,
            skip_existing=cfg.skip_existing,
        )
    if cfg.destination == "s3":
        if not cfg.s3_bucket:
            raise ValueError("s3 destination requires a bucket")
        return S3Destination(
            cfg.s3_bucket,
            region=cfg.s3_region,
            prefix=cfg.s3_prefix,
            user_agent=cfg.user_agent,
            timeout=cfg.timeout,
        )
    raise ValueError(f"Unsupported destination: {cfg.destination}")


__all__ = [
    "Destination",
    "LocalFileDestination",
    "S3Destination",
    "create_destination",
]
