#!/usr/bin/env python3
"""Tests for transfer destinations."""

import io
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

tests_dir = Path(__file__).resolve().parents[2]
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from conftest import (  # noqa: E402
    create_media_response,
    create_test_config,
    MockHTTPResponse,
    TEST_BUCKET,
    TEST_MEDIA_BYTES,
    TEST_STREAM_URL_720,
)

from sandmann_scraper import downloader, storage  # noqa: E402
from sandmann_scraper.exceptions import StorageDependencyError, TransferError  # noqa: E402


def _consume_upload(fileobj, bucket, key, ExtraArgs=None):
    while fileobj.read(8):
        pass


class TestLocalFileDestination(unittest.TestCase):
    """Tests for LocalFileDestination."""

    def test_transfer_writes_file(self):
        resp = create_media_response(TEST_MEDIA_BYTES, TEST_STREAM_URL_720)
        with tempfile.TemporaryDirectory() as tmpdir:
            dest = storage.LocalFileDestination(tmpdir)
            with patch.object(downloader, "fetch_url", return_value=resp):
                result = dest.transfer(TEST_STREAM_URL_720, "2024-05-01 Story")
            expected = os.path.join(tmpdir, "2024-05-01 Story.mp4")
            self.assertEqual(result.destination, expected)
            self.assertEqual(result.bytes_transferred, len(TEST_MEDIA_BYTES))
            self.assertFalse(result.skipped)
            self.assertTrue(os.path.exists(expected))

    def test_skip_existing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            existing = os.path.join(tmpdir, "2024-05-01 Story.mp4")
            with open(existing, "wb") as fh:
                fh.write(b"old")
            dest = storage.LocalFileDestination(tmpdir, skip_existing=True)
            with patch.object(downloader, "fetch_url") as mock_fetch:
                result = dest.transfer(TEST_STREAM_URL_720, "2024-05-01 Story")
            mock_fetch.assert_not_called()
            self.assertTrue(result.skipped)
            with open(existing, "rb") as fh:
                self.assertEqual(fh.read(), b"old")

    def test_failed_download_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            dest = storage.LocalFileDestination(tmpdir)
            with patch.object(downloader, "fetch_url", return_value=None):
                with self.assertRaises(TransferError) as ctx:
                    dest.transfer(TEST_STREAM_URL_720, "2024-05-01 Story")
            self.assertIn("2024-05-01 Story.mp4", ctx.exception.target)


class TestS3Destination(unittest.TestCase):
    """Tests for S3Destination with a mocked client."""

    def test_object_key_and_describe(self):
        dest = storage.S3Destination(TEST_BUCKET, prefix="videos/", client=MagicMock())
        self.assertEqual(dest.object_key("2024-05-01 Story"), "videos/2024-05-01 Story.mp4")
        self.assertEqual(
            dest.describe("2024-05-01 Story"), f"s3://{TEST_BUCKET}/videos/2024-05-01 Story.mp4"
        )
        unprefixed = storage.S3Destination(TEST_BUCKET, client=MagicMock())
        self.assertEqual(unprefixed.object_key("a"), "a.mp4")

    def test_transfer_uploads_with_metadata(self):
        client = MagicMock()
        client.upload_fileobj.side_effect = _consume_upload
        resp = create_media_response(TEST_MEDIA_BYTES, TEST_STREAM_URL_720)
        dest = storage.S3Destination(TEST_BUCKET, client=client)
        with patch.object(downloader, "fetch_url", return_value=resp):
            result = dest.transfer(TEST_STREAM_URL_720, "2024-05-01 Story")

        args, kwargs = client.upload_fileobj.call_args
        self.assertEqual(args[1], TEST_BUCKET)
        self.assertEqual(args[2], "2024-05-01 Story.mp4")
        self.assertEqual(
            kwargs["ExtraArgs"], {"ContentType": "video/mp4", "ContentLanguage": "de"}
        )
        self.assertEqual(result.bytes_transferred, len(TEST_MEDIA_BYTES))
        self.assertEqual(result.destination, f"s3://{TEST_BUCKET}/2024-05-01 Story.mp4")
        self.assertTrue(resp.closed)

    def test_content_type_defaults_to_mp4(self):
        client = MagicMock()
        resp = MockHTTPResponse(headers={}, raw=io.BytesIO(TEST_MEDIA_BYTES))
        dest = storage.S3Destination(TEST_BUCKET, client=client)
        with patch.object(downloader, "fetch_url", return_value=resp):
            dest.transfer(TEST_STREAM_URL_720, "x")
        _, kwargs = client.upload_fileobj.call_args
        self.assertEqual(kwargs["ExtraArgs"]["ContentType"], "video/mp4")

    def test_upload_failure_raises_transfer_error(self):
        client = MagicMock()
        client.upload_fileobj.side_effect = RuntimeError("access denied")
        resp = create_media_response(TEST_MEDIA_BYTES, TEST_STREAM_URL_720)
        dest = storage.S3Destination(TEST_BUCKET, client=client)
        with patch.object(downloader, "fetch_url", return_value=resp):
            with self.assertRaises(TransferError) as ctx:
                dest.transfer(TEST_STREAM_URL_720, "x")
        self.assertIn("access denied", str(ctx.exception))
        self.assertTrue(resp.closed)

    def test_unreachable_stream_raises(self):
        dest = storage.S3Destination(TEST_BUCKET, client=MagicMock())
        with patch.object(downloader, "fetch_url", return_value=None):
            with self.assertRaises(TransferError):
                dest.transfer(TEST_STREAM_URL_720, "x")

    def test_missing_boto3_raises_dependency_error(self):
        dest = storage.S3Destination(TEST_BUCKET)
        with patch.dict(sys.modules, {"boto3": None}):
            with self.assertRaises(StorageDependencyError):
                dest.client


class TestCreateDestination(unittest.TestCase):
    def test_file_destination(self):
        dest = storage.create_destination(create_test_config(skip_existing=True))
        self.assertIsInstance(dest, storage.LocalFileDestination)
        self.assertTrue(os.path.isabs(dest.output_dir))
        self.assertTrue(dest.skip_existing)

    def test_s3_destination(self):
        cfg = create_test_config(destination="s3", s3_bucket=TEST_BUCKET, s3_prefix="daily")
        dest = storage.create_destination(cfg)
        self.assertIsInstance(dest, storage.S3Destination)
        self.assertEqual(dest.bucket, TEST_BUCKET)
        self.assertEqual(dest.region, "eu-central-1")
        self.assertEqual(dest.prefix, "daily")


if __name__ == "__main__":
    unittest.main()
