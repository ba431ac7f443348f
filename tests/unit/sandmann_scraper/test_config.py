#!/usr/bin/env python3
"""Tests for the configuration model and config file loading."""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

tests_dir = Path(__file__).resolve().parents[2]
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from conftest import TEST_BUCKET  # noqa: E402

from sandmann_scraper import config  # noqa: E402


class TestConfigDefaults(unittest.TestCase):
    def test_defaults(self):
        cfg = config.Config()
        self.assertEqual(cfg.landing_page_url, config.DEFAULT_LANDING_PAGE_URL)
        self.assertEqual(cfg.destination, "file")
        self.assertEqual(cfg.output_dir, config.DEFAULT_OUTPUT_DIR)
        self.assertIsNone(cfg.s3_bucket)
        self.assertEqual(cfg.s3_region, "eu-central-1")
        self.assertEqual(cfg.timeout, config.DEFAULT_TIMEOUT_SECONDS)
        self.assertEqual(cfg.log_level, "INFO")
        self.assertFalse(cfg.dry_run)

    def test_aliases(self):
        cfg = config.Config(
            url="https://example.com/page.html", bucket=TEST_BUCKET, destination="s3"
        )
        self.assertEqual(cfg.landing_page_url, "https://example.com/page.html")
        self.assertEqual(cfg.s3_bucket, TEST_BUCKET)

    def test_frozen(self):
        cfg = config.Config()
        with self.assertRaises(ValidationError):
            cfg.timeout = 5


class TestConfigValidation(unittest.TestCase):
    def test_invalid_url_scheme(self):
        with self.assertRaises(ValidationError):
            config.Config(url="ftp://example.com/")

    def test_s3_requires_bucket(self):
        with self.assertRaises(ValidationError) as ctx:
            config.Config(destination="s3")
        self.assertIn("bucket", str(ctx.exception))

    def test_unknown_destination(self):
        with self.assertRaises(ValidationError):
            config.Config(destination="ftp")

    def test_destination_normalized(self):
        self.assertEqual(config.Config(destination=" FILE ").destination, "file")

    def test_log_level_normalized_and_validated(self):
        self.assertEqual(config.Config(log_level="debug").log_level, "DEBUG")
        with self.assertRaises(ValidationError):
            config.Config(log_level="chatty")

    def test_timeout_clamped(self):
        self.assertEqual(config.Config(timeout=0).timeout, config.MIN_TIMEOUT_SECONDS)
        with self.assertRaises(ValidationError):
            config.Config(timeout="soon")

    def test_prefix_validation(self):
        self.assertIsNone(config.Config(prefix="  ").s3_prefix)
        with self.assertRaises(ValidationError):
            config.Config(prefix="/absolute")

    def test_extra_fields_forbidden(self):
        with self.assertRaises(ValidationError):
            config.Config(playlist="https://example.com/feed.m3u")


class TestConfigEnvironment(unittest.TestCase):
    def test_bucket_and_region_from_env(self):
        env = {"SANDMANN_S3_BUCKET": TEST_BUCKET, "AWS_REGION": "eu-west-1"}
        with patch.dict(os.environ, env):
            cfg = config.Config(destination="s3")
        self.assertEqual(cfg.s3_bucket, TEST_BUCKET)
        self.assertEqual(cfg.s3_region, "eu-west-1")

    def test_explicit_value_beats_env(self):
        with patch.dict(os.environ, {"OUTPUT_DIR": "/from/env"}):
            self.assertEqual(config.Config(output_dir="mine").output_dir, "mine")
            self.assertEqual(config.Config().output_dir, "/from/env")

    def test_log_file_from_env(self):
        with patch.dict(os.environ, {"LOG_FILE": "run.log"}):
            self.assertEqual(config.Config().log_file, "run.log")


class TestLoadConfigFile(unittest.TestCase):
    def test_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.yaml")
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("destination: s3\nbucket: test-bucket\nprefix: daily\n")
            data = config.load_config_file(path)
        cfg = config.Config(**data)
        self.assertEqual(cfg.s3_bucket, TEST_BUCKET)
        self.assertEqual(cfg.s3_prefix, "daily")

    def test_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w", encoding="utf-8") as fh:
                json.dump({"output_dir": "videos", "dry_run": True}, fh)
            data = config.load_config_file(path)
        self.assertEqual(data, {"output_dir": "videos", "dry_run": True})

    def test_missing_file(self):
        with self.assertRaises(ValueError):
            config.load_config_file("/nonexistent/config.yaml")

    def test_unsupported_suffix(self):
        with tempfile.NamedTemporaryFile(suffix=".toml") as fh:
            with self.assertRaises(ValueError):
                config.load_config_file(fh.name)

    def test_top_level_must_be_mapping(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.yaml")
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("- a\n- b\n")
            with self.assertRaises(ValueError):
                config.load_config_file(path)


class TestToAliasKeys(unittest.TestCase):
    def test_field_names_renamed(self):
        result = config.to_alias_keys(
            {"s3_bucket": "b", "landing_page_url": "https://x.example.com"}
        )
        self.assertEqual(result, {"bucket": "b", "url": "https://x.example.com"})

    def test_aliases_and_unknown_keys_kept(self):
        data = {"bucket": "b", "timeout": 5, "extra": 1}
        self.assertEqual(config.to_alias_keys(data), data)


if __name__ == "__main__":
    unittest.main()
