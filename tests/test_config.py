"""
Tests for parser configuration.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path

from loggrams.config import ConfigError, LogParserConfig
from loggrams.parser import LogParser


class TestLogParserConfig(unittest.TestCase):
    """Test validation and loading of settings."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults_are_valid(self):
        config = LogParserConfig().validate()

        self.assertEqual(config.log_format, "<date> <time> <message>")
        self.assertEqual(config.content_field, "message")
        self.assertEqual(config.dynamic_token_threshold, 0.5)
        self.assertEqual(config.regexes, [])

    def test_threshold_bounds(self):
        for threshold in [0.0, 1.0, 0.25]:
            with self.subTest(threshold=threshold):
                LogParserConfig(dynamic_token_threshold=threshold).validate()

        for threshold in [-0.1, 1.01, "high"]:
            with self.subTest(threshold=threshold):
                with self.assertRaises(ConfigError):
                    LogParserConfig(dynamic_token_threshold=threshold).validate()

    def test_gram_dict_size_must_be_positive_int(self):
        for size in [0, -5, 2.5, True]:
            with self.subTest(size=size):
                with self.assertRaises(ConfigError):
                    LogParserConfig(maximum_gram_dict_size=size).validate()

    def test_missing_seed_file(self):
        with self.assertRaises(ConfigError):
            LogParserConfig(seed_file=os.path.join(self.temp_dir, "nope.log")).validate()

    def test_merged_ignores_none(self):
        config = LogParserConfig(regexes=["a"]).merged(
            regexes=None, dynamic_token_threshold=0.0, log_format="<message>"
        )

        self.assertEqual(config.regexes, ["a"])
        self.assertEqual(config.dynamic_token_threshold, 0.0)
        self.assertEqual(config.log_format, "<message>")

    def test_from_file(self):
        path = Path(self.temp_dir) / "config.json"
        path.write_text(json.dumps({
            "log_format": "<level> <message>",
            "content_field": "message",
            "regexes": ["blk_-?\\d+"],
            "dynamic_token_threshold": 0.3,
            "maximum_gram_dict_size": 50,
        }))

        config = LogParserConfig.from_file(str(path))

        self.assertEqual(config.log_format, "<level> <message>")
        self.assertEqual(config.regexes, ["blk_-?\\d+"])
        self.assertEqual(config.maximum_gram_dict_size, 50)

    def test_from_file_errors(self):
        bad_json = Path(self.temp_dir) / "bad.json"
        bad_json.write_text("{not json")
        unknown_key = Path(self.temp_dir) / "unknown.json"
        unknown_key.write_text(json.dumps({"threshold": 0.5}))

        for path in [bad_json, unknown_key, Path(self.temp_dir) / "missing.json"]:
            with self.subTest(path=path.name):
                with self.assertRaises(ConfigError):
                    LogParserConfig.from_file(str(path))


class TestParserConstruction(unittest.TestCase):
    """Test that every configuration error surfaces when a parser is built."""

    def test_config_errors(self):
        bad_configs = [
            LogParserConfig(log_format="no placeholders"),
            LogParserConfig(log_format="<a> <a>"),
            LogParserConfig(content_field="content"),
            LogParserConfig(dynamic_token_threshold=2.0),
            LogParserConfig(maximum_gram_dict_size=0),
            LogParserConfig(regexes=["[unclosed"]),
        ]

        for config in bad_configs:
            with self.subTest(config=config):
                with self.assertRaises(ConfigError):
                    LogParser(config)


if __name__ == '__main__':
    unittest.main()
