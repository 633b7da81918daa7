"""
Unit tests for startup configuration.
Run from project root: python -m pytest tests/ -v
"""
import json
import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Config  # noqa: E402
from palette_manager import PaletteType  # noqa: E402


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "config.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, text):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(text)

    def test_defaults(self):
        config = Config()
        self.assertIs(config.default_palette(), PaletteType.INFERNO)
        self.assertEqual(config.log_level(), logging.INFO)

    def test_missing_file(self):
        config = Config(self.path)
        self.assertFalse(config.load())
        self.assertIs(config.default_palette(), PaletteType.INFERNO)

    def test_file_overrides_defaults(self):
        self._write(json.dumps({'default_palette': 'JET', 'log_level': 'debug'}))
        config = Config(self.path)
        self.assertIs(config.default_palette(), PaletteType.JET)
        self.assertEqual(config.log_level(), logging.DEBUG)
        self.assertIs(config.create_mapper().active_palette, PaletteType.JET)

    def test_unknown_palette_falls_back(self):
        self._write(json.dumps({'default_palette': 'ironbow'}))
        self.assertIs(Config(self.path).default_palette(), PaletteType.INFERNO)

    def test_invalid_json_falls_back(self):
        self._write("{not json")
        config = Config(self.path)
        self.assertEqual(config.config, Config.DEFAULT_CONFIG)

    def test_non_object_json_falls_back(self):
        self._write("[1, 2]")
        self.assertIs(Config(self.path).default_palette(), PaletteType.INFERNO)

    def test_overrides(self):
        config = Config(overrides={'default_palette': 'magma'})
        self.assertIs(config.default_palette(), PaletteType.MAGMA)

    def test_unknown_log_level(self):
        self.assertEqual(Config(overrides={'log_level': 'chatty'}).log_level(), logging.INFO)


if __name__ == "__main__":
    unittest.main()
