"""Tests for config override behavior with defaults."""

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.config import load_config, load_config_with_defaults

DEFAULT_PATH = REPO_ROOT / "config" / "default.yml"


class TestConfigOverride(unittest.TestCase):
    def test_shipped_defaults_parse(self) -> None:
        cfg = load_config(DEFAULT_PATH)
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.engine.max_workers, 4)
        self.assertEqual(cfg.output.formats, ("console",))

    def test_override_merges_with_defaults(self) -> None:
        override_yaml = """
log:
  level: DEBUG

engine:
  on_type_mismatch: fail

output:
  formats: [console, json]
"""
        with tempfile.TemporaryDirectory() as tmp:
            override_path = Path(tmp) / "override.yml"
            override_path.write_text(override_yaml, encoding="utf-8")

            cfg = load_config_with_defaults(override_path, default_path=DEFAULT_PATH)

        self.assertEqual(cfg.runtime.level, "DEBUG")
        self.assertEqual(cfg.runtime.dir, "log")
        self.assertEqual(cfg.engine.on_type_mismatch, "fail")
        self.assertEqual(cfg.engine.chunk_size, 256)
        self.assertEqual(cfg.output.formats, ("console", "json"))

    def test_empty_override_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            override_path = Path(tmp) / "override.yml"
            override_path.write_text("{}", encoding="utf-8")

            cfg = load_config_with_defaults(override_path, default_path=DEFAULT_PATH)

        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.engine.on_type_mismatch, "skip")

    def test_non_mapping_root_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            override_path = Path(tmp) / "override.yml"
            override_path.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "mapping"):
                load_config_with_defaults(override_path, default_path=DEFAULT_PATH)


if __name__ == "__main__":
    unittest.main()
