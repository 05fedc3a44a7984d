"""Tests for the shared config helpers and the dotted keys they report."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.config.common import (
    check_non_empty,
    expect_choice,
    expect_int,
    expect_str_list,
    get_required_value,
    get_section,
)


class TestConfigHelpers(unittest.TestCase):
    def test_choice_is_normalized(self) -> None:
        self.assertEqual(expect_choice(" Fail ", ("skip", "fail"), "engine.on_type_mismatch"), "fail")

    def test_choice_errors_name_the_key(self) -> None:
        with self.assertRaisesRegex(ValueError, "engine.on_type_mismatch"):
            expect_choice("abort", ("skip", "fail"), "engine.on_type_mismatch")
        with self.assertRaisesRegex(TypeError, "engine.on_type_mismatch"):
            expect_choice(1, ("skip", "fail"), "engine.on_type_mismatch")

    def test_blank_strings_rejected(self) -> None:
        check_non_empty("INFO", "log.level")
        with self.assertRaisesRegex(ValueError, "log.level must not be empty"):
            check_non_empty("   ", "log.level")

    def test_sections_and_required_values(self) -> None:
        self.assertEqual(get_section({}, "client", required=False), {})
        with self.assertRaisesRegex(ValueError, "Missing required config: engine"):
            get_section({}, "engine", required=True)
        with self.assertRaisesRegex(TypeError, "client must be an object"):
            get_section({"client": []}, "client", required=False)
        with self.assertRaisesRegex(ValueError, "Missing required config: engine.max_workers"):
            get_required_value({}, "max_workers", "engine.max_workers")

    def test_typed_values(self) -> None:
        with self.assertRaisesRegex(TypeError, "engine.max_workers must be an integer"):
            expect_int(True, "engine.max_workers")
        with self.assertRaisesRegex(TypeError, r"output.formats\[1\] must be a string"):
            expect_str_list(["console", 3], "output.formats")


if __name__ == "__main__":
    unittest.main()
