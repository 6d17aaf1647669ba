"""
tests/test_config.py — Unit tests for the YAML configuration loader.
"""

from __future__ import annotations

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import pytest

from glasspane.core.config import (
    GestureConfig,
    GlassPaneConfig,
    config_from_dict,
    load_config,
)

_REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "glasspane.yaml"


class TestLoadConfig(unittest.TestCase):

    def test_repo_config_matches_defaults(self) -> None:
        self.assertEqual(load_config(_REPO_CONFIG), GlassPaneConfig())

    def test_missing_explicit_path_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/glasspane.yaml")

    def test_env_var_path(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "custom.yaml"
            path.write_text("tier:\n  upgrade_threshold: 3\n", encoding="utf-8")
            with patch.dict("os.environ", {"GLASSPANE_CONFIG": str(path)}):
                config = load_config()
        self.assertEqual(config.tier.upgrade_threshold, 3)
        self.assertEqual(config.gesture, GestureConfig())

    def test_env_var_missing_file_raises(self) -> None:
        with patch.dict("os.environ", {"GLASSPANE_CONFIG": "/nope/missing.yaml"}):
            with self.assertRaises(FileNotFoundError):
                load_config()

    def test_non_mapping_yaml_raises(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(path)

    def test_empty_file_uses_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.yaml"
            path.write_text("", encoding="utf-8")
            self.assertEqual(load_config(path), GlassPaneConfig())


class TestConfigFromDict:

    def test_partial_sections(self) -> None:
        config = config_from_dict({"gesture": {"density": 2.0, "max_drag_px": 400}})
        assert config.gesture.edge_zone_px == 80.0
        assert config.gesture.dismiss_distance_px == 100.0
        assert config.telemetry.period_s == 1.0

    def test_unknown_key_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid config value"):
            config_from_dict({"tier": {"upgrade_thresold": 5}})

    @pytest.mark.parametrize("raw", [
        {"telemetry": {"period_s": 0}},
        {"telemetry": {"memory_threshold_bytes": -1}},
        {"telemetry": {"low_factor": 3.0, "moderate_factor": 2.0}},
        {"thermal": {"serious_c": 50.0}},
        {"tier": {"upgrade_threshold": 0}},
        {"tier": {"initial_tier": "ULTRA"}},
        {"gesture": {"viewport_width": 0}},
        {"gesture": {"commit_ratio": 0.5}},
        {"gesture": {"max_drag_px": -10}},
        {"gesture": {"dismiss_fraction": 0.0}},
        {"gesture": {"dismiss_fraction": 1.5}},
        {"web": {"port": 70000}},
        {"logging": {"level": "LOUD"}},
    ])
    def test_invalid_values_raise(self, raw: dict) -> None:
        with pytest.raises(ValueError):
            config_from_dict(raw)

    def test_initial_tier_case_insensitive(self) -> None:
        assert config_from_dict({"tier": {"initial_tier": "medium"}}).tier.initial_tier == "medium"

    def test_config_is_frozen(self) -> None:
        config = GlassPaneConfig()
        with pytest.raises(AttributeError):
            config.tier.upgrade_threshold = 9  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
