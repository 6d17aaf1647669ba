"""
tests/test_service.py — Integration tests for OverlayCore and the CLI.

OverlayCore is built with fake telemetry sources so no real sensors are read;
the CLI demos run end-to-end through ``main.main``.
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List
from unittest.mock import patch

import pytest

from glasspane.core.config import GlassPaneConfig, LoggingConfig, config_from_dict
from glasspane.core.logger import configure_logger, get_logger
from glasspane.resource.levels import FeatureTier, ThermalLevel
from glasspane.resource.sources import MemoryReading
from glasspane.service import (
    ON_DISMISS,
    ON_GESTURE_PROGRESS,
    ON_TELEMETRY,
    ON_TIER_CHANGED,
    OverlayCore,
)


class _PlentyOfMemory:
    def read(self) -> MemoryReading:
        return MemoryReading(8 * 1024 ** 3, 512 * 1024 ** 2, False)


class _CoolDevice:
    def read_level(self) -> ThermalLevel:
        return ThermalLevel.NORMAL


@pytest.fixture()
def core() -> OverlayCore:
    c = OverlayCore(
        config_from_dict({"telemetry": {"period_s": 0.01}}),
        memory_source=_PlentyOfMemory(),
        thermal_source=_CoolDevice(),
    )
    yield c
    c.stop()


def _record(core: OverlayCore, event: str) -> List[Dict[str, Any]]:
    seen: List[Dict[str, Any]] = []
    core.subscribe(event, seen.append)
    return seen


class TestOverlayCore:

    def test_initial_state(self, core: OverlayCore) -> None:
        assert core.tier is FeatureTier.FULL
        snap = core.snapshot()
        assert snap["tier"] == "FULL"
        assert snap["capabilities"]["blur"] is True
        assert snap["phase"] == "IDLE"
        assert snap["gesture"]["edge"] == "NONE"
        assert snap["dismiss_count"] == 0

    def test_initial_tier_from_config(self) -> None:
        c = OverlayCore(
            config_from_dict({"tier": {"initial_tier": "light"}}),
            memory_source=_PlentyOfMemory(),
            thermal_source=_CoolDevice(),
        )
        assert c.tier is FeatureTier.LIGHT

    def test_tier_and_telemetry_events(self, core: OverlayCore) -> None:
        tiers = _record(core, ON_TIER_CHANGED)
        telemetry = _record(core, ON_TELEMETRY)
        core.sampler.on_thermal_changed(ThermalLevel.SEVERE)
        assert tiers == [{
            "from": "FULL",
            "tier": "LIGHT",
            "level": 1,
            "capabilities": FeatureTier.LIGHT.capabilities(),
        }]
        assert telemetry[-1]["thermal"] == "SEVERE"
        assert telemetry[-1]["tier"] == "LIGHT"

    def test_gesture_and_dismiss_events(self, core: OverlayCore) -> None:
        progress = _record(core, ON_GESTURE_PROGRESS)
        dismissed = _record(core, ON_DISMISS)
        core.pointer.down(10, 500)
        core.pointer.move_by(25, 0)
        core.pointer.move_by(55, 0)
        core.pointer.release()
        core.machine.settle()
        assert any(p["dismiss_triggered"] for p in progress)
        assert dismissed == [{"count": 1}]
        assert core.dismiss_count == 1

    def test_pushed_thermal_survives_periodic_sampling(self, core: OverlayCore) -> None:
        core.sampler.on_thermal_changed(ThermalLevel.SEVERE)
        for _ in range(3):
            core.sampler.sample_once()
        assert core.telemetry.thermal is ThermalLevel.SEVERE
        assert core.tier is FeatureTier.LIGHT

    def test_log_context_follows_tier_and_gesture(self, core: OverlayCore) -> None:
        log = get_logger()
        assert log.context["tier"] == "FULL"
        core.sampler.on_thermal_changed(ThermalLevel.SEVERE)
        assert log.context["tier"] == "LIGHT"
        core.pointer.down(10, 500)
        core.pointer.move_by(25, 0)
        assert log.context["phase"] == "COMMITTED"
        core.pointer.release()
        assert log.context["phase"] == "IDLE"

    def test_failing_subscriber_is_isolated(self, core: OverlayCore) -> None:
        def _boom(data: Dict[str, Any]) -> None:
            raise RuntimeError("subscriber failure")

        core.subscribe(ON_TIER_CHANGED, _boom)
        after = _record(core, ON_TIER_CHANGED)
        core.sampler.on_low_memory()
        assert after[0]["tier"] == "MINIMAL"

    def test_start_stop_samples_periodically(self, core: OverlayCore) -> None:
        core.start()
        assert core.sampler.is_running
        core.stop()
        assert not core.sampler.is_running
        core.stop()

    def test_thermal_disabled_uses_no_polled_source(self) -> None:
        c = OverlayCore(
            config_from_dict({"thermal": {"enabled": False}}),
            memory_source=_PlentyOfMemory(),
        )
        assert c.sampler.sample_once().thermal is ThermalLevel.NORMAL

    def test_from_config_file_missing_path(self) -> None:
        with pytest.raises(FileNotFoundError):
            OverlayCore.from_config_file("/no/such/glasspane.yaml")

    def test_default_config(self) -> None:
        c = OverlayCore(memory_source=_PlentyOfMemory(), thermal_source=_CoolDevice())
        assert c.config == GlassPaneConfig()


class TestCli:

    def test_parser_defaults(self) -> None:
        from main import _build_parser
        args = _build_parser().parse_args([])
        assert args.web is False
        assert args.demo is None
        assert args.config is None

    @pytest.mark.parametrize("demo, dismissed", [
        ("dismiss", True),
        ("snapback", False),
        ("back", True),
    ])
    def test_demo_runs(self, demo: str, dismissed: bool, capsys) -> None:
        from main import main
        with patch.object(sys, "argv", ["glasspane", "--demo", demo]):
            assert main() == 0
        out = capsys.readouterr().out
        assert ("[DISMISS]" in out) is dismissed
        assert f"Demo '{demo}' finished" in out

    def test_bad_config_path_exits_2(self, capsys) -> None:
        from main import main
        with patch.object(sys, "argv", ["glasspane", "--config", "/no/such.yaml", "--demo", "dismiss"]):
            assert main() == 2

    def test_log_level_defaults_to_config(self, tmp_path, capsys) -> None:
        from main import main
        cfg = tmp_path / "glasspane.yaml"
        cfg.write_text("logging:\n  level: WARN\n", encoding="utf-8")
        try:
            with patch.object(sys, "argv", ["glasspane", "--config", str(cfg), "--demo", "snapback"]):
                assert main() == 0
            assert not get_logger().enabled_for("INFO")
            assert get_logger().enabled_for("WARN")

            with patch.object(sys, "argv", ["glasspane", "--config", str(cfg),
                                            "--log-level", "DEBUG", "--demo", "snapback"]):
                assert main() == 0
            assert get_logger().enabled_for("INFO")
        finally:
            configure_logger(LoggingConfig())
