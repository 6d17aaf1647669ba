"""
tests/test_core.py — Tests for the replace-latest value cell and the JSONL logger.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from glasspane.core.channel import LatestValue
from glasspane.core.config import LoggingConfig
from glasspane.core.logger import EventLogger, configure_logger, get_logger, level_rank


# ──────────────────────────────────────────────────────────────
# LatestValue
# ──────────────────────────────────────────────────────────────

class TestLatestValue:

    def test_initial_value(self) -> None:
        cell = LatestValue(3)
        assert cell.value == 3
        assert cell.version == 0

    def test_publish_replaces(self) -> None:
        cell = LatestValue(0)
        for i in range(1, 100):
            cell.publish(i)
        assert cell.value == 99
        assert cell.version == 99

    def test_distinct_skips_equal_values(self) -> None:
        seen: list[int] = []
        cell = LatestValue(1)
        cell.subscribe(seen.append)
        assert cell.publish(1) is False
        assert cell.publish(2) is True
        assert cell.publish(2) is False
        assert seen == [2]

    def test_non_distinct_always_notifies(self) -> None:
        seen: list[int] = []
        cell = LatestValue(1, distinct=False)
        cell.subscribe(seen.append)
        cell.publish(1)
        cell.publish(1)
        assert seen == [1, 1]

    def test_unsubscribe(self) -> None:
        seen: list[int] = []
        cell = LatestValue(0)
        unsubscribe = cell.subscribe(seen.append)
        cell.publish(1)
        unsubscribe()
        unsubscribe()
        cell.publish(2)
        assert seen == [1]

    def test_failing_listener_is_isolated(self) -> None:
        seen: list[int] = []

        def _boom(value: int) -> None:
            raise RuntimeError("listener failure")

        cell = LatestValue(0)
        cell.subscribe(_boom)
        cell.subscribe(seen.append)
        assert cell.publish(5) is True
        assert seen == [5]
        assert cell.value == 5

    def test_concurrent_publishers(self) -> None:
        cell = LatestValue(0, distinct=False)

        def _writer() -> None:
            for i in range(500):
                cell.publish(i)

        threads = [threading.Thread(target=_writer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)
        assert cell.version == 2000


# ──────────────────────────────────────────────────────────────
# EventLogger
# ──────────────────────────────────────────────────────────────

def _read_lines(log_dir: Path) -> list[dict]:
    files = sorted(log_dir.glob("glasspane-*.jsonl"))
    assert files, "expected a JSONL log file"
    lines = files[-1].read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


class TestEventLogger:

    def test_writes_valid_jsonl(self, tmp_path: Path) -> None:
        log = EventLogger(LoggingConfig(log_dir=str(tmp_path)))
        log.info("tier", "tier_changed", {"from": "FULL", "to": "LIGHT"})
        log.warn("telemetry", "memory_read_error", {"error": "boom"})
        log.perf("telemetry", "sample_done", 1.23456, {"tier": "FULL"})
        log.close()

        records = _read_lines(tmp_path)
        assert records[0]["event"] == "log_opened"
        events = [(r["lvl"], r["src"], r["event"]) for r in records[1:]]
        assert events == [
            ("INFO", "tier", "tier_changed"),
            ("WARN", "telemetry", "memory_read_error"),
            ("PERF", "telemetry", "sample_done"),
        ]
        assert records[-1]["ms"] == pytest.approx(1.235)
        assert "ms" not in records[1]

    def test_context_is_stamped_on_records(self, tmp_path: Path) -> None:
        log = EventLogger(LoggingConfig(log_dir=str(tmp_path)))
        log.bind(tier="LIGHT", phase="TRACKING")
        log.info("gesture", "lock", {"edge": "LEFT"})
        log.bind(phase="IDLE")
        log.info("gesture", "snap_back", {})
        log.close()

        records = _read_lines(tmp_path)
        assert records[0]["ctx"] == {"tier": None, "phase": None}
        assert records[-2]["ctx"] == {"tier": "LIGHT", "phase": "TRACKING"}
        assert records[-1]["ctx"] == {"tier": "LIGHT", "phase": "IDLE"}

    def test_level_threshold_drops_records(self, tmp_path: Path) -> None:
        log = EventLogger(LoggingConfig(level="WARN", log_dir=str(tmp_path)))
        log.info("tier", "tier_changed", {})
        log.perf("telemetry", "sample_done", 0.5)
        log.error("service", "event_callback_error", {"error": "boom"})
        log.close()

        assert [r["event"] for r in _read_lines(tmp_path)] == ["event_callback_error"]

    def test_configure_switches_level_and_directory(self, tmp_path: Path) -> None:
        first, second = tmp_path / "a", tmp_path / "b"
        log = EventLogger(LoggingConfig(log_dir=str(first)))
        assert log.enabled_for("INFO")
        log.configure(LoggingConfig(level="ERROR", log_dir=str(second)))
        assert not log.enabled_for("WARN")
        assert log.log_dir == second
        log.critical("main", "unhandled_exception", {})
        log.close()

        assert [r["event"] for r in _read_lines(second)] == ["unhandled_exception"]
        assert _read_lines(first)[0]["event"] == "log_opened"

    def test_non_json_values_are_stringified(self, tmp_path: Path) -> None:
        log = EventLogger(LoggingConfig(log_dir=str(tmp_path)))
        log.info("system", "path", {"dir": tmp_path})
        log.close()
        assert _read_lines(tmp_path)[-1]["data"]["dir"] == str(tmp_path)

    def test_level_rank(self) -> None:
        assert level_rank("warning") == level_rank("WARN")
        assert level_rank("PERF") == level_rank("INFO")
        with pytest.raises(ValueError):
            level_rank("LOUD")

    def test_singleton(self) -> None:
        assert get_logger() is get_logger()
        assert configure_logger(LoggingConfig()) is get_logger()
