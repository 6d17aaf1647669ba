"""
glasspane/core/logger.py — Structured JSONL event log for tier and gesture activity.

Every record is one JSON line in ``<log_dir>/glasspane-YYYYMMDD.jsonl``. Besides
the emitting subsystem and event name, each record carries a ``ctx`` block
holding the current feature tier and gesture phase. The service keeps that
block current through :meth:`EventLogger.bind`, so any line in the file shows
the state the overlay was in when it was written.

The minimum level and the directory come from
:class:`~glasspane.core.config.LoggingConfig`; ``GLASSPANE_LOG_DIR`` is the
fallback directory when the config leaves ``log_dir`` unset. WARN and above
are also forwarded to the ``glasspane.events`` stdlib logger.

Usage::

    from glasspane.core.logger import get_logger
    log = get_logger()
    log.bind(tier="LIGHT")
    log.info("tier", "tier_changed", {"from": "FULL", "to": "LIGHT"})
    log.perf("telemetry", "sample_done", 0.8, {"memory": "NORMAL"})
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Dict, Optional

from glasspane import __version__
from glasspane.core.config import LoggingConfig

_stdlib = logging.getLogger("glasspane.events")
if not _stdlib.handlers:
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    _stdlib.addHandler(_handler)
_stdlib.propagate = False

# PERF shares INFO's rank so timings follow the same threshold
_RANKS: Dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "PERF": 20,
    "WARN": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

_MIRROR = {
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_instance: Optional["EventLogger"] = None
_instance_lock = threading.Lock()


def level_rank(name: str) -> int:
    """
    Numeric rank of a level name; ``WARNING`` is accepted for ``WARN``.

    Raises:
        ValueError: For an unknown level name.
    """
    key = name.upper()
    if key == "WARNING":
        key = "WARN"
    if key not in _RANKS:
        raise ValueError(f"Unknown log level: {name!r}")
    return _RANKS[key]


def _resolve_dir(config: LoggingConfig) -> Path:
    if config.log_dir:
        return Path(config.log_dir)
    return Path(os.environ.get("GLASSPANE_LOG_DIR", "logs"))


class EventLogger:
    """
    JSONL event log shared by every GlassPane subsystem.

    A record looks like::

        {"ts": "2026-10-16T09:20:49.123+00:00", "lvl": "INFO", "src": "tier",
         "event": "tier_changed", "ctx": {"tier": "LIGHT", "phase": "IDLE"},
         "data": {"from": "FULL", "to": "LIGHT"}}

    PERF records add ``"ms"``. Records below the configured level are dropped.
    Use :func:`get_logger` rather than building instances in application code.

    Args:
        config: Level and directory; defaults to INFO in ``GLASSPANE_LOG_DIR``
            or ``logs/``.
    """

    def __init__(self, config: Optional[LoggingConfig] = None) -> None:
        config = config or LoggingConfig()
        self._lock = threading.Lock()
        self._min_rank = level_rank(config.level)
        self._log_dir = _resolve_dir(config)
        self._context: Dict[str, Any] = {"tier": None, "phase": None}
        self._file: Optional[IO[str]] = None
        self._file_path: Optional[Path] = None
        self.info("system", "log_opened", {
            "version": __version__,
            "level": config.level.upper(),
            "pid": os.getpid(),
        })

    # ──────────────────────────────────────────
    # Configuration
    # ──────────────────────────────────────────

    def configure(self, config: LoggingConfig) -> None:
        """
        Apply a new level and directory in place.

        Modules keep the reference they took at import time, so the singleton
        is reconfigured rather than replaced. Switching directories closes the
        current file; the next record opens one in the new directory.
        """
        rank = level_rank(config.level)
        log_dir = _resolve_dir(config)
        with self._lock:
            self._min_rank = rank
            if log_dir != self._log_dir:
                self._close_locked()
                self._log_dir = log_dir
        self.info("system", "log_configured", {
            "level": config.level.upper(),
            "log_dir": str(log_dir),
        })

    def bind(self, **context: Any) -> None:
        """Update the ``ctx`` block stamped onto every later record."""
        with self._lock:
            self._context.update(context)

    @property
    def context(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._context)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def enabled_for(self, level: str) -> bool:
        return level_rank(level) >= self._min_rank

    # ──────────────────────────────────────────
    # Records
    # ──────────────────────────────────────────

    def info(self, src: str, event: str, data: Optional[dict] = None) -> None:
        self._emit("INFO", src, event, data)

    def warn(self, src: str, event: str, data: Optional[dict] = None) -> None:
        self._emit("WARN", src, event, data)

    def error(self, src: str, event: str, data: Optional[dict] = None) -> None:
        self._emit("ERROR", src, event, data)

    def critical(self, src: str, event: str, data: Optional[dict] = None) -> None:
        self._emit("CRITICAL", src, event, data)

    def perf(self, src: str, event: str, latency_ms: float, data: Optional[dict] = None) -> None:
        """Record how long *event* took, in milliseconds."""
        self._emit("PERF", src, event, data, latency_ms)

    def flush(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        """Close the current file; the next record reopens it."""
        with self._lock:
            self._close_locked()

    # ──────────────────────────────────────────
    # Internal helpers
    # ──────────────────────────────────────────

    def _emit(
        self,
        level: str,
        src: str,
        event: str,
        data: Optional[dict],
        latency_ms: Optional[float] = None,
    ) -> None:
        if _RANKS[level] < self._min_rank:
            return
        now = datetime.now(tz=timezone.utc)
        with self._lock:
            record: Dict[str, Any] = {
                "ts": now.isoformat(timespec="milliseconds"),
                "lvl": level,
                "src": src,
                "event": event,
                "ctx": dict(self._context),
                "data": data or {},
            }
            if latency_ms is not None:
                record["ms"] = round(latency_ms, 3)
            line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str)
            self._file_for(now).write(line + "\n")

        if level in _MIRROR:
            _stdlib.log(_MIRROR[level], "[%s] %s | %s", src, event, data or {})

    def _file_for(self, now: datetime) -> IO[str]:
        """Return the open file for *now*'s date. Lock must be held."""
        path = self._log_dir / f"glasspane-{now:%Y%m%d}.jsonl"
        if self._file is None or path != self._file_path:
            self._close_locked()
            self._log_dir.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "a", encoding="utf-8", buffering=1)
            self._file_path = path
        return self._file

    def _close_locked(self) -> None:
        if self._file is not None:
            self._file.close()
        self._file = None
        self._file_path = None


# ──────────────────────────────────────────────────────────────
# Singleton accessor
# ──────────────────────────────────────────────────────────────

def get_logger() -> EventLogger:
    """Return the process-wide :class:`EventLogger`, creating it on first use."""
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                _instance = EventLogger()
    return _instance


def configure_logger(config: LoggingConfig) -> EventLogger:
    """
    Apply *config* to the process-wide logger and return it.

    Called from ``main.py`` once the configuration is loaded.
    """
    log = get_logger()
    log.configure(config)
    return log
