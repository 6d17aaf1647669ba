"""
main.py — GlassPane application entry point.

Parses CLI args, loads configuration, and runs the overlay core headless,
behind the FastAPI web bridge, or through a scripted gesture demo.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading
import traceback

# ──────────────────────────────────────────────────────────────
# ASCII banner
# ──────────────────────────────────────────────────────────────

_BANNER = r"""
   ____ _               ____
  / ___| | __ _ ___ ___|  _ \ __ _ _ __   ___
 | |  _| |/ _` / __/ __| |_) / _` | '_ \ / _ \
 | |_| | | (_| \__ \__ \  __/ (_| | | | |  __/
  \____|_|\__,_|___/___/_|   \__,_|_| |_|\___|

        GlassPane  v1.0
  Adaptive overlay tiers + swipe-to-dismiss
"""


# ──────────────────────────────────────────────────────────────
# Argument parsing
# ──────────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="glasspane",
        description="GlassPane — adaptive resource tiers and swipe-to-dismiss gestures",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to glasspane.yaml (default: GLASSPANE_CONFIG or config/glasspane.yaml)",
    )
    p.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default=None,
        help="Minimum log level (default: logging.level from the config file)",
    )
    p.add_argument(
        "--web",
        action="store_true",
        help="Start the FastAPI web bridge",
    )
    p.add_argument(
        "--host",
        default=None,
        help="Bind address for the web bridge (default from config)",
    )
    p.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the web bridge (default from config)",
    )
    p.add_argument(
        "--demo",
        choices=["dismiss", "snapback", "back"],
        default=None,
        help="Run a scripted gesture sequence and exit",
    )
    return p


# ──────────────────────────────────────────────────────────────
# Pre-flight checks
# ──────────────────────────────────────────────────────────────

def _check_python() -> None:
    """Abort if Python version is below 3.10."""
    if sys.version_info < (3, 10):
        print(
            f"[ERROR] Python 3.10+ required; running {sys.version}",
            file=sys.stderr,
        )
        sys.exit(1)
    print(f"[OK] Python {sys.version.split()[0]}")


# ──────────────────────────────────────────────────────────────
# Headless entry point
# ──────────────────────────────────────────────────────────────

def _run_headless(core) -> int:
    """Sample telemetry and print tier changes until interrupted."""
    from glasspane.service import ON_TIER_CHANGED

    core.subscribe(
        ON_TIER_CHANGED,
        lambda d: print(f"[TIER] {d['from']} → {d['tier']}  {d['capabilities']}"),
    )
    print(f"[INFO] Initial tier: {core.tier.name}")
    core.start()
    stop = threading.Event()
    try:
        stop.wait()
    except KeyboardInterrupt:
        pass
    finally:
        core.stop()
    return 0


# ──────────────────────────────────────────────────────────────
# Web entry point
# ──────────────────────────────────────────────────────────────

def _run_web(core, host: str, port: int) -> int:
    """Start telemetry sampling and serve the web bridge in the main thread."""
    from glasspane.web import start_web_server

    core.start()
    print(f"[INFO] Web bridge → http://{host}:{port}/state")
    print("       Press Ctrl-C to stop.")

    try:
        start_web_server(core, host=host, port=port)
    except KeyboardInterrupt:
        pass
    finally:
        core.stop()
    return 0


# ──────────────────────────────────────────────────────────────
# Demo sequences
# ──────────────────────────────────────────────────────────────

def _print_progress(d) -> None:
    print(f"[GESTURE] edge={d['edge']:<6} progress={d['progress']:.2f} "
          f"committed={d['committed']} dismiss={d['dismiss_triggered']}")


def _run_demo(core, name: str) -> int:
    """Drive one scripted gesture through the core and report the result."""
    from glasspane.gestures.back import BackEvent
    from glasspane.gestures.types import GestureEdge
    from glasspane.service import ON_DISMISS, ON_GESTURE_PROGRESS

    core.subscribe(ON_GESTURE_PROGRESS, _print_progress)
    core.subscribe(ON_DISMISS, lambda d: print(f"[DISMISS] panel dismissed (#{d['count']})"))

    g = core.config.gesture
    y = 500.0
    if name == "dismiss":
        # Left edge, pulled well past the dismiss distance
        core.pointer.down(g.edge_zone_px / 4, y)
        for _ in range(4):
            core.pointer.move_by(g.dismiss_distance_px / 2, 0)
        core.pointer.release()
    elif name == "snapback":
        # Right edge, committed but released short of the threshold
        core.pointer.down(g.viewport_width - g.edge_zone_px / 4, y)
        core.pointer.move_by(-(g.commit_distance_px + 5), 0)
        core.pointer.release()
    else:
        async def _events():
            for i in range(1, 6):
                yield BackEvent(GestureEdge.LEFT, i / 5)
                await asyncio.sleep(0.02)

        asyncio.run(core.back.collect(_events()))

    if core.gesture.dismiss_triggered:
        core.machine.settle()
    print(f"[INFO] Demo '{name}' finished — dismissals: {core.dismiss_count}")
    core.stop()
    return 0


# ──────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────

def main() -> int:
    """Application entry point. Returns process exit code."""
    print(_BANNER)

    parser = _build_parser()
    args = parser.parse_args()

    # 1. Python version check
    _check_python()

    # 2. Configuration errors are fatal
    from glasspane.core.config import load_config
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    # 3. Log level: --log-level wins over logging.level from the config file
    import logging
    from dataclasses import replace
    level = (args.log_level or config.logging.level).upper()
    logging.basicConfig(level="WARNING" if level == "WARN" else level)

    # 4. Event log (honours logging.level and logging.log_dir) and startup record
    from glasspane.core.logger import configure_logger
    log = configure_logger(replace(config.logging, level=level))
    log.info("main", "args_parsed", {
        "config": args.config,
        "web": args.web,
        "demo": args.demo,
        "log_level": level,
    })

    # 5. Build the core
    from glasspane.service import OverlayCore
    core = OverlayCore(config)

    # 6. Launch
    exit_code = 0
    try:
        if args.demo:
            print(f"[INFO] Running demo '{args.demo}'")
            exit_code = _run_demo(core, args.demo)
        elif args.web:
            host = args.host or config.web.host
            port = args.port or config.web.port
            exit_code = _run_web(core, host, port)
        else:
            print("[INFO] Running headless — Ctrl-C to stop")
            exit_code = _run_headless(core)
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted — shutting down…")
        core.stop()
    except Exception:                              # noqa: BLE001
        tb = traceback.format_exc()
        print(tb, file=sys.stderr)
        log.critical("main", "unhandled_exception", {"traceback": tb})
        exit_code = 1
    finally:
        log.flush()

    print(f"[INFO] GlassPane exited with code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
