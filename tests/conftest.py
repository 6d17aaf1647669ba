"""
tests/conftest.py — Shared pytest configuration.

Points the JSONL event logger at a throwaway directory before any glasspane
module creates the singleton, so test runs never write into ``logs/``.
"""

from __future__ import annotations

import os
import tempfile

os.environ.setdefault("GLASSPANE_LOG_DIR", tempfile.mkdtemp(prefix="glasspane-test-logs-"))
