"""Entry point for `python -m kubepulse`.

Usage:
    python -m kubepulse
    uv run python -m kubepulse
"""

from __future__ import annotations

from kubepulse.app import run

run()
