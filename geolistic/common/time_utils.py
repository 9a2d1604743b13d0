"""UTC-focused helpers for run metadata."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def elapsed_ms(started_at: float) -> int:
    """Milliseconds since a ``time.monotonic()`` reading."""
    return int((time.monotonic() - started_at) * 1000)


def generate_run_id(now: datetime | None = None) -> str:
    """``run-<UTC timestamp>``; lexical order follows start time."""
    now = now or datetime.now(tz=timezone.utc)
    return f"run-{now:%Y%m%dT%H%M%S%f}Z"
