"""Bundled GeoNames sample used for the reserved test country code."""

from __future__ import annotations

from pathlib import Path

# NU.txt: 109 records, 45 of feature class P.
FIXTURE_DIR = Path(__file__).resolve().parent.parent / "data"
