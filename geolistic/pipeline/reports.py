"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from geolistic.common.fs import write_json
from geolistic.common.models import IndexResult


def write_run_summary(
    data_dir: Path,
    *,
    run_id: str,
    target_path: str,
    per_country: dict[str, IndexResult],
    totals: IndexResult,
    files_downloaded: int | None = None,
) -> Path:
    summary_path = data_dir / "run_meta" / f"{run_id}_summary.json"
    payload = {
        "run_id": run_id,
        "status": "success",
        "target": target_path,
        "countries": list(per_country),
        "files_downloaded": files_downloaded,
        "totals": totals.to_dict(),
        "country_reports": {code: result.to_dict() for code, result in per_country.items()},
    }
    write_json(summary_path, payload)
    return summary_path
