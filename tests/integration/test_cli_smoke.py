from __future__ import annotations

import json
from pathlib import Path

import pytest

from geolistic import cli
from geolistic.cli import parse_args, run_command
from geolistic.common.constants import EXIT_HARD_FAIL, EXIT_SUCCESS
from geolistic.common.models import DownloadJob


def _args(*argv: str, data_dir: Path, run_id: str = "run-test"):
    return parse_args(
        [
            *argv,
            "--config",
            str(data_dir / "absent.yml"),
            "--data-dir",
            str(data_dir),
            "--run-id",
            run_id,
        ]
    )


def _log_events(data_dir: Path, run_id: str) -> list[dict]:
    path = data_dir / "run_meta" / f"{run_id}.log.jsonl"
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.fixture(autouse=True)
def _no_env(monkeypatch):
    for name in ("DATAPATH", "ELASTIC_URL", "ELASTIC_PATH", "ELASTIC_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.integration
def test_add_test_country_indexes_fixture_and_writes_summary(tmp_path: Path):
    exit_code = run_command(_args("add", "00", data_dir=tmp_path))

    assert exit_code == EXIT_SUCCESS
    summary = json.loads((tmp_path / "run_meta" / "run-test_summary.json").read_text(encoding="utf-8"))
    assert summary["totals"] == {"processed": 109, "added": 109}
    events = [event["event"] for event in _log_events(tmp_path, "run-test")]
    assert "BUFFER_COMMIT" in events
    assert events[-1] == "RUN_END"


@pytest.mark.integration
def test_add_test_country_with_class_filter(tmp_path: Path):
    exit_code = run_command(_args("add", "00", "--class", "P", "--buffer", "10", data_dir=tmp_path))

    assert exit_code == EXIT_SUCCESS
    summary = json.loads((tmp_path / "run_meta" / "run-test_summary.json").read_text(encoding="utf-8"))
    assert summary["country_reports"]["00"] == {"processed": 109, "added": 45}
    commits = [event for event in _log_events(tmp_path, "run-test") if event["event"] == "BUFFER_COMMIT"]
    assert len(commits) == 5


@pytest.mark.integration
def test_invalid_country_code_is_a_hard_failure(tmp_path: Path):
    exit_code = run_command(_args("add", "00", "NOR", data_dir=tmp_path))

    assert exit_code == EXIT_HARD_FAIL
    assert not (tmp_path / "run_meta" / "run-test_summary.json").exists()
    last = _log_events(tmp_path, "run-test")[-1]
    assert last["error_code"] == "INVALID_ARGUMENT"


@pytest.mark.integration
def test_download_uses_configured_parallelism(monkeypatch, tmp_path: Path):
    jobs: list[DownloadJob] = []

    class FakeFetcher:
        def __init__(self, _client):
            pass

        def fetch(self, job: DownloadJob) -> Path:
            jobs.append(job)
            return job.target_dir / Path(job.url).name

    monkeypatch.setattr(cli, "HttpArchiveFetcher", FakeFetcher)

    exit_code = run_command(_args("download", "no", "se", "00", "--parallel-downloads", "5", data_dir=tmp_path))

    assert exit_code == EXIT_SUCCESS
    assert sorted(job.url.rsplit("/", 1)[-1] for job in jobs) == ["NO.zip", "SE.zip"]
    assert all(job.extract for job in jobs)
    waves = [event for event in _log_events(tmp_path, "run-test") if event["event"] == "WAVE_END"]
    assert len(waves) == 1


@pytest.mark.integration
def test_download_without_codes_reads_catalog(monkeypatch, tmp_path: Path):
    fetched: list[str] = []

    class FakeFetcher:
        def __init__(self, _client):
            pass

        def fetch(self, job: DownloadJob) -> Path:
            fetched.append(job.url)
            return job.target_dir / Path(job.url).name

    monkeypatch.setattr(cli, "HttpArchiveFetcher", FakeFetcher)
    monkeypatch.setattr(cli, "list_countries", lambda _client, url_template: ["AD", "AE", "AF"])

    exit_code = run_command(_args("download", data_dir=tmp_path))

    assert exit_code == EXIT_SUCCESS
    assert len(fetched) == 3
