import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from geolistic.common.logging import JsonLineFormatter, build_logger, close_logger, log_event
from geolistic.common.models import IndexResult
from geolistic.common.time_utils import elapsed_ms, generate_run_id


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_generate_run_id_sorts_by_start_time():
    earlier = generate_run_id(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))
    later = generate_run_id(datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc))

    assert earlier == "run-20240501T090000000000Z"
    assert earlier < later


def test_elapsed_ms_is_non_negative():
    assert elapsed_ms(time.monotonic()) >= 0


def test_index_result_addition():
    assert IndexResult(3, 1) + IndexResult(2, 2) == IndexResult(processed=5, added=3)
    assert IndexResult(3, 1).to_dict() == {"processed": 3, "added": 1}


def test_json_formatter_emits_stable_fields():
    record = logging.LogRecord("geolistic", logging.INFO, __file__, 1, "hello", None, None)
    record.country = "NO"
    record.records_processed = 12

    payload = json.loads(JsonLineFormatter().format(record))

    assert payload["message"] == "hello"
    assert payload["country"] == "NO"
    assert payload["records_processed"] == 12
    assert payload["error_code"] is None


def test_build_logger_writes_json_lines(tmp_path: Path):
    logger = build_logger("run-log", tmp_path)
    log_event(logger, "indexing NO", run_id="run-log", country="NO", event="COUNTRY_START", status="ok")
    close_logger(logger)

    lines = (tmp_path / "run_meta" / "run-log.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["event"] == "COUNTRY_START"


def test_log_event_without_logger_is_a_no_op():
    log_event(None, "ignored", status="ok")
