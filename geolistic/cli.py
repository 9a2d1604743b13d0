"""CLI entrypoint for downloading and indexing GeoNames country files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from geolistic.common.config_loader import GeolisticConfig, load_config
from geolistic.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS, TEST_COUNTRY_CODE
from geolistic.common.errors import PipelineError
from geolistic.common.http import HttpClient
from geolistic.common.logging import build_logger, close_logger, log_event
from geolistic.common.models import IndexResult
from geolistic.common.time_utils import generate_run_id
from geolistic.harvest.countries import get_countries, list_countries
from geolistic.harvest.downloader import HttpArchiveFetcher, download_country_files
from geolistic.pipeline.indexer import IndexingPipeline, IndexOptions, validate_country_code
from geolistic.pipeline.orchestrator import index_countries
from geolistic.pipeline.reports import write_run_summary
from geolistic.pipeline.store import NullStore, build_elastic_store

EPILOG = """feature classes (see http://www.geonames.org/export/codes.html):
  A  country, state, region
  P  city, village
  ...

example: geolistic add NO --class P --class A"""


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=__doc__,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("countries", nargs="*", help="ISO-2 country codes; all catalog countries when omitted")
    parser.add_argument("--class", dest="class_filters", action="append", default=None)
    parser.add_argument("--buffer", dest="buffer_records", type=int, default=None)
    parser.add_argument("--all-columns", action="store_true")
    parser.add_argument("--config", default="./geolistic.yml")
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--elastic-url", default=None)
    parser.add_argument("--elastic-path", default=None)
    parser.add_argument("--parallel-downloads", type=int, default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {"elastic": {}, "indexing": {}}
    if args.data_dir:
        overrides["data_path"] = args.data_dir
    if args.parallel_downloads is not None:
        overrides["parallel_downloads"] = args.parallel_downloads
    if args.elastic_url:
        overrides["elastic"]["url"] = args.elastic_url
    if args.elastic_path:
        overrides["elastic"]["path"] = args.elastic_path
    if args.buffer_records is not None:
        overrides["indexing"]["buffer_records"] = args.buffer_records
    if args.class_filters:
        overrides["indexing"]["class_filters"] = args.class_filters
    return overrides


def _progress_hook(logger: logging.Logger, run_id: str):
    started_at = time.monotonic()

    def report(records_processed: int) -> None:
        elapsed = max(time.monotonic() - started_at, 1e-6)
        log_event(
            logger,
            f"Processed {records_processed} records ({int(records_processed / elapsed)} records/sec)",
            run_id=run_id,
            stage="add",
            event="BUFFER_COMMIT",
            status="ok",
            records_processed=records_processed,
            duration_ms=int(elapsed * 1000),
        )

    return report


def _print_countries(client: HttpClient, config: GeolisticConfig, all_columns: bool) -> None:
    if all_columns:
        for record in get_countries(client, url_template=config.download_url):
            print(json.dumps(record.to_dict(), ensure_ascii=False, sort_keys=True))
        return
    for code in list_countries(client, url_template=config.download_url):
        print(code)


def _download(
    countries: list[str],
    client: HttpClient,
    config: GeolisticConfig,
    logger: logging.Logger,
    run_id: str,
) -> int:
    # The test code is served from the bundled fixture, never downloaded.
    codes = [code for code in countries if code != TEST_COUNTRY_CODE]
    return download_country_files(
        codes,
        config.data_path,
        HttpArchiveFetcher(client),
        url_template=config.download_url,
        parallelism=config.parallel_downloads,
        extract=True,
        logger=logger,
        run_id=run_id,
    )


def _add(
    countries: list[str],
    config: GeolisticConfig,
    logger: logging.Logger,
    run_id: str,
) -> tuple[IndexResult, dict[str, IndexResult]]:
    # Reject malformed codes before touching the cluster.
    for code in countries:
        if code != TEST_COUNTRY_CODE:
            validate_country_code(code)

    if all(code == TEST_COUNTRY_CODE for code in countries):
        store = NullStore()
    else:
        store = build_elastic_store(config.elastic_url, config.target, api_key=config.elastic_api_key)

    try:
        store.ping()
        pipeline = IndexingPipeline(store, config.data_path, config.target, logger=logger, run_id=run_id)
        options = IndexOptions(
            buffer_records=config.buffer_records,
            class_filters=config.class_filters,
            buffer_added=_progress_hook(logger, run_id),
        )
        per_country: dict[str, IndexResult] = {}
        totals = index_countries(countries, pipeline, options, logger=logger, run_id=run_id, per_country=per_country)
    finally:
        store.close()
    return totals, per_country


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    config = load_config(Path(args.config), overrides=_cli_overrides(args))
    logger = build_logger(run_id, data_dir=config.data_path, level=args.log_level)

    try:
        with HttpClient(timeout=config.timeout, retry=config.retry) as client:
            if args.command == "countries":
                _print_countries(client, config, args.all_columns)
                return EXIT_SUCCESS

            countries = list(args.countries) or list_countries(client, url_template=config.download_url)

            files_downloaded = None
            if args.command in ("download", "sync"):
                files_downloaded = _download(countries, client, config, logger, run_id)
                log_event(
                    logger,
                    f"{files_downloaded} files downloaded and extracted",
                    run_id=run_id,
                    stage="download",
                    event="RUN_END",
                    status="ok",
                )

            if args.command in ("add", "sync"):
                totals, per_country = _add(countries, config, logger, run_id)
                write_run_summary(
                    config.data_path,
                    run_id=run_id,
                    target_path=config.target.path,
                    per_country=per_country,
                    totals=totals,
                    files_downloaded=files_downloaded,
                )
    except PipelineError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            run_id=run_id,
            stage=args.command,
            event="RUN_END",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    finally:
        close_logger(logger)

    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError as exc:
        print(f"geolistic: {exc}", file=sys.stderr)
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
