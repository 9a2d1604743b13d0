"""Streaming transform and bulk indexing of one country's GeoNames file."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator

from geolistic.common.constants import DEFAULT_BUFFER_RECORDS, FIXTURE_COUNTRY_CODE, TEST_COUNTRY_CODE
from geolistic.common.errors import InvalidArgumentError, NotFoundError, PipelineError
from geolistic.common.logging import log_event
from geolistic.common.models import ElasticTarget, IndexResult
from geolistic.common.time_utils import elapsed_ms
from geolistic.pipeline.buffer import BulkBatch, BulkStore
from geolistic.pipeline.fixtures import FIXTURE_DIR
from geolistic.pipeline.records import GEONAME_ID_INDEX, feature_class, iter_records, location_document
from geolistic.pipeline.store import NullStore


@dataclass(frozen=True)
class IndexOptions:
    buffer_records: int = DEFAULT_BUFFER_RECORDS
    class_filters: tuple[str, ...] = ()
    # Progress hook, called with the cumulative processed count after each commit.
    buffer_added: Callable[[int], None] | None = None


def validate_country_code(country_code: object) -> str:
    if not isinstance(country_code, str) or len(country_code) != 2:
        raise InvalidArgumentError(f"Invalid country code {country_code!r}, should be two char string")
    return country_code.upper()


class IndexingPipeline:
    """Index ``<data_path>/<CC>.txt`` into ``target`` through ``store``.

    Records are handled one at a time; whenever the commit buffer fills up the
    pipeline stops reading, commits, and only resumes once the store has
    acknowledged. A failed commit ends the run with the store's error.

    The reserved code ``"00"`` indexes the bundled ``NU`` sample through a
    :class:`NullStore` instead of ``store``.
    """

    def __init__(
        self,
        store: BulkStore,
        data_path: Path,
        target: ElasticTarget,
        *,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.store = store
        self.data_path = Path(data_path)
        self.target = target
        self.logger = logger
        self.run_id = run_id

    def source_path(self, country_code: str) -> Path:
        return self.data_path / f"{country_code}.txt"

    def fixture_pipeline(self) -> "IndexingPipeline":
        """Same target and logging, but the bundled sample file and a store that always acknowledges."""
        return IndexingPipeline(NullStore(), FIXTURE_DIR, self.target, logger=self.logger, run_id=self.run_id)

    def _read_rows(self, source: Iterable[str], country_code: str, path: Path) -> Iterator[list[str]]:
        try:
            yield from iter_records(source)
        except UnicodeDecodeError as exc:
            raise InvalidArgumentError(f"Datafile for {country_code} at {path} is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise NotFoundError(f"Could not read datafile for {country_code} at {path}: {exc}") from exc

    def _commit(self, batch: BulkBatch, counters: dict[str, int], options: IndexOptions) -> None:
        batch.drain(self.store)
        if options.buffer_added is not None:
            options.buffer_added(counters["processed"])

    def index(self, country_code: str, options: IndexOptions | None = None) -> IndexResult:
        options = options or IndexOptions()
        country_code = validate_country_code(country_code)
        if country_code == TEST_COUNTRY_CODE:
            return self.fixture_pipeline().index(FIXTURE_COUNTRY_CODE, options)

        batch = BulkBatch(self.target, options.buffer_records)
        class_filters = set(options.class_filters or ())
        counters = {"processed": 0, "added": 0}

        path = self.source_path(country_code)
        try:
            source = path.open("r", encoding="utf-8", newline="")
        except FileNotFoundError as exc:
            raise NotFoundError(f"Missing datafile for {country_code} at {path}") from exc
        except OSError as exc:
            raise NotFoundError(f"Could not open datafile for {country_code} at {path}: {exc}") from exc

        started_at = time.monotonic()
        try:
            with source:
                for row in self._read_rows(source, country_code, path):
                    counters["processed"] += 1
                    if class_filters and feature_class(row) not in class_filters:
                        continue

                    batch.append(row[GEONAME_ID_INDEX], location_document(row))
                    counters["added"] += 1

                    if batch.is_full:
                        self._commit(batch, counters, options)

                if len(batch):
                    self._commit(batch, counters, options)
        except PipelineError as exc:
            log_event(
                self.logger,
                f"indexing failed for {country_code}: {exc}",
                run_id=self.run_id,
                stage="add",
                country=country_code,
                event="COUNTRY_FAIL",
                status="error",
                records_processed=counters["processed"],
                records_added=counters["added"],
                error_code=exc.error_code,
            )
            raise

        result = IndexResult(processed=counters["processed"], added=counters["added"])
        log_event(
            self.logger,
            f"{country_code} finished with {result.processed} processed and {result.added} added records",
            run_id=self.run_id,
            stage="add",
            country=country_code,
            event="COUNTRY_END",
            status="ok",
            records_processed=result.processed,
            records_added=result.added,
            duration_ms=elapsed_ms(started_at),
        )
        return result
