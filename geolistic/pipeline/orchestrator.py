"""Sequential multi-country indexing."""

from __future__ import annotations

import logging
from typing import Iterable

from geolistic.common.errors import PipelineError
from geolistic.common.logging import log_event
from geolistic.common.models import IndexResult
from geolistic.pipeline.indexer import IndexingPipeline, IndexOptions


def index_countries(
    countries: Iterable[str],
    pipeline: IndexingPipeline,
    options: IndexOptions | None = None,
    *,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
    per_country: dict[str, IndexResult] | None = None,
) -> IndexResult:
    """Index ``countries`` one after another and return the summed counters.

    Countries never run in parallel, so bulk commits to the shared store do
    not interleave. The first failure stops the sequence and is re-raised.
    """
    totals = IndexResult()
    for country_code in countries:
        log_event(
            logger,
            f"indexing {country_code}",
            run_id=run_id,
            stage="add",
            country=country_code,
            event="COUNTRY_START",
            status="ok",
        )
        try:
            result = pipeline.index(country_code, options)
        except PipelineError as exc:
            log_event(
                logger,
                f"stopping after failure on {country_code}",
                run_id=run_id,
                stage="add",
                country=country_code,
                event="RUN_END",
                status="error",
                error_code=exc.error_code,
            )
            raise

        if per_country is not None:
            per_country[country_code] = result
        totals = totals + result

    log_event(
        logger,
        f"All done with {totals.processed} processed and {totals.added} added records",
        run_id=run_id,
        stage="add",
        event="RUN_END",
        status="ok",
        records_processed=totals.processed,
        records_added=totals.added,
    )
    return totals
