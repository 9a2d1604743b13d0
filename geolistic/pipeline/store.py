"""Bulk store implementations for the indexing pipeline."""

from __future__ import annotations

import logging
from typing import Any

from elasticsearch import ApiError, Elasticsearch, TransportError

from geolistic.common.errors import ConfigError, PipelineError, SchemaMissingError, StoreError
from geolistic.common.models import ElasticTarget

INDEX_MISSING_MARKERS = ("index is missing", "index_not_found_exception", "no such index")
TYPE_MISSING_MARKERS = ("type is missing", "type_missing_exception", "no such type")


def classify_store_error(message: str, target: ElasticTarget) -> PipelineError:
    """Turn a store error text into a typed error.

    Missing index or missing type becomes :class:`SchemaMissingError`, anything
    else :class:`StoreError`.
    """
    lowered = message.lower()
    index_missing = any(marker in lowered for marker in INDEX_MISSING_MARKERS)
    type_missing = any(marker in lowered for marker in TYPE_MISSING_MARKERS)

    if not (index_missing or type_missing):
        return StoreError(f"Bulk commit to {target.path} failed: {message}")

    details = []
    if index_missing:
        details.append(f"['{target.index}' no such index]")
    if type_missing:
        details.append(f"['{target.doc_type or '_doc'}' no such type]")
    return SchemaMissingError(
        "Missing schema in elastic: " + " ".join(details),
        missing_index=target.index if index_missing else None,
        missing_type=(target.doc_type or "_doc") if type_missing else None,
    )


def _first_item_error(response: Any) -> str | None:
    for item in response.get("items") or []:
        for result in item.values():
            error = result.get("error")
            if not error:
                continue
            if isinstance(error, dict):
                return f"{error.get('type')}: {error.get('reason')}"
            return str(error)
    return None


class ElasticsearchStore:
    def __init__(self, client: Any, target: ElasticTarget) -> None:
        if client is None or not callable(getattr(client, "bulk", None)):
            raise ConfigError("elastic client is not a valid client object")
        self.client = client
        self.target = target

    def bulk(self, operations: list[dict[str, Any]]) -> None:
        try:
            response = self.client.bulk(operations=operations)
        except (ApiError, TransportError) as exc:
            raise classify_store_error(str(exc), self.target) from exc

        if response.get("errors"):
            raise classify_store_error(_first_item_error(response) or "bulk response reported errors", self.target)

    def ping(self) -> None:
        try:
            reachable = self.client.ping()
        except (ApiError, TransportError) as exc:
            raise StoreError(f"Error connecting to elastic: {exc}") from exc
        if not reachable:
            raise StoreError("Error connecting to elastic, check your config")

    def close(self) -> None:
        self.client.close()


class NullStore:
    """Acknowledges every commit without sending anything."""

    def __init__(self) -> None:
        self.commits = 0

    def bulk(self, operations: list[dict[str, Any]]) -> None:
        self.commits += 1

    def ping(self) -> None:
        return None

    def close(self) -> None:
        return None


def build_elastic_store(url: str, target: ElasticTarget, *, api_key: str | None = None) -> ElasticsearchStore:
    logging.getLogger("elastic_transport").setLevel(logging.WARNING)
    client = Elasticsearch(url, api_key=api_key, request_timeout=60)
    return ElasticsearchStore(client, target)
