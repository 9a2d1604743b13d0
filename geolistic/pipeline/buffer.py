"""Commit buffer pairing bulk index directives with their documents."""

from __future__ import annotations

from typing import Any, Protocol

from geolistic.common.errors import InvalidArgumentError
from geolistic.common.models import ElasticTarget


class BulkStore(Protocol):
    def bulk(self, operations: list[dict[str, Any]]) -> None: ...


def index_directive(target: ElasticTarget, doc_id: str) -> dict[str, dict[str, str]]:
    directive = {"_index": target.index, "_id": doc_id}
    if target.doc_type:
        directive["_type"] = target.doc_type
    return {"index": directive}


class BulkBatch:
    """Ordered ``directive, document, directive, document, ...`` operations.

    ``capacity_records`` counts records; every record fills two slots.
    """

    def __init__(self, target: ElasticTarget, capacity_records: int) -> None:
        if not isinstance(capacity_records, int) or isinstance(capacity_records, bool) or capacity_records < 1:
            raise InvalidArgumentError(f"Buffer size must be a positive integer, got {capacity_records!r}")
        self.target = target
        self.capacity = capacity_records * 2
        self._operations: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._operations)

    @property
    def records(self) -> int:
        return len(self._operations) // 2

    @property
    def is_full(self) -> bool:
        return len(self._operations) >= self.capacity

    def append(self, doc_id: str, document: dict[str, Any]) -> None:
        self._operations.append(index_directive(self.target, doc_id))
        self._operations.append(document)

    def operations(self) -> list[dict[str, Any]]:
        return list(self._operations)

    def drain(self, store: BulkStore) -> int:
        """Commit the pending operations and clear them once acknowledged.

        A failed commit propagates and leaves the batch untouched.
        """
        committed = self.records
        store.bulk(self.operations())
        self._operations.clear()
        return committed
