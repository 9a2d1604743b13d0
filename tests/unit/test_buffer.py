import pytest

from geolistic.common.errors import InvalidArgumentError, StoreError
from geolistic.common.models import ElasticTarget
from geolistic.pipeline.buffer import BulkBatch, index_directive


class RecordingStore:
    def __init__(self, fail: bool = False):
        self.calls: list[list[dict]] = []
        self.fail = fail

    def bulk(self, operations):
        self.calls.append(operations)
        if self.fail:
            raise StoreError("boom")


def test_index_directive_includes_type_only_when_configured():
    assert index_directive(ElasticTarget("geonames"), "1") == {"index": {"_index": "geonames", "_id": "1"}}
    assert index_directive(ElasticTarget("geos", "geo"), "1") == {
        "index": {"_index": "geos", "_id": "1", "_type": "geo"}
    }


def test_batch_pairs_directives_with_documents_and_fills_at_double_capacity():
    batch = BulkBatch(ElasticTarget("geonames"), 2)

    batch.append("1", {"name": "Alofi"})
    assert not batch.is_full
    batch.append("2", {"name": "Tuapa"})

    assert batch.is_full
    assert len(batch) == 4
    operations = batch.operations()
    assert operations[0]["index"]["_id"] == "1"
    assert operations[1] == {"name": "Alofi"}
    assert operations[2]["index"]["_id"] == "2"
    assert operations[3] == {"name": "Tuapa"}


def test_drain_commits_then_clears():
    store = RecordingStore()
    batch = BulkBatch(ElasticTarget("geonames"), 10)
    batch.append("1", {"name": "Alofi"})

    committed = batch.drain(store)

    assert committed == 1
    assert len(store.calls) == 1
    assert len(store.calls[0]) == 2
    assert len(batch) == 0


def test_failed_drain_keeps_pending_operations():
    batch = BulkBatch(ElasticTarget("geonames"), 10)
    batch.append("1", {"name": "Alofi"})

    with pytest.raises(StoreError):
        batch.drain(RecordingStore(fail=True))

    assert len(batch) == 2


@pytest.mark.parametrize("capacity", [0, -1, "10", True])
def test_batch_rejects_invalid_capacity(capacity):
    with pytest.raises(InvalidArgumentError):
        BulkBatch(ElasticTarget("geonames"), capacity)
