"""
CIVIC REPORTS - JSON Store Tests
"""

import json
import threading

from app.reports.models import JsonStore
from tests.conftest import make_report


class TestJsonStore:
    """list/get/put/update against the backing file."""

    def test_missing_file_is_created_empty(self, tmp_path):
        path = tmp_path / "nested" / "reports.json"
        s = JsonStore(path)
        assert s.list() == []
        assert json.loads(path.read_text()) == []

    def test_put_inserts_at_head(self, store):
        first = make_report(description="first")
        second = make_report(description="second")
        store.put(first)
        store.put(second)
        assert [r.id for r in store.list()] == [second.id, first.id]

    def test_put_upserts_in_place(self, store):
        a = make_report()
        b = make_report()
        store.put(a)
        store.put(b)
        store.put(a.model_copy(update={"description": "edited"}))
        listed = store.list()
        assert [r.id for r in listed] == [b.id, a.id]
        assert listed[1].description == "edited"

    def test_get_missing_returns_none(self, store):
        assert store.get("nope") is None

    def test_update_merges_only_given_fields(self, store):
        r = make_report(assignee="crew-7")
        store.put(r)
        updated = store.update(r.id, {"status": "acknowledged"})
        assert updated.status == "acknowledged"
        assert updated.assignee == "crew-7"
        assert updated.description == r.description
        assert store.get(r.id).status == "acknowledged"

    def test_update_never_touches_id_or_created_at(self, store):
        r = make_report()
        store.put(r)
        updated = store.update(r.id, {"id": "other", "createdAt": 1, "department": "Parks"})
        assert updated.id == r.id
        assert updated.createdAt == r.createdAt
        assert updated.department == "Parks"
        assert store.get("other") is None

    def test_update_missing_returns_none(self, store):
        assert store.update("ghost", {"status": "resolved"}) is None

    def test_reads_return_copies(self, store):
        r = make_report()
        store.put(r)
        copy = store.get(r.id)
        copy.status = "resolved"
        assert store.get(r.id).status == "submitted"

    def test_corrupt_file_treated_as_empty(self, store):
        store.file_path.parent.mkdir(parents=True, exist_ok=True)
        store.file_path.write_text("{not json")
        assert store.list() == []
        # Next write recovers the file
        r = make_report()
        store.put(r)
        assert [x.id for x in store.list()] == [r.id]

    def test_non_array_file_treated_as_empty(self, store):
        store.file_path.parent.mkdir(parents=True, exist_ok=True)
        store.file_path.write_text('{"id": "x"}')
        assert store.list() == []

    def test_invalid_records_are_hidden_from_reads(self, store):
        good = make_report()
        store.file_path.parent.mkdir(parents=True, exist_ok=True)
        store.file_path.write_text(json.dumps([{"id": "broken"}, good.model_dump()]))
        assert [r.id for r in store.list()] == [good.id]
        assert store.get("broken") is None

    def test_invalid_records_survive_rewrites(self, store):
        good = make_report()
        broken = {"id": "broken", "category": "volcano"}
        store.file_path.parent.mkdir(parents=True, exist_ok=True)
        store.file_path.write_text(json.dumps([broken, good.model_dump()]))

        fresh = make_report()
        store.put(fresh)
        store.update(good.id, {"status": "resolved"})

        on_disk = json.loads(store.file_path.read_text())
        assert broken in on_disk
        assert [item["id"] for item in on_disk] == [fresh.id, "broken", good.id]
        assert store.update("broken", {"status": "resolved"}) is None

    def test_write_leaves_no_temp_file(self, store):
        store.put(make_report())
        leftovers = [p.name for p in store.file_path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_concurrent_writers_never_drop_reports(self, store):
        reports = [make_report(description=f"report {i}") for i in range(30)]
        for r in reports:
            store.put(r)

        errors = []
        barrier = threading.Barrier(len(reports))

        def worker(report_id):
            try:
                barrier.wait()
                for status in ("acknowledged", "in_progress", "resolved"):
                    store.update(report_id, {"status": status})
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(r.id,)) for r in reports]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert sorted(r.id for r in store.list()) == sorted(r.id for r in reports)
        leftovers = [p.name for p in store.file_path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []
