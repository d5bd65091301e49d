"""
Document store contract tests, run against the SQL and local backends.
"""

import threading

import pytest

from mermanager.errors import StoreError
from mermanager.store.factory import create_store
from mermanager.store.local_store import LocalDocumentStore
from mermanager.store.sql_store import SQLDocumentStore
from support import listing_data


class Recorder:
    def __init__(self):
        self.snapshots = []

    def __call__(self, snapshot):
        self.snapshots.append(snapshot)

    @property
    def latest(self):
        return self.snapshots[-1]


class TestCreate:
    def test_create_adds_exactly_one_record(self, store):
        recorder = Recorder()
        store.subscribe_query("user-a", recorder)
        before = len(recorder.latest)

        listing_id = store.create(listing_data())

        assert len(recorder.latest) == before + 1
        created = recorder.latest[0]
        assert created.id == listing_id
        assert created.title == "NIKE スニーカー 27cm"
        assert created.price == 5000
        assert created.created_at == created.updated_at

    def test_ids_are_unique(self, store):
        ids = {store.create(listing_data()) for _ in range(20)}
        assert len(ids) == 20

    def test_caller_supplied_id_is_ignored(self, store):
        listing_id = store.create(listing_data(id="chosen"))
        assert listing_id != "chosen"

    @pytest.mark.parametrize("missing", ["owner_id", "created_at", "updated_at"])
    def test_create_requires_owner_and_timestamps(self, store, missing):
        data = listing_data()
        del data[missing]
        with pytest.raises(StoreError):
            store.create(data)

    def test_create_rejects_updated_before_created(self, store):
        with pytest.raises(StoreError):
            store.create(listing_data(created_at=2000, updated_at=1000))

    def test_create_rejects_negative_price(self, store):
        with pytest.raises(StoreError):
            store.create(listing_data(price=-1))


class TestUpdate:
    def test_update_preserves_identity_and_merges(self, store):
        listing_id = store.create(listing_data())
        before = store.get(listing_id)

        store.update(listing_id, {"price": 4500, "updated_at": before.updated_at + 10})

        after = store.get(listing_id)
        assert after.id == before.id
        assert after.owner_id == before.owner_id
        assert after.created_at == before.created_at
        assert after.updated_at >= before.updated_at
        assert after.price == 4500
        assert after.title == before.title
        assert after.cost == before.cost

    def test_update_missing_listing_raises(self, store):
        with pytest.raises(StoreError):
            store.update("nope", {"price": 1})

    @pytest.mark.parametrize("field, value", [("owner_id", "intruder"), ("id", "other"), ("created_at", 1)])
    def test_update_cannot_change_immutable_fields(self, store, field, value):
        listing_id = store.create(listing_data())
        with pytest.raises(StoreError):
            store.update(listing_id, {field: value})
        assert store.get(listing_id).owner_id == "user-a"

    def test_concurrent_updates_resolve_to_one_payload(self, store):
        listing_id = store.create(listing_data())
        recorder = Recorder()
        store.subscribe_query("user-a", recorder)
        barrier = threading.Barrier(2)

        def write(price, title):
            barrier.wait()
            store.update(listing_id, {"price": price, "title": title, "updated_at": 1_800_000_000_000})

        threads = [
            threading.Thread(target=write, args=(1111, "first")),
            threading.Thread(target=write, args=(2222, "second")),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = store.get(listing_id)
        assert (final.price, final.title) in {(1111, "first"), (2222, "second")}
        # The last delivered snapshot reflects whichever write committed last
        assert recorder.latest[0].price == final.price


class TestDelete:
    def test_delete_removes_only_that_listing(self, store):
        keep = store.create(listing_data(title="keep"))
        drop = store.create(listing_data(title="drop"))

        store.delete(drop)

        ids = [listing.id for listing in store.query("user-a")]
        assert ids == [keep]

    def test_delete_unknown_is_noop(self, store):
        recorder = Recorder()
        store.subscribe_query("user-a", recorder)
        store.delete("missing")
        assert len(recorder.snapshots) == 1


class TestSubscriptions:
    def test_fires_immediately_and_after_each_mutation(self, store):
        recorder = Recorder()
        store.subscribe_query("user-a", recorder)
        assert recorder.snapshots == [[]]

        listing_id = store.create(listing_data())
        store.update(listing_id, {"status": "SOLD", "updated_at": 1_700_000_000_500})
        store.delete(listing_id)

        assert [len(s) for s in recorder.snapshots] == [0, 1, 1, 0]
        assert recorder.snapshots[2][0].status == "SOLD"

    def test_unsubscribe_stops_delivery(self, store):
        recorder = Recorder()
        unsubscribe = store.subscribe_query("user-a", recorder)
        unsubscribe()
        store.create(listing_data())
        assert len(recorder.snapshots) == 1
        assert store.subscription_count == 0

    def test_filters_by_owner(self, store):
        recorder = Recorder()
        store.subscribe_query("user-a", recorder)

        store.create(listing_data(owner_id="user-b"))
        store.create(listing_data(owner_id="user-a"))

        assert all(listing.owner_id == "user-a" for listing in recorder.latest)
        assert len(recorder.latest) == 1

    def test_orders_by_updated_at_descending(self, store):
        for stamp in (3000, 1000, 2000):
            store.create(listing_data(created_at=500, updated_at=stamp))

        recorder = Recorder()
        store.subscribe_query("user-a", recorder)

        assert [l.updated_at for l in recorder.latest] == [3000, 2000, 1000]

    def test_ascending_order_is_supported(self, store):
        for stamp in (3000, 1000, 2000):
            store.create(listing_data(created_at=500, updated_at=stamp))

        listings = store.query("user-a", descending=False)

        assert [l.updated_at for l in listings] == [1000, 2000, 3000]

    def test_unknown_order_field_is_rejected(self, store):
        with pytest.raises(StoreError):
            store.subscribe_query("user-a", Recorder(), order_by="nonsense")
        assert store.subscription_count == 0

    def test_query_rejects_unknown_order_field(self, store):
        store.create(listing_data())
        with pytest.raises(StoreError):
            store.query("user-a", order_by="nonsense")

    def test_poll_without_outside_writes_is_quiet(self, store):
        recorder = Recorder()
        store.subscribe_query("user-a", recorder)

        assert store.poll() is False
        assert len(recorder.snapshots) == 1


class TestFactory:
    def test_local_backend(self, tmp_path):
        assert isinstance(create_store("local", storage_dir=str(tmp_path)), LocalDocumentStore)

    def test_sql_backend(self, engine):
        store = create_store("sql", engine=engine)
        assert isinstance(store, SQLDocumentStore)
        assert store.engine is engine

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_store("mongo")
