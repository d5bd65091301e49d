"""
Local storage layout and cross-process change notification.
"""

import json

import pytest

from mermanager.errors import StoreError
from mermanager.store.local_storage import ITEMS_KEY, NOTIFY_KEY, LocalStorage
from mermanager.store.local_store import ID_LENGTH, LocalDocumentStore
from support import listing_data


def test_items_are_one_json_array(local_storage, local_store):
    local_store.create(listing_data())
    local_store.create(listing_data(owner_id="user-b"))

    stored = json.loads((local_storage.directory / f"{ITEMS_KEY}.json").read_text(encoding="utf-8"))

    assert isinstance(stored, list)
    assert {item["owner_id"] for item in stored} == {"user-a", "user-b"}
    assert all(len(item["id"]) == ID_LENGTH for item in stored)


def test_write_bumps_notify_key(local_storage, local_store):
    assert local_storage.get_item(NOTIFY_KEY) is None
    local_store.create(listing_data())
    assert local_storage.get_item(NOTIFY_KEY) is not None


def test_data_survives_a_new_store_instance(local_storage, local_store):
    listing_id = local_store.create(listing_data())

    reopened = LocalDocumentStore(LocalStorage(str(local_storage.directory)))

    assert reopened.get(listing_id).title == "NIKE スニーカー 27cm"


def test_other_process_writes_reach_subscribers_on_poll(local_storage):
    ours = LocalDocumentStore(local_storage)
    theirs = LocalDocumentStore(LocalStorage(str(local_storage.directory)))
    snapshots = []
    ours.subscribe_query("user-a", snapshots.append)

    theirs.create(listing_data())
    assert len(snapshots) == 1

    assert ours.poll() is True
    assert len(snapshots) == 2
    assert len(snapshots[-1]) == 1


def test_poll_without_external_change_is_quiet(local_store):
    snapshots = []
    local_store.subscribe_query("user-a", snapshots.append)
    local_store.create(listing_data())

    assert local_store.poll() is False
    assert len(snapshots) == 2


def test_listener_can_be_removed(local_storage):
    other = LocalStorage(str(local_storage.directory))
    local_storage.get_item("custom")
    seen = []
    remove = local_storage.add_listener(seen.append)

    other.set_item("custom", "1")
    local_storage.poll()
    remove()
    other.set_item("custom", "2")
    local_storage.poll()

    assert seen == ["custom"]


def test_remove_item_is_idempotent(local_storage):
    local_storage.set_json("thing", {"a": 1})
    local_storage.remove_item("thing")
    local_storage.remove_item("thing")
    assert local_storage.get_json("thing", default="gone") == "gone"


def test_corrupt_stored_record_raises_store_error(local_storage, local_store):
    listing_id = local_store.create(listing_data())
    local_storage.set_json(ITEMS_KEY, [{"id": listing_id, "owner_id": "user-a", "price": "lots"}])

    with pytest.raises(StoreError):
        local_store.get(listing_id)
    with pytest.raises(StoreError):
        local_store.query("user-a")
