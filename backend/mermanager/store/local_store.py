import logging
import secrets
import string
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from mermanager.errors import StoreError
from mermanager.models.listing import Listing
from mermanager.store.base import DocumentStore
from mermanager.store.local_storage import ITEMS_KEY, NOTIFY_KEY, LocalStorage

logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 9


class LocalDocumentStore(DocumentStore):
    """
    Listing collection kept as one JSON array in local storage.

    Every write bumps NOTIFY_KEY so other processes sharing the directory
    can refresh their subscribers by calling poll().
    """

    def __init__(self, storage: LocalStorage):
        super().__init__()
        self.storage = storage
        self.storage.get_item(NOTIFY_KEY)
        self.storage.add_listener(self._on_storage_change)

    def _read_items(self) -> List[Dict[str, Any]]:
        try:
            return self.storage.get_json(ITEMS_KEY, default=[])
        except ValueError as e:
            raise StoreError(f"Stored listings are not valid JSON: {e}") from e

    def _write_items(self, items: List[Dict[str, Any]]) -> None:
        try:
            self.storage.set_json(ITEMS_KEY, items)
            self.storage.set_item(NOTIFY_KEY, str(time.time_ns()))
        except OSError as e:
            raise StoreError(f"Failed to write listings: {e}") from e

    def _new_id(self, taken) -> str:
        while True:
            candidate = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if candidate not in taken:
                return candidate

    def _to_listing(self, item: Dict[str, Any]) -> Listing:
        try:
            return Listing.model_validate(item)
        except ValidationError as e:
            raise StoreError(f"Stored listing {item.get('id')} is invalid: {e}") from e

    def _load_owned(self, owner_id: str) -> List[Listing]:
        return [self._to_listing(item) for item in self._read_items() if item.get("owner_id") == owner_id]

    def get(self, listing_id: str) -> Optional[Listing]:
        for item in self._read_items():
            if item.get("id") == listing_id:
                return self._to_listing(item)
        return None

    def _insert(self, data: Dict[str, Any]) -> str:
        items = self._read_items()
        listing_id = self._new_id({item.get("id") for item in items})
        try:
            record = Listing.model_validate({**data, "id": listing_id})
        except ValidationError as e:
            raise StoreError(f"Invalid listing: {e}") from e
        items.append(record.model_dump(mode="json"))
        self._write_items(items)
        return listing_id

    def _merge(self, listing_id: str, data: Dict[str, Any]) -> None:
        items = self._read_items()
        for index, item in enumerate(items):
            if item.get("id") == listing_id:
                try:
                    merged = Listing.model_validate({**item, **data})
                except ValidationError as e:
                    raise StoreError(f"Invalid listing: {e}") from e
                items[index] = merged.model_dump(mode="json")
                self._write_items(items)
                return
        raise StoreError(f"Listing not found: {listing_id}")

    def _remove(self, listing_id: str) -> bool:
        items = self._read_items()
        remaining = [item for item in items if item.get("id") != listing_id]
        if len(remaining) == len(items):
            return False
        self._write_items(remaining)
        return True

    def poll(self) -> bool:
        """Pick up writes made by other processes; True if subscribers were refreshed."""
        return NOTIFY_KEY in self.storage.poll()

    def _on_storage_change(self, key: str) -> None:
        if key == NOTIFY_KEY:
            logger.debug("Listings changed in another process, refreshing subscribers")
            self._notify()
