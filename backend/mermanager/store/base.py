"""
Document store contract for the listing collection.

A store owns every write to the collection and pushes a full, ordered
snapshot of the matching listings to each subscription after every
committed mutation. Snapshots replace the subscriber's state wholesale,
never patch it.
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from mermanager.errors import StoreError
from mermanager.models.listing import Listing

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[Listing]], None]

REQUIRED_ON_CREATE = ("owner_id", "created_at", "updated_at")
IMMUTABLE_FIELDS = ("id", "owner_id", "created_at")


class Subscription:
    def __init__(self, owner_id: str, callback: SnapshotCallback, order_by: str, descending: bool):
        self.owner_id = owner_id
        self.callback = callback
        self.order_by = order_by
        self.descending = descending


def order_listings(listings: List[Listing], order_by: str, descending: bool) -> List[Listing]:
    return sorted(listings, key=lambda l: getattr(l, order_by), reverse=descending)


class DocumentStore(ABC):
    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    # -- backend hooks -------------------------------------------------

    @abstractmethod
    def _load_owned(self, owner_id: str) -> List[Listing]:
        """Return every listing whose owner_id equals owner_id, unordered."""

    @abstractmethod
    def get(self, listing_id: str) -> Optional[Listing]:
        ...

    @abstractmethod
    def _insert(self, data: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    def _merge(self, listing_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def _remove(self, listing_id: str) -> bool:
        ...

    # -- queries -------------------------------------------------------

    def query(self, owner_id: str, order_by: str = "updated_at", descending: bool = True) -> List[Listing]:
        if order_by not in Listing.model_fields:
            raise StoreError(f"Cannot order by unknown field: {order_by}")
        with self._lock:
            return order_listings(self._load_owned(owner_id), order_by, descending)

    def subscribe_query(
        self,
        owner_id: str,
        callback: SnapshotCallback,
        order_by: str = "updated_at",
        descending: bool = True,
    ) -> Callable[[], None]:
        """
        Watch the listings owned by owner_id.

        The callback fires once right away with the current snapshot and again
        after every mutation on the collection. Returns an unsubscribe function.
        """
        subscription = Subscription(owner_id, callback, order_by, descending)
        with self._lock:
            snapshot = self.query(owner_id, order_by, descending)
            key = next(self._ids)
            self._subscriptions[key] = subscription
        logger.debug("Subscription %s opened for owner %s", key, owner_id)
        callback(snapshot)

        def unsubscribe():
            with self._lock:
                if self._subscriptions.pop(key, None) is not None:
                    logger.debug("Subscription %s closed", key)

        return unsubscribe

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    # -- mutations -----------------------------------------------------

    def create(self, data: Dict[str, Any]) -> str:
        missing = [field for field in REQUIRED_ON_CREATE if data.get(field) in (None, "")]
        if missing:
            raise StoreError(f"Missing required fields: {', '.join(missing)}")
        if data["updated_at"] < data["created_at"]:
            raise StoreError("updated_at must not be earlier than created_at")

        payload = {k: v for k, v in data.items() if k != "id"}
        with self._lock:
            listing_id = self._insert(payload)
            logger.info("Created listing %s for owner %s", listing_id, payload["owner_id"])
            self._notify()
        return listing_id

    def update(self, listing_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            current = self.get(listing_id)
            if current is None:
                raise StoreError(f"Listing not found: {listing_id}")
            for field in IMMUTABLE_FIELDS:
                if field in data and data[field] != getattr(current, field):
                    raise StoreError(f"Field {field} cannot be changed")
            if data.get("updated_at") is not None and data["updated_at"] < current.created_at:
                raise StoreError("updated_at must not be earlier than created_at")

            payload = {k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}
            self._merge(listing_id, payload)
            logger.info("Updated listing %s (%s)", listing_id, ", ".join(sorted(payload)))
            self._notify()

    def delete(self, listing_id: str) -> None:
        with self._lock:
            if not self._remove(listing_id):
                logger.debug("Delete of unknown listing %s ignored", listing_id)
                return
            logger.info("Deleted listing %s", listing_id)
            self._notify()

    # -- notification --------------------------------------------------

    def poll(self) -> bool:
        """
        Refresh subscribers with writes made outside this process.

        Backends without a cross-process change channel have nothing to pick
        up and return False.
        """
        return False

    def _notify(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            deliveries = [
                (sub.callback, self.query(sub.owner_id, sub.order_by, sub.descending))
                for sub in subscriptions
            ]
        for callback, snapshot in deliveries:
            callback(snapshot)
