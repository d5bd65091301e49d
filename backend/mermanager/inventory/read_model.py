import logging
from typing import Callable, Dict, List, Optional, Tuple

from mermanager.models.auth import User
from mermanager.models.listing import Listing
from mermanager.store.base import DocumentStore

logger = logging.getLogger(__name__)


class InventoryReadModel:
    """
    In-memory mirror of the signed-in user's listings.

    Each snapshot from the store replaces the held set wholesale, so the
    dashboard and the list view always project the same data.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.owner_id: Optional[str] = None
        self._listings: Tuple[Listing, ...] = ()
        self._by_id: Dict[str, Listing] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._generation = 0
        self._listeners: List[Callable[[Tuple[Listing, ...]], None]] = []

    @property
    def listings(self) -> Tuple[Listing, ...]:
        return self._listings

    def get(self, listing_id: str) -> Optional[Listing]:
        return self._by_id.get(listing_id)

    def add_listener(self, listener: Callable[[Tuple[Listing, ...]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def bind(self, user: Optional[User]) -> None:
        """Follow the listings of user, dropping any previous subscription first."""
        self.unbind()
        if user is None:
            self._replace([])
            return

        self.owner_id = user.uid
        generation = self._generation

        def on_snapshot(snapshot: List[Listing]) -> None:
            # A torn-down subscription may still deliver once; ignore it
            if generation != self._generation:
                return
            self._replace(snapshot)

        self._unsubscribe = self.store.subscribe_query(user.uid, on_snapshot, "updated_at", True)
        logger.debug("Read model bound to %s", user.uid)

    def unbind(self) -> None:
        self._generation += 1
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.owner_id = None

    def _replace(self, snapshot: List[Listing]) -> None:
        self._listings = tuple(snapshot)
        self._by_id = {listing.id: listing for listing in snapshot}
        logger.debug("Read model holds %d listings", len(self._listings))
        for listener in list(self._listeners):
            listener(self._listings)
