"""
Listing editor state machine.

CLOSED -> OPEN_CREATE | OPEN_EDIT -> CLOSED. While open, the editor holds a
ListingDraft that lives exactly as long as one open session; closing for
any reason throws it away.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Optional

from mermanager.errors import OptimizationError, StoreError
from mermanager.inventory.records import edited_record, new_record
from mermanager.models.auth import User
from mermanager.models.listing import DEFAULT_CATEGORY, Listing, ListingStatus
from mermanager.services.listing_optimizer import ListingOptimizer
from mermanager.store.base import DocumentStore

logger = logging.getLogger(__name__)

DELETE_PROMPT = "本当に削除しますか？"


class EditorState(str, Enum):
    CLOSED = "closed"
    OPEN_CREATE = "open-create"
    OPEN_EDIT = "open-edit"


@dataclass
class ListingDraft:
    title: str = ""
    description: str = ""
    price: float = 0
    cost: float = 0
    status: ListingStatus = ListingStatus.ACTIVE
    category: str = DEFAULT_CATEGORY
    image_url: Optional[str] = None

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingDraft":
        return cls(
            title=listing.title,
            description=listing.description,
            price=listing.price,
            cost=listing.cost,
            status=listing.status,
            category=listing.category,
            image_url=listing.image_url,
        )

    def fields(self) -> dict:
        data = asdict(self)
        data["status"] = ListingStatus(self.status).value
        return data


class ListingEditor:
    def __init__(self, store: DocumentStore, optimizer: ListingOptimizer, confirm: Callable[[str], bool]):
        self.store = store
        self.optimizer = optimizer
        self.confirm = confirm
        self.state = EditorState.CLOSED
        self.draft: Optional[ListingDraft] = None
        self.listing_id: Optional[str] = None
        self.session = 0
        self.is_optimizing = False
        self._base_updated_at = 0

    @property
    def is_open(self) -> bool:
        return self.state is not EditorState.CLOSED

    def _open(self, state: EditorState, draft: ListingDraft, listing_id: Optional[str], base_updated_at: int = 0) -> None:
        self.session += 1
        self.state = state
        self.draft = draft
        self.listing_id = listing_id
        self.is_optimizing = False
        self._base_updated_at = base_updated_at

    def open_create(self) -> None:
        self._open(EditorState.OPEN_CREATE, ListingDraft(), None)

    def open_edit(self, listing: Listing) -> None:
        self._open(EditorState.OPEN_EDIT, ListingDraft.from_listing(listing), listing.id, listing.updated_at)

    def close(self) -> None:
        self.session += 1
        self.state = EditorState.CLOSED
        self.draft = None
        self.listing_id = None
        self.is_optimizing = False

    @property
    def can_optimize(self) -> bool:
        return (
            self.is_open
            and not self.is_optimizing
            and bool(self.draft.title)
            and bool(self.draft.description)
        )

    async def optimize(self) -> bool:
        """
        Rewrite title, description and price with the optimizer.

        Returns False without touching anything when optimization is not
        available or the editor moved on to another session while waiting.
        OptimizationError propagates with the draft left as it was.
        """
        if not self.can_optimize:
            return False

        session = self.session
        draft = self.draft
        self.is_optimizing = True
        try:
            result = await self.optimizer.optimize(draft.title, draft.description, draft.category)
        except OptimizationError:
            if session == self.session:
                self.is_optimizing = False
                raise
            logger.debug("Dropping optimization failure from closed editor session %s", session)
            return False

        if session != self.session:
            logger.debug("Dropping optimization result for closed editor session %s", session)
            return False

        self.is_optimizing = False
        draft.title = result.title
        draft.description = result.description
        draft.price = result.suggested_price
        return True

    def save(self, user: User) -> str:
        """Persist the draft and close. On StoreError the editor stays open."""
        if not self.is_open:
            raise StoreError("Editor is not open")

        data = self.draft.fields()
        if self.state is EditorState.OPEN_EDIT:
            listing_id = self.listing_id
            self.store.update(listing_id, edited_record(data, self._base_updated_at))
        else:
            listing_id = self.store.create(new_record(data, user.uid))
        self.close()
        return listing_id

    def delete(self) -> bool:
        if self.state is not EditorState.OPEN_EDIT:
            return False
        if not self.confirm(DELETE_PROMPT):
            return False
        self.store.delete(self.listing_id)
        self.close()
        return True
