"""
Top-level navigation for a signed-in session.

The shell owns the current user, keeps the read model bound to that user,
switches between the dashboard and the inventory list, and routes editor
actions. Failures from any action become a notice; none of them leave the
shell unusable.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Union

from mermanager.auth.identity import IdentityProvider
from mermanager.errors import AuthError, MerManagerError
from mermanager.inventory.dashboard import DashboardSummary, build_dashboard
from mermanager.inventory.editor import ListingEditor
from mermanager.inventory.list_view import ListingListView, build_listing_list
from mermanager.inventory.read_model import InventoryReadModel
from mermanager.models.auth import User
from mermanager.services.listing_optimizer import ListingOptimizer
from mermanager.store.base import DocumentStore

logger = logging.getLogger(__name__)

SAVE_FAILED = "保存に失敗しました。"
DELETE_FAILED = "削除に失敗しました。"
OPTIMIZE_FAILED = "AI最適化に失敗しました。時間をおいて再度お試しください。"
SIGN_IN_FAILED = "ログインに失敗しました。"
SIGN_OUT_FAILED = "ログアウトに失敗しました。"
REFRESH_FAILED = "最新のデータを取得できませんでした。"


class Tab(str, Enum):
    DASHBOARD = "dashboard"
    INVENTORY = "inventory"


class Shell:
    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        optimizer: ListingOptimizer,
        confirm: Callable[[str], bool],
    ):
        self.identity = identity
        self.store = store
        self.read_model = InventoryReadModel(store)
        self.editor = ListingEditor(store, optimizer, confirm)
        self.user: Optional[User] = None
        self.loading = True
        self.active_tab = Tab.DASHBOARD
        self.notice: Optional[str] = None
        self._unsubscribe_identity: Optional[Callable[[], None]] = None

    def start(self) -> None:
        self._unsubscribe_identity = self.identity.subscribe(self._on_user)

    def stop(self) -> None:
        if self._unsubscribe_identity is not None:
            self._unsubscribe_identity()
            self._unsubscribe_identity = None
        self.read_model.unbind()

    def _on_user(self, user: Optional[User]) -> None:
        self.loading = False
        if user == self.user and self.read_model.owner_id == (user.uid if user else None):
            return
        self.user = user
        self.editor.close()
        self.read_model.bind(user)

    def refresh(self) -> bool:
        """
        Pick up sign-ins, sign-outs and listing writes made by other
        processes sharing the same local storage. Returns True if anything
        changed.
        """
        try:
            identity_changed = bool(self.identity.storage.poll())
            listings_changed = self.store.poll()
        except (MerManagerError, OSError) as e:
            logger.warning("Refresh failed: %s", e)
            self.notice = REFRESH_FAILED
            return False
        return identity_changed or listings_changed

    # -- navigation ----------------------------------------------------

    def switch_tab(self, tab: Union[Tab, str]) -> None:
        self.active_tab = Tab(tab)

    def view(self) -> Optional[Union[DashboardSummary, ListingListView]]:
        if self.user is None:
            return None
        if self.active_tab is Tab.DASHBOARD:
            return build_dashboard(self.read_model.listings)
        return build_listing_list(self.read_model.listings)

    # -- identity ------------------------------------------------------

    async def sign_in(self) -> bool:
        self.notice = None
        try:
            await self.identity.sign_in()
        except AuthError as e:
            logger.warning("Sign-in failed: %s", e)
            self.notice = f"{SIGN_IN_FAILED} {e}"
            return False
        return True

    async def sign_out(self) -> bool:
        self.notice = None
        try:
            await self.identity.sign_out()
        except OSError as e:
            logger.error("Sign-out failed: %s", e)
            self.notice = SIGN_OUT_FAILED
            return False
        return True

    # -- editor --------------------------------------------------------

    def add_listing(self) -> None:
        self.notice = None
        self.editor.open_create()

    def edit_listing(self, listing_id: str) -> bool:
        listing = self.read_model.get(listing_id)
        if listing is None:
            return False
        self.notice = None
        self.editor.open_edit(listing)
        return True

    def close_editor(self) -> None:
        self.editor.close()

    async def optimize_listing(self) -> bool:
        self.notice = None
        try:
            return await self.editor.optimize()
        except MerManagerError as e:
            logger.warning("Optimization failed: %s", e)
            self.notice = OPTIMIZE_FAILED
            return False

    def save_listing(self) -> Optional[str]:
        if self.user is None:
            return None
        try:
            return self.editor.save(self.user)
        except MerManagerError as e:
            logger.error("Failed to save listing: %s", e)
            self.notice = SAVE_FAILED
            return None

    def delete_listing(self) -> bool:
        try:
            return self.editor.delete()
        except MerManagerError as e:
            logger.error("Delete failed: %s", e)
            self.notice = DELETE_FAILED
            return False
