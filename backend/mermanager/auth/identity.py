"""
Identity provider adapters.

An identity provider exposes the signed-in user, notifies subscribers on
every sign-in and sign-out, and remembers the signed-in identity across
restarts in local storage.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from mermanager.auth.auth_handler import create_access_token, user_id_from_token, verify_password
from mermanager.db import get_session
from mermanager.errors import AuthError
from mermanager.models.auth import User
from mermanager.models.user_db import User as DBUser
from mermanager.store.local_storage import USER_KEY, LocalStorage

logger = logging.getLogger(__name__)

UserCallback = Callable[[Optional[User]], None]
Credentials = Optional[Tuple[str, str]]
CredentialPrompt = Callable[[], Union[Credentials, Awaitable[Credentials]]]


class IdentityProvider(ABC):
    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._listeners: List[UserCallback] = []
        self._current_user = self._restore()
        self.storage.add_listener(self._on_storage_change)

    @abstractmethod
    async def _authenticate(self) -> Tuple[User, Dict[str, Any]]:
        """Run the interactive flow; return the user and the record to persist."""

    def _user_from_record(self, record: Dict[str, Any]) -> Optional[User]:
        return User.model_validate(record["user"])

    def _restore(self) -> Optional[User]:
        try:
            record = self.storage.get_json(USER_KEY)
        except ValueError:
            logger.warning("Stored identity is not valid JSON, ignoring it")
            return None
        if not record:
            return None
        try:
            return self._user_from_record(record)
        except (AuthError, KeyError, TypeError, ValidationError) as e:
            logger.info("Stored identity discarded: %s", e)
            self.storage.remove_item(USER_KEY)
            return None

    def get_current_user(self) -> Optional[User]:
        return self._current_user

    def subscribe(self, callback: UserCallback) -> Callable[[], None]:
        self._listeners.append(callback)
        callback(self._current_user)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, user: Optional[User]) -> None:
        self._current_user = user
        for listener in list(self._listeners):
            listener(user)

    async def sign_in(self) -> User:
        user, record = await self._authenticate()
        self.storage.set_json(USER_KEY, record)
        logger.info("Signed in as %s", user.uid)
        self._emit(user)
        return user

    async def sign_out(self) -> None:
        self.storage.remove_item(USER_KEY)
        if self._current_user is not None:
            logger.info("Signed out %s", self._current_user.uid)
        self._emit(None)

    def _on_storage_change(self, key: str) -> None:
        if key != USER_KEY:
            return
        user = self._restore()
        if user != self._current_user:
            logger.debug("Identity changed in another process")
            self._emit(user)


class DemoIdentityProvider(IdentityProvider):
    """Signs in a fixed demo account without any external service."""

    DEMO_USER = User(
        uid="demo-user-123",
        display_name="デモ ユーザー",
        email="demo@example.com",
        photo_url="https://api.dicebear.com/7.x/avataaars/svg?seed=mer",
    )

    async def _authenticate(self) -> Tuple[User, Dict[str, Any]]:
        user = self.DEMO_USER
        return user, {"user": user.model_dump()}


class PasswordIdentityProvider(IdentityProvider):
    """
    Username/password sign-in against the users table.

    The prompt is the interactive part of the flow: it returns a
    (username, password) pair, or None when the user cancels. A signed
    access token is persisted with the user and checked again on restart.
    """

    def __init__(self, storage: LocalStorage, prompt: CredentialPrompt, engine=None):
        self.prompt = prompt
        self.engine = engine
        super().__init__(storage)

    def _user_from_record(self, record: Dict[str, Any]) -> Optional[User]:
        user = User.model_validate(record["user"])
        if user_id_from_token(record["token"]) != user.uid:
            raise AuthError("Stored token does not match stored user")
        return user

    async def _authenticate(self) -> Tuple[User, Dict[str, Any]]:
        credentials = self.prompt()
        if inspect.isawaitable(credentials):
            credentials = await credentials
        if not credentials:
            raise AuthError("Sign-in was cancelled")

        username, password = credentials
        with get_session(self.engine) as session:
            db_user = session.get(DBUser, username)
            if not db_user or not verify_password(password, db_user.hashed_password):
                logger.warning("Failed sign-in attempt for %s", username)
                raise AuthError("Invalid credentials")
            user = User(uid=db_user.username, display_name=db_user.display_name or db_user.username, email=db_user.email)

        token = create_access_token({"sub": user.uid})
        return user, {"user": user.model_dump(), "token": token}
