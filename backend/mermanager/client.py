"""
Builds a ready-to-use client session: identity, listing store, optimizer
and the shell that ties them together.
"""

import asyncio
import logging
from typing import Callable, Optional

from mermanager.auth.identity import DemoIdentityProvider, IdentityProvider
from mermanager.inventory.shell import Shell
from mermanager.services.listing_optimizer import ListingOptimizer
from mermanager.store.base import DocumentStore
from mermanager.store.factory import STORE_BACKEND, create_store
from mermanager.store.local_storage import LOCAL_STORAGE_DIR, LocalStorage

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 1.0


def ask_on_console(message: str) -> bool:
    return input(f"{message} [y/N] ").strip().lower() in ("y", "yes")


def create_shell(
    storage_dir: str = LOCAL_STORAGE_DIR,
    backend: str = STORE_BACKEND,
    identity: Optional[IdentityProvider] = None,
    store: Optional[DocumentStore] = None,
    optimizer: Optional[ListingOptimizer] = None,
    confirm: Callable[[str], bool] = ask_on_console,
) -> Shell:
    """
    Wire a started Shell. Anything not passed in is built from the
    environment: the demo identity in storage_dir, the STORE_BACKEND store
    and an OpenAI optimizer.
    """
    identity = identity or DemoIdentityProvider(LocalStorage(storage_dir))
    store = store or create_store(backend, storage_dir=storage_dir)
    optimizer = optimizer or ListingOptimizer()

    shell = Shell(identity, store, optimizer, confirm)
    shell.start()
    logger.info("Client shell started with %s", type(store).__name__)
    return shell


async def keep_fresh(shell: Shell, interval: float = REFRESH_SECONDS) -> None:
    """Refresh the shell with other processes' writes until cancelled."""
    while True:
        await asyncio.sleep(interval)
        shell.refresh()
