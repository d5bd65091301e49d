import logging
import os
from functools import lru_cache

from dotenv import load_dotenv

from mermanager.store.base import DocumentStore
from mermanager.store.local_storage import LOCAL_STORAGE_DIR, LocalStorage

load_dotenv()
logger = logging.getLogger(__name__)

STORE_BACKEND = os.getenv("STORE_BACKEND", "sql")


def create_store(backend: str = STORE_BACKEND, storage_dir: str = LOCAL_STORAGE_DIR, engine=None) -> DocumentStore:
    if backend == "local":
        from mermanager.store.local_store import LocalDocumentStore

        logger.info("Using local document store in %s", storage_dir)
        return LocalDocumentStore(LocalStorage(storage_dir))
    if backend == "sql":
        from mermanager.store.sql_store import SQLDocumentStore

        logger.info("Using SQL document store")
        return SQLDocumentStore(engine)
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


@lru_cache
def get_store() -> DocumentStore:
    """Process-wide store used by the API; created on first access."""
    return create_store()
