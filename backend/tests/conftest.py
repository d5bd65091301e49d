"""
Pytest fixtures for MerManager tests.

Provides in-memory SQL and tmp-dir local stores, a fake OpenAI-backed
optimizer and an API test client wired to both.
"""

import pytest
from fastapi.testclient import TestClient

import mermanager.db as db_module
from mermanager.store.local_storage import LocalStorage
from mermanager.store.local_store import LocalDocumentStore
from mermanager.store.sql_store import SQLDocumentStore
from support import memory_engine, optimizer_replying, register_and_login


@pytest.fixture
def engine(monkeypatch):
    engine = memory_engine()
    monkeypatch.setattr(db_module, "engine", engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SQLDocumentStore(engine)


@pytest.fixture
def local_storage(tmp_path):
    return LocalStorage(str(tmp_path / "storage"))


@pytest.fixture
def local_store(local_storage):
    return LocalDocumentStore(local_storage)


@pytest.fixture(params=["sql", "local"])
def store(request):
    """Each store test runs against both backends."""
    if request.param == "sql":
        return request.getfixturevalue("sql_store")
    return request.getfixturevalue("local_store")


@pytest.fixture
def optimizer():
    return optimizer_replying({
        "title": "【美品】NIKE スニーカー 27cm ブラック",
        "description": "数回のみ着用。目立つ汚れなし。",
        "suggestedPrice": 6800,
    })


@pytest.fixture
def api(sql_store, optimizer):
    from mermanager.main import app
    from mermanager.routers.listing_ai import get_optimizer
    from mermanager.store.factory import get_store

    app.dependency_overrides[get_store] = lambda: sql_store
    app.dependency_overrides[get_optimizer] = lambda: optimizer
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(api):
    headers, _ = register_and_login(api)
    return headers
