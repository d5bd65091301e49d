"""Shared builders and fakes for the test suite."""

import json
from types import SimpleNamespace

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from mermanager.models import listing_db, user_db  # noqa: F401
from mermanager.services.listing_optimizer import ListingOptimizer


def memory_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


def listing_data(owner_id="user-a", **overrides):
    data = {
        "title": "NIKE スニーカー 27cm",
        "description": "数回着用しました",
        "price": 5000,
        "cost": 2000,
        "status": "ACTIVE",
        "category": "ファッション",
        "image_url": None,
        "owner_id": owner_id,
        "created_at": 1_700_000_000_000,
        "updated_at": 1_700_000_000_000,
    }
    data.update(overrides)
    return data


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    """Stands in for AsyncOpenAI: only chat.completions.create is used."""

    def __init__(self, content=None, error=None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)


def optimizer_replying(payload=None, raw=None, error=None):
    content = raw if raw is not None else json.dumps(payload, ensure_ascii=False) if payload is not None else None
    return ListingOptimizer(client=FakeOpenAI(content=content, error=error), model="test-model")


def register_and_login(client, username="seller", password="secret-pass"):
    client.post("/auth/register", json={
        "username": username,
        "password": password,
        "email": f"{username}@example.com",
    })
    response = client.post("/auth/login", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}, token


