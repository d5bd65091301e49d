import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from mermanager.db import engine as default_engine, get_session
from mermanager.errors import StoreError
from mermanager.models.listing import Listing
from mermanager.models.listing_db import Listing as DBListing
from mermanager.store.base import DocumentStore


def to_listing(row: DBListing) -> Listing:
    return Listing.model_validate(row.model_dump())


class SQLDocumentStore(DocumentStore):
    """Listing collection kept in the SQL database through SQLModel."""

    def __init__(self, engine=None):
        super().__init__()
        self.engine = engine or default_engine

    def _load_owned(self, owner_id: str) -> List[Listing]:
        with get_session(self.engine) as session:
            rows = session.exec(select(DBListing).where(DBListing.owner_id == owner_id)).all()
            return [to_listing(row) for row in rows]

    def get(self, listing_id: str) -> Optional[Listing]:
        with get_session(self.engine) as session:
            row = session.get(DBListing, listing_id)
            return to_listing(row) if row else None

    def _insert(self, data: Dict[str, Any]) -> str:
        listing_id = uuid.uuid4().hex
        try:
            record = Listing.model_validate({**data, "id": listing_id})
            with get_session(self.engine) as session:
                session.add(DBListing(**record.model_dump(mode="json")))
                session.commit()
        except (SQLAlchemyError, ValidationError) as e:
            raise StoreError(f"Failed to create listing: {e}") from e
        return listing_id

    def _merge(self, listing_id: str, data: Dict[str, Any]) -> None:
        try:
            with get_session(self.engine) as session:
                row = session.get(DBListing, listing_id)
                if row is None:
                    raise StoreError(f"Listing not found: {listing_id}")
                merged = Listing.model_validate({**row.model_dump(), **data})
                for field, value in merged.model_dump(mode="json").items():
                    setattr(row, field, value)
                session.add(row)
                session.commit()
        except (SQLAlchemyError, ValidationError) as e:
            raise StoreError(f"Failed to update listing: {e}") from e

    def _remove(self, listing_id: str) -> bool:
        try:
            with get_session(self.engine) as session:
                row = session.get(DBListing, listing_id)
                if row is None:
                    return False
                session.delete(row)
                session.commit()
                return True
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete listing: {e}") from e
