from sqlmodel import SQLModel, Field
from typing import Optional


class Listing(SQLModel, table=True):
    id: str = Field(primary_key=True)
    owner_id: str = Field(index=True)
    title: str = ""
    description: str = ""
    price: float = 0
    cost: float = 0
    status: str = "ACTIVE"
    category: str = ""
    image_url: Optional[str] = None
    created_at: int
    updated_at: int = Field(index=True)
