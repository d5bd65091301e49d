from sqlmodel import SQLModel, Field
from typing import Optional


class User(SQLModel, table=True):
    __tablename__ = "users"

    username: str = Field(primary_key=True)
    email: str = Field(index=True)
    display_name: Optional[str] = None
    hashed_password: str
