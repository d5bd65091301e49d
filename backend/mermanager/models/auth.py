from pydantic import BaseModel, EmailStr
from typing import Optional


class UserRegistration(BaseModel):
    username: str
    password: str
    email: EmailStr


class User(BaseModel):
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str
