from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

CATEGORIES = [
    "ファッション",
    "家電・スマホ・カメラ",
    "おもちゃ・ホビー",
    "コスメ・香水・美容",
    "インテリア・住まい",
]
DEFAULT_CATEGORY = CATEGORIES[0]


class ListingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"
    DRAFT = "DRAFT"


STATUS_LABELS = {
    ListingStatus.ACTIVE: "出品中",
    ListingStatus.SOLD: "売却済",
    ListingStatus.DRAFT: "下書き",
}


class ListingFields(BaseModel):
    """The user-editable part of a listing."""
    title: str = ""
    description: str = ""
    price: float = Field(default=0, ge=0)
    cost: float = Field(default=0, ge=0)
    status: ListingStatus = ListingStatus.ACTIVE
    category: str = DEFAULT_CATEGORY
    image_url: Optional[str] = None


class ListingUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    status: Optional[ListingStatus] = None
    category: Optional[str] = None
    image_url: Optional[str] = None


class Listing(ListingFields):
    """A stored listing as delivered in snapshots."""
    id: str
    owner_id: str
    created_at: int
    updated_at: int


class OptimizeRequest(BaseModel):
    title: str
    description: str
    category: str = DEFAULT_CATEGORY
