import os
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel

from mermanager.models.listing import STATUS_LABELS, Listing, ListingStatus

load_dotenv()

# Unset means the host's local time zone
DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE")

EXCERPT_LENGTH = 80
PLACEHOLDER_IMAGE = "https://picsum.photos/seed/{id}/200"


class ListingCard(BaseModel):
    id: str
    status: ListingStatus
    status_label: str
    title: str
    excerpt: str
    price: float
    image_url: str
    created_on: str
    updated_on: str
    edit_action: str


class ListingListView(BaseModel):
    count: int
    cards: List[ListingCard]
    empty: bool
    empty_action: Optional[str] = None


def display_timezone() -> Optional[tzinfo]:
    return ZoneInfo(DISPLAY_TIMEZONE) if DISPLAY_TIMEZONE else None


def format_date(timestamp_ms: int, tz: Optional[tzinfo] = None) -> str:
    """Calendar date of a timestamp as the seller sees it, e.g. 2024/03/01."""
    zone = tz or display_timezone()
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=zone).strftime("%Y/%m/%d")


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) <= length:
        return text
    return text[: length - 1].rstrip() + "…"


def build_card(listing: Listing) -> ListingCard:
    return ListingCard(
        id=listing.id,
        status=listing.status,
        status_label=STATUS_LABELS[listing.status],
        title=listing.title,
        excerpt=excerpt(listing.description),
        price=listing.price,
        image_url=listing.image_url or PLACEHOLDER_IMAGE.format(id=listing.id),
        created_on=format_date(listing.created_at),
        updated_on=format_date(listing.updated_at),
        edit_action=f"edit:{listing.id}",
    )


def build_listing_list(listings: Iterable[Listing]) -> ListingListView:
    cards = [build_card(listing) for listing in listings]
    return ListingListView(
        count=len(cards),
        cards=cards,
        empty=not cards,
        empty_action=None if cards else "add",
    )
