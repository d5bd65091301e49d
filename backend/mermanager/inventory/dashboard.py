"""Read-side projections for the dashboard. Everything here is pure."""

from typing import Iterable, List

from pydantic import BaseModel

from mermanager.models.listing import STATUS_LABELS, Listing, ListingStatus

RECENT_SALES_LIMIT = 5


class DerivedStats(BaseModel):
    total_sales: float = 0
    total_profit: float = 0
    active_listings: int = 0
    sold_count: int = 0


class StatusBucket(BaseModel):
    status: ListingStatus
    name: str
    value: int


class DashboardSummary(BaseModel):
    stats: DerivedStats
    chart: List[StatusBucket]
    recent_sales: List[Listing]


def compute_stats(listings: Iterable[Listing]) -> DerivedStats:
    listings = list(listings)
    sold = [l for l in listings if l.status == ListingStatus.SOLD]
    return DerivedStats(
        total_sales=sum(l.price for l in sold),
        total_profit=sum(l.price - l.cost for l in sold),
        active_listings=sum(1 for l in listings if l.status == ListingStatus.ACTIVE),
        sold_count=len(sold),
    )


def status_breakdown(listings: Iterable[Listing]) -> List[StatusBucket]:
    listings = list(listings)
    return [
        StatusBucket(status=status, name=STATUS_LABELS[status], value=sum(1 for l in listings if l.status == status))
        for status in (ListingStatus.ACTIVE, ListingStatus.SOLD, ListingStatus.DRAFT)
    ]


def recent_sales(listings: Iterable[Listing], limit: int = RECENT_SALES_LIMIT) -> List[Listing]:
    sold = [l for l in listings if l.status == ListingStatus.SOLD]
    return sorted(sold, key=lambda l: l.updated_at, reverse=True)[:limit]


def build_dashboard(listings: Iterable[Listing]) -> DashboardSummary:
    listings = list(listings)
    return DashboardSummary(
        stats=compute_stats(listings),
        chart=status_breakdown(listings),
        recent_sales=recent_sales(listings),
    )
