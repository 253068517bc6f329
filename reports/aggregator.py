"""
Report data aggregator.

Pulls the pre-computed series a report needs from the backend in one
parallel batch. The server does all the arithmetic; the only work done
here is slicing: the last N months of revenue and the first N products
(the product ranking arrives already sorted).

Usage:
    from reports.aggregator import ReportAggregator

    agg = ReportAggregator(client)
    data = await agg.fetch("revenue")
    data.revenue   # [RevenuePoint(month="Jan", revenue=45000), ...]
"""

import logging
from dataclasses import dataclass, field

from core.batch import fetch_all
from core.http_client import ApiClient
from core.models import (
    AttendancePoint,
    DashboardStats,
    MembershipSlice,
    ProductSales,
    RevenuePoint,
)

logger = logging.getLogger("gympro.reports.aggregator")


ENDPOINTS = {
    "stats": "/dashboard/stats",
    "revenue": "/reports/revenue",
    "membership": "/reports/membership",
    "attendance": "/reports/attendance",
    "products": "/reports/products",
}

# Which series each report type needs
REPORT_SOURCES: dict[str, tuple[str, ...]] = {
    "complete": ("stats", "revenue", "membership", "attendance", "products"),
    "revenue": ("stats", "revenue"),
    "membership": ("stats", "membership"),
    "attendance": ("attendance",),
    "products": ("products",),
}

REPORT_TYPES = tuple(REPORT_SOURCES)


@dataclass
class ReportData:
    """Everything a report renderer consumes. Absent series are empty."""
    stats: DashboardStats = field(default_factory=DashboardStats)
    revenue: list[RevenuePoint] = field(default_factory=list)
    membership: list[MembershipSlice] = field(default_factory=list)
    attendance: list[AttendancePoint] = field(default_factory=list)
    products: list[ProductSales] = field(default_factory=list)


class ReportAggregator:
    """Fetches report series.

    Args:
        client:         ApiClient for the backend.
        revenue_months: How many trailing revenue buckets to keep.
        top_products:   How many leading product rows to keep.
    """

    def __init__(self, client: ApiClient, revenue_months: int = 6, top_products: int = 5):
        self.client = client
        self.revenue_months = revenue_months
        self.top_products = top_products

    async def fetch(self, report_type: str) -> ReportData:
        """Fetch every series report_type needs, in parallel.

        Raises:
            ValueError: unknown report type.
            ApiError:   any one of the requests failed (no partial data).
        """
        if report_type not in REPORT_SOURCES:
            raise ValueError(f"Unknown report type '{report_type}'. Valid: {', '.join(REPORT_TYPES)}")

        sources = REPORT_SOURCES[report_type]
        raw = await fetch_all(self.client, {name: ENDPOINTS[name] for name in sources})
        logger.info("Fetched %d series for %s report", len(raw), report_type)
        return self.build(raw)

    def build(self, raw: dict) -> ReportData:
        """Turn raw camelCased payloads into a ReportData."""
        data = ReportData(stats=DashboardStats.from_dict(raw.get("stats")))
        revenue = [RevenuePoint.from_dict(r) for r in raw.get("revenue") or []]
        data.revenue = revenue[-self.revenue_months:] if self.revenue_months > 0 else revenue
        data.membership = [MembershipSlice.from_dict(m) for m in raw.get("membership") or []]
        data.attendance = [AttendancePoint.from_dict(a) for a in raw.get("attendance") or []]
        products = [ProductSales.from_dict(p) for p in raw.get("products") or []]
        data.products = products[:self.top_products] if self.top_products > 0 else products
        return data
