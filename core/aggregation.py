"""
Metrics aggregation rules.

Pure functions shared by the dashboard, analytics, sub-account and report
endpoints. Nothing here touches storage or the network.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Tuple

from core.models import Campaign, DailyMetric


def compute_rate(numerator: int, denominator: int) -> float:
    """
    Percentage rounded half-up to one decimal; 0 when the denominator is 0.

    >>> compute_rate(535, 1020)
    52.5
    """
    if not denominator:
        return 0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def window_bounds(days: int, today: date) -> Tuple[date, date]:
    """Inclusive [start, end] for a window of `days` calendar dates ending today."""
    return today - timedelta(days=days - 1), today


def in_window(metrics: Iterable[DailyMetric], start: date, end: date) -> List[DailyMetric]:
    return [m for m in metrics if start <= m.date <= end]


def merge_daily(*series: Iterable[DailyMetric]) -> List[DailyMetric]:
    """
    Sum any number of daily series by date.

    Each input may contain several rows for the same date (one per mailbox,
    for example). Only dates that appear in some input are returned, sorted
    ascending. Addition is commutative, so input order never changes totals.
    """
    by_date: Dict[date, DailyMetric] = {}
    for rows in series:
        for row in rows:
            if row.date in by_date:
                by_date[row.date] = by_date[row.date] + row
            else:
                by_date[row.date] = DailyMetric(row.date, row.sent, row.opens, row.replies, row.bounces)
    return [by_date[d] for d in sorted(by_date)]


@dataclass
class MetricTotals:
    sent: int = 0
    opens: int = 0
    replies: int = 0
    bounces: int = 0

    @classmethod
    def of(cls, daily: Iterable[DailyMetric]) -> "MetricTotals":
        totals = cls()
        for row in daily:
            totals.sent += row.sent
            totals.opens += row.opens
            totals.replies += row.replies
            totals.bounces += row.bounces
        return totals

    @property
    def open_rate(self) -> float:
        return compute_rate(self.opens, self.sent)

    @property
    def reply_rate(self) -> float:
        return compute_rate(self.replies, self.sent)

    @property
    def bounce_rate(self) -> float:
        return compute_rate(self.bounces, self.sent)


def summarize(daily: Iterable[DailyMetric], campaigns: Iterable[Campaign]) -> Dict[str, float]:
    """Dashboard headline numbers for a merged daily series and its campaigns."""
    totals = MetricTotals.of(daily)
    campaigns = list(campaigns)
    return {
        "totalSent": totals.sent,
        "totalOpens": totals.opens,
        "totalReplies": totals.replies,
        "totalBounces": totals.bounces,
        "openRate": totals.open_rate,
        "replyRate": totals.reply_rate,
        "bounceRate": totals.bounce_rate,
        "activeCampaigns": sum(1 for c in campaigns if c.is_active),
        "totalInboxes": sum(c.inboxes for c in campaigns),
    }


def rank_campaigns(campaigns: Iterable[Campaign], limit: int = 5) -> List[Campaign]:
    """Top `limit` active campaigns by open rate, highest first (ties by name)."""
    active = [c for c in campaigns if c.is_active]
    active.sort(key=lambda c: (-c.open_rate, c.name))
    return active[:limit]
