"""PortalStore daily metric methods."""
from __future__ import annotations

from datetime import date
from typing import Iterable, List

from core.models import DailyMetric


class MetricsMixin:

    async def add_daily_metrics(self, sub_account_id: str, rows: Iterable[DailyMetric]) -> int:
        """
        Append daily rows for a sub-account.

        Metrics are append-only: a date that already has a row is left as is.

        Returns:
            Number of rows actually inserted
        """
        params = [
            (sub_account_id, m.date.isoformat(), m.sent, m.opens, m.replies, m.bounces)
            for m in rows
        ]
        if not params:
            return 0

        async with self.transaction() as conn:
            before = conn.total_changes
            conn.executemany("""
                INSERT OR IGNORE INTO daily_metrics
                    (sub_account_id, metric_date, sent, opens, replies, bounces)
                VALUES (?, ?, ?, ?, ?, ?)
            """, params)
            return conn.total_changes - before

    async def get_daily_metrics(self, sub_account_id: str, start: date, end: date) -> List[DailyMetric]:
        """Stored rows for one sub-account within [start, end], ascending."""
        rows = await self.fetchall("""
            SELECT metric_date, sent, opens, replies, bounces
            FROM daily_metrics
            WHERE sub_account_id = ? AND metric_date BETWEEN ? AND ?
            ORDER BY metric_date
        """, (sub_account_id, start.isoformat(), end.isoformat()))
        return [DailyMetric.from_row(row) for row in rows]
