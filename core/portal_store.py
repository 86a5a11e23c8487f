"""
SQLite store for the Agency Portal.

Domain-specific query methods are organized into repository mixins:
- TenantsMixin: Tenant accounts, profile and preferences
- SubAccountsMixin: Sub-accounts and provider keys
- CampaignsMixin: Campaigns and the status toggle
- MetricsMixin: Daily email metrics
- ReportsMixin: Reports and schedules
- SettingsMixin: Team members and portal API credentials
- SessionsMixin: Login sessions
"""
import asyncio
from typing import Any, Dict, Optional

from core.repositories import (
    BaseRepository,
    TenantsMixin, SubAccountsMixin, CampaignsMixin, MetricsMixin,
    ReportsMixin, SettingsMixin, SessionsMixin,
)


class PortalStore(
    TenantsMixin, SubAccountsMixin, CampaignsMixin, MetricsMixin,
    ReportsMixin, SettingsMixin, SessionsMixin, BaseRepository,
):
    """
    Async-compatible SQLite store.

    Every mutation is a row-level statement committed on its own; nothing
    rewrites the whole database.
    """

    async def get_stats(self) -> Dict[str, Any]:
        """Row counts for the health endpoint."""
        counts = {}
        async with self.connection() as conn:
            for table in ("tenants", "sub_accounts", "campaigns", "daily_metrics", "reports"):
                counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        counts["schema_version"] = await self.schema_version()
        counts["db_path"] = str(self.db_path)
        return counts


# ═══════════════════════════════════════════════════════════════════════════════
# SINGLETON
# ═══════════════════════════════════════════════════════════════════════════════

_store_instance: Optional[PortalStore] = None
_store_lock = asyncio.Lock()


async def get_store() -> PortalStore:
    """Get singleton store instance (coroutine-safe)."""
    global _store_instance
    async with _store_lock:
        if _store_instance is None:
            _store_instance = PortalStore()
            await _store_instance.connect()
    return _store_instance


async def close_store() -> None:
    """Close singleton store instance."""
    global _store_instance
    if _store_instance:
        await _store_instance.close()
        _store_instance = None
