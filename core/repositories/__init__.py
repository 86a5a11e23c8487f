"""
Repository layer for the SQLite portal store.

PortalStore is composed from focused mixins on top of BaseRepository:
- BaseRepository: Connection management and versioned migrations
- TenantsMixin: Tenant accounts, profile and preferences
- SubAccountsMixin: Tenant-owned sub-accounts and provider keys
- CampaignsMixin: Campaign listing and the active/paused toggle
- MetricsMixin: Append-only daily metrics
- ReportsMixin: Report records and schedules
- SettingsMixin: Team members and portal API credentials
- SessionsMixin: Login sessions
"""
from core.repositories.base import BaseRepository, MIGRATIONS
from core.repositories.tenants import TenantsMixin
from core.repositories.sub_accounts import SubAccountsMixin
from core.repositories.campaigns import CampaignsMixin
from core.repositories.metrics import MetricsMixin
from core.repositories.reports import ReportsMixin
from core.repositories.settings import SettingsMixin
from core.repositories.sessions import SessionsMixin

__all__ = [
    "BaseRepository",
    "MIGRATIONS",
    "TenantsMixin",
    "SubAccountsMixin",
    "CampaignsMixin",
    "MetricsMixin",
    "ReportsMixin",
    "SettingsMixin",
    "SessionsMixin",
]
