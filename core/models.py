"""
Domain models for the Agency Portal.

Provides dataclasses for tenants, sub-accounts, campaigns, daily metrics
and reports. These are the single source of truth for data structures used
by the store, the metric sources and the web layer.
"""
import json
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict, Any


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class CampaignStatus(str, Enum):
    """Campaign sending status."""
    ACTIVE = "active"
    PAUSED = "paused"

    def toggled(self) -> "CampaignStatus":
        """The opposite status (active <-> paused)."""
        return CampaignStatus.PAUSED if self is CampaignStatus.ACTIVE else CampaignStatus.ACTIVE


class SubAccountStatus(str, Enum):
    """Sub-account lifecycle status."""
    ACTIVE = "active"
    ONBOARDING = "onboarding"


class TeamRole(str, Enum):
    """Role of a tenant team member."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class ReportFrequency(str, Enum):
    """Scheduled report frequency."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class MetricsSourceKind(str, Enum):
    """Where a sub-account's metrics come from."""
    MOCK = "mock"
    LIVE = "live"


DEFAULT_NOTIFICATIONS = {
    "emailAlerts": True,
    "weeklySummary": True,
    "campaignAlerts": False,
}

DEFAULT_WHITE_LABEL = {
    "customLogoUrl": None,
    "primaryColor": "#7C50F9",
}


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _load_json(value: Optional[str], default: Dict[str, Any]) -> Dict[str, Any]:
    if not value:
        return dict(default)
    try:
        return {**default, **json.loads(value)}
    except (json.JSONDecodeError, TypeError):
        return dict(default)


# ═══════════════════════════════════════════════════════════════════════════════
# TENANCY
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Tenant:
    """Agency/partner account: the entity that logs in and owns sub-accounts."""
    id: str
    email: str
    password_hash: str
    company_name: str
    logo_url: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    notifications: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_NOTIFICATIONS))
    white_label: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_WHITE_LABEL))
    created_at: Optional[str] = None
    last_login: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Tenant":
        """Create Tenant from a `tenants` table row."""
        return cls(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            company_name=row["company_name"],
            logo_url=row["logo_url"],
            contact_email=row["contact_email"],
            phone=row["phone"],
            notifications=_load_json(row["notifications"], DEFAULT_NOTIFICATIONS),
            white_label=_load_json(row["white_label"], DEFAULT_WHITE_LABEL),
            created_at=row["created_at"],
            last_login=row["last_login"],
        )

    def profile(self) -> Dict[str, Any]:
        """Public profile block used by the settings endpoints."""
        return {
            "companyName": self.company_name,
            "logoUrl": self.logo_url,
            "contactEmail": self.contact_email,
            "phone": self.phone,
        }


@dataclass
class SubAccount:
    """Tenant-owned client account, optionally linked to the email provider."""
    id: str
    tenant_id: str
    company_name: str
    status: SubAccountStatus = SubAccountStatus.ONBOARDING
    provider_api_key: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "SubAccount":
        """Create SubAccount from a `sub_accounts` table row."""
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            company_name=row["company_name"],
            status=SubAccountStatus(row["status"]),
            provider_api_key=row["provider_api_key"],
            created_at=row["created_at"],
        )

    @property
    def source_kind(self) -> MetricsSourceKind:
        """Live when a provider key is configured, mock otherwise."""
        return MetricsSourceKind.LIVE if self.provider_api_key else MetricsSourceKind.MOCK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.company_name,
            "companyName": self.company_name,
            "status": self.status.value,
            "hasLiveData": self.source_kind is MetricsSourceKind.LIVE,
            "createdAt": self.created_at,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class DailyMetric:
    """Email counts for one calendar date."""
    date: date
    sent: int = 0
    opens: int = 0
    replies: int = 0
    bounces: int = 0

    @classmethod
    def from_row(cls, row) -> "DailyMetric":
        """Create DailyMetric from a `daily_metrics` table row."""
        return cls(
            date=_parse_date(row["metric_date"]),
            sent=row["sent"],
            opens=row["opens"],
            replies=row["replies"],
            bounces=row["bounces"],
        )

    def __add__(self, other: "DailyMetric") -> "DailyMetric":
        if other.date != self.date:
            raise ValueError(f"Cannot add metrics for {other.date} to {self.date}")
        return replace(
            self,
            sent=self.sent + other.sent,
            opens=self.opens + other.opens,
            replies=self.replies + other.replies,
            bounces=self.bounces + other.bounces,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "emails_sent": self.sent,
            "opens": self.opens,
            "replies": self.replies,
            "bounces": self.bounces,
        }


@dataclass
class Campaign:
    """Email campaign belonging to one sub-account."""
    id: str
    sub_account_id: str
    name: str
    status: CampaignStatus = CampaignStatus.PAUSED
    inboxes: int = 0
    daily_sends: int = 0
    daily_limit: int = 0
    sent: int = 0
    opens: int = 0
    replies: int = 0
    start_date: Optional[date] = None
    sub_account_name: Optional[str] = None
    source: MetricsSourceKind = MetricsSourceKind.MOCK

    @classmethod
    def from_row(cls, row) -> "Campaign":
        """Create Campaign from a `campaigns` row joined with `sub_accounts`."""
        keys = row.keys()
        return cls(
            id=row["id"],
            sub_account_id=row["sub_account_id"],
            name=row["name"],
            status=CampaignStatus(row["status"]),
            inboxes=row["inboxes"],
            daily_sends=row["daily_sends"],
            daily_limit=row["daily_limit"],
            sent=row["sent"],
            opens=row["opens"],
            replies=row["replies"],
            start_date=_parse_date(row["start_date"]),
            sub_account_name=row["sub_account_name"] if "sub_account_name" in keys else None,
        )

    @property
    def is_active(self) -> bool:
        return self.status is CampaignStatus.ACTIVE

    @property
    def open_rate(self) -> float:
        from core.aggregation import compute_rate
        return compute_rate(self.opens, self.sent)

    @property
    def reply_rate(self) -> float:
        from core.aggregation import compute_rate
        return compute_rate(self.replies, self.sent)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "inboxes": self.inboxes,
            "daily_sends": self.daily_sends,
            "daily_limit": self.daily_limit,
            "sent": self.sent,
            "opens": self.opens,
            "replies": self.replies,
            "open_rate": self.open_rate,
            "reply_rate": self.reply_rate,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "subAccountId": self.sub_account_id,
            "subAccount": self.sub_account_name,
            "source": self.source.value,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTS & SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Report:
    """Generated report record (metadata only, content is built on download)."""
    id: str
    tenant_id: str
    name: str
    report_type: str
    start_date: date
    end_date: date
    sub_account_ids: List[str] = field(default_factory=list)
    format: str = "csv"
    status: str = "ready"
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Report":
        """Create Report from a `reports` table row."""
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            name=row["name"],
            report_type=row["report_type"],
            start_date=_parse_date(row["start_date"]),
            end_date=_parse_date(row["end_date"]),
            sub_account_ids=json.loads(row["sub_account_ids"] or "[]"),
            format=row["format"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.report_type,
            "dateRange": {
                "start": self.start_date.isoformat(),
                "end": self.end_date.isoformat(),
            },
            "subAccountIds": self.sub_account_ids,
            "format": self.format,
            "status": self.status,
            "created_at": self.created_at,
        }


@dataclass
class ScheduledReport:
    """Recurring report delivery settings."""
    id: str
    tenant_id: str
    report_type: str
    frequency: ReportFrequency
    day_of_month: Optional[int] = None
    recipients: List[str] = field(default_factory=list)
    format: str = "csv"
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "ScheduledReport":
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            report_type=row["report_type"],
            frequency=ReportFrequency(row["frequency"]),
            day_of_month=row["day_of_month"],
            recipients=json.loads(row["recipients"] or "[]"),
            format=row["format"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "reportType": self.report_type,
            "frequency": self.frequency.value,
            "dayOfMonth": self.day_of_month,
            "recipients": self.recipients,
            "format": self.format,
            "createdAt": self.created_at,
        }


@dataclass
class TeamMember:
    """User invited to a tenant's portal."""
    id: str
    tenant_id: str
    name: str
    email: str
    role: TeamRole = TeamRole.VIEWER

    @classmethod
    def from_row(cls, row) -> "TeamMember":
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            name=row["name"],
            email=row["email"],
            role=TeamRole(row["role"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role.value}


@dataclass
class ApiCredential:
    """Tenant's own portal API key and webhook target."""
    tenant_id: str
    api_key: str
    webhook_url: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "ApiCredential":
        return cls(
            tenant_id=row["tenant_id"],
            api_key=row["api_key"],
            webhook_url=row["webhook_url"],
            created_at=row["created_at"],
        )


@dataclass
class Session:
    """Server-side record of an issued login token."""
    id: str
    tenant_id: str
    created_at: datetime
    expires_at: datetime
    revoked: bool = False

    @classmethod
    def from_row(cls, row) -> "Session":
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
            revoked=bool(row["revoked"]),
        )

    def is_valid(self, now: datetime) -> bool:
        return not self.revoked and now < self.expires_at
