"""
Pydantic models for API request bodies and typed responses.

Request bodies use the camelCase keys the portal frontend sends; handlers
run the core validators on top of the shape checks done here.
"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class StoreStats(BaseModel):
    """SQLite store statistics."""
    status: str
    latency_ms: Optional[float] = None
    tenants: Optional[int] = None
    sub_accounts: Optional[int] = None
    campaigns: Optional[int] = None
    daily_metrics: Optional[int] = None
    reports: Optional[int] = None
    schema_version: Optional[int] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    store: StoreStats


class MetricsResponse(BaseModel):
    """Application metrics response."""
    uptime_seconds: int
    correlation_id: Optional[str] = None
    requests: Dict[str, int] = Field(default_factory=dict)
    errors: Dict[str, int] = Field(default_factory=dict)
    timing: Dict[str, Any] = Field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════════

class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    token: str = Field(description="Session token, also usable as a Bearer token")
    expiresAt: str
    tenant: Dict[str, Any]


# ═══════════════════════════════════════════════════════════════════════════════
# SUB-ACCOUNTS
# ═══════════════════════════════════════════════════════════════════════════════

class SubAccountCreate(BaseModel):
    companyName: Optional[str] = None


class ProviderKeyUpdate(BaseModel):
    """Instantly API key for a sub-account; null or empty unlinks it."""
    apiKey: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════════════════════════════

class DateRange(BaseModel):
    start: str
    end: str


class ReportGenerateRequest(BaseModel):
    reportType: str = "performance"
    name: Optional[str] = None
    dateRange: Optional[DateRange] = None
    days: Optional[int] = None
    subAccountIds: List[str] = Field(default_factory=list)
    format: str = "csv"


class ReportScheduleRequest(BaseModel):
    reportType: str = "performance"
    frequency: str
    dayOfMonth: Optional[int] = Field(None, ge=1, le=31)
    recipients: List[str] = Field(default_factory=list)
    format: str = "csv"


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

class SettingsUpdate(BaseModel):
    """Flat profile update (PUT /api/settings)."""
    company_name: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None


class ProfilePatch(BaseModel):
    companyName: Optional[str] = None
    contactEmail: Optional[str] = None
    phone: Optional[str] = None
    logoUrl: Optional[str] = None


class SettingsPatch(BaseModel):
    """Nested partial update (PATCH /api/settings)."""
    profile: Optional[ProfilePatch] = None
    notifications: Optional[Dict[str, bool]] = None
    whiteLabel: Optional[Dict[str, Optional[str]]] = None


class TeamInviteRequest(BaseModel):
    email: str
    role: str = "viewer"
    name: Optional[str] = None


class WebhookUpdate(BaseModel):
    webhookUrl: Optional[str] = None
