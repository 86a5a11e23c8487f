"""
Dashboard service: resolves a tenant's scope and turns metric sources into
the JSON payloads served by the API.

Every function takes the store and the authenticated tenant id; the tenant
id is never read from the request. Sub-accounts are visited one after
another, so live provider calls run sequentially.
"""
import csv
import io
from datetime import date
from typing import Any, Dict, List, Optional

from core.aggregation import MetricTotals, compute_rate, merge_daily, rank_campaigns, summarize, window_bounds
from core.config import config
from core.exceptions import NotFoundError
from core.models import Campaign, DailyMetric, Report, SubAccount, SubAccountStatus
from core.observability import get_logger
from core.portal_store import PortalStore
from core.sources import ClientFactory, source_for

logger = get_logger(__name__)

CSV_HEADER = ["Date", "Emails Sent", "Opens", "Replies", "Bounces"]


# ═══════════════════════════════════════════════════════════════════════════════
# SCOPE
# ═══════════════════════════════════════════════════════════════════════════════

async def resolve_scope(
    store: PortalStore,
    tenant_id: str,
    sub_account_id: Optional[str] = None,
) -> List[SubAccount]:
    """
    Sub-accounts the request covers.

    Raises:
        NotFoundError: sub_account_id is unknown or owned by another tenant
    """
    if sub_account_id:
        sub = await store.get_sub_account(tenant_id, sub_account_id)
        if sub is None:
            raise NotFoundError("Sub-account", sub_account_id)
        return [sub]
    return await store.list_sub_accounts(tenant_id)


async def collect_daily(
    store: PortalStore,
    sub_accounts: List[SubAccount],
    start: date,
    end: date,
    client_factory: Optional[ClientFactory] = None,
) -> List[DailyMetric]:
    """Merged per-date totals for the given sub-accounts within [start, end]."""
    series = []
    for sub in sub_accounts:
        source = source_for(sub, store, client_factory)
        series.append(await source.daily_metrics(start, end))
    return merge_daily(*series)


async def collect_campaigns(
    store: PortalStore,
    sub_accounts: List[SubAccount],
    status: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> List[Campaign]:
    campaigns: List[Campaign] = []
    for sub in sub_accounts:
        source = source_for(sub, store, client_factory)
        campaigns.extend(await source.campaigns(status))
    return campaigns


# ═══════════════════════════════════════════════════════════════════════════════
# DASHBOARD & ANALYTICS
# ═══════════════════════════════════════════════════════════════════════════════

async def get_dashboard(
    store: PortalStore,
    tenant_id: str,
    sub_account_id: Optional[str] = None,
    days: int = None,
    today: Optional[date] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Dict[str, Any]:
    """Headline numbers plus the daily chart series for the window."""
    days = days or config.web.default_window_days
    start, end = window_bounds(days, today or date.today())

    sub_accounts = await resolve_scope(store, tenant_id, sub_account_id)
    daily = await collect_daily(store, sub_accounts, start, end, client_factory)
    campaigns = await collect_campaigns(store, sub_accounts, client_factory=client_factory)

    result = summarize(daily, campaigns)
    result.update({
        "activeSubAccounts": sum(1 for s in sub_accounts if s.status is SubAccountStatus.ACTIVE),
        "totalSubAccounts": len(sub_accounts),
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "days": days,
        "chartData": [m.to_dict() for m in daily],
    })
    return result


async def get_daily_series(
    store: PortalStore,
    tenant_id: str,
    sub_account_id: Optional[str] = None,
    days: int = None,
    today: Optional[date] = None,
    client_factory: Optional[ClientFactory] = None,
) -> List[Dict[str, Any]]:
    """
    One row per date that has data, ascending.

    Dates without any activity are omitted rather than zero-filled, so a
    scope with no data returns an empty list.
    """
    days = days or config.web.default_window_days
    start, end = window_bounds(days, today or date.today())
    sub_accounts = await resolve_scope(store, tenant_id, sub_account_id)
    daily = await collect_daily(store, sub_accounts, start, end, client_factory)
    return [m.to_dict() for m in daily]


async def get_campaign_leaderboard(
    store: PortalStore,
    tenant_id: str,
    sub_account_id: Optional[str] = None,
    limit: int = 5,
    client_factory: Optional[ClientFactory] = None,
) -> List[Dict[str, Any]]:
    """Top active campaigns by open rate."""
    sub_accounts = await resolve_scope(store, tenant_id, sub_account_id)
    campaigns = await collect_campaigns(store, sub_accounts, client_factory=client_factory)
    return [c.to_dict() for c in rank_campaigns(campaigns, limit)]


async def list_campaigns(
    store: PortalStore,
    tenant_id: str,
    sub_account_id: Optional[str] = None,
    status: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> List[Dict[str, Any]]:
    sub_accounts = await resolve_scope(store, tenant_id, sub_account_id)
    campaigns = await collect_campaigns(store, sub_accounts, status, client_factory)
    return [c.to_dict() for c in campaigns]


# ═══════════════════════════════════════════════════════════════════════════════
# SUB-ACCOUNTS
# ═══════════════════════════════════════════════════════════════════════════════

def _rate_or_none(numerator: int, denominator: int) -> Optional[float]:
    return compute_rate(numerator, denominator) if denominator else None


async def list_sub_accounts_with_metrics(
    store: PortalStore,
    tenant_id: str,
    status: Optional[str] = None,
    search: Optional[str] = None,
    today: Optional[date] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Dict[str, Any]:
    """
    Sub-accounts with month-to-date sending stats.

    Rates are None (not 0) for sub-accounts that sent nothing this month, so
    the table can show a dash instead of a misleading 0%.
    """
    today = today or date.today()
    month_start = today.replace(day=1)

    results = []
    for sub in await store.list_sub_accounts(tenant_id, status=status, search=search):
        source = source_for(sub, store, client_factory)
        totals = MetricTotals.of(await source.daily_metrics(month_start, today))
        item = sub.to_dict()
        item.update({
            "emailsSentThisMonth": totals.sent,
            "openRate": _rate_or_none(totals.opens, totals.sent),
            "replyRate": _rate_or_none(totals.replies, totals.sent),
        })
        results.append(item)

    return {"subAccounts": results, "total": len(results)}


async def get_sub_account_detail(
    store: PortalStore,
    tenant_id: str,
    sub_account_id: str,
    today: Optional[date] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Dict[str, Any]:
    """Stats, chart series and campaigns of one sub-account over the detail window."""
    sub = (await resolve_scope(store, tenant_id, sub_account_id))[0]
    start, end = window_bounds(config.web.detail_window_days, today or date.today())

    source = source_for(sub, store, client_factory)
    daily = await source.daily_metrics(start, end)
    campaigns = await source.campaigns()
    totals = MetricTotals.of(daily)

    result = sub.to_dict()
    result.update({
        "stats": {
            "emailsSent": totals.sent,
            "openRate": totals.open_rate,
            "replyRate": totals.reply_rate,
            "bounceRate": totals.bounce_rate,
        },
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "chartData": [m.to_dict() for m in daily],
        "campaigns": [c.to_dict() for c in campaigns],
    })
    return result


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════════════════════════════

async def build_report_csv(
    store: PortalStore,
    report: Report,
    client_factory: Optional[ClientFactory] = None,
) -> str:
    """
    Daily series CSV for a report's date range.

    Sub-account ids recorded on the report are re-checked against the
    tenant; ids that no longer resolve are skipped. No ids means all
    sub-accounts.
    """
    if report.sub_account_ids:
        sub_accounts = []
        for sub_id in report.sub_account_ids:
            sub = await store.get_sub_account(report.tenant_id, sub_id)
            if sub is None:
                logger.warning(f"Report {report.id} references unknown sub-account {sub_id}")
                continue
            sub_accounts.append(sub)
    else:
        sub_accounts = await store.list_sub_accounts(report.tenant_id)

    daily = await collect_daily(store, sub_accounts, report.start_date, report.end_date, client_factory)

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in daily:
        writer.writerow([row.date.isoformat(), row.sent, row.opens, row.replies, row.bounces])
    return output.getvalue()
