"""
Metrics sources: where a sub-account's numbers come from.

A sub-account linked to the email provider is served by
ProviderMetricsSource (live data); every other sub-account is served by
LocalMetricsSource (stored demo/mock data). The aggregation layer only sees
the MetricsSource interface and never checks for an API key itself.

Provider failures never escape a source: they are logged and the affected
call contributes nothing.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from core.aggregation import in_window, merge_daily
from core.config import config
from core.exceptions import ProviderDataError, ProviderError
from core.models import Campaign, CampaignStatus, DailyMetric, MetricsSourceKind, SubAccount, _parse_date
from core.observability import get_logger, metrics
from core.portal_store import PortalStore
from core.provider import InstantlyClient

logger = get_logger(__name__)

ClientFactory = Callable[[str], InstantlyClient]


class MetricsSource(ABC):
    """Capability interface: daily metrics and campaigns for one sub-account."""

    kind: MetricsSourceKind

    def __init__(self, sub_account: SubAccount):
        self.sub_account = sub_account

    @abstractmethod
    async def daily_metrics(self, start: date, end: date) -> List[DailyMetric]:
        """Rows for dates within [start, end], at most one per date, ascending."""

    @abstractmethod
    async def campaigns(self, status: Optional[str] = None) -> List[Campaign]:
        """Campaigns of this sub-account, optionally filtered by status."""


class LocalMetricsSource(MetricsSource):
    """Reads stored metrics and campaigns from the portal database."""

    kind = MetricsSourceKind.MOCK

    def __init__(self, sub_account: SubAccount, store: PortalStore):
        super().__init__(sub_account)
        self.store = store

    async def daily_metrics(self, start: date, end: date) -> List[DailyMetric]:
        return await self.store.get_daily_metrics(self.sub_account.id, start, end)

    async def campaigns(self, status: Optional[str] = None) -> List[Campaign]:
        return await self.store.list_campaigns(
            self.sub_account.tenant_id, [self.sub_account.id], status=status
        )


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _count(value: Any) -> int:
    return len(value) if isinstance(value, list) else 0


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class ProviderMetricsSource(MetricsSource):
    """Fetches live numbers from Instantly with the sub-account's API key."""

    kind = MetricsSourceKind.LIVE

    def __init__(self, sub_account: SubAccount, client_factory: Optional[ClientFactory] = None):
        super().__init__(sub_account)
        self._client_factory = client_factory or InstantlyClient

    def _client(self) -> InstantlyClient:
        return self._client_factory(self.sub_account.provider_api_key)

    def _log_failure(self, what: str, error: ProviderError) -> None:
        metrics.record_error(type(error).__name__)
        logger.warning(
            f"Instantly {what} failed, counting as zero: {error}",
            extra={"sub_account_id": self.sub_account.id},
        )

    def _records(self, what: str, rows: List[Any]) -> List[Dict[str, Any]]:
        """Rows that are JSON objects; anything else is logged and skipped."""
        records = []
        for row in rows:
            if isinstance(row, dict):
                records.append(row)
            else:
                self._log_failure(what, ProviderDataError(
                    "Unexpected row shape", expected="object", got=type(row).__name__,
                ))
        return records

    async def daily_metrics(self, start: date, end: date) -> List[DailyMetric]:
        """
        Campaign daily analytics (sent/opens/replies) merged by date with
        mailbox daily analytics (bounces).
        """
        sends: List[DailyMetric] = []
        bounces: List[DailyMetric] = []

        async with self._client() as client:
            try:
                rows = await client.get_campaign_daily_analytics(start, end)
                for row in self._records("campaign daily analytics", rows):
                    day = _parse_date(row.get("date"))
                    if day is None:
                        continue
                    sends.append(DailyMetric(
                        date=day,
                        sent=_int(row.get("sent")),
                        opens=_int(_first(row, "opened", "opens", "unique_opened")),
                        replies=_int(_first(row, "replies", "replied", "unique_replies")),
                    ))
            except ProviderError as e:
                self._log_failure("campaign daily analytics", e)

            try:
                rows = await client.get_account_daily_analytics(start, end)
                for row in self._records("account daily analytics", rows):
                    day = _parse_date(row.get("date"))
                    if day is None:
                        continue
                    bounces.append(DailyMetric(date=day, bounces=_int(_first(row, "bounced", "bounces"))))
            except ProviderError as e:
                self._log_failure("account daily analytics", e)

        return in_window(merge_daily(sends, bounces), start, end)

    async def campaigns(self, status: Optional[str] = None) -> List[Campaign]:
        """
        Up to `max_campaigns` provider campaigns, each with its analytics
        fetched one after another.
        """
        results: List[Campaign] = []

        async with self._client() as client:
            try:
                items = await client.list_campaigns()
            except ProviderError as e:
                self._log_failure("campaign list", e)
                return []

            for item in self._records("campaign list", items)[:config.provider.max_campaigns]:
                if not item.get("id"):
                    continue
                try:
                    stats = await client.get_campaign_analytics(item["id"])
                except ProviderError as e:
                    self._log_failure(f"analytics for campaign {item['id']}", e)
                    stats = {}

                campaign = Campaign(
                    id=str(item["id"]),
                    sub_account_id=self.sub_account.id,
                    name=str(item.get("name") or "Untitled campaign"),
                    status=self._status(item.get("status")),
                    inboxes=_count(item.get("email_list")),
                    daily_sends=_int(_first(stats, "sent_today", "emails_sent_today")),
                    daily_limit=_int(item.get("daily_limit")),
                    sent=_int(_first(stats, "total_sent", "emails_sent_count")),
                    opens=_int(_first(stats, "total_opened", "open_count")),
                    replies=_int(_first(stats, "total_replied", "reply_count")),
                    start_date=_parse_date(_first(item, "created_at", "timestamp_created")),
                    sub_account_name=self.sub_account.company_name,
                    source=MetricsSourceKind.LIVE,
                )
                if status is None or campaign.status.value == status:
                    results.append(campaign)

        return results

    @staticmethod
    def _status(raw: Any) -> CampaignStatus:
        """Instantly reports numeric statuses; older payloads use strings."""
        if isinstance(raw, str):
            return CampaignStatus.PAUSED if raw.lower() != "active" else CampaignStatus.ACTIVE
        return CampaignStatus(config.provider_statuses.get(_int(raw), "paused"))


def source_for(
    sub_account: SubAccount,
    store: PortalStore,
    client_factory: Optional[ClientFactory] = None,
) -> MetricsSource:
    """Pick the live source for linked sub-accounts, the local one otherwise."""
    if sub_account.source_kind is MetricsSourceKind.LIVE:
        return ProviderMetricsSource(sub_account, client_factory)
    return LocalMetricsSource(sub_account, store)
