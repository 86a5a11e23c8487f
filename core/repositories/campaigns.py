"""PortalStore campaign methods."""
from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from core.models import Campaign, CampaignStatus
from core.observability import get_logger
from core.repositories.base import new_id, row_value

logger = get_logger(__name__)

# Campaign columns plus the owning sub-account's name; always joined so the
# tenant filter applies.
_SELECT_SCOPED = """
    SELECT c.*, s.company_name AS sub_account_name
    FROM campaigns c
    JOIN sub_accounts s ON s.id = c.sub_account_id
    WHERE s.tenant_id = ?
"""


class CampaignsMixin:

    async def create_campaign(
        self,
        sub_account_id: str,
        name: str,
        status: CampaignStatus = CampaignStatus.PAUSED,
        inboxes: int = 0,
        daily_sends: int = 0,
        daily_limit: int = 0,
        sent: int = 0,
        opens: int = 0,
        replies: int = 0,
        start_date: Optional[date] = None,
        campaign_id: Optional[str] = None,
    ) -> Campaign:
        campaign = Campaign(
            id=campaign_id or new_id("camp"),
            sub_account_id=sub_account_id,
            name=name,
            status=CampaignStatus(status),
            inboxes=inboxes,
            daily_sends=daily_sends,
            daily_limit=daily_limit,
            sent=sent,
            opens=opens,
            replies=replies,
            start_date=start_date,
        )
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO campaigns (id, sub_account_id, name, status, inboxes, daily_sends,
                                       daily_limit, sent, opens, replies, start_date)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                campaign.id, campaign.sub_account_id, campaign.name, row_value(campaign.status),
                campaign.inboxes, campaign.daily_sends, campaign.daily_limit,
                campaign.sent, campaign.opens, campaign.replies, row_value(campaign.start_date),
            ))
        return campaign

    async def list_campaigns(
        self,
        tenant_id: str,
        sub_account_ids: Optional[Iterable[str]] = None,
        status: Optional[str] = None,
    ) -> List[Campaign]:
        """
        Campaigns owned by the tenant through its sub-accounts.

        Args:
            sub_account_ids: Restrict to these sub-accounts (None = all)
            status: 'active' or 'paused' (None = both)
        """
        sql = _SELECT_SCOPED
        params: list = [tenant_id]

        if sub_account_ids is not None:
            ids = list(sub_account_ids)
            if not ids:
                return []
            sql += f" AND c.sub_account_id IN ({', '.join('?' for _ in ids)})"
            params.extend(ids)

        if status:
            sql += " AND c.status = ?"
            params.append(status)

        sql += " ORDER BY s.created_at, c.id"
        rows = await self.fetchall(sql, tuple(params))
        return [Campaign.from_row(row) for row in rows]

    async def get_campaign(self, tenant_id: str, campaign_id: str) -> Optional[Campaign]:
        row = await self.fetchone(_SELECT_SCOPED + " AND c.id = ?", (tenant_id, campaign_id))
        return Campaign.from_row(row) if row else None

    async def toggle_campaign(self, tenant_id: str, campaign_id: str) -> Optional[Campaign]:
        """
        Flip active <-> paused for a campaign owned by the tenant.

        Returns the updated campaign, or None when the campaign does not
        exist or belongs to someone else.
        """
        async with self.transaction() as conn:
            row = conn.execute(_SELECT_SCOPED + " AND c.id = ?", (tenant_id, campaign_id)).fetchone()
            if row is None:
                return None

            campaign = Campaign.from_row(row)
            campaign.status = campaign.status.toggled()
            conn.execute(
                "UPDATE campaigns SET status = ? WHERE id = ?",
                (campaign.status.value, campaign.id),
            )

        logger.info(
            f"Campaign {campaign.id} is now {campaign.status.value}",
            extra={"tenant_id": tenant_id},
        )
        return campaign
