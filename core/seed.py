"""
Demo data for a fresh database.

Creates one demo tenant with three sub-accounts (two active, one onboarding),
90 days of synthetic daily metrics and a handful of campaigns, all served by
the local (mock) metrics source.
"""
import random
import secrets
import string
from datetime import date, timedelta
from typing import Optional

from core.config import config
from core.models import CampaignStatus, DailyMetric, SubAccountStatus, Tenant, TeamRole
from core.observability import get_logger
from core.portal_store import PortalStore

logger = get_logger(__name__)

DEMO_TENANT_ID = "partner_001"

DEMO_SUB_ACCOUNTS = [
    ("sub_001", "Acme Corp", SubAccountStatus.ACTIVE,
     ["Q1 SaaS Outreach", "Product Launch Beta", "Enterprise ABM"]),
    ("sub_002", "TechStart Inc", SubAccountStatus.ACTIVE,
     ["Cold Email - Tech", "Follow-up Sequence", "Re-engagement"]),
    ("sub_003", "GrowthLabs", SubAccountStatus.ONBOARDING,
     ["Onboarding Campaign"]),
]


def generate_portal_api_key(rng: Optional[random.Random] = None) -> str:
    """Tenant-facing API key, `pk_live_` plus 26 random characters."""
    alphabet = string.ascii_lowercase + string.digits
    if rng is not None:
        return "pk_live_" + "".join(rng.choice(alphabet) for _ in range(26))
    return "pk_live_" + "".join(secrets.choice(alphabet) for _ in range(26))


def generate_daily_metrics(days: int, today: date, rng: random.Random) -> list:
    """`days + 1` rows ending today with realistic open/reply/bounce ratios."""
    rows = []
    for offset in range(days, -1, -1):
        sent = rng.randint(100, 399)
        rows.append(DailyMetric(
            date=today - timedelta(days=offset),
            sent=sent,
            opens=int(sent * (0.45 + rng.random() * 0.15)),
            replies=int(sent * (0.06 + rng.random() * 0.06)),
            bounces=int(sent * (0.01 + rng.random() * 0.02)),
        ))
    return rows


async def seed_demo_data(
    store: PortalStore,
    password_hash: str,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Tenant]:
    """
    Populate an empty database with the demo tenant.

    Does nothing (and returns None) once any tenant exists, so it is safe to
    call on every start.
    """
    if await store.count_tenants() > 0:
        return None

    today = today or date.today()
    rng = rng or random.Random()

    tenant = await store.create_tenant(
        email=config.auth.demo_email,
        password_hash=password_hash,
        company_name="Demo Agency",
        tenant_id=DEMO_TENANT_ID,
        contact_email="team@demo-agency.com",
        phone="+1-555-0123",
    )
    await store.add_team_member(tenant.id, "john@demo-agency.com", TeamRole.ADMIN, name="John Demo")
    await store.set_api_key(tenant.id, generate_portal_api_key(rng))

    for sub_id, company_name, status, campaign_names in DEMO_SUB_ACCOUNTS:
        await store.create_sub_account(tenant.id, company_name, status, sub_account_id=sub_id)
        is_onboarding = status is SubAccountStatus.ONBOARDING

        if not is_onboarding:
            await store.add_daily_metrics(
                sub_id, generate_daily_metrics(config.storage.demo_history_days, today, rng)
            )

        for idx, name in enumerate(campaign_names):
            is_active = not is_onboarding and idx < 2
            sent = rng.randint(500, 2499) if is_active else 0
            inboxes = rng.randint(2, 6) if is_active else 1
            daily_limit = inboxes * 50
            await store.create_campaign(
                sub_account_id=sub_id,
                name=name,
                status=CampaignStatus.ACTIVE if is_active else CampaignStatus.PAUSED,
                inboxes=inboxes,
                daily_sends=rng.randint(daily_limit // 2, daily_limit) if is_active else 0,
                daily_limit=daily_limit,
                sent=sent,
                opens=int(sent * rng.uniform(0.35, 0.6)),
                replies=int(sent * rng.uniform(0.05, 0.12)),
                start_date=today - timedelta(days=30 + idx * 15),
                campaign_id=f"camp_{sub_id}_{idx}",
            )

    logger.info(f"Demo data seeded for {tenant.email}")
    return tenant
