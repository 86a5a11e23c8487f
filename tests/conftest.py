"""
Pytest configuration and shared fixtures.
"""
import os

# Must be set before core.config is imported anywhere
os.environ.setdefault("PORTAL_SECRET_KEY", "test-secret-key-0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SEED_DEMO_DATA", "false")

import asyncio
from datetime import date, timedelta
from typing import Any, Callable, Dict

import httpx
import pytest

from core.models import CampaignStatus, DailyMetric, SubAccountStatus
from core.portal_store import PortalStore
from core.provider import InstantlyClient
from web.services.auth_service import hash_password

PASSWORD = "correct-horse"


@pytest.fixture
def today() -> date:
    return date.today()


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite store in a temp file, migrated and connected."""
    portal_store = PortalStore(db_path=tmp_path / "portal.db")
    asyncio.run(portal_store.connect())
    yield portal_store
    asyncio.run(portal_store.close())


async def _seed_two_tenants(store: PortalStore, today: date) -> Dict[str, Any]:
    password_hash = hash_password(PASSWORD)

    alpha = await store.create_tenant("alpha@agency.test", password_hash, "Alpha Agency", tenant_id="tenant_alpha")
    beta = await store.create_tenant("beta@agency.test", password_hash, "Beta Agency", tenant_id="tenant_beta")

    await store.create_sub_account(alpha.id, "Acme Corp", SubAccountStatus.ACTIVE, sub_account_id="sub_acme")
    await store.create_sub_account(alpha.id, "Quiet Co", SubAccountStatus.ONBOARDING, sub_account_id="sub_quiet")
    await store.create_sub_account(beta.id, "Beta Client", SubAccountStatus.ACTIVE, sub_account_id="sub_beta")

    await store.add_daily_metrics("sub_acme", [
        DailyMetric(today - timedelta(days=1), sent=500, opens=260, replies=40, bounces=5),
        DailyMetric(today, sent=520, opens=275, replies=45, bounces=6),
    ])
    await store.add_daily_metrics("sub_beta", [
        DailyMetric(today, sent=999, opens=111, replies=11, bounces=1),
    ])

    await store.create_campaign("sub_acme", "Outreach A", CampaignStatus.ACTIVE, inboxes=3,
                                sent=1000, opens=500, replies=80, campaign_id="camp_acme_1")
    await store.create_campaign("sub_acme", "Outreach B", CampaignStatus.ACTIVE, inboxes=2,
                                sent=1000, opens=600, replies=50, campaign_id="camp_acme_2")
    await store.create_campaign("sub_acme", "Paused C", CampaignStatus.PAUSED, inboxes=1,
                                sent=1000, opens=900, replies=10, campaign_id="camp_acme_3")
    await store.create_campaign("sub_beta", "Beta Secret", CampaignStatus.ACTIVE, inboxes=4,
                                sent=100, opens=90, replies=9, campaign_id="camp_beta_1")

    return {"alpha": alpha, "beta": beta}


@pytest.fixture
def seeded(store, today) -> Dict[str, Any]:
    """
    Two tenants:
    - tenant_alpha: sub_acme (2 days of metrics, 3 campaigns), sub_quiet (empty)
    - tenant_beta: sub_beta (1 day of metrics, 1 campaign)
    """
    return asyncio.run(_seed_two_tenants(store, today))


def mock_client_factory(handler: Callable[[httpx.Request], httpx.Response]):
    """Build an InstantlyClient factory whose requests go to `handler`."""
    def factory(api_key: str) -> InstantlyClient:
        return InstantlyClient(api_key, base_url="https://instantly.test/api/v2",
                               transport=httpx.MockTransport(handler))
    return factory


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, text="upstream exploded")


@pytest.fixture
def app_client(store, seeded):
    """
    TestClient bound to the temp store; provider calls fail with HTTP 500
    unless a test overrides the client factory.
    """
    from fastapi.testclient import TestClient

    from core.portal_store import get_store
    from web.main import app
    from web.routes.api._deps import get_client_factory, limiter

    async def _store_override():
        return store

    limiter.enabled = False
    app.dependency_overrides[get_store] = _store_override
    app.dependency_overrides[get_client_factory] = lambda: mock_client_factory(failing_handler)

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


def login(client, email: str = "alpha@agency.test", password: str = PASSWORD) -> str:
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def alpha_headers(app_client) -> Dict[str, str]:
    """Bearer auth for tenant_alpha (cookie cleared so only the header counts)."""
    token = login(app_client)
    app_client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def beta_headers(app_client) -> Dict[str, str]:
    token = login(app_client, "beta@agency.test")
    app_client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}
