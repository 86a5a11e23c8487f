"""
Integration tests for the HTTP API.

Runs the FastAPI app in-process against a seeded temporary store. Provider
calls fail with HTTP 500 unless a test installs its own client factory.
"""
import csv
import io
from datetime import date, timedelta

import httpx
import pytest

from conftest import login, mock_client_factory, PASSWORD


def live_handler(request: httpx.Request) -> httpx.Response:
    """Instantly workspace with one running campaign and data for today."""
    today = date.today().isoformat()
    path = request.url.path
    if path.endswith("/campaigns/analytics/daily"):
        return httpx.Response(200, json=[{"date": today, "sent": 80, "opened": 40, "replies": 4}])
    if path.endswith("/accounts/analytics/daily"):
        return httpx.Response(200, json=[{"date": today, "email_account": "a@live.io", "bounced": 2}])
    if path.endswith("/campaigns"):
        return httpx.Response(200, json={"items": [
            {"id": "live_1", "name": "Live Push", "status": 1, "email_list": ["a@live.io", "b@live.io"]},
        ]})
    if path.endswith("/campaigns/live_1/analytics"):
        return httpx.Response(200, json={"total_sent": 100, "total_opened": 90, "total_replied": 5})
    return httpx.Response(404)


@pytest.fixture
def live_quiet(app_client, alpha_headers):
    """Link sub_quiet to the provider and route provider calls to live_handler."""
    from web.main import app
    from web.routes.api._deps import get_client_factory

    response = app_client.put(
        "/api/sub-accounts/sub_quiet/provider-key", json={"apiKey": "live-key"}, headers=alpha_headers,
    )
    assert response.status_code == 200
    app.dependency_overrides[get_client_factory] = lambda: mock_client_factory(live_handler)
    return alpha_headers


# ═══════════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════════

class TestLogin:
    """Tests for /api/login, /api/logout and /api/me."""

    @pytest.mark.parametrize("email,password", [
        ("alpha@agency.test", "wrong"),
        ("nobody@agency.test", PASSWORD),
        ("not-an-email", PASSWORD),
    ])
    def test_bad_credentials(self, app_client, email, password):
        response = app_client.post("/api/login", json={"email": email, "password": password})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_success_sets_cookie(self, app_client):
        response = app_client.post("/api/login", json={"email": "Alpha@Agency.test", "password": PASSWORD})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["tenant"]["id"] == "tenant_alpha"
        assert "password_hash" not in data["tenant"]
        assert response.cookies.get("portal_session") == data["token"]
        assert "httponly" in response.headers["set-cookie"].lower()

    def test_cookie_authenticates(self, app_client):
        login(app_client)
        response = app_client.get("/api/me")

        assert response.status_code == 200
        assert response.json()["tenant"]["email"] == "alpha@agency.test"

    def test_me(self, app_client, alpha_headers):
        data = app_client.get("/api/me", headers=alpha_headers).json()

        assert data["tenant"]["company_name"] == "Alpha Agency"
        assert data["tenant"]["lastLogin"] is not None
        assert [s["id"] for s in data["subAccounts"]] == ["sub_acme", "sub_quiet"]

    @pytest.mark.parametrize("path", [
        "/api/me", "/api/dashboard", "/api/analytics/daily", "/api/campaigns",
        "/api/sub-accounts", "/api/reports", "/api/settings",
    ])
    def test_requires_auth(self, app_client, path):
        assert app_client.get(path).status_code == 401

    def test_forged_token(self, app_client):
        response = app_client.get("/api/dashboard", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401

    def test_logout_revokes_token(self, app_client, alpha_headers):
        assert app_client.post("/api/logout", headers=alpha_headers).json() == {"success": True}
        assert app_client.get("/api/me", headers=alpha_headers).status_code == 401

    def test_bearer_header_wins_over_stale_cookie(self, app_client):
        """A revoked cookie does not mask a valid token in the header."""
        fresh = login(app_client)
        stale = login(app_client)
        app_client.post("/api/logout", headers={"Authorization": f"Bearer {stale}"})
        app_client.cookies.clear()
        cookie = {"Cookie": f"portal_session={stale}"}

        response = app_client.get("/api/me", headers={**cookie, "Authorization": f"Bearer {fresh}"})
        assert response.status_code == 200
        assert app_client.get("/api/me", headers=cookie).status_code == 401


# ═══════════════════════════════════════════════════════════════════════════════
# DASHBOARD & ANALYTICS
# ═══════════════════════════════════════════════════════════════════════════════

class TestDashboard:
    """Tests for GET /api/dashboard."""

    def test_totals_and_rates(self, app_client, alpha_headers):
        data = app_client.get("/api/dashboard", headers=alpha_headers).json()

        assert data["totalSent"] == 1020
        assert data["totalOpens"] == 535
        assert data["openRate"] == 52.5
        assert data["replyRate"] == 8.3
        assert data["bounceRate"] == 1.1
        assert data["activeCampaigns"] == 2
        assert data["totalInboxes"] == 6
        assert data["activeSubAccounts"] == 1
        assert data["totalSubAccounts"] == 2
        assert len(data["chartData"]) == 2

    def test_window_is_inclusive(self, app_client, alpha_headers):
        data = app_client.get("/api/dashboard?days=1", headers=alpha_headers).json()

        assert data["totalSent"] == 520
        assert data["startDate"] == data["endDate"] == date.today().isoformat()

    def test_other_tenant_data_never_mixed_in(self, app_client, beta_headers):
        data = app_client.get("/api/dashboard", headers=beta_headers).json()
        assert data["totalSent"] == 999
        assert data["activeCampaigns"] == 1

    def test_empty_sub_account_rates_are_zero(self, app_client, alpha_headers):
        data = app_client.get("/api/dashboard?subAccountId=sub_quiet", headers=alpha_headers).json()

        assert data["totalSent"] == 0
        assert data["openRate"] == 0
        assert data["chartData"] == []

    def test_foreign_sub_account_is_404(self, app_client, alpha_headers):
        response = app_client.get("/api/dashboard?subAccountId=sub_beta", headers=alpha_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Sub-account not found"

    @pytest.mark.parametrize("query", ["days=0", "days=366", "subAccountId=bad%20id"])
    def test_invalid_params(self, app_client, alpha_headers, query):
        assert app_client.get(f"/api/dashboard?{query}", headers=alpha_headers).status_code == 400

    def test_failing_provider_contributes_zero(self, app_client, alpha_headers):
        """A linked sub-account whose provider errors does not break the dashboard."""
        app_client.put(
            "/api/sub-accounts/sub_quiet/provider-key", json={"apiKey": "broken"}, headers=alpha_headers,
        )
        response = app_client.get("/api/dashboard", headers=alpha_headers)

        assert response.status_code == 200
        assert response.json()["totalSent"] == 1020

    def test_live_sub_account_merged(self, app_client, live_quiet):
        data = app_client.get("/api/dashboard", headers=live_quiet).json()

        assert data["totalSent"] == 1100
        assert data["totalOpens"] == 575
        assert data["totalBounces"] == 13
        assert data["activeCampaigns"] == 3
        assert data["totalInboxes"] == 8
        today_row = [row for row in data["chartData"] if row["date"] == date.today().isoformat()][0]
        assert today_row["emails_sent"] == 600

    def test_malformed_provider_rows_contribute_zero(self, app_client, live_quiet):
        from web.main import app
        from web.routes.api._deps import get_client_factory

        app.dependency_overrides[get_client_factory] = lambda: mock_client_factory(
            lambda request: httpx.Response(200, json=[None])
        )
        response = app_client.get("/api/dashboard", headers=live_quiet)

        assert response.status_code == 200
        assert response.json()["totalSent"] == 1020
        assert response.json()["activeCampaigns"] == 2


class TestAnalytics:
    """Tests for /api/analytics/daily and /api/analytics/campaigns."""

    def test_daily_ascending(self, app_client, alpha_headers):
        rows = app_client.get("/api/analytics/daily", headers=alpha_headers).json()
        today = date.today()

        assert [r["date"] for r in rows] == [(today - timedelta(days=1)).isoformat(), today.isoformat()]
        assert rows[1] == {"date": today.isoformat(), "emails_sent": 520, "opens": 275, "replies": 45, "bounces": 6}

    def test_daily_empty_scope(self, app_client, alpha_headers):
        assert app_client.get("/api/analytics/daily?subAccountId=sub_quiet", headers=alpha_headers).json() == []

    def test_leaderboard_order(self, app_client, alpha_headers):
        rows = app_client.get("/api/analytics/campaigns", headers=alpha_headers).json()

        # the paused campaign has the best open rate but is left out
        assert [r["id"] for r in rows] == ["camp_acme_2", "camp_acme_1"]
        assert rows[0]["open_rate"] == 60.0

    def test_leaderboard_limit(self, app_client, alpha_headers):
        rows = app_client.get("/api/analytics/campaigns?limit=1", headers=alpha_headers).json()
        assert len(rows) == 1
        assert app_client.get("/api/analytics/campaigns?limit=0", headers=alpha_headers).status_code == 400

    def test_live_campaign_leads(self, app_client, live_quiet):
        rows = app_client.get("/api/analytics/campaigns", headers=live_quiet).json()
        assert rows[0]["id"] == "live_1"
        assert rows[0]["source"] == "live"


# ═══════════════════════════════════════════════════════════════════════════════
# CAMPAIGNS
# ═══════════════════════════════════════════════════════════════════════════════

class TestCampaigns:
    """Tests for /api/campaigns."""

    def test_list_scoped_to_tenant(self, app_client, alpha_headers):
        data = app_client.get("/api/campaigns", headers=alpha_headers).json()

        ids = {c["id"] for c in data["campaigns"]}
        assert ids == {"camp_acme_1", "camp_acme_2", "camp_acme_3"}
        assert data["total"] == 3
        assert "camp_beta_1" not in ids

    def test_status_filter(self, app_client, alpha_headers):
        data = app_client.get("/api/campaigns?status=paused", headers=alpha_headers).json()
        assert [c["id"] for c in data["campaigns"]] == ["camp_acme_3"]

        assert app_client.get("/api/campaigns?status=all", headers=alpha_headers).json()["total"] == 3
        assert app_client.get("/api/campaigns?status=archived", headers=alpha_headers).status_code == 400

    def test_toggle_twice(self, app_client, alpha_headers):
        first = app_client.post("/api/campaigns/camp_acme_1/toggle", headers=alpha_headers)
        assert first.json() == {"id": "camp_acme_1", "status": "paused"}

        second = app_client.post("/api/campaigns/camp_acme_1/toggle", headers=alpha_headers)
        assert second.json()["status"] == "active"

    def test_toggle_changes_dashboard(self, app_client, alpha_headers):
        app_client.post("/api/campaigns/camp_acme_3/toggle", headers=alpha_headers)
        assert app_client.get("/api/dashboard", headers=alpha_headers).json()["activeCampaigns"] == 3

    def test_toggle_other_tenant_is_404(self, app_client, alpha_headers, beta_headers):
        response = app_client.post("/api/campaigns/camp_acme_1/toggle", headers=beta_headers)
        assert response.status_code == 404

        campaigns = app_client.get("/api/campaigns", headers=alpha_headers).json()["campaigns"]
        assert {c["id"]: c["status"] for c in campaigns}["camp_acme_1"] == "active"

    def test_live_campaign_listed_not_toggleable(self, app_client, live_quiet):
        data = app_client.get("/api/campaigns?subAccountId=sub_quiet", headers=live_quiet).json()
        assert [c["id"] for c in data["campaigns"]] == ["live_1"]

        assert app_client.post("/api/campaigns/live_1/toggle", headers=live_quiet).status_code == 404


# ═══════════════════════════════════════════════════════════════════════════════
# SUB-ACCOUNTS
# ═══════════════════════════════════════════════════════════════════════════════

class TestSubAccounts:
    """Tests for /api/sub-accounts."""

    def test_list_with_month_stats(self, app_client, alpha_headers):
        data = app_client.get("/api/sub-accounts", headers=alpha_headers).json()
        by_id = {s["id"]: s for s in data["subAccounts"]}

        assert data["total"] == 2
        assert by_id["sub_acme"]["emailsSentThisMonth"] >= 520
        assert by_id["sub_quiet"]["emailsSentThisMonth"] == 0
        assert by_id["sub_quiet"]["openRate"] is None

    def test_list_filters(self, app_client, alpha_headers):
        onboarding = app_client.get("/api/sub-accounts?status=onboarding", headers=alpha_headers).json()
        assert [s["id"] for s in onboarding["subAccounts"]] == ["sub_quiet"]

        found = app_client.get("/api/sub-accounts?search=ACME", headers=alpha_headers).json()
        assert [s["id"] for s in found["subAccounts"]] == ["sub_acme"]

    @pytest.mark.parametrize("term", ["_", "%25", "a_m", "%25co"])
    def test_search_wildcards_are_literal(self, app_client, alpha_headers, term):
        data = app_client.get(f"/api/sub-accounts?search={term}", headers=alpha_headers).json()
        assert data["subAccounts"] == []

    def test_detail(self, app_client, alpha_headers):
        data = app_client.get("/api/sub-accounts/sub_acme", headers=alpha_headers).json()

        assert data["stats"] == {"emailsSent": 1020, "openRate": 52.5, "replyRate": 8.3, "bounceRate": 1.1}
        assert len(data["campaigns"]) == 3
        assert len(data["chartData"]) == 2
        assert data["hasLiveData"] is False

    def test_detail_foreign_is_404(self, app_client, alpha_headers):
        assert app_client.get("/api/sub-accounts/sub_beta", headers=alpha_headers).status_code == 404

    def test_create(self, app_client, alpha_headers):
        response = app_client.post("/api/sub-accounts", json={"companyName": "  New Client "}, headers=alpha_headers)
        data = response.json()

        assert response.status_code == 200
        assert data["companyName"] == "New Client"
        assert data["status"] == "onboarding"
        assert data["hasLiveData"] is False
        assert app_client.get("/api/sub-accounts", headers=alpha_headers).json()["total"] == 3

    def test_create_requires_name(self, app_client, alpha_headers):
        response = app_client.post("/api/sub-accounts", json={"companyName": "  "}, headers=alpha_headers)
        assert response.status_code == 400

    def test_provider_key_link_and_unlink(self, app_client, alpha_headers):
        linked = app_client.put(
            "/api/sub-accounts/sub_quiet/provider-key", json={"apiKey": "key"}, headers=alpha_headers,
        ).json()
        assert linked["hasLiveData"] is True
        assert "key" not in linked.values()

        unlinked = app_client.put(
            "/api/sub-accounts/sub_quiet/provider-key", json={"apiKey": ""}, headers=alpha_headers,
        ).json()
        assert unlinked["hasLiveData"] is False

    def test_provider_key_foreign_is_404(self, app_client, beta_headers):
        response = app_client.put(
            "/api/sub-accounts/sub_acme/provider-key", json={"apiKey": "key"}, headers=beta_headers,
        )
        assert response.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════════════════════════════

class TestReports:
    """Tests for /api/reports."""

    def _generate(self, client, headers, **body) -> str:
        response = client.post("/api/reports/generate", json=body, headers=headers)
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["status"] == "generating"
        return data["reportId"]

    def test_generate_list_status(self, app_client, alpha_headers):
        report_id = self._generate(app_client, alpha_headers, days=7, name="Weekly")

        listing = app_client.get("/api/reports", headers=alpha_headers).json()
        assert listing["total"] == 1
        assert listing["reports"][0]["name"] == "Weekly"

        status = app_client.get(f"/api/reports/{report_id}", headers=alpha_headers).json()
        assert status["downloadUrl"] == f"/api/reports/{report_id}/download"
        assert status["report"]["dateRange"]["end"] == date.today().isoformat()

    def test_download_csv(self, app_client, alpha_headers):
        report_id = self._generate(app_client, alpha_headers, days=30)
        response = app_client.get(f"/api/reports/{report_id}/download", headers=alpha_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert f"report-{report_id}.csv" in response.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["Date", "Emails Sent", "Opens", "Replies", "Bounces"]
        assert rows[-1] == [date.today().isoformat(), "520", "275", "45", "6"]

    def test_download_limited_to_sub_accounts(self, app_client, alpha_headers):
        report_id = self._generate(app_client, alpha_headers, days=30, subAccountIds=["sub_quiet"])
        response = app_client.get(f"/api/reports/{report_id}/download", headers=alpha_headers)
        assert response.text == "Date,Emails Sent,Opens,Replies,Bounces\n"

    def test_generate_with_date_range(self, app_client, alpha_headers):
        report_id = self._generate(
            app_client, alpha_headers, dateRange={"start": "2026-01-01", "end": "2026-01-31"},
        )
        report = app_client.get(f"/api/reports/{report_id}", headers=alpha_headers).json()["report"]
        assert report["dateRange"] == {"start": "2026-01-01", "end": "2026-01-31"}

    @pytest.mark.parametrize("body", [
        {"format": "docx"},
        {"dateRange": {"start": "2026-02-01", "end": "2026-01-01"}},
        {"days": 0},
        {"subAccountIds": ["bad id"]},
    ])
    def test_generate_invalid(self, app_client, alpha_headers, body):
        assert app_client.post("/api/reports/generate", json=body, headers=alpha_headers).status_code == 400

    def test_generate_foreign_sub_account_is_404(self, app_client, alpha_headers):
        response = app_client.post(
            "/api/reports/generate", json={"subAccountIds": ["sub_beta"]}, headers=alpha_headers,
        )
        assert response.status_code == 404

    def test_other_tenant_report_is_404(self, app_client, alpha_headers, beta_headers):
        report_id = self._generate(app_client, alpha_headers, days=7)
        assert app_client.get(f"/api/reports/{report_id}", headers=beta_headers).status_code == 404
        assert app_client.get(f"/api/reports/{report_id}/download", headers=beta_headers).status_code == 404

    def test_schedule(self, app_client, alpha_headers):
        response = app_client.post("/api/reports/schedule", json={
            "frequency": "monthly", "dayOfMonth": 1, "recipients": ["Ops@Agency.test"],
        }, headers=alpha_headers)

        assert response.status_code == 200
        schedule = response.json()["schedule"]
        assert schedule["frequency"] == "monthly"
        assert schedule["recipients"] == ["ops@agency.test"]

        listing = app_client.get("/api/reports/schedules", headers=alpha_headers).json()
        assert listing["total"] == 1

    @pytest.mark.parametrize("body", [
        {"frequency": "daily"},
        {"frequency": "weekly", "recipients": ["nope"]},
    ])
    def test_schedule_invalid(self, app_client, alpha_headers, body):
        assert app_client.post("/api/reports/schedule", json=body, headers=alpha_headers).status_code == 400


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

class TestSettings:
    """Tests for /api/settings."""

    def test_get(self, app_client, alpha_headers):
        data = app_client.get("/api/settings", headers=alpha_headers).json()

        assert data["company_name"] == "Alpha Agency"
        assert data["notifications"] == {"emailAlerts": True, "weeklySummary": True, "campaignAlerts": False}
        assert data["teamMembers"] == []
        assert data["api"] == {"apiKey": None, "webhookUrl": None}

    def test_put_partial(self, app_client, alpha_headers):
        response = app_client.put("/api/settings", json={"phone": "+1-555-0100"}, headers=alpha_headers)
        settings = response.json()["settings"]

        assert settings["phone"] == "+1-555-0100"
        assert settings["company_name"] == "Alpha Agency"

    def test_put_invalid_email(self, app_client, alpha_headers):
        response = app_client.put("/api/settings", json={"contact_email": "nope"}, headers=alpha_headers)
        assert response.status_code == 400

    def test_patch_preferences(self, app_client, alpha_headers):
        response = app_client.patch("/api/settings", json={
            "profile": {"companyName": "Alpha Renamed"},
            "notifications": {"weeklySummary": False, "smsAlerts": True},
            "whiteLabel": {"primaryColor": "#112233"},
        }, headers=alpha_headers)
        assert response.json() == {"success": True}

        data = app_client.get("/api/settings", headers=alpha_headers).json()
        assert data["company_name"] == "Alpha Renamed"
        assert data["notifications"]["weeklySummary"] is False
        assert "smsAlerts" not in data["notifications"]
        assert data["whiteLabel"]["primaryColor"] == "#112233"

    def test_patch_bad_logo_url(self, app_client, alpha_headers):
        response = app_client.patch(
            "/api/settings", json={"whiteLabel": {"customLogoUrl": "ftp://x"}}, headers=alpha_headers,
        )
        assert response.status_code == 400

    def test_team_invite_and_remove(self, app_client, alpha_headers):
        invited = app_client.post(
            "/api/settings/team/invite", json={"email": "ops@agency.test"}, headers=alpha_headers,
        ).json()
        user = invited["user"]
        assert user["role"] == "viewer"
        assert user["name"] == "ops"

        assert app_client.delete(f"/api/settings/team/{user['id']}", headers=alpha_headers).status_code == 200
        assert app_client.delete(f"/api/settings/team/{user['id']}", headers=alpha_headers).status_code == 404

    def test_team_invite_bad_role(self, app_client, alpha_headers):
        response = app_client.post(
            "/api/settings/team/invite", json={"email": "ops@agency.test", "role": "owner"}, headers=alpha_headers,
        )
        assert response.status_code == 400

    def test_regenerate_keeps_webhook(self, app_client, alpha_headers):
        app_client.patch("/api/settings/api/webhook", json={"webhookUrl": "https://hooks.test/a"}, headers=alpha_headers)
        first = app_client.post("/api/settings/api/regenerate", headers=alpha_headers).json()["apiKey"]
        second = app_client.post("/api/settings/api/regenerate", headers=alpha_headers).json()["apiKey"]

        assert first.startswith("pk_live_")
        assert first != second
        api = app_client.get("/api/settings", headers=alpha_headers).json()["api"]
        assert api == {"apiKey": second, "webhookUrl": "https://hooks.test/a"}

    def test_webhook_invalid(self, app_client, alpha_headers):
        response = app_client.patch(
            "/api/settings/api/webhook", json={"webhookUrl": "hooks.test"}, headers=alpha_headers,
        )
        assert response.status_code == 400


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH
# ═══════════════════════════════════════════════════════════════════════════════

class TestHealth:
    """Tests for /api/health and /api/metrics."""

    def test_health(self, app_client):
        data = app_client.get("/api/health").json()

        assert data["status"] == "healthy"
        assert data["store"]["tenants"] == 2
        assert data["store"]["schema_version"] == 2

    def test_request_id_echoed(self, app_client, alpha_headers):
        response = app_client.get("/api/me", headers={**alpha_headers, "X-Request-ID": "trace123"})
        assert response.headers["X-Request-ID"] == "trace123"

    def test_metrics_counts_requests(self, app_client, alpha_headers):
        app_client.get("/api/dashboard", headers=alpha_headers)
        data = app_client.get("/api/metrics").json()
        assert data["requests"].get("GET /api/dashboard", 0) >= 1

    def test_request_timeout_budget(self):
        from core.config import config
        from web.middleware import request_timeout_for

        assert request_timeout_for("/api/settings") == 30.0
        assert request_timeout_for("/api/dashboard") == max(30.0, config.provider.request_timeout * 4)
