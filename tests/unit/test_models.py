"""
Tests for core.models module.
"""
import pytest
from datetime import date, datetime, timedelta, timezone

from core.models import (
    Campaign,
    CampaignStatus,
    DailyMetric,
    MetricsSourceKind,
    Report,
    Session,
    SubAccount,
    SubAccountStatus,
    _parse_date,
)


class TestCampaignStatus:
    """Tests for CampaignStatus enum."""

    def test_toggled(self):
        assert CampaignStatus.ACTIVE.toggled() is CampaignStatus.PAUSED
        assert CampaignStatus.PAUSED.toggled() is CampaignStatus.ACTIVE

    def test_toggle_twice_restores(self):
        for status in CampaignStatus:
            assert status.toggled().toggled() is status


class TestSubAccount:
    """Tests for SubAccount model."""

    def test_source_kind_follows_api_key(self):
        """The provider key is the only switch between live and mock data."""
        mock = SubAccount(id="sub_1", tenant_id="t", company_name="A")
        live = SubAccount(id="sub_2", tenant_id="t", company_name="B", provider_api_key="key")

        assert mock.source_kind is MetricsSourceKind.MOCK
        assert live.source_kind is MetricsSourceKind.LIVE

    def test_to_dict_never_exposes_key(self):
        sub = SubAccount(id="sub_2", tenant_id="t", company_name="B",
                         status=SubAccountStatus.ACTIVE, provider_api_key="secret")
        data = sub.to_dict()

        assert data["hasLiveData"] is True
        assert data["status"] == "active"
        assert "secret" not in data.values()
        assert "tenant_id" not in data


class TestDailyMetric:
    """Tests for DailyMetric model."""

    def test_add_same_date(self):
        total = DailyMetric(date(2026, 2, 1), 10, 5, 1, 0) + DailyMetric(date(2026, 2, 1), 20, 6, 2, 1)
        assert (total.sent, total.opens, total.replies, total.bounces) == (30, 11, 3, 1)

    def test_add_different_dates_fails(self):
        with pytest.raises(ValueError):
            DailyMetric(date(2026, 2, 1)) + DailyMetric(date(2026, 2, 2))

    def test_to_dict(self):
        assert DailyMetric(date(2026, 2, 1), 500, 260, 40, 5).to_dict() == {
            "date": "2026-02-01",
            "emails_sent": 500,
            "opens": 260,
            "replies": 40,
            "bounces": 5,
        }


class TestCampaign:
    """Tests for Campaign model."""

    def test_rates(self):
        campaign = Campaign(id="c", sub_account_id="s", name="n", sent=1020, opens=535, replies=51)
        assert campaign.open_rate == 52.5
        assert campaign.reply_rate == 5.0

    def test_rates_zero_when_nothing_sent(self):
        campaign = Campaign(id="c", sub_account_id="s", name="n", sent=0, opens=0)
        assert campaign.open_rate == 0
        assert campaign.reply_rate == 0

    def test_to_dict(self):
        campaign = Campaign(id="c", sub_account_id="s", name="n", status=CampaignStatus.ACTIVE,
                            start_date=date(2026, 1, 1), source=MetricsSourceKind.LIVE)
        data = campaign.to_dict()
        assert data["status"] == "active"
        assert data["startDate"] == "2026-01-01"
        assert data["source"] == "live"


class TestReport:
    """Tests for Report model."""

    def test_to_dict_date_range(self):
        report = Report(id="rpt_1", tenant_id="t", name="Monthly", report_type="performance",
                        start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
        assert report.to_dict()["dateRange"] == {"start": "2026-01-01", "end": "2026-01-31"}


class TestSession:
    """Tests for Session model."""

    def test_is_valid(self):
        now = datetime(2026, 2, 1, tzinfo=timezone.utc)
        session = Session(id="s", tenant_id="t", created_at=now, expires_at=now + timedelta(hours=24))

        assert session.is_valid(now + timedelta(hours=23))
        assert not session.is_valid(now + timedelta(hours=24))

    def test_revoked_is_invalid(self):
        now = datetime(2026, 2, 1, tzinfo=timezone.utc)
        session = Session(id="s", tenant_id="t", created_at=now,
                          expires_at=now + timedelta(hours=24), revoked=True)
        assert not session.is_valid(now)


class TestParseDate:
    """Tests for _parse_date helper."""

    def test_iso_datetime_string(self):
        assert _parse_date("2026-02-01T10:30:00.000Z") == date(2026, 2, 1)

    def test_garbage(self):
        assert _parse_date("yesterday") is None

    def test_none_and_date(self):
        assert _parse_date(None) is None
        assert _parse_date(date(2026, 2, 1)) == date(2026, 2, 1)
