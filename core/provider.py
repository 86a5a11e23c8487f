"""
Async HTTP client for the Instantly v2 API (the email-sending provider).

Each linked sub-account has its own API key, so a client is created per
sub-account and used as an async context manager. Calls are plain
sequential requests: no retry, batching or caching.

Errors are raised as core.exceptions.ProviderError subclasses; callers that
must not fail (the metric sources) catch and log them.
"""
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from core.config import config
from core.exceptions import ProviderAPIError, ProviderConnectionError, ProviderDataError
from core.observability import get_logger, get_correlation_id, Timer

logger = get_logger(__name__)


class InstantlyClient:
    """
    Async client for one Instantly workspace.

    Usage:
        async with InstantlyClient(api_key) as client:
            rows = await client.get_campaign_daily_analytics(start, end)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Bearer token of the sub-account's Instantly workspace
            base_url: API base URL (defaults to INSTANTLY_BASE_URL)
            timeout: Request timeout in seconds (defaults to PROVIDER_TIMEOUT)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not api_key:
            raise ValueError("Instantly API key is required")

        self.api_key = api_key
        self.base_url = (base_url or config.provider.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.provider.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        """Request headers with auth."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "InstantlyClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make one HTTP request and return the decoded JSON body.

        Raises:
            ProviderConnectionError: Network/timeout errors
            ProviderAPIError: Provider returned a 4xx/5xx response
            ProviderDataError: Body is not JSON
        """
        if not self._client:
            await self.connect()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        request_headers = {}
        correlation_id = get_correlation_id()
        if correlation_id:
            request_headers["X-Request-ID"] = correlation_id

        try:
            with Timer(f"instantly {endpoint}", logger):
                response = await self._client.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=request_headers or None,
                )
        except httpx.TimeoutException as e:
            raise ProviderConnectionError(f"Request timeout after {self.timeout}s", details=endpoint) from e
        except httpx.RequestError as e:
            raise ProviderConnectionError(f"Request failed: {method} {endpoint}", details=str(e)) from e

        if response.status_code >= 400:
            raise ProviderAPIError(
                f"Instantly returned {response.status_code}",
                details=response.text[:500],
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderDataError(
                "Response is not JSON",
                details=endpoint,
                expected="application/json",
                got=response.headers.get("content-type"),
            ) from e

    @staticmethod
    def _as_list(payload: Any, endpoint: str) -> List[Dict[str, Any]]:
        """Accept a bare list or an `{items: [...]}` / `{data: [...]}` wrapper."""
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            for key in ("items", "data"):
                if isinstance(payload.get(key), list):
                    return payload[key]
        raise ProviderDataError(
            "Unexpected response shape", details=endpoint, expected="list", got=type(payload).__name__
        )

    @staticmethod
    def _range_params(start: date, end: date) -> Dict[str, str]:
        return {"start_date": start.isoformat(), "end_date": end.isoformat()}

    # ═══════════════════════════════════════════════════════════════════════════
    # ANALYTICS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_campaign_daily_analytics(self, start: date, end: date) -> List[Dict[str, Any]]:
        """Per-date campaign totals: `{date, sent, opened, replies, ...}`."""
        endpoint = "campaigns/analytics/daily"
        payload = await self._request("GET", endpoint, params=self._range_params(start, end))
        return self._as_list(payload, endpoint)

    async def get_account_daily_analytics(self, start: date, end: date) -> List[Dict[str, Any]]:
        """Per-mailbox, per-date sending stats: `{date, email_account, sent, bounced}`."""
        endpoint = "accounts/analytics/daily"
        payload = await self._request("GET", endpoint, params=self._range_params(start, end))
        return self._as_list(payload, endpoint)

    async def get_campaign_analytics(self, campaign_id: str) -> Dict[str, Any]:
        """Lifetime totals for one campaign: `{total_sent, total_opened, total_replied}`."""
        endpoint = f"campaigns/{campaign_id}/analytics"
        payload = await self._request("GET", endpoint)
        if isinstance(payload, list):
            payload = payload[0] if payload else {}
        if not isinstance(payload, dict):
            raise ProviderDataError("Unexpected response shape", details=endpoint, expected="object")
        return payload

    # ═══════════════════════════════════════════════════════════════════════════
    # CAMPAIGNS
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_campaigns(self, limit: int = None) -> List[Dict[str, Any]]:
        endpoint = "campaigns"
        payload = await self._request(
            "GET", endpoint, params={"limit": limit or config.provider.campaign_page_limit}
        )
        return self._as_list(payload, endpoint)
