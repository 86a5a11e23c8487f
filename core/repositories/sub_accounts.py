"""PortalStore sub-account methods.

Every read takes the tenant id so a sub-account can only be seen through
its owner.
"""
from __future__ import annotations

from typing import List, Optional

from core.models import SubAccount, SubAccountStatus
from core.observability import get_logger
from core.repositories.base import new_id, utcnow

logger = get_logger(__name__)


def _escape_like(text: str) -> str:
    """Make `%` and `_` match literally in a LIKE pattern escaped with `\\`."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SubAccountsMixin:

    async def create_sub_account(
        self,
        tenant_id: str,
        company_name: str,
        status: SubAccountStatus = SubAccountStatus.ONBOARDING,
        provider_api_key: Optional[str] = None,
        sub_account_id: Optional[str] = None,
    ) -> SubAccount:
        sub = SubAccount(
            id=sub_account_id or new_id("sub"),
            tenant_id=tenant_id,
            company_name=company_name,
            status=SubAccountStatus(status),
            provider_api_key=provider_api_key or None,
            created_at=utcnow().isoformat(),
        )
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO sub_accounts (id, tenant_id, company_name, status, provider_api_key, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (sub.id, sub.tenant_id, sub.company_name, sub.status.value,
                  sub.provider_api_key, sub.created_at))
        logger.info(f"Sub-account created: {sub.id}", extra={"tenant_id": tenant_id})
        return sub

    async def list_sub_accounts(
        self,
        tenant_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[SubAccount]:
        """Sub-accounts owned by the tenant, optionally filtered, oldest first."""
        sql = "SELECT * FROM sub_accounts WHERE tenant_id = ?"
        params: list = [tenant_id]
        if status:
            sql += " AND status = ?"
            params.append(status)
        if search:
            sql += " AND LOWER(company_name) LIKE ? ESCAPE '\\'"
            params.append(f"%{_escape_like(search.lower())}%")
        sql += " ORDER BY created_at, id"

        rows = await self.fetchall(sql, tuple(params))
        return [SubAccount.from_row(row) for row in rows]

    async def get_sub_account(self, tenant_id: str, sub_account_id: str) -> Optional[SubAccount]:
        row = await self.fetchone(
            "SELECT * FROM sub_accounts WHERE id = ? AND tenant_id = ?",
            (sub_account_id, tenant_id),
        )
        return SubAccount.from_row(row) if row else None

    async def set_provider_key(
        self,
        tenant_id: str,
        sub_account_id: str,
        provider_api_key: Optional[str],
    ) -> Optional[SubAccount]:
        """Link (or unlink, with None) the sub-account to the email provider."""
        async with self.transaction() as conn:
            cursor = conn.execute(
                "UPDATE sub_accounts SET provider_api_key = ? WHERE id = ? AND tenant_id = ?",
                (provider_api_key or None, sub_account_id, tenant_id),
            )
            if cursor.rowcount == 0:
                return None
        return await self.get_sub_account(tenant_id, sub_account_id)
