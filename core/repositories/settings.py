"""PortalStore team-member and portal API credential methods."""
from __future__ import annotations

from typing import List, Optional

from core.models import ApiCredential, TeamMember, TeamRole
from core.repositories.base import new_id, utcnow


class SettingsMixin:

    # ─── Team ─────────────────────────────────────────────────────────────────

    async def list_team_members(self, tenant_id: str) -> List[TeamMember]:
        rows = await self.fetchall(
            "SELECT * FROM team_members WHERE tenant_id = ? ORDER BY rowid", (tenant_id,)
        )
        return [TeamMember.from_row(row) for row in rows]

    async def add_team_member(
        self,
        tenant_id: str,
        email: str,
        role: TeamRole = TeamRole.VIEWER,
        name: Optional[str] = None,
    ) -> TeamMember:
        member = TeamMember(
            id=new_id("user"),
            tenant_id=tenant_id,
            name=name or email.split("@")[0],
            email=email,
            role=TeamRole(role),
        )
        async with self.transaction() as conn:
            conn.execute(
                "INSERT INTO team_members (id, tenant_id, name, email, role) VALUES (?, ?, ?, ?, ?)",
                (member.id, tenant_id, member.name, member.email, member.role.value),
            )
        return member

    async def remove_team_member(self, tenant_id: str, member_id: str) -> bool:
        """Delete a member of this tenant. False if nothing matched."""
        async with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM team_members WHERE id = ? AND tenant_id = ?", (member_id, tenant_id)
            )
            return cursor.rowcount > 0

    # ─── Portal API credential ────────────────────────────────────────────────

    async def get_api_credential(self, tenant_id: str) -> Optional[ApiCredential]:
        row = await self.fetchone("SELECT * FROM api_credentials WHERE tenant_id = ?", (tenant_id,))
        return ApiCredential.from_row(row) if row else None

    async def set_api_key(self, tenant_id: str, api_key: str) -> ApiCredential:
        """Create or replace the tenant's portal API key, keeping the webhook."""
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO api_credentials (tenant_id, api_key, webhook_url, created_at)
                VALUES (?, ?, NULL, ?)
                ON CONFLICT(tenant_id) DO UPDATE SET api_key = excluded.api_key
            """, (tenant_id, api_key, utcnow().isoformat()))
        return await self.get_api_credential(tenant_id)

    async def set_webhook_url(
        self,
        tenant_id: str,
        webhook_url: Optional[str],
        api_key_if_missing: str,
    ) -> ApiCredential:
        """Set the webhook; a credential row is created on first use."""
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO api_credentials (tenant_id, api_key, webhook_url, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(tenant_id) DO UPDATE SET webhook_url = excluded.webhook_url
            """, (tenant_id, api_key_if_missing, webhook_url, utcnow().isoformat()))
        return await self.get_api_credential(tenant_id)
