"""PortalStore tenant methods."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from core.models import Tenant, DEFAULT_NOTIFICATIONS, DEFAULT_WHITE_LABEL
from core.observability import get_logger
from core.repositories.base import new_id, utcnow

logger = get_logger(__name__)

# Columns the profile update endpoints may touch
PROFILE_FIELDS = ("company_name", "logo_url", "contact_email", "phone")


class TenantsMixin:

    async def create_tenant(
        self,
        email: str,
        password_hash: str,
        company_name: str,
        tenant_id: Optional[str] = None,
        contact_email: Optional[str] = None,
        phone: Optional[str] = None,
        logo_url: Optional[str] = None,
    ) -> Tenant:
        """Insert a tenant. Emails are stored lower-cased and must be unique."""
        tenant = Tenant(
            id=tenant_id or new_id("tenant"),
            email=email.strip().lower(),
            password_hash=password_hash,
            company_name=company_name,
            logo_url=logo_url,
            contact_email=contact_email,
            phone=phone,
            created_at=utcnow().isoformat(),
        )
        async with self.transaction() as conn:
            conn.execute("""
                INSERT INTO tenants (id, email, password_hash, company_name, logo_url,
                                     contact_email, phone, notifications, white_label, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                tenant.id, tenant.email, tenant.password_hash, tenant.company_name,
                tenant.logo_url, tenant.contact_email, tenant.phone,
                json.dumps(tenant.notifications), json.dumps(tenant.white_label),
                tenant.created_at,
            ))
        logger.info(f"Tenant created: {tenant.id}")
        return tenant

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        row = await self.fetchone("SELECT * FROM tenants WHERE id = ?", (tenant_id,))
        return Tenant.from_row(row) if row else None

    async def get_tenant_by_email(self, email: str) -> Optional[Tenant]:
        row = await self.fetchone(
            "SELECT * FROM tenants WHERE email = ?", (email.strip().lower(),)
        )
        return Tenant.from_row(row) if row else None

    async def count_tenants(self) -> int:
        row = await self.fetchone("SELECT COUNT(*) AS n FROM tenants")
        return row["n"]

    async def record_login(self, tenant_id: str) -> None:
        async with self.transaction() as conn:
            conn.execute(
                "UPDATE tenants SET last_login = ? WHERE id = ?",
                (utcnow().isoformat(), tenant_id),
            )

    async def update_tenant_profile(self, tenant_id: str, **fields: Any) -> Optional[Tenant]:
        """
        Update profile columns. Unknown keys are ignored; None values are
        written only for `logo_url` (clearing a logo is allowed).
        """
        updates = {
            k: v for k, v in fields.items()
            if k in PROFILE_FIELDS and (v is not None or k == "logo_url")
        }
        if updates:
            assignments = ", ".join(f"{column} = ?" for column in updates)
            async with self.transaction() as conn:
                conn.execute(
                    f"UPDATE tenants SET {assignments} WHERE id = ?",
                    (*updates.values(), tenant_id),
                )
        return await self.get_tenant(tenant_id)

    async def update_tenant_preferences(
        self,
        tenant_id: str,
        notifications: Optional[Dict[str, Any]] = None,
        white_label: Optional[Dict[str, Any]] = None,
    ) -> Optional[Tenant]:
        """Shallow-merge notification and white-label preferences."""
        tenant = await self.get_tenant(tenant_id)
        if tenant is None:
            return None

        merged_notifications = {**tenant.notifications, **(notifications or {})}
        merged_white_label = {**tenant.white_label, **(white_label or {})}

        # Keep only known keys
        merged_notifications = {k: merged_notifications[k] for k in DEFAULT_NOTIFICATIONS}
        merged_white_label = {k: merged_white_label[k] for k in DEFAULT_WHITE_LABEL}

        async with self.transaction() as conn:
            conn.execute(
                "UPDATE tenants SET notifications = ?, white_label = ? WHERE id = ?",
                (json.dumps(merged_notifications), json.dumps(merged_white_label), tenant_id),
            )
        tenant.notifications = merged_notifications
        tenant.white_label = merged_white_label
        return tenant
