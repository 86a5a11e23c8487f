"""PortalStore login session methods."""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

from core.models import Session
from core.repositories.base import new_id, utcnow


class SessionsMixin:

    async def create_session(self, tenant_id: str, max_age_seconds: int) -> Session:
        now = utcnow()
        session = Session(
            id=new_id("sess"),
            tenant_id=tenant_id,
            created_at=now,
            expires_at=now + timedelta(seconds=max_age_seconds),
        )
        async with self.transaction() as conn:
            conn.execute(
                "INSERT INTO sessions (id, tenant_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (session.id, tenant_id, session.created_at.isoformat(), session.expires_at.isoformat()),
            )
        return session

    async def get_session(self, session_id: str) -> Optional[Session]:
        row = await self.fetchone("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return Session.from_row(row) if row else None

    async def revoke_session(self, session_id: str) -> None:
        async with self.transaction() as conn:
            conn.execute("UPDATE sessions SET revoked = 1 WHERE id = ?", (session_id,))

    async def purge_expired_sessions(self) -> int:
        """Delete expired or revoked sessions. Returns rows removed."""
        async with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM sessions WHERE revoked = 1 OR expires_at < ?",
                (utcnow().isoformat(),),
            )
            return cursor.rowcount
