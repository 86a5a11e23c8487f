"""
Base repository with SQLite connection management and versioned migrations.

All domain repository mixins run on top of this class.
"""
import asyncio
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Tuple
from uuid import uuid4

from core.config import config
from core.observability import get_logger

logger = get_logger(__name__)


# Ordered list of (version, description, script). A migration runs exactly
# once; the highest applied version is kept in `schema_version`.
MIGRATIONS: List[Tuple[int, str, str]] = [
    (1, "initial schema", """
        CREATE TABLE IF NOT EXISTS tenants (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            company_name TEXT NOT NULL,
            logo_url TEXT,
            contact_email TEXT,
            phone TEXT,
            notifications TEXT,
            white_label TEXT,
            created_at TEXT NOT NULL,
            last_login TEXT
        );

        CREATE TABLE IF NOT EXISTS sub_accounts (
            id TEXT PRIMARY KEY,
            tenant_id TEXT NOT NULL REFERENCES tenants(id),
            company_name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'onboarding',
            provider_api_key TEXT,
            created_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_sub_accounts_tenant ON sub_accounts(tenant_id);

        CREATE TABLE IF NOT EXISTS campaigns (
            id TEXT PRIMARY KEY,
            sub_account_id TEXT NOT NULL REFERENCES sub_accounts(id),
            name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'paused',
            inboxes INTEGER NOT NULL DEFAULT 0,
            daily_sends INTEGER NOT NULL DEFAULT 0,
            daily_limit INTEGER NOT NULL DEFAULT 0,
            sent INTEGER NOT NULL DEFAULT 0,
            opens INTEGER NOT NULL DEFAULT 0,
            replies INTEGER NOT NULL DEFAULT 0,
            start_date TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_campaigns_sub_account ON campaigns(sub_account_id);

        CREATE TABLE IF NOT EXISTS daily_metrics (
            sub_account_id TEXT NOT NULL REFERENCES sub_accounts(id),
            metric_date TEXT NOT NULL,
            sent INTEGER NOT NULL DEFAULT 0,
            opens INTEGER NOT NULL DEFAULT 0,
            replies INTEGER NOT NULL DEFAULT 0,
            bounces INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (sub_account_id, metric_date)
        );

        CREATE TABLE IF NOT EXISTS reports (
            id TEXT PRIMARY KEY,
            tenant_id TEXT NOT NULL REFERENCES tenants(id),
            name TEXT NOT NULL,
            report_type TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            sub_account_ids TEXT,
            format TEXT NOT NULL DEFAULT 'csv',
            status TEXT NOT NULL DEFAULT 'ready',
            created_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_reports_tenant ON reports(tenant_id, created_at DESC);

        CREATE TABLE IF NOT EXISTS scheduled_reports (
            id TEXT PRIMARY KEY,
            tenant_id TEXT NOT NULL REFERENCES tenants(id),
            report_type TEXT NOT NULL,
            frequency TEXT NOT NULL,
            day_of_month INTEGER,
            recipients TEXT,
            format TEXT NOT NULL DEFAULT 'csv',
            created_at TEXT NOT NULL
        );
    """),
    (2, "team members, portal api credentials and sessions", """
        CREATE TABLE IF NOT EXISTS team_members (
            id TEXT PRIMARY KEY,
            tenant_id TEXT NOT NULL REFERENCES tenants(id),
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'viewer'
        );
        CREATE INDEX IF NOT EXISTS idx_team_members_tenant ON team_members(tenant_id);

        CREATE TABLE IF NOT EXISTS api_credentials (
            tenant_id TEXT PRIMARY KEY REFERENCES tenants(id),
            api_key TEXT NOT NULL,
            webhook_url TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            tenant_id TEXT NOT NULL REFERENCES tenants(id),
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            revoked INTEGER NOT NULL DEFAULT 0
        );
    """),
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Opaque entity id, e.g. `sub_3f9a1c2b7d4e`."""
    return f"{prefix}_{uuid4().hex[:12]}"


class BaseRepository:
    """
    Base repository with SQLite connection management.

    A single connection is shared and every access is serialized by an
    asyncio lock. Writes go through `transaction()` so each mutation is
    committed (or rolled back) on its own.

    Usage:
        class CampaignsMixin:
            async def get_campaign(self, campaign_id):
                async with self.connection() as conn:
                    return conn.execute("SELECT ...", (campaign_id,)).fetchone()
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else config.storage.db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the database and bring the schema up to date."""
        async with self._lock:
            if self._connection is not None:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            self._run_migrations(conn)
            self._connection = conn
            logger.info(f"SQLite connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        async with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
                logger.info("SQLite connection closed")

    @asynccontextmanager
    async def connection(self):
        """Serialized access to the shared connection (read paths)."""
        if self._connection is None:
            await self.connect()
        async with self._lock:
            yield self._connection

    @asynccontextmanager
    async def transaction(self):
        """Serialized access that commits on success and rolls back on error."""
        async with self.connection() as conn:
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    async def fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Execute query and fetch one result."""
        async with self.connection() as conn:
            return conn.execute(sql, params).fetchone()

    async def fetchall(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Execute query and fetch all results."""
        async with self.connection() as conn:
            return conn.execute(sql, params).fetchall()

    async def schema_version(self) -> int:
        row = await self.fetchone("SELECT MAX(version) AS version FROM schema_version")
        return row["version"] or 0

    @staticmethod
    def _run_migrations(conn: sqlite3.Connection) -> None:
        """Apply every migration newer than the recorded schema version."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
        """)
        current = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0] or 0

        for version, description, script in MIGRATIONS:
            if version <= current:
                continue
            try:
                conn.executescript(f"BEGIN;\n{script}\n"
                                   f"INSERT INTO schema_version (version, description, applied_at) "
                                   f"VALUES ({version}, '{description}', '{utcnow().isoformat()}');\n"
                                   f"COMMIT;")
            except sqlite3.Error:
                conn.rollback()
                logger.error(f"Migration {version} ({description}) failed", exc_info=True)
                raise
            logger.info(f"Migration {version} applied: {description}")


def row_value(value: Any) -> Any:
    """Convert enums and dates to what SQLite stores."""
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value
