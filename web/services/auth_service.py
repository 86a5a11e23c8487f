"""
Password and session authentication service.

Passwords are stored as bcrypt hashes. A successful login creates a row in
the `sessions` table and hands out a signed token that carries the tenant id
and session id. A token is accepted only while both its signature age and
the session row are valid, so logging out revokes it server-side.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import bcrypt
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from core.config import config
from core.models import Tenant
from core.portal_store import PortalStore

logger = logging.getLogger(__name__)

_SALT = "portal-session"


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """bcrypt hash of `password` as a UTF-8 string."""
    salt = bcrypt.gensalt(rounds=rounds or config.auth.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against a stored hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def get_serializer(secret_key: Optional[str] = None) -> URLSafeTimedSerializer:
    secret = secret_key or config.auth.secret_key
    if not secret:
        raise RuntimeError("PORTAL_SECRET_KEY must be set")
    return URLSafeTimedSerializer(secret, salt=_SALT)


def create_session_token(tenant_id: str, session_id: str, secret_key: Optional[str] = None) -> str:
    """Sign `{tenant_id, sid}` into an opaque token."""
    return get_serializer(secret_key).dumps({"tenant_id": tenant_id, "sid": session_id})


def load_session_token(
    token: str,
    max_age: Optional[int] = None,
    secret_key: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Verify a token's signature and age.

    Returns:
        The token payload, or None if the token is forged, malformed or expired
    """
    if not token:
        return None
    try:
        data = get_serializer(secret_key).loads(token, max_age=max_age or config.auth.session_max_age)
    except SignatureExpired:
        logger.info("Session token expired")
        return None
    except BadData:
        logger.warning("Invalid session token signature")
        return None

    if not isinstance(data, dict) or not data.get("tenant_id") or not data.get("sid"):
        return None
    return data


@dataclass
class LoginResult:
    tenant: Tenant
    token: str
    session_id: str
    expires_at: datetime


async def authenticate(store: PortalStore, email: str, password: str) -> Optional[LoginResult]:
    """
    Check credentials and open a session.

    Returns:
        LoginResult on success, None for an unknown email or wrong password
        (the two cases are not distinguished)
    """
    tenant = await store.get_tenant_by_email(email)
    if tenant is None or not verify_password(password, tenant.password_hash):
        logger.info("Login failed", extra={"email": email})
        return None

    session = await store.create_session(tenant.id, config.auth.session_max_age)
    await store.record_login(tenant.id)
    logger.info(f"Tenant {tenant.id} logged in", extra={"tenant_id": tenant.id})

    return LoginResult(
        tenant=tenant,
        token=create_session_token(tenant.id, session.id),
        session_id=session.id,
        expires_at=session.expires_at,
    )


async def resolve_session(store: PortalStore, token: str) -> Optional[Tenant]:
    """Tenant behind a token, or None if the token or its session is no longer valid."""
    data = load_session_token(token)
    if data is None:
        return None

    session = await store.get_session(data["sid"])
    if session is None or session.tenant_id != data["tenant_id"]:
        return None
    if not session.is_valid(datetime.now(timezone.utc)):
        return None

    return await store.get_tenant(session.tenant_id)


async def logout(store: PortalStore, token: str) -> None:
    data = load_session_token(token)
    if data is not None:
        await store.revoke_session(data["sid"])
