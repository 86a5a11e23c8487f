"""Shared dependencies for API route modules."""
import logging
import time
from typing import Optional

from fastapi import Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import config
from core.models import Tenant
from core.observability import add_log_context
from core.portal_store import PortalStore, get_store
from core.provider import InstantlyClient
from core.sources import ClientFactory
from core.validators import (
    validate_choice,
    validate_date_range,
    validate_days,
    validate_email,
    validate_entity_id,
    validate_limit,
    validate_name,
    validate_search,
)
from core.exceptions import NotFoundError, ValidationError
from web.services import auth_service

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address, enabled=config.web.rate_limit_enabled)


# Shared logger factory
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_client_factory() -> ClientFactory:
    """Provider client constructor; tests override this dependency."""
    return InstantlyClient


def session_token(request: Request) -> Optional[str]:
    """Session token from an `Authorization: Bearer` header, else from the cookie."""
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(config.auth.session_cookie) or None


async def get_current_tenant(request: Request, store: PortalStore = Depends(get_store)) -> Tenant:
    """
    FastAPI dependency for every protected endpoint.

    The tenant always comes from the session, never from request parameters.
    Raises 401 when the token is missing, forged, expired or revoked.
    """
    tenant = await auth_service.resolve_session(store, session_token(request))
    if tenant is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    add_log_context(tenant_id=tenant.id)
    return tenant


def bad_request(error: ValidationError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(error))


def not_found(error: NotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(error))


# Track startup time for uptime calculation
START_TIME = time.time()

__all__ = [
    "limiter", "get_store", "get_logger", "get_client_factory", "get_current_tenant",
    "session_token", "bad_request", "not_found", "START_TIME", "PortalStore", "Tenant",
    "validate_choice", "validate_date_range", "validate_days", "validate_email",
    "validate_entity_id", "validate_limit", "validate_name", "validate_search",
    "NotFoundError", "ValidationError",
]
