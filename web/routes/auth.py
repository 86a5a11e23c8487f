"""
Authentication routes: email/password login, logout and the current tenant.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from core.exceptions import ValidationError
from core.models import Tenant
from core.portal_store import PortalStore
from core.validators import validate_email
from web.config import COOKIE_SECURE, SESSION_COOKIE, SESSION_MAX_AGE
from web.routes.api._deps import get_current_tenant, get_store, limiter, session_token
from web.schemas import LoginRequest, LoginResponse
from web.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _tenant_payload(tenant: Tenant) -> dict:
    return {
        "id": tenant.id,
        "email": tenant.email,
        "company_name": tenant.company_name,
        "logo_url": tenant.logo_url,
    }


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    store: PortalStore = Depends(get_store),
):
    """
    Verify credentials and open a 24h session.

    The token is set as an HttpOnly cookie and returned in the body so API
    clients can send it as `Authorization: Bearer <token>`.
    """
    try:
        email = validate_email(body.email)
    except ValidationError:
        # Same response as a wrong password
        raise HTTPException(status_code=401, detail="Invalid email or password")

    result = await auth_service.authenticate(store, email, body.password)
    if result is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    response.set_cookie(
        key=SESSION_COOKIE,
        value=result.token,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )
    return {
        "success": True,
        "token": result.token,
        "expiresAt": result.expires_at.isoformat(),
        "tenant": _tenant_payload(result.tenant),
    }


@router.post("/logout")
async def logout(request: Request, response: Response, store: PortalStore = Depends(get_store)):
    """Revoke the session (if any) and clear the cookie."""
    token = session_token(request)
    if token:
        await auth_service.logout(store, token)
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/me")
async def get_current_tenant_info(
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """Current tenant profile and the sub-accounts it owns."""
    sub_accounts = await store.list_sub_accounts(tenant.id)
    return {
        "tenant": {
            **_tenant_payload(tenant),
            "profile": tenant.profile(),
            "lastLogin": tenant.last_login,
        },
        "subAccounts": [s.to_dict() for s in sub_accounts],
    }
