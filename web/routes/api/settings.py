"""Tenant settings endpoints: profile, preferences, team and portal API credentials."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.models import DEFAULT_NOTIFICATIONS, DEFAULT_WHITE_LABEL, TeamRole
from core.seed import generate_portal_api_key
from web.schemas import SettingsPatch, SettingsUpdate, TeamInviteRequest, WebhookUpdate
from ._deps import (
    limiter, get_store, get_current_tenant,
    bad_request, validate_choice, validate_email, validate_entity_id, validate_name,
    ValidationError, PortalStore, Tenant,
)

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger(__name__)

TEAM_ROLES = [r.value for r in TeamRole]


def _validate_url(value: Optional[str], field: str) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ValidationError(field, "Must be an http(s) URL", value)
    return value


def _validate_profile(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Check flat profile columns; only keys present in `fields` are returned."""
    cleaned = {}
    if fields.get("company_name") is not None:
        cleaned["company_name"] = validate_name(fields["company_name"], "company_name")
    if fields.get("contact_email") is not None:
        cleaned["contact_email"] = validate_email(fields["contact_email"], "contact_email")
    if fields.get("phone") is not None:
        cleaned["phone"] = fields["phone"].strip()[:50]
    if "logo_url" in fields:
        cleaned["logo_url"] = _validate_url(fields["logo_url"], "logo_url")
    return cleaned


async def _settings_payload(store: PortalStore, tenant: Tenant) -> Dict[str, Any]:
    members = await store.list_team_members(tenant.id)
    credential = await store.get_api_credential(tenant.id)
    return {
        "company_name": tenant.company_name,
        "email": tenant.email,
        "contact_email": tenant.contact_email,
        "phone": tenant.phone,
        "logo_url": tenant.logo_url,
        "profile": tenant.profile(),
        "notifications": tenant.notifications,
        "whiteLabel": tenant.white_label,
        "teamMembers": [m.to_dict() for m in members],
        "api": {
            "apiKey": credential.api_key if credential else None,
            "webhookUrl": credential.webhook_url if credential else None,
        },
    }


@router.get("")
@limiter.limit("30/minute")
async def get_settings(
    request: Request,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    return await _settings_payload(store, tenant)


@router.put("")
@limiter.limit("10/minute")
async def update_settings(
    request: Request,
    body: SettingsUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """Flat profile update; omitted fields are left unchanged."""
    try:
        fields = _validate_profile(body.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise bad_request(e)

    tenant = await store.update_tenant_profile(tenant.id, **fields)
    return {"success": True, "settings": await _settings_payload(store, tenant)}


@router.patch("")
@limiter.limit("10/minute")
async def patch_settings(
    request: Request,
    body: SettingsPatch,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """
    Partial update of profile, notification and white-label preferences.

    Preference keys the portal does not know are ignored.
    """
    try:
        profile = {}
        if body.profile is not None:
            given = body.profile.model_dump(exclude_unset=True)
            profile = _validate_profile({
                "company_name": given.get("companyName"),
                "contact_email": given.get("contactEmail"),
                "phone": given.get("phone"),
                **({"logo_url": given["logoUrl"]} if "logoUrl" in given else {}),
            })

        white_label = None
        if body.whiteLabel is not None:
            white_label = {k: v for k, v in body.whiteLabel.items() if k in DEFAULT_WHITE_LABEL}
            if "customLogoUrl" in white_label:
                white_label["customLogoUrl"] = _validate_url(white_label["customLogoUrl"], "customLogoUrl")

        notifications = None
        if body.notifications is not None:
            notifications = {k: v for k, v in body.notifications.items() if k in DEFAULT_NOTIFICATIONS}
    except ValidationError as e:
        raise bad_request(e)

    if profile:
        await store.update_tenant_profile(tenant.id, **profile)
    if notifications is not None or white_label is not None:
        await store.update_tenant_preferences(tenant.id, notifications, white_label)

    return {"success": True}


# ─── Team ─────────────────────────────────────────────────────────────────────

@router.post("/team/invite")
@limiter.limit("10/minute")
async def invite_team_member(
    request: Request,
    body: TeamInviteRequest,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    try:
        email = validate_email(body.email)
        role = validate_choice(body.role, TEAM_ROLES, "role", default=TeamRole.VIEWER.value)
        name = validate_name(body.name) if body.name else None
    except ValidationError as e:
        raise bad_request(e)

    member = await store.add_team_member(tenant.id, email, TeamRole(role), name=name)
    logger.info(f"Team member {member.id} invited", extra={"tenant_id": tenant.id})
    return {"success": True, "user": member.to_dict()}


@router.delete("/team/{user_id}")
@limiter.limit("10/minute")
async def remove_team_member(
    request: Request,
    user_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    try:
        user_id = validate_entity_id(user_id, "user_id", allow_none=False)
    except ValidationError as e:
        raise bad_request(e)

    if not await store.remove_team_member(tenant.id, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}


# ─── Portal API ───────────────────────────────────────────────────────────────

@router.post("/api/regenerate")
@limiter.limit("5/minute")
async def regenerate_api_key(
    request: Request,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """Replace the tenant's portal API key; the webhook URL is kept."""
    credential = await store.set_api_key(tenant.id, generate_portal_api_key())
    logger.info("Portal API key regenerated", extra={"tenant_id": tenant.id})
    return {"success": True, "apiKey": credential.api_key}


@router.patch("/api/webhook")
@limiter.limit("10/minute")
async def update_webhook(
    request: Request,
    body: WebhookUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    try:
        webhook_url = _validate_url(body.webhookUrl, "webhookUrl")
    except ValidationError as e:
        raise bad_request(e)

    credential = await store.set_webhook_url(tenant.id, webhook_url, generate_portal_api_key())
    return {"success": True, "webhookUrl": credential.webhook_url}
