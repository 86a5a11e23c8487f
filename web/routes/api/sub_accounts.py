"""Sub-account endpoints: list with month-to-date stats, detail, create, provider key."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from core.models import SubAccountStatus
from web.schemas import ProviderKeyUpdate, SubAccountCreate
from web.services import dashboard_service
from ._deps import (
    limiter, get_store, get_current_tenant, get_client_factory,
    bad_request, not_found, validate_choice, validate_entity_id, validate_name, validate_search,
    NotFoundError, ValidationError, PortalStore, Tenant,
)

router = APIRouter(prefix="/sub-accounts", tags=["sub-accounts"])
logger = logging.getLogger(__name__)

SUB_ACCOUNT_STATUSES = [s.value for s in SubAccountStatus]


@router.get("")
@limiter.limit("30/minute")
async def list_sub_accounts(
    request: Request,
    status: Optional[str] = Query(None, description="active, onboarding or all"),
    search: Optional[str] = Query(None, description="Case-insensitive company name filter"),
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    try:
        status = validate_choice(status, SUB_ACCOUNT_STATUSES + ["all"], "status")
        search = validate_search(search)
    except ValidationError as e:
        raise bad_request(e)

    return await dashboard_service.list_sub_accounts_with_metrics(
        store, tenant.id,
        status=None if status == "all" else status,
        search=search,
        client_factory=client_factory,
    )


@router.get("/{sub_account_id}")
@limiter.limit("30/minute")
async def get_sub_account(
    request: Request,
    sub_account_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    """90-day stats, chart series and campaigns of one sub-account."""
    try:
        sub_account_id = validate_entity_id(sub_account_id, "sub_account_id", allow_none=False)
    except ValidationError as e:
        raise bad_request(e)

    try:
        return await dashboard_service.get_sub_account_detail(
            store, tenant.id, sub_account_id, client_factory=client_factory,
        )
    except NotFoundError as e:
        raise not_found(e)


@router.post("")
@limiter.limit("10/minute")
async def create_sub_account(
    request: Request,
    body: SubAccountCreate,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """New sub-accounts start in onboarding with no provider key (mock data)."""
    try:
        company_name = validate_name(body.companyName, "companyName")
    except ValidationError as e:
        raise bad_request(e)

    sub = await store.create_sub_account(tenant.id, company_name)
    return sub.to_dict()


@router.put("/{sub_account_id}/provider-key")
@limiter.limit("10/minute")
async def set_provider_key(
    request: Request,
    sub_account_id: str,
    body: ProviderKeyUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """Link a sub-account to Instantly (switches it to live data) or unlink it."""
    try:
        sub_account_id = validate_entity_id(sub_account_id, "sub_account_id", allow_none=False)
    except ValidationError as e:
        raise bad_request(e)

    api_key = (body.apiKey or "").strip() or None
    sub = await store.set_provider_key(tenant.id, sub_account_id, api_key)
    if sub is None:
        raise HTTPException(status_code=404, detail="Sub-account not found")

    logger.info(
        f"Sub-account {sub.id} {'linked to' if api_key else 'unlinked from'} Instantly",
        extra={"tenant_id": tenant.id},
    )
    return sub.to_dict()
