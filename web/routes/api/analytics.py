"""Analytics endpoints: daily series and campaign leaderboard."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from web.services import dashboard_service
from ._deps import (
    limiter, get_store, get_current_tenant, get_client_factory,
    bad_request, not_found, validate_days, validate_entity_id, validate_limit,
    NotFoundError, ValidationError, PortalStore, Tenant,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/daily")
@limiter.limit("30/minute")
async def get_daily_analytics(
    request: Request,
    days: int = Query(30, description="Window length in days, ending today"),
    subAccountId: Optional[str] = Query(None),
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    """Per-date totals across the scope, ascending; dates without data are omitted."""
    try:
        sub_account_id = validate_entity_id(subAccountId, "subAccountId")
        days = validate_days(days)
    except ValidationError as e:
        raise bad_request(e)

    try:
        return await dashboard_service.get_daily_series(
            store, tenant.id, sub_account_id, days, client_factory=client_factory,
        )
    except NotFoundError as e:
        raise not_found(e)


@router.get("/campaigns")
@limiter.limit("30/minute")
async def get_campaign_analytics(
    request: Request,
    subAccountId: Optional[str] = Query(None),
    limit: int = Query(5),
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    """Top active campaigns by open rate."""
    try:
        sub_account_id = validate_entity_id(subAccountId, "subAccountId")
        limit = validate_limit(limit)
    except ValidationError as e:
        raise bad_request(e)

    try:
        return await dashboard_service.get_campaign_leaderboard(
            store, tenant.id, sub_account_id, limit, client_factory=client_factory,
        )
    except NotFoundError as e:
        raise not_found(e)
