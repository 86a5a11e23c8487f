"""Dashboard summary endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from web.services import dashboard_service
from ._deps import (
    limiter, get_store, get_current_tenant, get_client_factory,
    bad_request, not_found, validate_days, validate_entity_id,
    NotFoundError, ValidationError, PortalStore, Tenant,
)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
@limiter.limit("30/minute")
async def get_dashboard(
    request: Request,
    subAccountId: Optional[str] = Query(None, description="Narrow to one sub-account"),
    days: int = Query(30, description="Window length in days, ending today"),
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    """Totals, rates, campaign/inbox counts and the daily chart series."""
    try:
        sub_account_id = validate_entity_id(subAccountId, "subAccountId")
        days = validate_days(days)
    except ValidationError as e:
        raise bad_request(e)

    try:
        return await dashboard_service.get_dashboard(
            store, tenant.id, sub_account_id, days, client_factory=client_factory,
        )
    except NotFoundError as e:
        raise not_found(e)
