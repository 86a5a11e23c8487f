"""Campaign list and status toggle endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from core.models import CampaignStatus
from web.services import dashboard_service
from ._deps import (
    limiter, get_store, get_current_tenant, get_client_factory,
    bad_request, not_found, validate_choice, validate_entity_id,
    NotFoundError, ValidationError, PortalStore, Tenant,
)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])
logger = logging.getLogger(__name__)

CAMPAIGN_STATUSES = [s.value for s in CampaignStatus]


@router.get("")
@limiter.limit("30/minute")
async def list_campaigns(
    request: Request,
    subAccountId: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="active or paused"),
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    """Stored and live campaigns of the caller's sub-accounts, with derived rates."""
    try:
        sub_account_id = validate_entity_id(subAccountId, "subAccountId")
        status = validate_choice(status, CAMPAIGN_STATUSES + ["all"], "status")
    except ValidationError as e:
        raise bad_request(e)

    try:
        campaigns = await dashboard_service.list_campaigns(
            store, tenant.id, sub_account_id,
            status=None if status == "all" else status,
            client_factory=client_factory,
        )
    except NotFoundError as e:
        raise not_found(e)
    return {"campaigns": campaigns, "total": len(campaigns)}


@router.post("/{campaign_id}/toggle")
@limiter.limit("20/minute")
async def toggle_campaign(
    request: Request,
    campaign_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """
    Flip a stored campaign between active and paused.

    Campaigns of other tenants and live provider campaigns are both 404.
    """
    try:
        campaign_id = validate_entity_id(campaign_id, "campaign_id", allow_none=False)
    except ValidationError as e:
        raise bad_request(e)

    campaign = await store.toggle_campaign(tenant.id, campaign_id)
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return {"id": campaign.id, "status": campaign.status.value}
