"""Reports endpoints: list, generate, status, CSV download and schedules."""
import logging
from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from core.aggregation import window_bounds
from core.config import config
from core.models import Report, ReportFrequency
from web.schemas import ReportGenerateRequest, ReportScheduleRequest
from web.services import dashboard_service
from ._deps import (
    limiter, get_store, get_current_tenant, get_client_factory,
    bad_request, validate_choice, validate_date_range, validate_days, validate_email,
    validate_entity_id, validate_name,
    ValidationError, PortalStore, Tenant,
)

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)

REPORT_FORMATS = ["csv", "pdf", "xlsx"]
REPORT_LINK_TTL = timedelta(hours=24)


async def _get_owned_report(store: PortalStore, tenant: Tenant, report_id: str) -> Report:
    try:
        report_id = validate_entity_id(report_id, "report_id", allow_none=False)
    except ValidationError as e:
        raise bad_request(e)

    report = await store.get_report(tenant.id, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.get("")
@limiter.limit("30/minute")
async def list_reports(
    request: Request,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """The caller's reports, newest first."""
    reports = await store.list_reports(tenant.id)
    return {"reports": [r.to_dict() for r in reports], "total": len(reports)}


@router.post("/generate")
@limiter.limit("10/minute")
async def generate_report(
    request: Request,
    body: ReportGenerateRequest,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """
    Record a report request.

    The CSV is built from live data on download, so the record is ready
    immediately; the response keeps the asynchronous shape clients expect.
    """
    try:
        if body.dateRange is not None:
            start, end = validate_date_range(body.dateRange.start, body.dateRange.end)
        else:
            days = validate_days(body.days if body.days is not None else config.web.default_window_days)
            start, end = window_bounds(days, date.today())

        report_type = validate_name(body.reportType, "reportType")
        fmt = validate_choice(body.format, REPORT_FORMATS, "format", default="csv")
        sub_account_ids = [
            validate_entity_id(sub_id, "subAccountIds", allow_none=False)
            for sub_id in body.subAccountIds
        ]
        name = validate_name(body.name, "name") if body.name else f"{report_type.title()} Report {start} - {end}"
    except ValidationError as e:
        raise bad_request(e)

    for sub_id in sub_account_ids:
        if await store.get_sub_account(tenant.id, sub_id) is None:
            raise HTTPException(status_code=404, detail="Sub-account not found")

    report = await store.create_report(
        tenant.id, name, report_type, start, end, sub_account_ids, fmt,
    )
    logger.info(f"Report {report.id} created", extra={"tenant_id": tenant.id})
    return {"reportId": report.id, "status": "generating", "estimatedTime": 30}


@router.get("/schedules")
@limiter.limit("30/minute")
async def list_schedules(
    request: Request,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    schedules = await store.list_schedules(tenant.id)
    return {"schedules": [s.to_dict() for s in schedules], "total": len(schedules)}


@router.post("/schedule")
@limiter.limit("10/minute")
async def schedule_report(
    request: Request,
    body: ReportScheduleRequest,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    """Store a recurring report delivery. Nothing sends it yet."""
    try:
        frequency = validate_choice(body.frequency, [f.value for f in ReportFrequency], "frequency")
        if frequency is None:
            raise ValidationError("frequency", "Frequency is required")
        report_type = validate_name(body.reportType, "reportType")
        fmt = validate_choice(body.format, REPORT_FORMATS, "format", default="csv")
        recipients = [validate_email(r, "recipients") for r in body.recipients]
    except ValidationError as e:
        raise bad_request(e)

    schedule = await store.create_schedule(
        tenant.id, report_type, ReportFrequency(frequency), body.dayOfMonth, recipients, fmt,
    )
    return {"success": True, "schedule": schedule.to_dict()}


@router.get("/{report_id}")
@limiter.limit("30/minute")
async def get_report_status(
    request: Request,
    report_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
):
    report = await _get_owned_report(store, tenant, report_id)
    return {
        "reportId": report.id,
        "status": report.status,
        "report": report.to_dict(),
        "downloadUrl": f"/api/reports/{report.id}/download",
        "expiresAt": (datetime.now(timezone.utc) + REPORT_LINK_TTL).isoformat(),
    }


@router.get("/{report_id}/download")
@limiter.limit("10/minute")
async def download_report(
    request: Request,
    report_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    store: PortalStore = Depends(get_store),
    client_factory=Depends(get_client_factory),
):
    """Daily series CSV for the report's range and sub-accounts."""
    report = await _get_owned_report(store, tenant, report_id)
    content = await dashboard_service.build_report_csv(store, report, client_factory)

    filename = f"report-{report.id}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
