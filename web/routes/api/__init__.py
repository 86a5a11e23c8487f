"""
API routes split by domain.

Each sub-module defines its own APIRouter which is composed
into the top-level router exposed by this package.
"""
from fastapi import APIRouter

from .health import router as health_router
from .dashboard import router as dashboard_router
from .analytics import router as analytics_router
from .campaigns import router as campaigns_router
from .sub_accounts import router as sub_accounts_router
from .reports import router as reports_router
from .settings import router as settings_router

router = APIRouter(tags=["api"])

router.include_router(health_router)
router.include_router(dashboard_router)
router.include_router(analytics_router)
router.include_router(campaigns_router)
router.include_router(sub_accounts_router)
router.include_router(reports_router)
router.include_router(settings_router)
