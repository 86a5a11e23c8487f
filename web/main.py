"""
FastAPI web application for the Agency Portal.
"""
import os
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse, JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from web.config import VERSION
from web.routes import api, auth
from web.routes.api._deps import limiter
from web.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from web.services.auth_service import hash_password
from core.config import config, validate_config, ConfigurationError
from core.observability import setup_logging, get_logger
from core.portal_store import get_store, close_store
from core.seed import seed_demo_data

# Configure structured logging
# Use JSON format in production (LOG_FORMAT=json), human-readable otherwise
log_format = os.getenv("LOG_FORMAT", "text")
log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(level=log_level, json_format=(log_format == "json"))
logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Agency Portal",
    description="Email campaign metrics for agencies and their sub-accounts",
    version=VERSION,
    default_response_class=ORJSONResponse
)

# Add rate limiter to app state
app.state.limiter = limiter


# Custom rate limit exceeded handler
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail
        }
    )

# Add request logging middleware (adds correlation IDs and timing)
app.add_middleware(RequestLoggingMiddleware)

# Must be AFTER logging so correlation_id is set when timeout fires
app.add_middleware(RequestTimeoutMiddleware)

# Add Gzip compression (min 500 bytes to compress)
app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(auth.router)  # /api/login, /api/logout, /api/me
app.include_router(api.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Agency Portal starting...")

    # Validate configuration early - fail fast with clear errors
    try:
        validate_config(require_secret=True)
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1)

    store = await get_store()
    stats = await store.get_stats()
    logger.info(
        f"SQLite ready: {stats['tenants']} tenants, "
        f"{stats['sub_accounts']} sub-accounts, "
        f"schema v{stats['schema_version']}"
    )

    if config.storage.seed_demo_data:
        tenant = await seed_demo_data(store, hash_password(config.auth.demo_password))
        if tenant:
            logger.info(f"Demo tenant created: {tenant.email}")

    purged = await store.purge_expired_sessions()
    if purged:
        logger.info(f"Purged {purged} expired sessions")

    logger.info("Agency Portal ready")


@app.on_event("shutdown")
async def shutdown_event():
    try:
        await close_store()
        logger.info("SQLite closed")
    except Exception as e:
        logger.warning(f"Error closing SQLite: {e}")
    logger.info("Agency Portal stopped")


if __name__ == "__main__":
    import uvicorn
    from web.config import WEB_HOST, WEB_PORT

    uvicorn.run("web.main:app", host=WEB_HOST, port=WEB_PORT)
