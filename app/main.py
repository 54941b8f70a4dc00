# app/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import (
    admin, breakdowns, call_logs, certificates, dashboard, documents, email_summaries,
    employees, health, incidents, notifications, passengers, portal, routes, schools, vehicles,
)
from app.database import create_tables
from app.config import settings
from app.services.storage import get_storage
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Fleet Operations API",
    description="School transport fleet admin: staff, vehicles, routes, certificates and documents.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard runs on its own origin) ─────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for the admin endpoints.
    Portals (/api/v1/portal/...) and stored files are excluded, they are
    opened from QR codes and emailed links and carry their own token.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
    open_prefixes = ("/api/v1/portal/", "/storage/")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in self.open_paths or path.startswith(self.open_prefixes) or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(dashboard.router,       prefix="/api/v1", tags=["📊 Dashboard"])
app.include_router(certificates.router,    prefix="/api/v1", tags=["📅 Certificate Expiry"])
app.include_router(employees.router,       prefix="/api/v1", tags=["👷 Employees"])
app.include_router(vehicles.router,        prefix="/api/v1", tags=["🚐 Vehicles"])
app.include_router(routes.router,          prefix="/api/v1", tags=["🗺️  Routes"])
app.include_router(schools.router,         prefix="/api/v1", tags=["🏫 Schools"])
app.include_router(passengers.router,      prefix="/api/v1", tags=["🧒 Passengers"])
app.include_router(call_logs.router,       prefix="/api/v1", tags=["📞 Call Logs"])
app.include_router(incidents.router,       prefix="/api/v1", tags=["⚠️  Incidents"])
app.include_router(email_summaries.router, prefix="/api/v1", tags=["✉️  Email Summaries"])
app.include_router(notifications.router,   prefix="/api/v1", tags=["🔔 Notifications"])
app.include_router(documents.router,       prefix="/api/v1", tags=["📄 Documents"])
app.include_router(admin.router,           prefix="/api/v1", tags=["🛠️  Admin"])
app.include_router(breakdowns.router,      prefix="/api/v1", tags=["🚨 Breakdowns"])
app.include_router(portal.router,          prefix="/api/v1", tags=["🔑 Portals"])
app.include_router(health.router,          prefix="/api/v1", tags=["💚 Health"])

# Uploaded files, served at STORAGE_PUBLIC_URL when it points back at this app
app.mount("/storage", StaticFiles(directory=settings.STORAGE_ROOT, check_dir=False), name="storage")


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Fleet Operations backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    if settings.STORAGE_AUTO_CREATE_BUCKETS:
        get_storage().ensure_buckets(settings.BUCKETS)
        logger.info(f"🗄️  Storage buckets ready under {settings.STORAGE_ROOT}: {settings.BUCKETS}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Fleet Operations backend shutting down...")
