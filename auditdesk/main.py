"""FastAPI application entry point."""

from fastapi import FastAPI

from auditdesk.api.middleware import (
    ApiCORSMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from auditdesk.api.routes import (
    activity,
    admin_setup,
    audits,
    auth,
    documents,
    me,
    members,
    metrics,
    organizations,
    users,
)
from auditdesk.core.config import get_settings

settings = get_settings()
docs_enabled = settings.api_docs_enabled
if docs_enabled is None:
    docs_enabled = settings.environment != "production"

app = FastAPI(
    title="AuditDesk API",
    description="Multi-tenant audit management API",
    version="1.0.0",
    docs_url="/api/docs" if docs_enabled else None,
    redoc_url="/api/redoc" if docs_enabled else None,
    openapi_url="/api/openapi.json" if docs_enabled else None,
)

# Middleware configuration (order matters - applied in reverse order)
# 1. Request logging (outermost - logs all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Rate limiting (applied before routing)
app.add_middleware(RateLimitMiddleware)

# 4. CORS for /api; /admin-setup sets its own wildcard headers
app.add_middleware(
    ApiCORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(admin_setup.router, tags=["setup"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(me.router, prefix="/api/me", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(organizations.router, prefix="/api/organizations", tags=["organizations"])
app.include_router(members.router, prefix="/api/organizations", tags=["members"])
app.include_router(audits.router, prefix="/api/organizations", tags=["audits"])
app.include_router(documents.router, prefix="/api/organizations", tags=["documents"])
app.include_router(activity.router, prefix="/api/organizations", tags=["activity"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])
