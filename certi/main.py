"""
FastAPI Application Entry Point
Main application setup and route registration
"""

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from certi.config import settings
from certi.database import connect_db, disconnect_db
from certi.responses import error_response, validation_errors

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Digital certificate issuance and validation API",
    version="1.0.0",
    debug=settings.DEBUG
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTPException in the error envelope"""
    detail = exc.detail
    if isinstance(detail, dict):
        return error_response(
            detail.get("message", "An error occurred"),
            exc.status_code,
            detail.get("errors"),
            getattr(exc, "headers", None),
        )
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Resource not found"
    return error_response(str(detail), exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """422 with errors keyed by field name"""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header", "form")]
        field = ".".join(loc) if loc else "non_field_errors"
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return validation_errors(errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(f"Internal server error: {exc}", 500)


# Startup event
@app.on_event("startup")
async def startup():
    """Run on application startup"""
    Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
    await connect_db()
    logger.info("%s started in %s mode", settings.APP_NAME, settings.APP_ENV)


# Shutdown event
@app.on_event("shutdown")
async def shutdown():
    """Run on application shutdown"""
    await disconnect_db()
    logger.info("%s stopped", settings.APP_NAME)


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": "1.0.0"
    }


# Import and include routers
from certi.routes import (  # noqa: E402
    auth,
    users,
    roles,
    permissions,
    activities,
    templates,
    certificates,
    validations,
    public,
    dashboard,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(roles.router, prefix="/api/roles", tags=["Roles"])
app.include_router(permissions.router, prefix="/api/permissions", tags=["Permissions"])
app.include_router(activities.router, prefix="/api/activities", tags=["Activities"])
app.include_router(templates.router, prefix="/api/certificate-templates", tags=["Certificate Templates"])
app.include_router(certificates.router, prefix="/api/certificates", tags=["Certificates"])
app.include_router(validations.router, prefix="/api/validations", tags=["Validations"])
app.include_router(public.router, prefix="/api/public", tags=["Public"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

# Locally stored template backgrounds and generated documents
app.mount("/storage", StaticFiles(directory=settings.STORAGE_DIR, check_dir=False), name="storage")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "certi.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
