# app/main.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Your configuration and DB
from app.config import settings
from app.core.db import init_db, close_db
from app.core.errors import AppError, StorageError
from app.core.sessions import DatabaseSessionStore

from app.api.v1.routers import auth, users, organizations, activities

from app.core.bootstrap import create_storage, install_services, ensure_system_organization, ensure_default_admin
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, StorageError):
        # Cause is logged where it was raised; callers only get the opaque message
        logger.error("[api] storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=exc.status_code, content=StorageError().to_dict())
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Keep pydantic errors in the common envelope (400, not FastAPI's default 422)
    fields = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")),
            "message": err.get("msg", "invalid"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": {"code": "VALIDATION", "message": "Invalid request data", "fields": fields},
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[api] unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=StorageError().to_dict())


@app.on_event("startup")
async def on_startup():
    # Missing DATABASE_URL (database backend) aborts startup here
    settings.validate_startup()
    if settings.storage_backend == "database":
        await init_db(settings.database_url)

    repository, sessions = create_storage(settings)
    install_services(app, settings, repository, sessions)

    if isinstance(sessions, DatabaseSessionStore):
        purged = await sessions.purge_expired()
        logger.info("[sessions] purged %s expired sessions", purged)

    # Ensure the SYSTEM organization and a default admin exist on first run
    await ensure_system_organization(repository)
    await ensure_default_admin(repository, settings)


@app.on_event("shutdown")
async def on_shutdown():
    if settings.storage_backend == "database":
        await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(organizations.router, prefix="/api/v1")
app.include_router(activities.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}
