"""FastAPI backend for the developer portfolio."""

import secrets
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devfolio.config.settings import Settings, settings as default_settings
from devfolio.core.cache import MemoryCache
from devfolio.core.headers import NO_STORE_HEADERS, create_cache_headers
from devfolio.core.logging import get_logger, setup_logging
from devfolio.core.metrics import metrics
from devfolio.core.middleware import ObservabilityMiddleware
from devfolio.core.presets import CacheConfig, CachePreset
from devfolio.core.rate_limit import RateLimiter, RateLimitMiddleware, RateLimits
from devfolio.core.schemas import (
    CacheStatsResponse,
    ContactCreate,
    ContactUpdate,
    ExperienceCreate,
    ExperienceUpdate,
    InvalidateRequest,
    InvalidateResponse,
    ProjectCreate,
    ProjectUpdate,
)
from devfolio.core.validation import (
    ValidationResult,
    sanitize_input,
    validate_contact,
    validate_experience,
    validate_project,
)
from devfolio.storage.database import DatabaseError, PortfolioDatabase

logger = get_logger(__name__)

T = TypeVar("T")

_bearer = HTTPBearer(auto_error=False)


def _envelope(
    status_code: int,
    *,
    data: Any = None,
    message: Optional[str] = None,
    error: Optional[str] = None,
    details: Optional[List[str]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": error is None}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    if error:
        body["error"] = error
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status_code, headers=headers)


def _invalid(result: ValidationResult) -> JSONResponse:
    return _envelope(400, error="Validation failed", details=result.errors)


def _bad_id(row_id: int, label: str) -> Optional[JSONResponse]:
    if row_id <= 0:
        return _envelope(400, error=f"Invalid {label} ID")
    return None


def build_rate_limits(current: Settings) -> RateLimits:
    config = current.rate_limit
    return RateLimits(
        api=RateLimiter(config.api_limit, config.window_seconds),
        admin=RateLimiter(config.admin_limit, config.window_seconds),
        contact=RateLimiter(config.contact_limit, config.contact_window_seconds),
    )


# -- dependencies ----------------------------------------------------------


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> MemoryCache:
    return request.app.state.cache


def get_database(request: Request) -> PortfolioDatabase:
    return request.app.state.database


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    current: Settings = Depends(get_settings),
) -> None:
    token = current.admin.api_token
    if not token or credentials is None or not secrets.compare_digest(
        credentials.credentials, token
    ):
        raise HTTPException(status_code=401, detail="Authentication required")


async def _cached(
    request: Request, key: str, ttl_ms: int, compute: Callable[[], Awaitable[T]]
) -> T:
    if not request.app.state.settings.cache.enabled:
        return await compute()
    return await get_store(request).get_or_compute(key, ttl_ms, compute)


def _invalidate(request: Request, preset: CachePreset) -> None:
    get_store(request).invalidate_by_pattern(preset.namespace)


def _set_read(
    request: Request, db: PortfolioDatabase, contact_id: int, read: bool
) -> JSONResponse:
    bad = _bad_id(contact_id, "contact message")
    if bad is not None:
        return bad
    contact = db.mark_read(contact_id, read)
    if contact is None:
        return _envelope(404, error="Contact message not found")
    _invalidate(request, CacheConfig.CONTACT_MESSAGES)
    state = "read" if read else "unread"
    return _envelope(200, data=contact, message=f"Contact message marked as {state}")


# -- app factory -----------------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[PortfolioDatabase] = None,
    store: Optional[MemoryCache] = None,
    rate_limits: Optional[RateLimits] = None,
) -> FastAPI:
    current = settings or default_settings
    setup_logging(current.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = app.state.database
        db.connect()
        db.init_schema()
        logger.info(f"{current.service_name} started cache_max_size={app.state.cache.max_size}")
        try:
            yield
        finally:
            app.state.cache.clear()
            db.close()

    app = FastAPI(title="Developer Portfolio", version="0.1.0", lifespan=lifespan)
    app.state.settings = current
    app.state.cache = store if store is not None else MemoryCache(max_size=current.cache.max_size)
    app.state.database = database if database is not None else PortfolioDatabase(current.database.path)
    if current.rate_limit.enabled:
        app.state.rate_limits = rate_limits if rate_limits is not None else build_rate_limits(current)
        app.add_middleware(RateLimitMiddleware, limits=app.state.rate_limits)
    # added last so it wraps rate-limited responses too
    app.add_middleware(ObservabilityMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _envelope(exc.status_code, error=str(exc.detail), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
            for err in exc.errors()
        ]
        return _envelope(400, error="Validation failed", details=details)

    @app.exception_handler(ValidationError)
    async def _model_error(request: Request, exc: ValidationError) -> JSONResponse:
        details = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
        return _envelope(400, error="Validation failed", details=details)

    @app.exception_handler(DatabaseError)
    async def _database_error(request: Request, exc: DatabaseError) -> JSONResponse:
        logger.error(f"database failure path={request.url.path}", exc_info=exc)
        return _envelope(500, error="Database operation failed")

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    admin = [Depends(require_admin)]

    # -- health & metrics ---------------------------------------------------

    @app.get("/health")
    async def health(current: Settings = Depends(get_settings)) -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse({"status": "ok", "service": current.service_name})

    @app.get("/health/db")
    async def health_db(
        request: Request, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        async def check() -> Dict[str, Any]:
            return db.health()

        preset = CacheConfig.DB_HEALTH
        report = await _cached(request, preset.key, preset.ttl_ms, check)
        status = 200 if report["healthy"] else 503
        return JSONResponse({"success": status == 200, "health": report}, status_code=status)

    @app.get("/metrics")
    async def get_metrics() -> JSONResponse:
        """Metrics endpoint."""
        return JSONResponse(metrics.snapshot())

    # -- projects -------------------------------------------------------------

    @app.get("/api/projects")
    async def list_projects(
        request: Request,
        featured: bool = False,
        db: PortfolioDatabase = Depends(get_database),
    ) -> JSONResponse:
        preset = CacheConfig.FEATURED_PROJECTS if featured else CacheConfig.PROJECTS

        async def load() -> List[Any]:
            return db.list_projects(featured_only=featured)

        projects = await _cached(request, preset.key, preset.ttl_ms, load)
        return _envelope(
            200,
            data=projects,
            message=f"Retrieved {len(projects)} projects",
            headers=create_cache_headers(preset.ttl_seconds, preset.ttl_seconds * 2),
        )

    @app.post("/api/projects", dependencies=admin)
    async def create_project(
        request: Request, payload: ProjectCreate, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        result = validate_project(payload)
        if not result.valid:
            return _invalid(result)
        project = db.create_project(payload)
        _invalidate(request, CacheConfig.PROJECTS)
        return _envelope(201, data=project, message="Project created successfully")

    @app.put("/api/projects/{project_id}", dependencies=admin)
    async def update_project(
        request: Request,
        project_id: int,
        payload: ProjectUpdate,
        db: PortfolioDatabase = Depends(get_database),
    ) -> JSONResponse:
        bad = _bad_id(project_id, "project")
        if bad is not None:
            return bad
        existing = db.get_project(project_id)
        if existing is None:
            return _envelope(404, error="Project not found")
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        merged = ProjectCreate(**{**existing.model_dump(), **changes})
        result = validate_project(merged)
        if not result.valid:
            return _invalid(result)
        project = db.update_project(project_id, ProjectUpdate(**changes))
        _invalidate(request, CacheConfig.PROJECTS)
        return _envelope(200, data=project, message="Project updated successfully")

    @app.delete("/api/projects/{project_id}", dependencies=admin)
    async def delete_project(
        request: Request, project_id: int, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        bad = _bad_id(project_id, "project")
        if bad is not None:
            return bad
        if not db.delete_project(project_id):
            return _envelope(404, error="Project not found")
        _invalidate(request, CacheConfig.PROJECTS)
        return _envelope(200, message="Project deleted successfully")

    # -- experiences ----------------------------------------------------------

    @app.get("/api/experiences")
    async def list_experiences(
        request: Request, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        preset = CacheConfig.EXPERIENCES

        async def load() -> List[Any]:
            return db.list_experiences()

        experiences = await _cached(request, preset.key, preset.ttl_ms, load)
        return _envelope(
            200,
            data=experiences,
            message=f"Retrieved {len(experiences)} experiences",
            headers=create_cache_headers(preset.ttl_seconds, preset.ttl_seconds * 2),
        )

    @app.post("/api/experiences", dependencies=admin)
    async def create_experience(
        request: Request, payload: ExperienceCreate, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        result = validate_experience(payload)
        if not result.valid:
            return _invalid(result)
        experience = db.create_experience(payload)
        _invalidate(request, CacheConfig.EXPERIENCES)
        return _envelope(201, data=experience, message="Experience created successfully")

    @app.put("/api/experiences/{experience_id}", dependencies=admin)
    async def update_experience(
        request: Request,
        experience_id: int,
        payload: ExperienceUpdate,
        db: PortfolioDatabase = Depends(get_database),
    ) -> JSONResponse:
        bad = _bad_id(experience_id, "experience")
        if bad is not None:
            return bad
        existing = db.get_experience(experience_id)
        if existing is None:
            return _envelope(404, error="Experience not found")
        # unset fields keep their stored value; an explicit null clears end_date
        changes = payload.model_dump(exclude_unset=True)
        merged = ExperienceCreate(**{**existing.model_dump(), **changes})
        result = validate_experience(merged)
        if not result.valid:
            return _invalid(result)
        experience = db.update_experience(experience_id, ExperienceUpdate(**changes))
        _invalidate(request, CacheConfig.EXPERIENCES)
        return _envelope(200, data=experience, message="Experience updated successfully")

    @app.delete("/api/experiences/{experience_id}", dependencies=admin)
    async def delete_experience(
        request: Request, experience_id: int, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        bad = _bad_id(experience_id, "experience")
        if bad is not None:
            return bad
        if not db.delete_experience(experience_id):
            return _envelope(404, error="Experience not found")
        _invalidate(request, CacheConfig.EXPERIENCES)
        return _envelope(200, message="Experience deleted successfully")

    # -- contact --------------------------------------------------------------

    @app.post("/api/contact")
    async def submit_contact(
        request: Request, payload: ContactCreate, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        result = validate_contact(payload)
        if not result.valid:
            return _invalid(result)
        clean = ContactCreate(
            name=sanitize_input(payload.name),
            email=sanitize_input(payload.email),
            message=sanitize_input(payload.message),
        )
        contact = db.create_contact(clean)
        _invalidate(request, CacheConfig.CONTACT_MESSAGES)
        return _envelope(201, data=contact, message="Contact message submitted successfully")

    @app.get("/api/contact", dependencies=admin)
    async def list_contacts(
        request: Request, unread: bool = False, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        preset = CacheConfig.UNREAD_CONTACT_MESSAGES if unread else CacheConfig.CONTACT_MESSAGES

        async def load() -> List[Any]:
            return db.list_contacts(unread_only=unread)

        messages = await _cached(request, preset.key, preset.ttl_ms, load)
        return _envelope(
            200,
            data=messages,
            message=f"Retrieved {len(messages)} contact messages",
            headers=NO_STORE_HEADERS,
        )

    @app.patch("/api/contact/{contact_id}/read", dependencies=admin)
    async def mark_contact_read(
        request: Request, contact_id: int, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        return _set_read(request, db, contact_id, True)

    @app.put("/api/contact/{contact_id}", dependencies=admin)
    async def update_contact(
        request: Request,
        contact_id: int,
        payload: ContactUpdate,
        db: PortfolioDatabase = Depends(get_database),
    ) -> JSONResponse:
        return _set_read(request, db, contact_id, payload.read)

    @app.get("/api/contact/{contact_id}", dependencies=admin)
    async def get_contact(
        contact_id: int, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        bad = _bad_id(contact_id, "contact message")
        if bad is not None:
            return bad
        contact = db.get_contact(contact_id)
        if contact is None:
            return _envelope(404, error="Contact message not found")
        return _envelope(
            200,
            data=contact,
            message="Contact message retrieved successfully",
            headers=NO_STORE_HEADERS,
        )

    @app.delete("/api/contact/{contact_id}", dependencies=admin)
    async def delete_contact(
        request: Request, contact_id: int, db: PortfolioDatabase = Depends(get_database)
    ) -> JSONResponse:
        bad = _bad_id(contact_id, "contact message")
        if bad is not None:
            return bad
        if not db.delete_contact(contact_id):
            return _envelope(404, error="Contact message not found")
        _invalidate(request, CacheConfig.CONTACT_MESSAGES)
        return _envelope(200, message="Contact message deleted successfully")

    # -- cache admin ------------------------------------------------------------

    @app.get("/api/admin/cache", dependencies=admin)
    async def cache_stats(store: MemoryCache = Depends(get_store)) -> JSONResponse:
        stats = store.stats()
        body = CacheStatsResponse(size=stats.size, max_size=stats.max_size, keys=stats.keys)
        return JSONResponse(body.model_dump(), headers=NO_STORE_HEADERS)

    @app.post("/api/admin/cache/invalidate", dependencies=admin)
    async def cache_invalidate(
        payload: InvalidateRequest, store: MemoryCache = Depends(get_store)
    ) -> JSONResponse:
        if payload.pattern:
            removed = store.invalidate_by_pattern(payload.pattern)
        else:
            removed = len(store)
            store.clear()
        logger.info(f"cache invalidated pattern={payload.pattern!r} removed={removed}")
        body = InvalidateResponse(pattern=payload.pattern, removed=removed)
        return JSONResponse(body.model_dump(), headers=NO_STORE_HEADERS)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting developer portfolio API...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
