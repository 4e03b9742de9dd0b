import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from installmod import __version__
from installmod.adapters.sqlite.migrator import SQLiteMigrator
from installmod.adapters.sweeper import PublishSweeper
from installmod.api.deps import build_context, get_rules, get_settings
from installmod.domain.errors import (
    InconsistentStateError,
    InvalidTransitionError,
    NotFoundError,
    RepositoryError,
    SlugGenerationFailed,
    ValidationError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the service context on startup; stop the sweeper on shutdown."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    # Fail fast on a bad rules file
    try:
        rules = get_rules()
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception:
        logger.critical("Rules load failed", exc_info=True)
        raise

    if settings.backend == "sqlite":
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        SQLiteMigrator(settings.db_path).run_migrations()

    ctx = build_context(settings, rules)
    app.state.context = ctx

    sweeper: PublishSweeper | None = None
    if settings.run_sweeper:
        sweeper = PublishSweeper(
            ctx.publish_service, poll_interval_seconds=rules.publishing.sweep_interval_seconds
        )
        sweeper.start()

    yield

    if sweeper is not None:
        sweeper.stop()


def _error_body(exc: Exception, code: str) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": str(exc), "code": code}
    if isinstance(exc, ValidationError):
        body["errors"] = [
            {"code": e.code, "message": e.message, "field": e.field} for e in exc.errors
        ]
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(_error_body(exc, "validation_error"), status_code=400)

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return JSONResponse(_error_body(exc, "invalid_transition"), status_code=400)

    @app.exception_handler(InconsistentStateError)
    async def inconsistent_state(request: Request, exc: InconsistentStateError) -> JSONResponse:
        return JSONResponse(_error_body(exc, "inconsistent_state"), status_code=400)

    @app.exception_handler(SlugGenerationFailed)
    async def slug_failed(request: Request, exc: SlugGenerationFailed) -> JSONResponse:
        return JSONResponse(_error_body(exc, "slug_generation_failed"), status_code=409)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(_error_body(exc, "not_found"), status_code=404)

    @app.exception_handler(RepositoryError)
    async def repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
        logger.error("Repository failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": "Repository error", "code": "repository_error"}, status_code=500)


def create_app() -> FastAPI:
    app = FastAPI(
        title="installmod API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    register_error_handlers(app)

    from installmod.api.routes import admin_content, admin_site, public

    # Site routes first; their literal paths would otherwise hit /{kind}.
    app.include_router(admin_site.router, prefix="/api/admin", tags=["Admin Site"])
    app.include_router(admin_content.router, prefix="/api/admin", tags=["Admin Content"])
    app.include_router(public.router, tags=["Public"])

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "api"}

    return app


app = create_app()
