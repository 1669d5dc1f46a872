"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from alembic.config import Config as AlembicConfig
from alembic.script import ScriptDirectory
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from phoneverse.config import get_settings
from phoneverse.database import close_engine, get_engine
from phoneverse.errors import PersistenceError, PhoneverseError
from pipeline.automation import build_controller
from pipeline.scheduler import run_automation_scheduler

from api.routers import (
    admin_articles,
    admin_automation,
    admin_users,
    auth,
    health,
    public,
    user_articles,
)
from api.services.maintenance import run_maintenance_worker

logger = logging.getLogger(__name__)


async def _assert_database_revision_current() -> None:
    settings = get_settings()
    if settings.skip_migration_check:
        return

    repo_root = Path(__file__).resolve().parents[3]
    alembic_ini = repo_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found; skipping migration revision check")
        return

    alembic_cfg = AlembicConfig(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(repo_root / "alembic"))
    script = ScriptDirectory.from_config(alembic_cfg)
    expected_heads = set(script.get_heads())
    if not expected_heads:
        return

    engine = get_engine()
    try:
        async with engine.connect() as connection:
            result = await connection.execute(text("SELECT version_num FROM alembic_version"))
            current_revisions = {str(row[0]) for row in result.fetchall() if row and row[0]}
    except Exception as exc:
        raise RuntimeError(
            "Database migration revision check failed. "
            "Run `alembic upgrade head` before starting the API."
        ) from exc

    if current_revisions != expected_heads:
        raise RuntimeError(
            "Database schema revision mismatch: "
            f"db={sorted(current_revisions)} expected={sorted(expected_heads)}. "
            "Run `alembic upgrade head`."
        )


async def _stop_task(task: asyncio.Task | None, stop_event: asyncio.Event | None) -> None:
    if stop_event is not None:
        stop_event.set()
    if task is None:
        return
    try:
        await asyncio.wait_for(task, timeout=5)
    except Exception:
        task.cancel()
        with suppress(Exception, asyncio.CancelledError):
            await task


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    scheduler_stop_event: asyncio.Event | None = None
    scheduler_task: asyncio.Task | None = None
    maintenance_stop_event: asyncio.Event | None = None
    maintenance_task: asyncio.Task | None = None
    try:
        await _assert_database_revision_current()
        controller = build_controller(settings)
        app.state.automation = controller
        if settings.automation_scheduler_enabled:
            scheduler_stop_event = asyncio.Event()
            scheduler_task = asyncio.create_task(
                run_automation_scheduler(
                    controller,
                    scheduler_stop_event,
                    schedule=settings.automation_schedule,
                    run_on_start=settings.automation_run_on_start,
                    initial_delay=settings.automation_initial_delay_seconds,
                )
            )
        maintenance_stop_event = asyncio.Event()
        maintenance_task = asyncio.create_task(run_maintenance_worker(maintenance_stop_event))
        yield
    finally:
        await _stop_task(scheduler_task, scheduler_stop_event)
        await _stop_task(maintenance_task, maintenance_stop_event)
        controller = getattr(app.state, "automation", None)
        if controller is not None:
            await controller.wait_idle(timeout=5)
            await controller.aclose()
        await close_engine()


def _warn_insecure_defaults() -> None:
    settings = get_settings()
    if settings.secret_key == "change-me-in-production":
        logger.warning("JWT_SECRET uses insecure default value")


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PhoneverseError)
    async def phoneverse_error_handler(request: Request, exc: PhoneverseError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return await phoneverse_error_handler(request, PersistenceError())


def _mount_frontend(app: FastAPI) -> None:
    public_dir = Path(get_settings().public_dir)
    for name in ("images", "js", "css"):
        directory = public_dir / name
        if directory.is_dir():
            app.mount(f"/{name}", StaticFiles(directory=directory), name=name)

    @app.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
    async def api_not_found(path: str):
        return JSONResponse(status_code=404, content={"detail": "API endpoint not found"})

    @app.get("/{path:path}", include_in_schema=False)
    async def spa_fallback(path: str):
        candidate = (public_dir / path).resolve()
        root = public_dir.resolve()
        if path and candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)
        index = public_dir / "index.html"
        if index.is_file():
            return FileResponse(index)
        return JSONResponse(status_code=404, content={"detail": "Not found"})


def create_app() -> FastAPI:
    app = FastAPI(title="PhoneVerse API", version="0.1.0", lifespan=lifespan)
    settings = get_settings()
    _warn_insecure_defaults()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.site_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(public.router, prefix="/api", tags=["public"])
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(user_articles.router, prefix="/api/user", tags=["user"])
    app.include_router(admin_users.router, prefix="/api/admin", tags=["admin"])
    app.include_router(admin_articles.router, prefix="/api/admin", tags=["admin"])
    app.include_router(admin_automation.router, prefix="/api/admin", tags=["admin"])
    # Catch-alls go last so they never shadow API routes.
    _mount_frontend(app)
    return app


app = create_app()
