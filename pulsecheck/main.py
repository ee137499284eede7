from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pulsecheck.api_schemas import HealthReportResponse
from pulsecheck.config import configure_logging, settings
from pulsecheck.ops_logic import build_health_report
from pulsecheck.registry import load_registry
from pulsecheck.runner import Scheduler
from pulsecheck.state import StatusStore

BANNER = "Health check service is running. Go to /health for details."


def create_app(store: StatusStore, scheduler: Scheduler | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                # stop() joins the loop thread, keep it off the event loop
                await run_in_threadpool(scheduler.stop)

    app = FastAPI(
        title="pulsecheck",
        version="1.0.0",
        description=(
            "Polls a fixed set of HTTP(S) endpoints and reports per-endpoint "
            "liveness and latency plus an overall up/degraded/down status."
        ),
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.store = store
    app.state.scheduler = scheduler

    @app.exception_handler(StarletteHTTPException)
    async def not_found(_: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods both read as "not here".
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.get(
        "/",
        response_class=PlainTextResponse,
        tags=["system"],
        summary="Service Banner",
        description="Liveness of pulsecheck itself, not of the monitored targets.",
    )
    def root():
        return BANNER

    @app.get(
        "/health",
        response_model=HealthReportResponse,
        response_model_exclude_unset=True,
        tags=["status"],
        summary="Aggregated Health Report",
        description="Current state of every monitored target plus the overall status.",
    )
    def health():
        return build_health_report(app.state.store.snapshot())

    return app


def build_default_app() -> FastAPI:
    configure_logging()
    reg = load_registry()
    store = StatusStore(reg.targets)
    scheduler = Scheduler(
        store,
        reg.targets,
        interval_s=reg.defaults.interval_s,
        timeout_s=reg.defaults.timeout_s,
        user_agent=settings.USER_AGENT,
    )
    return create_app(store, scheduler)
