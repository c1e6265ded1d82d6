import logging
from typing import Optional

from fastapi import FastAPI

from tracker.core.config import RuntimeConfig, get_runtime_config
from tracker.db.conn import connect
from tracker.db.schema import create_schema, init_db

from tracker.api.opportunities import router as opportunities_router
from tracker.api.run import router as run_router
from tracker.api.runs import router as runs_router
from tracker.api.status import router as status_router

from tracker.core.scheduler import SchedulerService


def create_app(config: Optional[RuntimeConfig] = None, fetcher=None) -> FastAPI:
    cfg = config or get_runtime_config()

    app = FastAPI(title="Internship Tracker", version="0.3.0")

    if cfg.db_path == ":memory:":
        app.state.db = connect(cfg.db_path)
        create_schema(app.state.db)
    else:
        init_db(cfg.db_path)
        app.state.db = connect(cfg.db_path)

    app.state.config = cfg
    # None -> GitHub contents API; tests swap in a fake
    app.state.fetcher = fetcher

    # Scheduler attach
    scheduler = SchedulerService(app)
    app.state.scheduler = scheduler

    @app.on_event("startup")
    async def startup_event():
        await scheduler.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        await scheduler.stop()

    # API routes
    app.include_router(status_router, prefix="/api")
    app.include_router(run_router, prefix="/api")
    app.include_router(runs_router, prefix="/api")
    app.include_router(opportunities_router, prefix="/api")

    return app


def build_default_app() -> FastAPI:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return create_app()
