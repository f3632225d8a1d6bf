"""FastAPI application factory."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from shortlink_app.api.errors import register_error_handlers, error_response
from shortlink_app.api.v1 import links, redirect
from shortlink_app.click_processor.click_worker import ClickWorker
from shortlink_app.config import Settings, settings as default_settings
from shortlink_app.database.connection import Base, create_db_engine, create_session_factory
from shortlink_app.queue.factory import QueueFactory, QueueBackend
from shortlink_app.schemas.link import ApiSuccess
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.short_code_factory import ShortCodeFactory, ShortCodeStrategyType
from shortlink_app.storage.strategies import SQLAlchemyLinkStore

# Import models so they're registered with Base
from shortlink_app.models import Link, ClickEvent  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create shared resources on startup and release them on shutdown.

    Startup: engine + link store, click queue, click recorder and,
    if configured, the in-process click worker.
    Shutdown: flush pending click publishes, stop the worker, close the
    queue, dispose of the connection pool.
    """
    app_settings: Settings = app.state.settings

    engine = create_db_engine(app_settings.database_url, echo=app_settings.debug)
    Base.metadata.create_all(bind=engine)
    link_store = SQLAlchemyLinkStore(create_session_factory(engine))

    queue = await QueueFactory.create(QueueBackend(app_settings.queue_backend), app_settings)
    click_recorder = ClickRecorder(queue, app_settings.queue_name)

    app.state.engine = engine
    app.state.link_store = link_store
    app.state.queue = queue
    app.state.click_recorder = click_recorder
    app.state.short_code_strategy = ShortCodeFactory.create_strategy(
        ShortCodeStrategyType(app_settings.short_code_strategy),
        length=app_settings.short_code_length
    )

    worker = None
    worker_task = None
    if app_settings.click_worker_in_process:
        worker = ClickWorker(
            queue=queue,
            store=link_store,
            queue_name=app_settings.queue_name,
            batch_size=app_settings.queue_batch_size,
            block_time=app_settings.queue_block_ms
        )
        worker_task = asyncio.create_task(worker.start())
    app.state.click_worker = worker

    logger.info("%s %s started (%s)", app_settings.app_name, app_settings.app_version, app_settings.environment)

    try:
        yield
    finally:
        await click_recorder.drain()

        if worker is not None:
            worker.stop()
            try:
                # Lets the worker write what the last consume call picked up
                await asyncio.wait_for(worker_task, timeout=app_settings.queue_block_ms / 1000 + 5)
            except asyncio.TimeoutError:
                logger.warning("Click worker did not stop in time; cancelled")

        await queue.close()
        engine.dispose()
        logger.info("%s stopped", app_settings.app_name)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use; defaults to the process settings

    Returns:
        Configured FastAPI app
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="A URL shortener service built with FastAPI",
        debug=app_settings.debug,
        lifespan=lifespan
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Liveness probe; also checks that the store answers"""
        if not await request.app.state.link_store.ping():
            return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "UNAVAILABLE", "store unreachable")
        return ApiSuccess[str](data="OK")

    ######## Include routers
    app.include_router(links.router, prefix="/api")
    # Catch-all /{short_code}; must come last
    app.include_router(redirect.router)

    return app
