import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from comit import __version__, db, state
from comit.config import get_settings
from comit.controllers.events import router as events_router
from comit.controllers.health import router as health_router
from comit.errors import register_exception_handlers
from comit.middleware import HTTPLogMiddleware
from comit.scheduling.repository import InMemoryRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    use_db = settings.features.database
    if use_db:
        await db.init_pool()
        state.repository = db.PostgresRepository()
        logger.info("Using PostgreSQL availability storage")
    else:
        state.repository = InMemoryRepository()
        logger.info("Using in-memory availability storage")
    try:
        yield
    finally:
        if use_db:
            try:
                await db.close_pool()
            except Exception as e:
                logger.warning("Failed to close database pool: %s", e)
        state.repository = None


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="ComIt Scheduling API", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_origin_regex=settings.cors.origins_regex or None,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug.request:
        logging.getLogger("comit.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    if settings.debug.scheduling:
        logging.getLogger("comit.scheduling").setLevel(logging.DEBUG)

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(events_router)
    return app


app = create_app()
