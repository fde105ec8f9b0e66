import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, APIRouter
from starlette.concurrency import run_in_threadpool

from .config import Settings, load_settings
from .db import MySQLPlantStore, PlantStore
from .errors import ConfigError, register_exception_handlers
from .routes.health import app as health_app
from .routes.plants import app as plants_app

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store: PlantStore = app.state.store
    # Any failure here (missing URL, unreachable server, missing tables) aborts startup.
    await run_in_threadpool(store.connect)
    logger.info("Plant store ready")
    try:
        yield
    finally:
        await run_in_threadpool(store.close)
        logger.info("Plant store closed")


def create_app(store: Optional[PlantStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API application.

    ``store`` defaults to a MySQLPlantStore configured from ``settings``,
    which default to the process environment.
    """
    settings = settings or load_settings()
    try:
        logging.getLogger("backend.hortus").setLevel(settings.log_level)
    except ValueError:
        raise ConfigError(f"HORTUS_LOG_LEVEL: unknown level {settings.log_level!r}") from None

    app = FastAPI(title="Hortus API", lifespan=lifespan)
    app.state.store = store if store is not None else MySQLPlantStore(settings.store)
    app.state.retry_after = settings.retry_after

    # Register global exception handlers
    register_exception_handlers(app)

    api_router = APIRouter()
    api_router.include_router(plants_app)
    api_router.include_router(health_app)
    app.include_router(api_router)
    return app


app = create_app()
