from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from sqlalchemy.engine import Engine

from app.api import health, subscriptions
from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import get_logger, setup_logging
from app.core.middleware import RequestLoggingMiddleware
from app.database import create_db_and_tables, create_db_engine, wait_for_database

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_engine = engine is None
        db_engine = engine or create_db_engine(settings.database_url, echo=settings.db_echo)
        if owns_engine:
            wait_for_database(db_engine, settings.db_connect_retries, settings.db_retry_interval)
        create_db_and_tables(db_engine)
        app.state.engine = db_engine
        logger.info("app.started")
        yield
        # Solo cerramos el pool si lo creamos aquí
        if owns_engine:
            db_engine.dispose()
        logger.info("app.stopped")

    app = FastAPI(title="subscription-aggregator", lifespan=lifespan)

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(subscriptions.router)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    logger.info("server.starting", addr=f"{settings.host}:{settings.port}")
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
