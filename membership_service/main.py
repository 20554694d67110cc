"""FastAPI application wiring for the membership service."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import ConnectionPool

from .api.errors import register_error_handlers
from .api.health import router as health_router
from .api.routes import router as api_router
from .config import get_settings
from .database import Database
from .domain.service import AccountService, UserService
from .health import HealthService, database_indicator
from .logging_config import configure_logging
from .repository import AccountRepository, UserRepository

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    pool = ConnectionPool(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    pool.open()
    db = Database(pool)
    users = UserRepository(db)
    accounts = AccountRepository(db)
    app.state.pool = pool
    app.state.user_service = UserService(users, accounts, db)
    app.state.account_service = AccountService(accounts)
    app.state.health_service = HealthService({"db": database_indicator(db)})
    logger.info("connection pool open (max_size=%s)", settings.pool_max_size)
    try:
        yield
    finally:
        pool.close()


def build_app(lifespan=None) -> FastAPI:
    """Assemble the application; services are attached to ``app.state`` by ``lifespan``."""
    configure_logging()
    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(api_router)
    return app


app = build_app(lifespan=lifespan)


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
