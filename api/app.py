"""
FastAPI application initialization and configuration.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from db.database import init_db
from settings import API_PREFIX, FRONTEND_URL
from .endpoints import auth_router, health_router
from .errors import register_error_handlers
from .middleware import log_requests_middleware
from .version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    init_db()
    logger.info("Database tables ready")
    yield


def create_app(init_database: bool = True) -> FastAPI:
    """Build the API application

    Args:
        init_database: Create missing tables on startup
    """
    app = FastAPI(
        title="Body Tracker Auth API",
        version=__version__,
        lifespan=_lifespan if init_database else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.middleware("http")(log_requests_middleware)

    register_error_handlers(app)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)

    logger.debug("FastAPI application initialized with all routers and middleware")
    return app


app = create_app()
