"""Fleet auto-assignment — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.persistence.database import engine
from app.infrastructure.api.routes_auto_assign import router as auto_assign_router
from app.infrastructure.api.routes_health import router as health_router
from app.infrastructure.api.routes_rules import router as rules_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fleet Auto-Assignment Engine",
        description="Scores technicians for work orders and assigns the best match",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS for the maintenance dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(auto_assign_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")

    return app


app = create_app()
