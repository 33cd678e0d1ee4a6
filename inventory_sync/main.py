"""Main application entry point with FastAPI."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from pydantic import ValidationError

from .config import Settings, get_settings
from .database import check_database_health, create_db_engine, list_tables
from .routes import inventory_router, settings_router, trigger_router
from .services import build_services

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment() -> Settings:
    """Validate all required environment variables on startup."""
    try:
        settings = get_settings()
        logger.info("Environment variables validated successfully")
        return settings
    except ValidationError as e:
        logger.error("ERROR: Missing or invalid environment variables:")
        logger.error(str(e))
        sys.exit(1)


def warn_on_trigger_ceiling(settings: Settings) -> None:
    """Flag a snapshot poll budget longer than the trigger execution ceiling."""
    worst_case = settings.snapshot_worst_case_seconds
    ceiling = settings.trigger_max_duration_seconds
    if worst_case > ceiling:
        logger.warning(
            f"Snapshot polling can take up to {worst_case:.0f}s but triggers are "
            f"limited to {ceiling}s; a slow snapshot may be cut off before it finishes"
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    # Startup
    logger.info("Starting Inventory Sync...")

    settings = validate_environment()
    warn_on_trigger_ceiling(settings)

    engine = create_db_engine(settings)
    logger.info(f"=== Tables in database: {list_tables(engine)} ===")

    app.state.services = build_services(settings, engine)
    logger.info("Inventory Sync started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Inventory Sync...")
    engine.dispose()
    logger.info("Inventory Sync shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Inventory Sync",
        description="Warehouse bin inventory cache fed from ShipHero",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )
    app.include_router(trigger_router)
    app.include_router(inventory_router)
    app.include_router(settings_router)

    @app.get("/health")
    def health_check(request: Request):
        """Health check endpoint.

        Verifies database connection and reports cache sizes.
        """
        services = request.app.state.services
        if not check_database_health(services.session_factory):
            return {
                "status": "unhealthy",
                "database": "disconnected",
            }

        return {
            "status": "healthy",
            "database": "connected",
            "records": {
                "query": services.query_store.count(),
                "snapshot": services.snapshot_store.count(),
            },
        }

    @app.get("/")
    def root():
        """Root endpoint."""
        return {
            "name": "Inventory Sync",
            "status": "running",
            "version": "1.0.0",
        }

    return app


app = create_app()
