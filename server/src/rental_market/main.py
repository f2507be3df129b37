"""FastAPI application entry point for Rental Market."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rental_market import __version__
from rental_market.api.deps import get_session_manager, reset_dependencies
from rental_market.api.errors import install_error_handlers
from rental_market.api.routes import router
from rental_market.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting Rental Market v{__version__}")
    manager = get_session_manager()
    snapshot = await manager.start()
    logger.info(f"Initial session: {snapshot.status.value}")

    yield

    # Shutdown
    await manager.close()
    reset_dependencies()
    logger.info("Shutting down Rental Market")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Rental Market",
        description="Property rental marketplace backend for the web front end",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS for the browser front end
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(router)

    return app


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rental_market.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
