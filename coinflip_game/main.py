"""
Coin Flip Game Main Application Entry Point
FastAPI app serving the coin unlock engine over one game session.
"""

import sys
from pathlib import Path

# Add parent directory to path so imports work when running directly
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from coinflip_game.core.logger import init_logging, get_logger
from coinflip_game.config import settings
from coinflip_game.core.catalog_loader import load_catalog
from coinflip_game.core.rng import rng
from coinflip_game.core.session import GameSession
from coinflip_game.core.storage import create_store
from coinflip_game.routers import api

# Initialize logging first
init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")


# ==================== Application Setup ====================


def create_session() -> GameSession:
    """Build the game session from the configured catalog and store."""
    catalog = load_catalog(settings.paths.get_catalog_path())
    store = create_store(settings.storage.backend, settings.paths.get_db_path())
    return GameSession(
        catalog,
        store=store,
        progress_key=settings.storage.progress_key,
        rng=rng,
        rarity_weights=settings.engine.rarity_weights,
        default_chance_multiplier=settings.engine.default_chance_multiplier,
    )


def create_app(session: GameSession = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.server.name,
        docs_url="/docs" if settings.server.debug else None,
        redoc_url=None,
    )

    app.state.session = session if session is not None else create_session()

    # CORS middleware (for development)
    if settings.server.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api.router, prefix="/api")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unhandled exceptions gracefully."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.server.debug else None,
            },
        )

    logger.info(f"Application '{settings.server.name}' initialized with {len(app.state.session.catalog)} coins")
    return app


app = create_app()


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    logger.info(f"Starting server on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        "coinflip_game.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug,
    )
