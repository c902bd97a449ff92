# bookhub/main.py
"""
FastAPI application entry point.

Run with: uvicorn bookhub.main:app --reload
or:       bookhub  (uses HOST/PORT from the environment)
"""
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

# Load environment variables from the project's .env (optional) before reading settings
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from .catalog import catalog_router
from .catalog.fanout import FanoutChannel
from .catalog.store import CatalogStore, load_seed_books
from .settings import Settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with its own catalogue and fan-out channel."""
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    seed = load_seed_books(settings.CATALOG_SEED_FILE) if settings.CATALOG_SEED_FILE else None
    store = CatalogStore(seed=seed, strict_delete=settings.CATALOG_STRICT_DELETE)

    app = FastAPI(
        title="Book Management API",
        description=(
            "In-memory book catalogue with a REST interface and a WebSocket "
            "feed that pushes every change to connected clients."
        ),
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.store = store
    app.state.channel = FanoutChannel(store, max_pending=settings.SUBSCRIBER_QUEUE_SIZE)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(catalog_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Book Management Backend is running!"

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "books": len(request.app.state.store),
            "subscribers": request.app.state.channel.subscriber_count,
        }

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings: Settings = app.state.settings
    logger.info("Backend server running on port %s", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
