from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from tortoise.contrib.fastapi import RegisterTortoise

from .config import Config
from .routers import users as users_router
from .routers import websockets as ws_router
from .state import GameState
from .stats import TortoiseStatsStore

logger = logging.getLogger(__name__)

FRONTEND_DIR = Path(__file__).resolve().parents[1] / "frontend"


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Last-resort handler: log and keep the loop serving other rooms."""
    exc = context.get("exception")
    logger.error("Unhandled event loop error: %s", context.get("message"), exc_info=exc)


def create_app(config_class=Config) -> FastAPI:
    logging.basicConfig(
        level=config_class.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
        try:
            if config_class.DATABASE_URL:
                async with RegisterTortoise(
                    app,
                    db_url=config_class.DATABASE_URL,
                    modules={"models": ["imposter.models"]},
                    generate_schemas=True,
                    add_exception_handlers=True,
                ):
                    yield
            else:
                yield
        finally:
            app.state.game.shutdown()

    # -----------------------------
    # FastAPI app instance
    # -----------------------------

    app = FastAPI(title="Imposter Backend", lifespan=lifespan)
    app.state.config = config_class
    app.state.game = GameState(
        stats_store=TortoiseStatsStore(),
        token_secret=config_class.JWT_SECRET,
        reset_delay=config_class.RESET_DELAY_SEC,
    )

    origins = [o.strip() for o in config_class.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(users_router.router)
    app.include_router(ws_router.router)

    # Serve the single-page frontend when it is shipped next to the package
    if FRONTEND_DIR.exists():
        app.mount("/", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")

    return app


app = create_app()

__all__ = ["app", "create_app"]
