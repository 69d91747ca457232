from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pokerledger.api.demo import router as demo_router
from pokerledger.api.ledgers import router as ledgers_router
from pokerledger.api.ledgers import shared_router
from pokerledger.api.performance import router as performance_router
from pokerledger.api.settlements import router as settlements_router
from pokerledger.config import configure_logging, get_settings
from pokerledger.storage.database import init_db


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings().log_level)
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Poker Ledger API", lifespan=lifespan)
    app.include_router(settlements_router)
    app.include_router(ledgers_router)
    app.include_router(shared_router)
    app.include_router(performance_router)
    app.include_router(demo_router)

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
