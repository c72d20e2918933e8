#!/usr/bin/env python3
"""
API entrypoint for the Vault Bridge service.
Starts FastAPI without the claim reconciliation worker (see workers.py).
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bridge_api.api.handlers import register_exception_handlers
from bridge_api.api.routes import api_router
from core.database.connection import close_db, init_db
from core.services.balance.price_feed import get_price_ticker
from infrastructure.config.settings import settings
from infrastructure.logging.logger import setup_logging
from infrastructure.monitoring.health_checks import router as health_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the ledger database and the price ticker."""
    setup_logging(__name__)
    logger = logging.getLogger(__name__)

    logger.info("🚀 Starting Vault Bridge API service")
    logger.info(f"🔍 Database URL: {settings.database.effective_url.split('@')[-1]}")

    if os.getenv("SKIP_DB", "false").lower() != "true":
        await init_db()
        logger.info("✅ Database initialized")
    else:
        logger.warning("⚠️ Database initialization skipped (SKIP_DB=true)")

    ticker = get_price_ticker()
    ticker.start()
    app.state.price_ticker = ticker
    logger.info("✅ API service startup complete")

    try:
        yield
    finally:
        logger.info("🛑 Shutting down Vault Bridge API service")
        await ticker.stop()
        await close_db()


app = FastAPI(
    title=settings.name,
    version=settings.version,
    description="Withdrawal, ledger and balance API for the vault bridge",
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(
    health_router,
    prefix="/health",
    tags=["health"],
)

app.include_router(
    api_router,
    prefix=settings.api_prefix,
)


@app.get("/")
async def root() -> dict:
    """Root endpoint for quick diagnostics."""
    return {
        "name": settings.name,
        "version": settings.version,
        "environment": settings.environment,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api_only:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.logging.level.lower(),
    )
