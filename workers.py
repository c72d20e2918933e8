#!/usr/bin/env python3
"""
Background worker entrypoint.
Starts the claim reconciler that completes pending bridge deposits.
"""

import asyncio
import logging
import signal
from contextlib import suppress
from typing import Optional

from core.database.connection import close_db, init_db
from infrastructure.config.settings import settings
from infrastructure.logging.logger import setup_logging


async def _start_claim_reconciler(tasks: list) -> Optional[object]:
    """Start the claim reconciler if enabled."""
    if not settings.reconciler.enabled:
        logging.getLogger(__name__).warning("⚠️ Claim reconciler disabled (RECONCILER_ENABLED=false)")
        return None

    from data_ingestion.indexer.claim_reconciler import ClaimReconciler

    reconciler = ClaimReconciler()
    tasks.append(asyncio.create_task(reconciler.start_polling(), name="claim_reconciler"))
    logging.getLogger(__name__).info("✅ Claim reconciler launched")
    return reconciler


async def _run_workers() -> None:
    setup_logging(__name__)
    logger = logging.getLogger(__name__)
    logger.info("🚀 Starting Vault Bridge workers")

    await init_db()
    logger.info("✅ Database initialized")

    background_tasks: list = []
    reconciler = await _start_claim_reconciler(background_tasks)

    stop_event = asyncio.Event()

    def _request_shutdown() -> None:
        logger.info("⚠️ Shutdown signal received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, _request_shutdown)

    try:
        logger.info("✅ Worker services running")
        await stop_event.wait()
    finally:
        logger.info("🛑 Stopping worker services")

        if reconciler:
            await reconciler.stop_polling()
            logger.info(f"📊 Reconciler stats: {reconciler.get_stats()}")

        for task in background_tasks:
            task.cancel()
        for task in background_tasks:
            with suppress(asyncio.CancelledError):
                await task

        await close_db()


def main() -> None:
    """Launch the async worker runner."""
    asyncio.run(_run_workers())


if __name__ == "__main__":
    main()
