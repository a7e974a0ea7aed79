"""
Async-to-sync bridge for Celery tasks.

Celery task bodies are synchronous while the data layer is async; each call
runs the coroutine on a fresh event loop with Beanie initialized for it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from db import db_manager

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _ensure_no_running_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return
    msg = "run_async_from_sync called while an event loop is running"
    raise RuntimeError(msg)


async def _run_with_db(coro: Coroutine[Any, Any, T]) -> T:
    await db_manager.init_beanie()
    try:
        return await coro
    finally:
        await db_manager.cleanup_connections()


def run_async_from_sync(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async coroutine from a synchronous context.

    Example:
        # From a synchronous Celery task
        result = run_async_from_sync(cleanup_old_movements_async())
    """
    _ensure_no_running_loop()
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(_run_with_db(coro))
    except Exception:
        logger.error("Exception occurred during run_until_complete", exc_info=True)
        raise
    finally:
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True),
                )
            loop.close()
        except Exception as e:
            logger.warning("Error during event loop cleanup: %s", e)
        finally:
            asyncio.set_event_loop(None)
