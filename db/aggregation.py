"""Aggregation helpers compatible with Motor or PyMongo async collections."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable


async def aggregate_to_list(
    model: Any,
    pipeline: Iterable[dict[str, Any]],
    *,
    length: int | None = None,
    **kwargs: Any,
) -> list[dict[str, Any]]:
    """
    Run an aggregation pipeline against a document model's collection.

    Motor returns the cursor directly while the PyMongo async API returns it
    through an awaitable; both are handled.
    """
    collection = model.get_pymongo_collection()
    cursor = collection.aggregate(list(pipeline), **kwargs)
    if inspect.isawaitable(cursor):
        cursor = await cursor
    return await cursor.to_list(length=length)


def round_or_zero(value: Any, ndigits: int = 2) -> float:
    """Round an aggregation output that may be missing or null."""
    if value is None:
        return 0.0
    return round(float(value), ndigits)
