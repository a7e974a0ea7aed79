"""Movement API routes."""

from . import crud, query, stats

__all__ = ["crud", "query", "stats"]
