"""
Movement registration and reporting package.

This package provides:
- The validation pipeline turning raw trip reports into stored movements
  (field validation, distance coherence, daily quota, derived metrics)
- Movement listing, detail, statistics and soft deletion

The package is organized into:
- api/: API endpoint handlers organized by domain
- services/: Read models and reporting
- pipeline.py and its stages: the submission path
"""

from fastapi import APIRouter

from movements.api import crud, query, stats

# Create main router that aggregates all movement routes
router = APIRouter()

# Fixed paths first so they are not captured by /api/movements/{movement_id}
router.include_router(stats.router, tags=["movements-stats"])
router.include_router(query.router, tags=["movements-query"])
router.include_router(crud.router, tags=["movements-crud"])

__all__ = ["router"]
