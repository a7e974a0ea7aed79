"""API utilities for FastAPI route handling."""

import functools
import logging
from collections.abc import Callable
from typing import Any

from fastapi import HTTPException, status

from core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateResourceError,
    PersistenceError,
    RateLimitError,
    ResourceNotFoundError,
    SupervitecError,
    ValidationError,
)


def error_detail(exc: SupervitecError) -> dict[str, Any]:
    """Build the structured ``detail`` body for an application error."""
    return {"message": exc.message, "code": exc.code, **exc.details}


def api_route(logger: logging.Logger):
    """
    Decorator for FastAPI endpoints that provides standardized error handling.

    Wraps async endpoint functions with try/except to:
    - Re-raise HTTPException instances as-is
    - Map application exceptions to HTTP status codes with structured detail
    - Log and convert other exceptions to 500 HTTPException

    Usage:
        @router.get("/api/example")
        @api_route(logger)
        async def my_endpoint():
            return result
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except ValidationError as e:
                logger.warning(
                    "Validation error in %s: %s %s",
                    func.__name__,
                    e.message,
                    e.errors,
                )
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=error_detail(e),
                ) from e
            except ResourceNotFoundError as e:
                logger.info("Resource not found in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=error_detail(e),
                ) from e
            except DuplicateResourceError as e:
                logger.warning("Duplicate resource in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=error_detail(e),
                ) from e
            except AuthenticationError as e:
                logger.warning(
                    "Authentication failed in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=error_detail(e),
                ) from e
            except AuthorizationError as e:
                logger.warning(
                    "Authorization failed in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=error_detail(e),
                ) from e
            except RateLimitError as e:
                logger.warning(
                    "Rate limit exceeded in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=error_detail(e),
                ) from e
            except PersistenceError as e:
                logger.exception(
                    "Persistence failure in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=error_detail(e),
                ) from e
            except SupervitecError as e:
                logger.exception(
                    "Application error in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=error_detail(e),
                ) from e
            except Exception as e:
                logger.exception("Unexpected error in %s", func.__name__)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail={"message": str(e), "code": "INTERNAL_ERROR"},
                ) from e

        return wrapper

    return decorator
