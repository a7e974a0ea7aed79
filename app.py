import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import APP_VERSION, CORS_ALLOWED_ORIGINS, ENVIRONMENT, get_movement_policy
from dashboard import router as dashboard_router
from date_utils import get_current_utc_time
from db import db_manager
from movements import router as movements_router
from users import router as users_router

# Basic logging configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Initialize the ODM on startup and close the client on shutdown."""
    try:
        await db_manager.init_beanie()
        policy = get_movement_policy()
        logger.info(
            "Movement policy: limit=%d/day, strict_bounds=%s, tolerance=%.2f km, tz=%s",
            policy.max_movements_per_day,
            policy.strict_bounds is not None,
            policy.distance_tolerance_km,
            policy.timezone,
        )
        logger.info("Application startup completed successfully.")
    except Exception as e:
        logger.critical(
            "CRITICAL: Failed to initialize application during startup: %s",
            str(e),
            exc_info=True,
        )
        raise
    yield
    await db_manager.cleanup_connections()
    logger.info("Application shutdown completed successfully")


# Initialize FastAPI App
app = FastAPI(title="Supervitec SST API", version=APP_VERSION, lifespan=lifespan)

# CORS Middleware Configuration
if CORS_ALLOWED_ORIGINS:
    origins = [o.strip() for o in CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
    logger.info("CORS configured with specific origins: %s", origins)
else:
    # Development fallback
    origins = [
        "http://localhost:3000",
        "http://localhost:8081",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8081",
    ]
    logger.warning("CORS_ALLOWED_ORIGINS not set. Using development defaults: %s", origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

# Include all the modular routers
app.include_router(movements_router)
app.include_router(users_router)
app.include_router(dashboard_router)


@app.get("/", tags=["Status"])
async def root():
    return {
        "service": "supervitec-sst-api",
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
        "timestamp": get_current_utc_time().isoformat(),
    }


@app.get("/health", tags=["Status"])
async def health():
    """Liveness plus database reachability."""
    database_ok = await db_manager.ping()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if database_ok else "degraded",
            "database": "connected" if database_ok else "unreachable",
            "timestamp": get_current_utc_time().isoformat(),
        },
    )


# --- Global Exception Handlers ---
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as 400 with a field map."""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "request"] = error.get("msg", "Invalid value")
    logger.warning("Rejected request %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "message": "Request failed validation",
                "code": "VALIDATION_ERROR",
                "errors": errors,
            },
        },
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    """Handle 404 Not Found errors."""
    logger.warning("404 Not Found: %s. Detail: %s", request.url, exc.detail)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": exc.detail},
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    """Handle 500 Internal Server Error errors."""
    error_id = str(uuid.uuid4())
    logger.error(
        "Internal Server Error (ID: %s): Request %s %s failed. Exception: %s",
        error_id,
        request.method,
        request.url,
        str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "message": "Internal server error",
                "code": "INTERNAL_ERROR",
                "error_id": error_id,
            },
        },
    )


if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    uvicorn.run("app:app", host="0.0.0.0", port=port, log_level="info", reload=True)
