import logging
from contextlib import asynccontextmanager
from typing import Any

from api.routes import activity_image
from config import AppMode, ImageProviderName, get_settings
from fastapi import APIRouter, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from services.errors import ActivityValidationError, SignalValidationError
from starlette.requests import Request

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Silence noisy HTTP client loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown"""
    logger.info(f"Starting Activity Image Generator in {settings.APP_MODE.value} mode...")
    logger.info(f"Image provider: {settings.IMAGE_PROVIDER.value}")

    if settings.IMAGE_PROVIDER == ImageProviderName.DIAL and not settings.DIAL_KEY:
        logger.warning("IMAGE_PROVIDER=dial but no DIAL_KEY configured. Set it in .env")
    if settings.IMAGE_PROVIDER == ImageProviderName.GEMINI and not settings.GOOGLE_API_KEY:
        logger.warning("IMAGE_PROVIDER=gemini but no GOOGLE_API_KEY configured. Set it in .env")

    yield

    logger.info("Shutting down Activity Image Generator...")


app = FastAPI(
    title="Activity Image Generator",
    description="Turns fitness activities into safe AI-generated illustrations",
    version="1.0.0",
    lifespan=lifespan,
    debug=(settings.APP_MODE == AppMode.DEV),
)

MAX_ERROR_STRING_CHARS = 400
MAX_ERROR_CONTAINER_ITEMS = 50
MAX_ERROR_DEPTH = 8


def _truncate_string(value: str, max_chars: int = MAX_ERROR_STRING_CHARS) -> str:
    if len(value) <= max_chars:
        return value
    return f"{value[:max_chars]}...(truncated)"


def _sanitize_for_json(value: Any, *, _depth: int = 0) -> Any:
    """
    Make sure error payloads are always UTF-8 encodable.

    RequestValidationError details echo user input (activity names and
    descriptions). Unpaired surrogates would crash the JSON encoder, and
    large reflected inputs are truncated to avoid response amplification.
    """
    if _depth > MAX_ERROR_DEPTH:
        return "<max depth reached>"
    if value is None:
        return None
    if isinstance(value, (int, float, bool)):
        return value
    if isinstance(value, str):
        safe = value.encode("utf-8", errors="replace").decode("utf-8", errors="replace")
        return _truncate_string(safe)
    if isinstance(value, bytes):
        return _truncate_string(value.decode("utf-8", errors="replace"))
    if isinstance(value, (list, tuple, set)):
        items = list(value)
        out = [_sanitize_for_json(v, _depth=_depth + 1) for v in items[:MAX_ERROR_CONTAINER_ITEMS]]
        if len(items) > MAX_ERROR_CONTAINER_ITEMS:
            out.append(f"... ({len(items) - MAX_ERROR_CONTAINER_ITEMS} more items truncated)")
        return out
    if isinstance(value, dict):
        items = list(value.items())
        out: dict[str, Any] = {}
        for k, v in items[:MAX_ERROR_CONTAINER_ITEMS]:
            out[str(_sanitize_for_json(k, _depth=_depth + 1))] = _sanitize_for_json(v, _depth=_depth + 1)
        if len(items) > MAX_ERROR_CONTAINER_ITEMS:
            out["__truncated__"] = f"{len(items) - MAX_ERROR_CONTAINER_ITEMS} more keys truncated"
        return out
    # Validation contexts can carry exception instances; stringify anything else.
    return _sanitize_for_json(str(value), _depth=_depth + 1)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    safe_errors = _sanitize_for_json(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": safe_errors},
    )


@app.exception_handler(ActivityValidationError)
async def activity_validation_exception_handler(
    request: Request, exc: ActivityValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Invalid activity", "errors": _sanitize_for_json(exc.errors)},
    )


@app.exception_handler(SignalValidationError)
async def signal_validation_exception_handler(
    request: Request, exc: SignalValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Invalid activity signals", "errors": _sanitize_for_json(exc.errors)},
    )


# Request logging (development only)
if settings.APP_MODE == AppMode.DEV:
    from middleware.logging import RequestLoggingMiddleware, configure_request_logging
    configure_request_logging(settings.LOG_LEVEL)
    app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - must be last (first to process incoming requests)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(activity_image.router)
app.include_router(api_v1_router)


@app.get("/")
async def root():
    """API entry point"""
    return {
        "name": "Activity Image Generator API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "mode": settings.APP_MODE.value,
        "image_provider": settings.IMAGE_PROVIDER.value,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=(settings.APP_MODE == AppMode.DEV),
    )
