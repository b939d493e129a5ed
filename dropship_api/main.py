"""FastAPI application entry point."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from dropship_api.api.routes import api_router
from dropship_api.core.config import settings
from dropship_api.core.errors import AppError
from dropship_api.core.log import configure_logging
from dropship_api.core.rate_limit import limiter
from dropship_api.db.mongo import MongoStore, Store

configure_logging(settings)
logger = logging.getLogger(__name__)
access_logger = logging.getLogger("requests")

RESPONSE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}
QUIET_PATHS = frozenset({"/", "/health", "/health/ready"})


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One access log line per request; also stamps the fixed response headers."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        response.headers.update(RESPONSE_HEADERS)

        if request.url.path not in QUIET_PATHS:
            elapsed_ms = (time.perf_counter() - started) * 1000
            client = request.client.host if request.client else "-"
            access_logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                f"{client} {request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms",
            )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and keep reconnecting in the background until it is up."""
    logger.info("Starting Dropship Catalog API")
    store = MongoStore(settings)
    app.state.store = store

    connect_task = None
    if settings.mongodb_uri:
        connect_task = asyncio.create_task(store.connect_with_retry())
    else:
        logger.error("Mongo connect failed: MONGODB_URI missing")

    yield

    if connect_task is not None:
        connect_task.cancel()
        try:
            await connect_task
        except asyncio.CancelledError:
            pass
    await store.close()
    logger.info("Shutting down Dropship Catalog API")


app = FastAPI(
    title="Dropship Catalog API",
    description="Product catalog with customer and admin authentication",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "error": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Missing or invalid fields", "errors": errors},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


app.add_middleware(AccessLogMiddleware)

# CORS middleware - added last so it runs first (Starlette LIFO order)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_router)


@app.get("/")
def root():
    return {"message": "API is running"}


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"ok": True}


@app.get("/health/ready")
async def readiness_check(store: Store):
    """Readiness probe: is the store connected and answering pings."""
    connected = await store.ping()
    return {"ok": connected, "database": "connected" if connected else "unavailable"}
