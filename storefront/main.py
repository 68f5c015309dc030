# storefront/main.py
import json
import random
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Type

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import require_admin, router as auth_router
from .cache import ResponseCache
from .cart import cart_router
from .cart.service import CartService
from .catalog import catalog_router
from .catalog.store import CatalogStore
from .config import Settings, get_settings
from .errors import (
    InvalidProduct,
    MaxQuantityExceeded,
    NotFound,
    PageOutOfRange,
    StorefrontError,
    ValidationFailed,
)
from .logger import configure_logging, get_logger
from .models import CacheFlushResponse, HealthResponse, Principal

logger = get_logger("main")
audit_logger = get_logger("audit")

ERROR_STATUS: Dict[Type[StorefrontError], int] = {
    NotFound: 404,
    InvalidProduct: 404,
    ValidationFailed: 400,
    MaxQuantityExceeded: 400,
    PageOutOfRange: 400,
}


def _status_for(exc: StorefrontError) -> int:
    for kind, status in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return status
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Storefront API ready with %d products", len(app.state.catalog))
    yield
    flushed = app.state.cache.flush()
    logger.info("Storefront API shutting down (dropped %d cached responses)", flushed)


def create_app(settings: Optional[Settings] = None, catalog: Optional[CatalogStore] = None) -> FastAPI:
    """Build the application and the state it owns.

    A ``catalog`` may be passed in (tests do); otherwise a store seeded
    with ``settings.seed_products`` demo products is created.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.audit_log_file)
    if settings.generated_secret:
        logger.warning("JWT_SECRET is not set; using a random secret for this process")

    if catalog is None:
        catalog = CatalogStore()
        if settings.seed_products > 0:
            catalog.seed(settings.seed_products, random.Random(settings.seed_random))

    cache = ResponseCache(ttl_seconds=settings.cache_ttl_seconds)
    catalog.add_listener(cache.flush)

    app = FastAPI(
        title="Storefront API",
        description="Product catalogue with indexed search and per-user shopping carts.",
        version="2.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.carts = CartService(catalog)
    app.state.cache = cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def audit_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        user = getattr(request.state, "user", None)
        audit_logger.info(json.dumps({
            "time": datetime.now(timezone.utc).isoformat(),
            "method": request.method,
            "url": str(request.url.path) + (f"?{request.url.query}" if request.url.query else ""),
            "status": response.status_code,
            "durationMs": round((time.perf_counter() - start) * 1000, 2),
            "userId": user.id if user is not None else "anonymous",
            "ip": request.client.host if request.client else None,
        }))
        response.headers["X-API-Version"] = "v2.0"
        return response

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=_status_for(exc), content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": "Invalid input", "errors": errors})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Storefront API"}

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(timezone.utc))

    @app.post("/api/cache/flush", response_model=CacheFlushResponse)
    def flush_cache(user: Principal = Depends(require_admin)) -> CacheFlushResponse:
        flushed = app.state.cache.flush()
        logger.info("Response cache flushed by user %s (%d entries)", user.id, flushed)
        return CacheFlushResponse(flushed=flushed, timestamp=datetime.now(timezone.utc))

    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(cart_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
