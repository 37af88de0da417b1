# distribution_hub/main.py
# Distribution Hub - customers, delivery addresses, products
from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from distribution_hub.settings import settings
from distribution_hub.cache import build_query_cache
from distribution_hub.errors import ServiceError
from distribution_hub.database import init_db, close_db, check_db_health

from distribution_hub.routers.customers import router as customers_router
from distribution_hub.routers.addresses import router as addresses_router
from distribution_hub.routers.products import router as products_router

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# Logging setup
# ---------------------------------------------------------
from distribution_hub.logging_setup import setup_logging
setup_logging(settings)

# ---------------------------------------------------------
# Lifespan: Database init/cleanup
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    app.state.query_cache = build_query_cache(settings)
    logger.info("Distribution Hub started (customer listing strategy: %s)", settings.CUSTOMER_LISTING_STRATEGY)
    yield
    # Shutdown
    await close_db()
    logger.info("Distribution Hub stopped")

# ---------------------------------------------------------
# FastAPI app + CORS
# ---------------------------------------------------------
app = FastAPI(
    title="Distribution Hub API",
    version=API_VERSION,
    description="Customers, delivery addresses and cylinder/weight products",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customers_router)
app.include_router(addresses_router)
app.include_router(products_router)

# ---------------------------------------------------------
# Error mapping
# ---------------------------------------------------------
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.user_message or exc.message, "kind": exc.kind},
    )

# ---------------------------------------------------------
# Endpoints
# ---------------------------------------------------------
@app.get("/health")
async def health():
    """Health check endpoint with database status."""
    result = {"status": "ok", "version": API_VERSION}
    db_health = await check_db_health()
    result["database"] = db_health
    if db_health.get("status") != "healthy":
        result["status"] = "degraded"
    return result
