"""
Main FastAPI application
"""
import json
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from evista_partner.config.http_client import http_config
from evista_partner.config.settings import settings
from evista_partner.routes import (
    auth,
    booking,
    car,
    checkout,
    destination,
    hotel,
    hotels,
    location,
    pickup,
    profile,
    trip,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    await http_config.connect()
    logger.info("🚀 %s v%s started (%s)", settings.APP_NAME, settings.VERSION, settings.APP_ENV)
    yield
    # Shutdown
    await http_config.close()
    logger.info("👋 Application shutdown")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Round-trip through json with default=str to handle non-serializable objects (e.g. ValueError)
    safe_errors = json.loads(json.dumps(exc.errors(), default=str))
    logger.warning("❌ 422 VALIDATION ERROR on %s %s: %s", request.method, request.url.path, safe_errors)
    return JSONResponse(status_code=422, content={"detail": safe_errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("💥 Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.info("🌐 %s %s", request.method, request.url.path)
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info("✅ %s %s - %s (%.2fs)", request.method, request.url.path, response.status_code, duration)
    return response


# Include routers
# Backend proxies
app.include_router(auth.router, prefix="/api")
app.include_router(car.router, prefix="/api")
app.include_router(destination.router, prefix="/api")
app.include_router(pickup.router, prefix="/api")
app.include_router(location.router, prefix="/api")
app.include_router(trip.router, prefix="/api")
app.include_router(checkout.router, prefix="/api")
app.include_router(profile.router, prefix="/api")

# Hotel admin
app.include_router(hotel.router, prefix="/api")

# Local booking rules
app.include_router(hotels.router, prefix="/api")
app.include_router(booking.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
