"""Main FastAPI application - lead capture and product delivery."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

# Import database and models first so every table is registered
from lead_delivery.database import Base, init_models
from lead_delivery.models import Product, Lead, DeliveryEvent  # noqa: F401

from lead_delivery.config import settings
from lead_delivery.exceptions import (
    FileDownloadError,
    LeadConflictError,
    LeadPersistenceError,
    ProductConflictError,
    ProductNotFoundError,
    RequestDataError,
)
from lead_delivery.routers import leads, products, webhooks

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Create FastAPI app
app = FastAPI(
    title="Lead Delivery API",
    description="Lead capture and digital product delivery by email and WhatsApp",
    version=VERSION,
    redirect_slashes=False
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================
# ROUTER REGISTRATION
# ============================================

app.include_router(webhooks.router)
app.include_router(leads.router)
app.include_router(products.router)


# ============================================
# ERROR TRANSLATION
# ============================================

def _invalid_data(errors) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid data", "errors": errors}
    )


def _field_name(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path"):
        parts = parts[1:]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _invalid_data([
        {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ])


@app.exception_handler(RequestDataError)
async def request_data_error_handler(request: Request, exc: RequestDataError):
    return _invalid_data(exc.errors)


@app.exception_handler(ProductNotFoundError)
async def product_not_found_handler(request: Request, exc: ProductNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Product not found"}
    )


@app.exception_handler(LeadConflictError)
async def lead_conflict_handler(request: Request, exc: LeadConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": "A lead with this email or phone already exists",
            "lead_id": str(exc.lead_id),
        }
    )


@app.exception_handler(ProductConflictError)
async def product_conflict_handler(request: Request, exc: ProductConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": f"Product with sale_product_id '{exc.sale_product_id}' already exists"}
    )


@app.exception_handler(FileDownloadError)
async def file_download_error_handler(request: Request, exc: FileDownloadError):
    logger.error(f"{request.url.path}: {exc} ({exc.url})")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Error downloading product file"}
    )


@app.exception_handler(LeadPersistenceError)
async def lead_persistence_error_handler(request: Request, exc: LeadPersistenceError):
    logger.error(f"{request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Error creating or updating lead"}
    )


# ============================================
# HEALTH & ROOT ENDPOINTS
# ============================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": VERSION,
        "environment": settings.ENVIRONMENT,
        "registered_tables": len(Base.metadata.tables),
        "tables": list(Base.metadata.tables.keys()),
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Lead Delivery API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health"
    }


# ============================================
# STARTUP & SHUTDOWN
# ============================================

@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("Starting Lead Delivery API...")
    logger.info("=" * 50)
    logger.info(f"Registered {len(Base.metadata.tables)} SQLAlchemy tables:")
    for table_name in sorted(Base.metadata.tables.keys()):
        logger.info(f"  {table_name}")
    logger.info("=" * 50)
    logger.info("Registered Routes:")
    for route in app.routes:
        if hasattr(route, 'path'):
            logger.info(f"  {route.path}")
    logger.info("=" * 50)

    if settings.AUTO_CREATE_TABLES:
        await init_models()
        logger.info("Database tables ensured")

    logger.info("Application started successfully!")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down Lead Delivery API...")
