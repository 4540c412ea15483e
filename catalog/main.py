from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from catalog.config import settings
from catalog.api.v1 import admin_categories
from catalog.services.exceptions import CatalogError, CategoryValidationError
import logging

# Configure logging
if not settings.DEBUG:
    from catalog.utils.logging_config import configure_logging
    configure_logging()
logger = logging.getLogger(__name__)

# Determine docs URLs based on environment
docs_url = "/docs" if settings.DEBUG else None
redoc_url = "/redoc" if settings.DEBUG else None

app = FastAPI(
    title=settings.APP_NAME,
    description="Catalog category hierarchy API",
    version=settings.APP_VERSION,
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url="/openapi.json" if settings.DEBUG else None
)

# CORS Middleware
if settings.ENVIRONMENT == "production":
    # In production, use specific origins
    origins = settings.allowed_origins
    if not origins:
        logger.warning("No ALLOWED_ORIGINS set in production!")
else:
    # In development, allow all
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Domain error code -> HTTP status
ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CIRCULAR_REFERENCE": status.HTTP_400_BAD_REQUEST,
    "DEPTH_EXCEEDED": status.HTTP_400_BAD_REQUEST,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "HAS_CHILDREN": status.HTTP_409_CONFLICT,
    "HANDLE_EXHAUSTED": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def sanitize_error(error):
    """Convert error dict to JSON-serializable format"""
    if isinstance(error, dict):
        return {k: sanitize_error(v) for k, v in error.items()}
    elif isinstance(error, (list, tuple)):
        return [sanitize_error(item) for item in error]
    elif isinstance(error, bytes):
        return error.decode('utf-8', errors='replace')
    elif isinstance(error, (str, int, float, bool, type(None))):
        return error
    else:
        return str(error)


# Exception Handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Validation error",
            "error": {
                "code": "VALIDATION_ERROR",
                "details": sanitize_error(exc.errors())
            }
        }
    )


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Handle category domain errors"""
    details = None
    if isinstance(exc, CategoryValidationError):
        details = {"field": exc.field, "errors": sanitize_error(exc.details)}

    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
        content={
            "success": False,
            "message": exc.message,
            "error": {
                "code": exc.code,
                "details": details
            }
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "error": {
                "code": "SERVER_ERROR",
                "details": str(exc) if settings.DEBUG else "An error occurred"
            }
        }
    )


# Include Routers
app.include_router(admin_categories.router, prefix="/admin/categories", tags=["Admin Categories"])


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME
    }
