"""
FastAPI application for the receipt extraction service.

Provides endpoints for:
- Uploading a receipt image and extracting its data
- Health checks
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .credentials import load_openai_api_key
from .models import HealthResponse, HelloResponse
from .routers import receipts
from .services.ai import AIServiceError, build_ai_service
from .services.processing import ReceiptForwardingError, build_receipt_processor

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Receipt Extraction Service...")
    settings = get_settings()
    ai_service = build_ai_service(settings, load_openai_api_key(settings))
    app.state.receipt_processor = build_receipt_processor(settings, ai_service)
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Receipt Extraction Service...")


# Create FastAPI application
app = FastAPI(
    title="Receipt Extraction API",
    description="Receipt data extraction using a vision language model",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy",
        message="Receipt Extraction API is running",
        version=__version__,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


@app.get("/hello", response_model=HelloResponse)
async def hello() -> HelloResponse:
    return HelloResponse(message="Hello World from the receipt extraction API!")


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(receipts.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(AIServiceError)
async def ai_service_error_handler(request: Request, exc: AIServiceError):
    """Handle AI service errors."""
    logger.error("AI service error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


@app.exception_handler(ReceiptForwardingError)
async def forwarding_error_handler(request: Request, exc: ReceiptForwardingError):
    """Relay downstream receipt service errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )
