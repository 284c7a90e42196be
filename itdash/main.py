"""
IT Dashboard Sync - FastAPI Application
Main entry point for the API server
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import structlog
from contextlib import asynccontextmanager

from itdash.api.routes import health, network_devices, sync_azure, sync_freshservice, sync_meraki
from itdash.core.config import settings
from itdash.core.errors import InvalidInputError

def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging with JSON output"""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

configure_logging(settings.log_level)
logger = structlog.get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting IT Dashboard Sync API")
    yield
    logger.info("Shutting down IT Dashboard Sync API")

# Create FastAPI application
app = FastAPI(
    title="IT Dashboard Sync API",
    description="On-demand sync of directory users, service desk tickets and network device uptime",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(network_devices.router, prefix="/api/v1", tags=["network-devices"])
app.include_router(sync_azure.router, prefix="/api/v1", tags=["sync"])
app.include_router(sync_freshservice.router, prefix="/api/v1", tags=["sync"])
app.include_router(sync_meraki.router, prefix="/api/v1", tags=["sync"])

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "IT Dashboard Sync API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health"
    }

@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    """Caller errors such as a non-positive uptime window"""
    logger.warning("Invalid input", path=request.url.path, error=str(exc), **exc.context())
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "field": exc.field}
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    uvicorn.run(
        "itdash.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
