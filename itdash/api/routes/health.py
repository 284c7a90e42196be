"""
Health check endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from itdash.core.config import Settings, get_settings
from itdash.database.connection import get_database
import structlog

logger = structlog.get_logger(__name__)
router = APIRouter()

SERVICE_NAME = "IT Dashboard Sync API"
SERVICE_VERSION = "1.0.0"

@router.get("/health")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION
    }

@router.get("/health/detailed")
async def detailed_health_check(db: Session = Depends(get_database), cfg: Settings = Depends(get_settings)):
    """Database connectivity plus which integrations have credentials"""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        db_status = "disconnected"

    integrations = {
        "azure": all(
            getattr(cfg, f"{prefix.lower()}_azure_{name}", None)
            for prefix in cfg.azure_tenant_prefixes
            for name in ("tenant_id", "client_id", "client_secret")
        ),
        "freshservice": bool(cfg.fresh_service_api_key and cfg.fresh_service_domain),
        "meraki": bool(cfg.meraki_api_key),
    }

    return {
        "status": "healthy" if db_status == "connected" else "unhealthy",
        "database": db_status,
        "integrations": {name: "configured" if ok else "missing credentials" for name, ok in integrations.items()},
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION
    }
