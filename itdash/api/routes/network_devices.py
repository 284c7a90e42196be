"""
Network device read endpoints for the dashboard
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import structlog

from itdash.database.connection import get_database
from itdash.models.network_device import NetworkDevice
from itdash.schemas.network_device import (
    NetworkDeviceListResponse,
    NetworkDeviceResponse,
    UptimeStats,
    UptimeSummaryResponse,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.get("/network-devices", response_model=NetworkDeviceListResponse)
async def get_network_devices(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status: Optional[str] = Query(None),
    product_type: Optional[str] = Query(None),
    max_uptime: Optional[float] = Query(None, ge=0, le=100, description="Only devices at or below this uptime"),
    db: Session = Depends(get_database)
):
    """List synced network devices, lowest uptime first"""

    query = db.query(NetworkDevice)

    if status:
        query = query.filter(NetworkDevice.status == status)
    if product_type:
        query = query.filter(NetworkDevice.product_type == product_type)
    if max_uptime is not None:
        query = query.filter(NetworkDevice.uptime_percentage <= max_uptime)

    total = query.count()
    devices = (
        query.order_by(NetworkDevice.uptime_percentage.asc(), NetworkDevice.meraki_device_id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )

    return NetworkDeviceListResponse(
        devices=[NetworkDeviceResponse.model_validate(device) for device in devices],
        total=total,
        skip=skip,
        limit=limit
    )

@router.get("/network-devices/uptime/summary", response_model=UptimeSummaryResponse)
async def get_uptime_summary(db: Session = Depends(get_database)):
    """Uptime count/avg/min/max per product type"""

    grouped = {}
    for product_type, uptime in db.query(NetworkDevice.product_type, NetworkDevice.uptime_percentage).all():
        grouped.setdefault(product_type or "unknown", []).append(float(uptime or 0.0))

    summary = {
        product_type: UptimeStats(
            count=len(values),
            avg=sum(values) / len(values),
            min=min(values),
            max=max(values),
        )
        for product_type, values in grouped.items()
    }

    return UptimeSummaryResponse(
        summary=summary,
        total_devices=sum(stats.count for stats in summary.values())
    )

@router.get("/network-devices/{serial}", response_model=NetworkDeviceResponse)
async def get_network_device(serial: str, db: Session = Depends(get_database)):
    """Get a specific network device by serial"""

    device = db.query(NetworkDevice).filter(NetworkDevice.meraki_device_id == serial).first()
    if not device:
        raise HTTPException(status_code=404, detail="Network device not found")

    return NetworkDeviceResponse.model_validate(device)
