"""
Network device Pydantic schemas
"""

from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime

class NetworkDeviceResponse(BaseModel):
    """Schema for network device response"""
    meraki_device_id: str = Field(..., description="Device serial")
    name: Optional[str] = Field(None, description="Device name")
    product_type: Optional[str] = Field(None, description="switch, wireless or sensor")
    network_name: Optional[str] = Field(None, description="Meraki network the device belongs to")
    status: str = Field("unknown", description="Current availability status")
    uptime_percentage: float = Field(0.0, ge=0, le=100, description="Online share of the reporting window")
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class NetworkDeviceListResponse(BaseModel):
    """Schema for network device list response"""
    devices: list[NetworkDeviceResponse]
    total: int
    skip: int
    limit: int

class UptimeStats(BaseModel):
    count: int
    avg: float
    min: float
    max: float

class UptimeSummaryResponse(BaseModel):
    """Uptime statistics grouped by product type"""
    summary: Dict[str, UptimeStats]
    total_devices: int
