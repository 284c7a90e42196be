"""
Network device model for monitored Meraki hardware
"""

from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.sql import func
from itdash.database.connection import Base

class NetworkDevice(Base):
    """Meraki device with its trailing-window uptime"""

    __tablename__ = "network_devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    meraki_device_id = Column(String(64), unique=True, nullable=False, index=True)  # serial
    name = Column(String(255))
    product_type = Column(String(50), index=True)  # switch, wireless, sensor
    network_name = Column(String(255))
    status = Column(String(50), default="unknown", index=True)  # online, offline, alerting, dormant
    uptime_percentage = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<NetworkDevice(serial={self.meraki_device_id}, status={self.status}, uptime={self.uptime_percentage})>"
