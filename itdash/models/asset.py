"""
Service desk asset model
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from itdash.database.connection import Base

class Asset(Base):
    """Asset synced from Freshservice"""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fs_asset_id = Column(String(64), unique=True, nullable=False, index=True)
    asset_name = Column(String(255), nullable=False)
    asset_type = Column(String(64))
    asset_tag = Column(String(128))
    # Freshservice identifiers, not local foreign keys
    location_id = Column(String(64))
    user_id = Column(String(64))
    lender_id = Column(String(64))
    synced_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Asset(fs_asset_id={self.fs_asset_id}, name={self.asset_name})>"
