"""
Office location model derived from directory users
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from itdash.database.connection import Base

class Location(Base):
    """Office location, keyed by city name"""

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    state = Column(String(50))
    timezone = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="location")

    def __repr__(self):
        return f"<Location(name={self.name}, state={self.state}, timezone={self.timezone})>"
