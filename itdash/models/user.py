"""
Directory user model
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from itdash.database.connection import Base

class User(Base):
    """User synced from Azure AD"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    azure_id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    job_title = Column(String(255))
    department = Column(String(255))
    company_name = Column(String(255))
    city = Column(String(255))
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"), index=True)
    azure_created_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    location = relationship("Location", back_populates="users")
    requested_tickets = relationship("Ticket", back_populates="requester", foreign_keys="Ticket.requester_id")
    assigned_tickets = relationship("Ticket", back_populates="assignee", foreign_keys="Ticket.assignee_id")

    def __repr__(self):
        return f"<User(azure_id={self.azure_id}, name={self.name}, email={self.email})>"
