"""
Service desk ticket model
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from itdash.database.connection import Base

class Ticket(Base):
    """Ticket synced from Freshservice"""

    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fs_ticket_id = Column(String(64), unique=True, nullable=False, index=True)
    subject = Column(String(512), nullable=False)
    category = Column(String(255))
    description = Column(Text)
    status = Column(String(50), index=True)  # Open, Pending, Resolved, Closed
    priority = Column(String(50))  # Low, Medium, High, Urgent
    source = Column(String(100))
    department_id = Column(String(64))
    workspace_id = Column(Integer)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True))
    resolved_at = Column(DateTime(timezone=True))
    first_response_time = Column(Integer)  # seconds
    resolution_time = Column(Integer)  # seconds
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), index=True)
    synced_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    requester = relationship("User", back_populates="requested_tickets", foreign_keys=[requester_id])
    assignee = relationship("User", back_populates="assigned_tickets", foreign_keys=[assignee_id])

    def __repr__(self):
        return f"<Ticket(fs_ticket_id={self.fs_ticket_id}, status={self.status}, priority={self.priority})>"
