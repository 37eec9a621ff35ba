"""
Audit log model - trail of admin actions
"""

from sqlalchemy import Column, String, DateTime, Uuid, JSON
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class AuditLog(Base):
    """Audit log model - written in the same transaction as the audited mutation"""
    __tablename__ = "audit_logs"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_id = Column(Uuid, nullable=True)
    action = Column(String(128), nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AuditLog(id={self.id}, admin_id={self.admin_id}, action={self.action})>"
    
    def to_dict(self):
        return {
            "id": str(self.id),
            "admin_id": str(self.admin_id) if self.admin_id else None,
            "action": self.action,
            "details": self.details,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
