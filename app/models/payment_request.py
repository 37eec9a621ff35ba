"""
Payment request model - a claimed external transfer awaiting admin review
"""

from sqlalchemy import Column, String, BigInteger, DateTime, Text, Uuid, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class PaymentRequest(Base):
    """Payment request model - pending until exactly one admin decision"""
    __tablename__ = "payment_requests"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey('accounts.id'), nullable=False)
    amount = Column(BigInteger, nullable=False)
    method = Column(String(16), nullable=False)
    screenshot_ref = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default='pending', index=True)
    rejection_reason = Column(Text, nullable=True)
    processed_by = Column(Uuid, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint('amount > 0', name='chk_payment_amount_pos'),
    )

    def __repr__(self):
        return f"<PaymentRequest(id={self.id}, account_id={self.account_id}, amount={self.amount}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "account_id": str(self.account_id),
            "amount": self.amount,
            "method": self.method,
            "screenshot_ref": self.screenshot_ref,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "processed_by": str(self.processed_by) if self.processed_by else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None
        }
