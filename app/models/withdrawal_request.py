"""
Withdrawal request model - tokens reserved at submission, paid out manually
"""

from sqlalchemy import Column, String, BigInteger, DateTime, Text, Uuid, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class WithdrawalRequest(Base):
    """Withdrawal request model - fee and net payout are fixed at submission"""
    __tablename__ = "withdrawal_requests"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey('accounts.id'), nullable=False)
    amount = Column(BigInteger, nullable=False)
    service_fee = Column(BigInteger, nullable=False)
    net_amount = Column(BigInteger, nullable=False)
    account_number = Column(String(64), nullable=False)
    method = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, default='pending', index=True)
    rejection_reason = Column(Text, nullable=True)
    processed_by = Column(Uuid, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint('net_amount = amount - service_fee', name='chk_withdrawal_net'),
    )

    def __repr__(self):
        return f"<WithdrawalRequest(id={self.id}, account_id={self.account_id}, amount={self.amount}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "account_id": str(self.account_id),
            "amount": self.amount,
            "service_fee": self.service_fee,
            "net_amount": self.net_amount,
            "account_number": self.account_number,
            "method": self.method,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "processed_by": str(self.processed_by) if self.processed_by else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None
        }
