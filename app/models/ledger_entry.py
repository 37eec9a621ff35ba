"""
Ledger entry model - immutable record of one token balance change
"""

from sqlalchemy import Column, String, BigInteger, DateTime, Text, Uuid, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class LedgerEntry(Base):
    """Ledger entry model - append-only, amount is signed and nonzero"""
    __tablename__ = "ledger_entries"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey('accounts.id'), nullable=False)
    amount = Column(BigInteger, nullable=False)
    entry_type = Column(String(32), nullable=False)
    reason = Column(Text, nullable=False)
    admin_id = Column(Uuid, nullable=True)
    related_entity = Column(String(64), nullable=True)
    related_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint('amount <> 0', name='chk_ledger_amount_nonzero'),
        Index('idx_ledger_account_created', 'account_id', 'created_at'),
    )

    def __repr__(self):
        return f"<LedgerEntry(id={self.id}, account_id={self.account_id}, type={self.entry_type}, amount={self.amount})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "account_id": str(self.account_id),
            "amount": self.amount,
            "type": self.entry_type,
            "reason": self.reason,
            "admin_id": str(self.admin_id) if self.admin_id else None,
            "related_entity": self.related_entity,
            "related_id": str(self.related_id) if self.related_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
