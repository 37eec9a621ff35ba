"""
Account model - one row per registered user
"""

from sqlalchemy import Column, String, BigInteger, DateTime, Text, Uuid, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class Account(Base):
    """Account model - players hold a token balance, admins are exempt from balance checks"""
    __tablename__ = "accounts"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(48), nullable=False, unique=True)
    role = Column(String(16), nullable=False, default='player')
    password_hash = Column(Text, nullable=True)
    game_uid = Column(String(64), nullable=True)
    # Cached projection of the ledger, only written in the same transaction as an append
    balance = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('player', 'admin')", name='chk_account_role'),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def __repr__(self):
        return f"<Account(id={self.id}, username={self.username}, role={self.role})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "email": self.email,
            "username": self.username,
            "role": self.role,
            "game_uid": self.game_uid,
            "balance": None if self.is_admin else self.balance,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
