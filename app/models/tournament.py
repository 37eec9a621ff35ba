"""
Tournament model - definition plus the embedded participant id list
"""

from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid, JSON, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base
import uuid


class Tournament(Base):
    """Tournament model - participants are stored in join order as a JSON list of account ids"""
    __tablename__ = "tournaments"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    mode = Column(String(16), nullable=False, default='1v1')
    entry_fee = Column(Integer, nullable=False, default=0)
    kill_reward = Column(Integer, nullable=False, default=0)
    booyah_reward = Column(Integer, nullable=False, default=0)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(16), nullable=False, default='waiting', index=True)
    max_players = Column(Integer, nullable=False)
    current_players = Column(Integer, nullable=False, default=0)
    participants = Column(JSON, nullable=False, default=list)
    room_id = Column(String(64), nullable=True)
    room_password = Column(String(64), nullable=True)
    rules = Column(JSON, nullable=False, default=list)
    # Opaque auxiliary payload (match details, results); never validated by the core
    details = Column(JSON, nullable=False, default=dict)
    winner_id = Column(Uuid, nullable=True)
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('entry_fee >= 0', name='chk_entry_fee_nonneg'),
        CheckConstraint('max_players > 0', name='chk_max_players_pos'),
        CheckConstraint('current_players <= max_players', name='chk_capacity'),
    )

    def __repr__(self):
        return f"<Tournament(id={self.id}, title={self.title}, status={self.status}, players={self.current_players}/{self.max_players})>"

    def has_participant(self, account_id) -> bool:
        return str(account_id) in (self.participants or [])

    def to_dict(self, reveal_room: bool = False):
        """Convert tournament to dictionary for API responses"""
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "mode": self.mode,
            "entry_fee": self.entry_fee,
            "kill_reward": self.kill_reward,
            "booyah_reward": self.booyah_reward,
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "status": self.status,
            "max_players": self.max_players,
            "current_players": self.current_players,
            "participants": list(self.participants or []),
            "room_id": self.room_id if reveal_room else None,
            "room_password": self.room_password if reveal_room else None,
            "rules": list(self.rules or []),
            "details": self.details or {},
            "winner_id": str(self.winner_id) if self.winner_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
