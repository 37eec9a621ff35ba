"""
Database enums for accounts, ledger entries, tournaments and requests
"""

import enum


class AccountRole(enum.Enum):
    """Account role enum"""
    PLAYER = "player"
    ADMIN = "admin"


class EntryType(enum.Enum):
    """Ledger entry category enum"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TOURNAMENT_ENTRY = "tournament_entry"
    TOURNAMENT_WIN = "tournament_win"
    KILL_REWARD = "kill_reward"
    BONUS = "bonus"
    PENALTY = "penalty"


class TournamentMode(enum.Enum):
    """Tournament mode enum"""
    SOLO = "1v1"
    SQUAD = "squad"


class TournamentStatus(enum.Enum):
    """Tournament status enum"""
    UPCOMING = "upcoming"
    WAITING = "waiting"
    FULL = "full"
    LIVE = "live"
    COMPLETED = "completed"


class RequestStatus(enum.Enum):
    """Payment and withdrawal request status enum"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(enum.Enum):
    """Mobile wallet used for a payment or payout"""
    JAZZCASH = "jazzcash"
    EASYPAISA = "easypaisa"


class Decision(enum.Enum):
    """Admin decision on a pending request"""
    APPROVE = "approve"
    REJECT = "reject"
