"""
Database-specific test fixtures and utilities
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.auth import get_password_hash, create_access_token
from app.models.account import Account
from app.models.audit_log import AuditLog
from app.models.ledger_entry import LedgerEntry
from app.models.tournament import Tournament
from app.models.enums import AccountRole, EntryType
from app.repos.account_repo import create_account
from app.repos.ledger_repo import append_entry
from app.repos.tournament_repo import create_tournament

TEST_PASSWORD = "booyah123"


async def create_test_player(
    session: AsyncSession,
    username: str,
    balance: int = 100,
    email: Optional[str] = None
) -> Account:
    """Create a committed player whose ledger sums to ``balance``."""
    account = await create_account(
        session=session,
        email=email or f"{username}@example.com",
        username=username,
        password_hash=get_password_hash(TEST_PASSWORD),
        role=AccountRole.PLAYER.value
    )
    if balance:
        await append_entry(
            session=session,
            account_id=account.id,
            amount=balance,
            entry_type=EntryType.BONUS,
            reason="Test Grant"
        )
    await session.commit()
    await session.refresh(account)
    return account


async def create_test_admin(session: AsyncSession, username: str = "admin") -> Account:
    """Create a committed admin account."""
    account = await create_account(
        session=session,
        email=f"{username}@example.com",
        username=username,
        password_hash=get_password_hash(TEST_PASSWORD),
        role=AccountRole.ADMIN.value
    )
    await session.commit()
    await session.refresh(account)
    return account


async def create_test_tournament(
    session: AsyncSession,
    title: str = "Solo Showdown",
    entry_fee: int = 20,
    max_players: int = 2,
    kill_reward: int = 5,
    booyah_reward: int = 100,
    status: Optional[str] = None,
    created_by: Optional[UUID] = None
) -> Tournament:
    """Create a committed tournament, optionally forcing its status."""
    tournament = await create_tournament(
        session=session,
        title=title,
        entry_fee=entry_fee,
        max_players=max_players,
        kill_reward=kill_reward,
        booyah_reward=booyah_reward,
        room_id="ROOM42",
        room_password="pass42",
        created_by=created_by
    )
    if status:
        tournament.status = status
    await session.commit()
    await session.refresh(tournament)
    return tournament


async def ledger_entries(session: AsyncSession, account_id: UUID) -> List[LedgerEntry]:
    """All ledger entries of an account in insertion order of the fold."""
    result = await session.execute(
        select(LedgerEntry).where(LedgerEntry.account_id == account_id)
    )
    return result.scalars().all()


async def audit_actions(session: AsyncSession) -> List[str]:
    result = await session.execute(select(AuditLog.action))
    return list(result.scalars().all())


async def reload(session: AsyncSession, instance):
    """Re-read an instance from the database, bypassing the identity map."""
    model = type(instance)
    result = await session.execute(
        select(model).where(model.id == instance.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


def auth_headers(account: Account) -> dict:
    """Bearer headers for an account."""
    return {"Authorization": f"Bearer {create_access_token(account)}"}
