"""
Account repository with async CRUD operations
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func
from app.models.account import Account


async def create_account(
    session: AsyncSession,
    email: str,
    username: str,
    password_hash: Optional[str] = None,
    role: str = 'player',
    game_uid: Optional[str] = None
) -> Account:
    """
    Create a new account with a zero cached balance.
    
    Args:
        session: Database session
        email: Email address (must be unique)
        username: Username (must be unique)
        password_hash: Bcrypt hash, None for externally authenticated accounts
        role: 'player' or 'admin'
        game_uid: In-game player UID (optional)
    
    Returns:
        Created Account instance (flushed, not committed)
    """
    account = Account(
        email=email,
        username=username,
        password_hash=password_hash,
        role=role,
        game_uid=game_uid,
        balance=0
    )
    session.add(account)
    await session.flush()
    return account


async def get_account_by_id(session: AsyncSession, account_id: UUID) -> Optional[Account]:
    """
    Get account by ID.
    
    Args:
        session: Database session
        account_id: Account UUID
    
    Returns:
        Account instance or None if not found
    """
    result = await session.execute(
        select(Account).where(Account.id == account_id)
    )
    return result.scalar_one_or_none()


async def lock_account(session: AsyncSession, account_id: UUID) -> Optional[Account]:
    """
    Load an account with a row-level lock, refreshing any cached instance.
    """
    result = await session.execute(
        select(Account)
        .where(Account.id == account_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_account_by_email(session: AsyncSession, email: str) -> Optional[Account]:
    result = await session.execute(
        select(Account).where(Account.email == email)
    )
    return result.scalar_one_or_none()


async def get_account_by_username(session: AsyncSession, username: str) -> Optional[Account]:
    result = await session.execute(
        select(Account).where(Account.username == username)
    )
    return result.scalar_one_or_none()


async def get_players(
    session: AsyncSession,
    limit: int = 100,
    offset: int = 0
) -> List[Account]:
    """
    Get player accounts, newest first.
    
    Args:
        session: Database session
        limit: Maximum number of accounts to return
        offset: Number of accounts to skip
    
    Returns:
        List of Account instances
    """
    result = await session.execute(
        select(Account)
        .where(Account.role == 'player')
        .order_by(desc(Account.created_at))
        .limit(limit)
        .offset(offset)
    )
    return result.scalars().all()


async def count_players(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count(Account.id)).where(Account.role == 'player')
    )
    return result.scalar_one()


async def total_player_balance(session: AsyncSession) -> int:
    """Sum of cached balances over all player accounts (tokens in circulation)."""
    result = await session.execute(
        select(func.coalesce(func.sum(Account.balance), 0)).where(Account.role == 'player')
    )
    return int(result.scalar_one())
