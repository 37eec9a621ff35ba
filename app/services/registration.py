"""
Account registration - creates a player and grants the starting tokens
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_password_hash
from app.core.config import settings
from app.core.errors import ValidationError
from app.models.account import Account
from app.models.enums import AccountRole, EntryType
from app.repos.account_repo import create_account, get_account_by_email, get_account_by_username
from app.repos.ledger_repo import append_entry, record_committed
from app.services.notifications import ChangePublisher, get_publisher, ENTITY_ACCOUNT, ENTITY_LEDGER

logger = logging.getLogger(__name__)


async def _check_unique(session: AsyncSession, email: str, username: str) -> None:
    if await get_account_by_email(session, email):
        raise ValidationError(f"Email {email} already registered", "Email already registered")
    if await get_account_by_username(session, username):
        raise ValidationError(f"Username {username} already taken", "Username already taken")


async def register_account(
    session: AsyncSession,
    email: str,
    username: str,
    password: str,
    game_uid: Optional[str] = None,
    publisher: Optional[ChangePublisher] = None
) -> Account:
    """
    Register a player and append the welcome bonus in the same transaction.
    
    Args:
        session: Database session
        email: Unique email address
        username: Unique display name
        password: Plain password, stored as a bcrypt hash
        game_uid: In-game UID (optional)
        publisher: Change publisher
    
    Returns:
        The created Account
    """
    publisher = publisher or get_publisher()
    email = email.strip().lower()
    username = username.strip()
    
    entry = None
    try:
        await _check_unique(session, email, username)
        account = await create_account(
            session=session,
            email=email,
            username=username,
            password_hash=get_password_hash(password),
            role=AccountRole.PLAYER.value,
            game_uid=game_uid
        )
        if settings.starting_grant > 0:
            entry = await append_entry(
                session=session,
                account_id=account.id,
                amount=settings.starting_grant,
                entry_type=EntryType.BONUS,
                reason="Welcome Bonus"
            )
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ValidationError(f"Account {email} / {username} already exists", "Email or username already registered")
    except Exception:
        await session.rollback()
        raise
    
    await session.refresh(account)
    logger.info(f"Registered player {account.username} ({account.id}) with {account.balance} tokens")
    await publisher.publish(ENTITY_ACCOUNT, account.id)
    if entry is not None:
        record_committed(entry)
        await publisher.publish(ENTITY_LEDGER, entry.id)
    return account


async def create_admin_account(
    session: AsyncSession,
    email: str,
    username: str,
    password: str
) -> Account:
    """Create an admin account. Admins hold no tokens, so no grant is appended."""
    email = email.strip().lower()
    try:
        await _check_unique(session, email, username)
        account = await create_account(
            session=session,
            email=email,
            username=username,
            password_hash=get_password_hash(password),
            role=AccountRole.ADMIN.value
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    
    await session.refresh(account)
    logger.info(f"Created admin account {account.username} ({account.id})")
    return account
