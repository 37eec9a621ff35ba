"""
Ledger repository - append-only token entries and balance projections

Every balance change goes through append_entry(). The cached
accounts.balance counter is only modified here, inside the caller's
transaction, so it always equals the fold over ledger_entries once the
transaction commits.
"""

from typing import Optional, List
from uuid import UUID
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func

from app.core.errors import AccountNotFound, InvalidAmount
from app.core.metrics import LEDGER_APPEND_COUNT
from app.models.ledger_entry import LedgerEntry
from app.models.enums import EntryType
from app.repos.account_repo import lock_account

# Configure logging
logger = logging.getLogger(__name__)


async def append_entry(
    session: AsyncSession,
    account_id: UUID,
    amount: int,
    entry_type: EntryType,
    reason: str,
    admin_id: Optional[UUID] = None,
    related_entity: Optional[str] = None,
    related_id: Optional[UUID] = None
) -> LedgerEntry:
    """
    Append a ledger entry and move the cached balance by the same amount.
    
    No sufficiency check happens here: this is the unconditional commit
    step of a larger transaction and callers validate beforehand. Nothing
    is committed; the caller owns the transaction.
    
    Args:
        session: Database session
        account_id: Account UUID
        amount: Signed, nonzero token delta
        entry_type: Ledger category
        reason: Human-readable explanation
        admin_id: Admin who authorised the change (optional)
        related_entity: Related entity type, e.g. "tournament" (optional)
        related_id: Related entity ID (optional)
    
    Returns:
        The flushed LedgerEntry
    
    Raises:
        AccountNotFound: account does not exist (checked first)
        InvalidAmount: amount is zero or not an integer
    """
    # Lock the account row so concurrent appends serialise on the cached counter
    account = await lock_account(session, account_id)
    if not account:
        raise AccountNotFound(account_id)
    
    if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
        raise InvalidAmount(amount)
    
    entry = LedgerEntry(
        account_id=account_id,
        amount=amount,
        entry_type=entry_type.value,
        reason=reason,
        admin_id=admin_id,
        related_entity=related_entity,
        related_id=related_id
    )
    session.add(entry)
    account.balance = account.balance + amount
    await session.flush()
    
    logger.info(f"Ledger append {entry_type.value} {amount:+d} for account {account_id}: {reason}")
    return entry


def record_committed(*entries: LedgerEntry) -> None:
    """Count ledger entries once their transaction has committed."""
    for entry in entries:
        LEDGER_APPEND_COUNT.labels(entry_type=entry.entry_type).inc()


async def current_balance(session: AsyncSession, account_id: UUID) -> int:
    """
    Authoritative balance: the sum of all ledger entries for the account.
    
    Returns 0 for an account with no entries. Not meaningful for admin
    accounts; callers branch on role first.
    """
    result = await session.execute(
        select(func.coalesce(func.sum(LedgerEntry.amount), 0))
        .where(LedgerEntry.account_id == account_id)
    )
    return int(result.scalar_one())


async def get_entries_for_account(
    session: AsyncSession,
    account_id: UUID,
    limit: int = 100,
    offset: int = 0
) -> List[LedgerEntry]:
    """
    Get ledger entries for a specific account, newest first.
    
    Args:
        session: Database session
        account_id: Account UUID
        limit: Maximum number of entries to return
        offset: Number of entries to skip
    
    Returns:
        List of LedgerEntry instances
    """
    result = await session.execute(
        select(LedgerEntry)
        .where(LedgerEntry.account_id == account_id)
        .order_by(desc(LedgerEntry.created_at))
        .limit(limit)
        .offset(offset)
    )
    return result.scalars().all()


async def get_recent_entries(
    session: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    entry_type: Optional[str] = None
) -> List[LedgerEntry]:
    """Global ledger feed, newest first, optionally filtered by category."""
    query = select(LedgerEntry).order_by(desc(LedgerEntry.created_at))
    
    if entry_type:
        query = query.where(LedgerEntry.entry_type == entry_type)
    
    query = query.limit(limit).offset(offset)
    
    result = await session.execute(query)
    return result.scalars().all()


async def get_entries_for_related(
    session: AsyncSession,
    related_entity: str,
    related_id: UUID
) -> List[LedgerEntry]:
    result = await session.execute(
        select(LedgerEntry)
        .where(
            LedgerEntry.related_entity == related_entity,
            LedgerEntry.related_id == related_id
        )
        .order_by(LedgerEntry.created_at)
    )
    return result.scalars().all()
