"""
Admin token operations - manual adjustments, reconciliation and stats
"""

import logging
from typing import Dict, Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ArenaError, AccountNotFound, InsufficientBalance, InvalidAmount, ValidationError
)
from app.models.enums import EntryType, RequestStatus
from app.models.ledger_entry import LedgerEntry
from app.repos.account_repo import (
    get_account_by_id, lock_account, count_players, total_player_balance
)
from app.repos.audit_log_repo import create_audit_log
from app.repos.ledger_repo import append_entry, current_balance, record_committed
from app.repos.payment_request_repo import count_payment_requests, total_approved_amount
from app.repos.tournament_repo import count_tournaments
from app.repos.withdrawal_repo import count_withdrawals
from app.services.locks import locks, account_key
from app.services.notifications import ChangePublisher, get_publisher, ENTITY_LEDGER, ENTITY_ACCOUNT

logger = logging.getLogger(__name__)


async def adjust_tokens(
    session: AsyncSession,
    account_id: UUID,
    amount: int,
    reason: str,
    admin_id: UUID,
    publisher: Optional[ChangePublisher] = None
) -> LedgerEntry:
    """
    Grant (positive) or deduct (negative) tokens on behalf of an admin.
    
    Positive amounts are recorded as 'bonus', negative as 'penalty'.
    A penalty may not take the balance below zero.
    
    Args:
        session: Database session
        account_id: Target player account
        amount: Signed, nonzero token delta
        reason: Explanation shown in the player's history
        admin_id: Acting admin
        publisher: Change publisher
    
    Returns:
        The committed LedgerEntry
    """
    publisher = publisher or get_publisher()
    
    if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
        raise InvalidAmount(amount)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Token adjustment without reason", "Please provide a reason")
    
    async with locks.hold(account_key(account_id)):
        try:
            account = await lock_account(session, account_id)
            if not account:
                raise AccountNotFound(account_id)
            if account.is_admin:
                raise ValidationError(
                    f"Cannot adjust tokens of admin account {account_id}",
                    "Admin accounts do not hold tokens"
                )
            if amount < 0:
                available = await current_balance(session, account_id)
                if available + amount < 0:
                    raise InsufficientBalance(account_id, -amount, available)
            
            entry = await append_entry(
                session=session,
                account_id=account_id,
                amount=amount,
                entry_type=EntryType.BONUS if amount > 0 else EntryType.PENALTY,
                reason=reason,
                admin_id=admin_id
            )
            await create_audit_log(
                session=session,
                admin_id=admin_id,
                action="token_adjustment",
                resource_type="account",
                resource_id=account_id,
                details={"amount": amount, "reason": reason}
            )
            await session.commit()
        except ArenaError as e:
            await session.rollback()
            logger.warning(f"Token adjustment for {account_id} rejected: {e.message}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Token adjustment for {account_id} failed: {e}")
            raise
    
    record_committed(entry)
    logger.info(f"Admin {admin_id} adjusted {account_id} by {amount:+d}: {reason}")
    await publisher.publish(ENTITY_LEDGER, entry.id)
    await publisher.publish(ENTITY_ACCOUNT, account_id)
    return entry


async def get_balance(session: AsyncSession, account_id: UUID) -> Optional[int]:
    """Authoritative balance for a player; None for admins, who are exempt."""
    account = await get_account_by_id(session, account_id)
    if not account:
        raise AccountNotFound(account_id)
    if account.is_admin:
        return None
    return await current_balance(session, account_id)


async def reconcile_balance(session: AsyncSession, account_id: UUID) -> Dict[str, Any]:
    """
    Compare the cached balance counter with the ledger fold.
    
    Returns:
        Dict with cached_balance, ledger_balance and consistent flag
    """
    account = await get_account_by_id(session, account_id)
    if not account:
        raise AccountNotFound(account_id)
    
    ledger_balance = await current_balance(session, account_id)
    consistent = ledger_balance == account.balance
    if not consistent:
        logger.error(
            f"Balance drift on account {account_id}: cached {account.balance}, ledger {ledger_balance}"
        )
    return {
        "account_id": str(account_id),
        "cached_balance": account.balance,
        "ledger_balance": ledger_balance,
        "consistent": consistent
    }


async def get_stats(session: AsyncSession) -> Dict[str, int]:
    """Dashboard figures for the admin panel."""
    return {
        "total_players": await count_players(session),
        "total_tournaments": await count_tournaments(session),
        "tokens_in_circulation": await total_player_balance(session),
        "total_revenue": await total_approved_amount(session),
        "pending_payments": await count_payment_requests(session, RequestStatus.PENDING.value),
        "pending_withdrawals": await count_withdrawals(session, RequestStatus.PENDING.value)
    }
