"""
Withdrawal request workflow

Tokens are reserved at submission: the requested amount is debited in the
same transaction that creates the pending request. Rejection refunds it,
approval leaves the ledger untouched since the payout itself happens
outside the system.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import (
    ArenaError, AccountNotFound, RequestNotFound, AlreadyProcessed,
    BelowMinimum, InsufficientBalance, InvalidAmount, ValidationError
)
from app.core.metrics import REQUEST_DECISION_COUNT
from app.models.enums import Decision, EntryType, RequestStatus
from app.models.withdrawal_request import WithdrawalRequest
from app.repos.account_repo import lock_account
from app.repos.audit_log_repo import create_audit_log
from app.repos.ledger_repo import append_entry, current_balance, record_committed
from app.repos import withdrawal_repo
from app.services.locks import locks, request_key, account_key
from app.services.notifications import (
    ChangePublisher, get_publisher, ENTITY_WITHDRAWAL_REQUEST, ENTITY_LEDGER, ENTITY_ACCOUNT
)
from app.services.payments import parse_method

logger = logging.getLogger(__name__)

REQUEST_KIND = "WithdrawalRequest"


def withdrawal_fee(amount: int) -> int:
    """Service fee: max(floor(amount * 2%), 5) with the default settings."""
    return max(amount * settings.withdrawal_fee_pct // 100, settings.withdrawal_min_fee)


async def submit_withdrawal(
    session: AsyncSession,
    account_id: UUID,
    amount: int,
    account_number: str,
    method: str,
    publisher: Optional[ChangePublisher] = None
) -> WithdrawalRequest:
    """
    Create a pending withdrawal and reserve its amount.
    
    Args:
        session: Database session
        account_id: Requesting account
        amount: Requested tokens, at least ``settings.withdrawal_minimum``
        account_number: Destination mobile wallet number
        method: 'jazzcash' or 'easypaisa'
        publisher: Change publisher
    
    Returns:
        The pending WithdrawalRequest
    
    Raises:
        BelowMinimum: amount under the minimum
        InsufficientBalance: amount exceeds the current balance
    """
    publisher = publisher or get_publisher()
    
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(amount, "amount must be a whole number of tokens")
    payment_method = parse_method(method)
    account_number = (account_number or "").strip()
    if not account_number:
        raise ValidationError("Withdrawal without destination account", "Please enter your account number")
    
    async with locks.hold(account_key(account_id)):
        try:
            account = await lock_account(session, account_id)
            if not account:
                raise AccountNotFound(account_id)
            if account.is_admin:
                raise ValidationError(
                    f"Admin account {account_id} cannot withdraw",
                    "Admin accounts do not hold tokens"
                )
            if amount < settings.withdrawal_minimum:
                raise BelowMinimum(amount, settings.withdrawal_minimum)
            
            available = await current_balance(session, account_id)
            if amount > available:
                raise InsufficientBalance(account_id, amount, available)
            
            fee = withdrawal_fee(amount)
            withdrawal = await withdrawal_repo.create_withdrawal(
                session=session,
                account_id=account_id,
                amount=amount,
                service_fee=fee,
                net_amount=amount - fee,
                account_number=account_number,
                method=payment_method.value
            )
            entry = await append_entry(
                session=session,
                account_id=account_id,
                amount=-amount,
                entry_type=EntryType.WITHDRAWAL,
                reason="Withdrawal Request",
                related_entity="withdrawal_request",
                related_id=withdrawal.id
            )
            await session.commit()
        except ArenaError as e:
            await session.rollback()
            logger.warning(f"Withdrawal by {account_id} rejected: {e.message}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Withdrawal by {account_id} failed: {e}")
            raise
    
    await session.refresh(withdrawal)
    record_committed(entry)
    logger.info(
        f"Withdrawal {withdrawal.id} submitted by {account_id}: amount {amount}, fee {fee}, net {amount - fee}"
    )
    await publisher.publish_all(
        (ENTITY_WITHDRAWAL_REQUEST, withdrawal.id),
        (ENTITY_LEDGER, entry.id),
        (ENTITY_ACCOUNT, account_id)
    )
    return withdrawal


async def decide_withdrawal(
    session: AsyncSession,
    withdrawal_id: UUID,
    decision: Decision,
    admin_id: UUID,
    rejection_reason: Optional[str] = None,
    publisher: Optional[ChangePublisher] = None
) -> WithdrawalRequest:
    """
    Approve or reject a pending withdrawal; rejection refunds the reserved amount.
    
    Raises:
        RequestNotFound: unknown withdrawal id
        AlreadyProcessed: the withdrawal is no longer pending
    """
    publisher = publisher or get_publisher()
    
    existing = await withdrawal_repo.get_withdrawal(session, withdrawal_id)
    if not existing:
        raise RequestNotFound(REQUEST_KIND, withdrawal_id)
    
    entry = None
    async with locks.hold_many(request_key(withdrawal_id), account_key(existing.account_id)):
        try:
            withdrawal = await withdrawal_repo.lock_withdrawal(session, withdrawal_id)
            if not withdrawal:
                raise RequestNotFound(REQUEST_KIND, withdrawal_id)
            if withdrawal.status != RequestStatus.PENDING.value:
                raise AlreadyProcessed(REQUEST_KIND, withdrawal_id, withdrawal.status)
            
            new_status = RequestStatus.APPROVED if decision == Decision.APPROVE else RequestStatus.REJECTED
            won = await withdrawal_repo.mark_processed(
                session,
                withdrawal_id,
                new_status,
                admin_id,
                rejection_reason if new_status == RequestStatus.REJECTED else None
            )
            if not won:
                raise AlreadyProcessed(REQUEST_KIND, withdrawal_id, "processed")
            
            if new_status == RequestStatus.REJECTED:
                entry = await append_entry(
                    session=session,
                    account_id=withdrawal.account_id,
                    amount=withdrawal.amount,
                    entry_type=EntryType.WITHDRAWAL,
                    reason="Withdrawal Rejected: refund",
                    admin_id=admin_id,
                    related_entity="withdrawal_request",
                    related_id=withdrawal.id
                )
            
            await create_audit_log(
                session=session,
                admin_id=admin_id,
                action=f"withdrawal_{new_status.value}",
                resource_type="withdrawal_request",
                resource_id=withdrawal_id,
                details={
                    "account_id": str(withdrawal.account_id),
                    "amount": withdrawal.amount,
                    "net_amount": withdrawal.net_amount,
                    "rejection_reason": rejection_reason
                }
            )
            await session.commit()
        except ArenaError as e:
            await session.rollback()
            logger.warning(f"Withdrawal decision on {withdrawal_id} rejected: {e.message}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Withdrawal decision on {withdrawal_id} failed: {e}")
            raise
    
    await session.refresh(withdrawal)
    REQUEST_DECISION_COUNT.labels(kind="withdrawal", outcome=new_status.value).inc()
    logger.info(f"Withdrawal {withdrawal_id} {new_status.value} by admin {admin_id}")
    
    await publisher.publish(ENTITY_WITHDRAWAL_REQUEST, withdrawal.id)
    if entry is not None:
        record_committed(entry)
        await publisher.publish(ENTITY_LEDGER, entry.id)
        await publisher.publish(ENTITY_ACCOUNT, withdrawal.account_id)
    return withdrawal


async def list_withdrawals(
    session: AsyncSession,
    account_id: Optional[UUID] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
):
    if status is not None:
        try:
            RequestStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown request status {status!r}", "Invalid status filter")
    return await withdrawal_repo.get_withdrawals(
        session, account_id=account_id, status=status, limit=limit, offset=offset
    )
