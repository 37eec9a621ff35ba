"""
Withdrawal request repository
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, update, func

from app.models.withdrawal_request import WithdrawalRequest
from app.models.enums import RequestStatus


async def create_withdrawal(
    session: AsyncSession,
    account_id: UUID,
    amount: int,
    service_fee: int,
    net_amount: int,
    account_number: str,
    method: str
) -> WithdrawalRequest:
    """Create a pending withdrawal request (flushed, not committed)."""
    withdrawal = WithdrawalRequest(
        account_id=account_id,
        amount=amount,
        service_fee=service_fee,
        net_amount=net_amount,
        account_number=account_number,
        method=method,
        status=RequestStatus.PENDING.value
    )
    session.add(withdrawal)
    await session.flush()
    return withdrawal


async def get_withdrawal(session: AsyncSession, withdrawal_id: UUID) -> Optional[WithdrawalRequest]:
    """Get a withdrawal by ID"""
    result = await session.execute(
        select(WithdrawalRequest).where(WithdrawalRequest.id == withdrawal_id)
    )
    return result.scalar_one_or_none()


async def lock_withdrawal(session: AsyncSession, withdrawal_id: UUID) -> Optional[WithdrawalRequest]:
    result = await session.execute(
        select(WithdrawalRequest)
        .where(WithdrawalRequest.id == withdrawal_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_withdrawals(
    session: AsyncSession,
    account_id: Optional[UUID] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> List[WithdrawalRequest]:
    """Get withdrawal requests, newest first, optionally filtered."""
    query = select(WithdrawalRequest).order_by(desc(WithdrawalRequest.submitted_at))
    
    if account_id:
        query = query.where(WithdrawalRequest.account_id == account_id)
    if status:
        query = query.where(WithdrawalRequest.status == status)
    
    query = query.limit(limit).offset(offset)
    
    result = await session.execute(query)
    return result.scalars().all()


async def mark_processed(
    session: AsyncSession,
    withdrawal_id: UUID,
    status: RequestStatus,
    admin_id: UUID,
    rejection_reason: Optional[str] = None
) -> bool:
    """Compare-and-swap transition out of 'pending'; False if already decided."""
    result = await session.execute(
        update(WithdrawalRequest)
        .where(
            WithdrawalRequest.id == withdrawal_id,
            WithdrawalRequest.status == RequestStatus.PENDING.value
        )
        .values(
            status=status.value,
            processed_by=admin_id,
            processed_at=datetime.now(timezone.utc),
            rejection_reason=rejection_reason
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def count_withdrawals(session: AsyncSession, status: Optional[str] = None) -> int:
    query = select(func.count(WithdrawalRequest.id))
    if status:
        query = query.where(WithdrawalRequest.status == status)
    result = await session.execute(query)
    return result.scalar_one()
