"""
Payment request repository for screenshot-backed token purchase claims
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, update, func

from app.models.payment_request import PaymentRequest
from app.models.enums import RequestStatus


async def create_payment_request(
    session: AsyncSession,
    account_id: UUID,
    amount: int,
    method: str,
    screenshot_ref: str
) -> PaymentRequest:
    """
    Create a pending payment request. No ledger effect.
    
    Returns:
        Created PaymentRequest instance (flushed, not committed)
    """
    request = PaymentRequest(
        account_id=account_id,
        amount=amount,
        method=method,
        screenshot_ref=screenshot_ref,
        status=RequestStatus.PENDING.value
    )
    session.add(request)
    await session.flush()
    return request


async def get_payment_request_by_id(session: AsyncSession, request_id: UUID) -> Optional[PaymentRequest]:
    result = await session.execute(
        select(PaymentRequest).where(PaymentRequest.id == request_id)
    )
    return result.scalar_one_or_none()


async def lock_payment_request(session: AsyncSession, request_id: UUID) -> Optional[PaymentRequest]:
    result = await session.execute(
        select(PaymentRequest)
        .where(PaymentRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_payment_requests(
    session: AsyncSession,
    account_id: Optional[UUID] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> List[PaymentRequest]:
    """
    Get payment requests, newest first.
    
    Args:
        session: Database session
        account_id: Restrict to one account (optional)
        status: Filter by request status (optional)
        limit: Maximum number of requests to return
        offset: Number of requests to skip
    
    Returns:
        List of PaymentRequest instances
    """
    query = select(PaymentRequest).order_by(desc(PaymentRequest.submitted_at))
    
    if account_id:
        query = query.where(PaymentRequest.account_id == account_id)
    if status:
        query = query.where(PaymentRequest.status == status)
    
    query = query.limit(limit).offset(offset)
    
    result = await session.execute(query)
    return result.scalars().all()


async def mark_processed(
    session: AsyncSession,
    request_id: UUID,
    status: RequestStatus,
    admin_id: UUID,
    rejection_reason: Optional[str] = None
) -> bool:
    """
    Compare-and-swap transition out of 'pending'.
    
    Returns:
        True if this call performed the transition, False if the request
        was no longer pending
    """
    result = await session.execute(
        update(PaymentRequest)
        .where(
            PaymentRequest.id == request_id,
            PaymentRequest.status == RequestStatus.PENDING.value
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


async def count_payment_requests(session: AsyncSession, status: Optional[str] = None) -> int:
    query = select(func.count(PaymentRequest.id))
    if status:
        query = query.where(PaymentRequest.status == status)
    result = await session.execute(query)
    return result.scalar_one()


async def total_approved_amount(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.coalesce(func.sum(PaymentRequest.amount), 0))
        .where(PaymentRequest.status == RequestStatus.APPROVED.value)
    )
    return int(result.scalar_one())
