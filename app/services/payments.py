"""
Payment request workflow - token purchases verified by an admin

Submitting never credits tokens. Approval appends exactly one deposit
entry; the pending -> approved/rejected transition is a compare-and-swap
so a repeated decision fails with AlreadyProcessed instead of crediting
twice.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ArenaError, AccountNotFound, RequestNotFound, AlreadyProcessed,
    InvalidAmount, ValidationError
)
from app.core.metrics import REQUEST_DECISION_COUNT
from app.models.enums import Decision, EntryType, PaymentMethod, RequestStatus
from app.models.payment_request import PaymentRequest
from app.repos.account_repo import get_account_by_id
from app.repos.audit_log_repo import create_audit_log
from app.repos.ledger_repo import append_entry, record_committed
from app.repos import payment_request_repo
from app.services.locks import locks, request_key, account_key
from app.services.notifications import (
    ChangePublisher, get_publisher, ENTITY_PAYMENT_REQUEST, ENTITY_LEDGER, ENTITY_ACCOUNT
)
from app.services.storage import LocalScreenshotStorage, get_storage

logger = logging.getLogger(__name__)

REQUEST_KIND = "PaymentRequest"


def parse_method(method: str) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError:
        raise ValidationError(
            f"Unknown payment method {method!r}",
            "Payment method must be jazzcash or easypaisa"
        )


async def submit_payment(
    session: AsyncSession,
    account_id: UUID,
    amount: int,
    method: str,
    screenshot_ref: str,
    publisher: Optional[ChangePublisher] = None,
    storage: Optional[LocalScreenshotStorage] = None
) -> PaymentRequest:
    """
    Record a purchase claim awaiting admin verification.
    
    Args:
        session: Database session
        account_id: Claiming account
        amount: Claimed token amount (positive)
        method: 'jazzcash' or 'easypaisa'
        screenshot_ref: Reference returned by the screenshot store; it must
            be an upload of the same account that is still stored
        publisher: Change publisher
        storage: Screenshot store the reference is checked against
    
    Returns:
        The pending PaymentRequest
    """
    publisher = publisher or get_publisher()
    storage = storage or get_storage()
    
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount, "amount must be positive")
    payment_method = parse_method(method)
    if not screenshot_ref:
        raise ValidationError("Payment request without screenshot", "Please upload payment screenshot")
    
    try:
        account = await get_account_by_id(session, account_id)
        if not account:
            raise AccountNotFound(account_id)
        if account.is_admin:
            raise ValidationError(
                f"Admin account {account_id} cannot buy tokens",
                "Admin accounts do not hold tokens"
            )
        if not storage.owned_by(account_id, screenshot_ref) or not storage.exists(screenshot_ref):
            raise ValidationError(
                f"Screenshot {screenshot_ref!r} is not an upload of account {account_id}",
                "Please upload payment screenshot"
            )
        
        request = await payment_request_repo.create_payment_request(
            session=session,
            account_id=account_id,
            amount=amount,
            method=payment_method.value,
            screenshot_ref=screenshot_ref
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    
    await session.refresh(request)
    logger.info(f"Payment request {request.id} submitted by {account_id} for {amount} tokens via {payment_method.value}")
    await publisher.publish(ENTITY_PAYMENT_REQUEST, request.id)
    return request


async def decide_payment(
    session: AsyncSession,
    request_id: UUID,
    decision: Decision,
    admin_id: UUID,
    rejection_reason: Optional[str] = None,
    publisher: Optional[ChangePublisher] = None
) -> PaymentRequest:
    """
    Approve or reject a pending payment request.
    
    Approval credits ``+amount`` as a deposit in the same transaction as
    the status change; if the credit fails the request stays pending.
    
    Raises:
        RequestNotFound: unknown request id
        AlreadyProcessed: the request is no longer pending
    """
    publisher = publisher or get_publisher()
    
    existing = await payment_request_repo.get_payment_request_by_id(session, request_id)
    if not existing:
        raise RequestNotFound(REQUEST_KIND, request_id)
    
    entry = None
    async with locks.hold_many(request_key(request_id), account_key(existing.account_id)):
        try:
            request = await payment_request_repo.lock_payment_request(session, request_id)
            if not request:
                raise RequestNotFound(REQUEST_KIND, request_id)
            if request.status != RequestStatus.PENDING.value:
                raise AlreadyProcessed(REQUEST_KIND, request_id, request.status)
            
            new_status = RequestStatus.APPROVED if decision == Decision.APPROVE else RequestStatus.REJECTED
            won = await payment_request_repo.mark_processed(
                session,
                request_id,
                new_status,
                admin_id,
                rejection_reason if new_status == RequestStatus.REJECTED else None
            )
            if not won:
                raise AlreadyProcessed(REQUEST_KIND, request_id, "processed")
            
            if new_status == RequestStatus.APPROVED:
                entry = await append_entry(
                    session=session,
                    account_id=request.account_id,
                    amount=request.amount,
                    entry_type=EntryType.DEPOSIT,
                    reason="Payment Approved",
                    admin_id=admin_id,
                    related_entity="payment_request",
                    related_id=request.id
                )
            
            await create_audit_log(
                session=session,
                admin_id=admin_id,
                action=f"payment_{new_status.value}",
                resource_type="payment_request",
                resource_id=request_id,
                details={
                    "account_id": str(request.account_id),
                    "amount": request.amount,
                    "rejection_reason": rejection_reason
                }
            )
            await session.commit()
        except ArenaError as e:
            await session.rollback()
            logger.warning(f"Payment decision on {request_id} rejected: {e.message}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Payment decision on {request_id} failed: {e}")
            raise
    
    await session.refresh(request)
    REQUEST_DECISION_COUNT.labels(kind="payment", outcome=new_status.value).inc()
    logger.info(f"Payment request {request_id} {new_status.value} by admin {admin_id}")
    
    await publisher.publish(ENTITY_PAYMENT_REQUEST, request.id)
    if entry is not None:
        record_committed(entry)
        await publisher.publish(ENTITY_LEDGER, entry.id)
        await publisher.publish(ENTITY_ACCOUNT, request.account_id)
    return request


async def list_payment_requests(
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
    return await payment_request_repo.get_payment_requests(
        session, account_id=account_id, status=status, limit=limit, offset=offset
    )


async def get_payment_request(session: AsyncSession, request_id: UUID) -> PaymentRequest:
    request = await payment_request_repo.get_payment_request_by_id(session, request_id)
    if not request:
        raise RequestNotFound(REQUEST_KIND, request_id)
    return request
