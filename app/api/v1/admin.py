"""
Admin API endpoints - request decisions, token adjustments, ledger and stats
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import parse_uuid
from app.core.auth import get_current_admin
from app.core.errors import NotFoundError, ValidationError
from app.db.session import get_db
from app.models.account import Account
from app.models.enums import Decision
from app.repos.account_repo import get_players
from app.repos.audit_log_repo import get_audit_logs
from app.repos.ledger_repo import get_recent_entries
from app.services.notifications import ChangePublisher, get_publisher
from app.services.payments import decide_payment, get_payment_request, list_payment_requests
from app.services.storage import LocalScreenshotStorage, get_storage
from app.services.tokens import adjust_tokens, reconcile_balance, get_stats
from app.services.withdrawals import decide_withdrawal, list_withdrawals

router = APIRouter()


class DecisionRequest(BaseModel):
    """Admin decision on a pending request"""
    decision: str = Field(..., description="approve or reject")
    rejection_reason: Optional[str] = Field(None, max_length=500)


class TokenAdjustment(BaseModel):
    """Manual token grant (positive) or penalty (negative)"""
    amount: int
    reason: str = Field(..., min_length=1, max_length=255)


def _parse_decision(value: str) -> Decision:
    try:
        return Decision(value)
    except ValueError:
        raise ValidationError(f"Unknown decision {value!r}", "Decision must be approve or reject")


@router.get("/accounts")
async def list_accounts_endpoint(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Get player accounts with their cached balances (admin only).
    """
    players = await get_players(session, limit=limit, offset=offset)
    return {
        "accounts": [p.to_dict() for p in players],
        "limit": limit,
        "offset": offset
    }


@router.post("/accounts/{account_id}/tokens")
async def adjust_tokens_endpoint(
    account_id: str,
    data: TokenAdjustment,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Grant or deduct tokens for a player (admin only).
    """
    entry = await adjust_tokens(
        session=session,
        account_id=parse_uuid(account_id, "account ID"),
        amount=data.amount,
        reason=data.reason,
        admin_id=current_admin.id,
        publisher=publisher
    )
    return {"success": True, "ledger_entry": entry.to_dict()}


@router.get("/accounts/{account_id}/reconcile")
async def reconcile_endpoint(
    account_id: str,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Compare an account's cached balance against its ledger (admin only).
    """
    return await reconcile_balance(session, parse_uuid(account_id, "account ID"))


@router.get("/ledger")
async def ledger_feed_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    entry_type: Optional[str] = None,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Get the most recent ledger entries across all accounts (admin only).
    """
    entries = await get_recent_entries(session, limit=limit, offset=offset, entry_type=entry_type)
    return {
        "transactions": [e.to_dict() for e in entries],
        "limit": limit,
        "offset": offset
    }


@router.get("/payments")
async def list_payments_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status_filter: Optional[str] = None,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Get all payment requests (admin only).
    """
    requests = await list_payment_requests(session, status=status_filter, limit=limit, offset=offset)
    return {
        "payment_requests": [r.to_dict() for r in requests],
        "limit": limit,
        "offset": offset
    }


@router.post("/payments/{request_id}/decide")
async def decide_payment_endpoint(
    request_id: str,
    data: DecisionRequest,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Approve or reject a payment request (admin only).
    """
    request = await decide_payment(
        session=session,
        request_id=parse_uuid(request_id, "request ID"),
        decision=_parse_decision(data.decision),
        admin_id=current_admin.id,
        rejection_reason=data.rejection_reason,
        publisher=publisher
    )
    return {"success": True, "payment_request": request.to_dict()}


@router.get("/payments/{request_id}/screenshot")
async def get_payment_screenshot_endpoint(
    request_id: str,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    storage: LocalScreenshotStorage = Depends(get_storage)
):
    """
    Get the screenshot attached to a payment request (admin only).
    """
    request = await get_payment_request(session, parse_uuid(request_id, "request ID"))
    if not storage.exists(request.screenshot_ref):
        raise NotFoundError(
            f"Screenshot {request.screenshot_ref} of payment request {request.id} is missing",
            "Screenshot not found"
        )
    return FileResponse(storage.path_for(request.screenshot_ref))


@router.get("/withdrawals")
async def list_withdrawals_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status_filter: Optional[str] = None,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Get all withdrawal requests (admin only).
    """
    withdrawals = await list_withdrawals(session, status=status_filter, limit=limit, offset=offset)
    return {
        "withdrawals": [w.to_dict() for w in withdrawals],
        "limit": limit,
        "offset": offset
    }


@router.post("/withdrawals/{withdrawal_id}/decide")
async def decide_withdrawal_endpoint(
    withdrawal_id: str,
    data: DecisionRequest,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Approve or reject a withdrawal request (admin only).
    """
    withdrawal = await decide_withdrawal(
        session=session,
        withdrawal_id=parse_uuid(withdrawal_id, "withdrawal ID"),
        decision=_parse_decision(data.decision),
        admin_id=current_admin.id,
        rejection_reason=data.rejection_reason,
        publisher=publisher
    )
    return {"success": True, "withdrawal": withdrawal.to_dict()}


@router.get("/audit-logs")
async def get_audit_logs_endpoint(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    action_filter: Optional[str] = Query(None, description="Filter by action type"),
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Get audit logs (admin only).
    """
    logs = await get_audit_logs(session, limit=limit, offset=offset, action=action_filter)
    return {
        "logs": [log.to_dict() for log in logs],
        "limit": limit,
        "offset": offset
    }


@router.get("/stats")
async def get_admin_stats(
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Get admin dashboard statistics.
    """
    return await get_stats(session)
