"""
Withdrawal API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_account
from app.core.config import settings
from app.db.session import get_db
from app.models.account import Account
from app.services.notifications import ChangePublisher, get_publisher
from app.services.withdrawals import submit_withdrawal, list_withdrawals, withdrawal_fee

router = APIRouter()


class WithdrawalSubmit(BaseModel):
    """Withdrawal request model"""
    amount: int = Field(..., description="Tokens to withdraw")
    account_number: str = Field(..., min_length=1, max_length=32, description="Destination wallet number")
    method: str = Field(..., description="jazzcash or easypaisa")


@router.get("/fee")
async def quote_fee_endpoint(amount: int = Query(..., ge=0)):
    """
    Preview the service fee and net payout for an amount.
    """
    fee = withdrawal_fee(amount)
    return {
        "amount": amount,
        "service_fee": fee,
        "net_amount": max(amount - fee, 0),
        "minimum": settings.withdrawal_minimum
    }


@router.post("/", status_code=201)
async def submit_withdrawal_endpoint(
    data: WithdrawalSubmit,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Request a withdrawal. The amount is reserved from the balance until an admin decides.
    """
    withdrawal = await submit_withdrawal(
        session=session,
        account_id=current_account.id,
        amount=data.amount,
        account_number=data.account_number,
        method=data.method,
        publisher=publisher
    )
    return {
        "success": True,
        "message": "Withdrawal request submitted! Admin will process within 24 hours.",
        "withdrawal": withdrawal.to_dict()
    }


@router.get("/")
async def list_my_withdrawals_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status_filter: Optional[str] = None,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db)
):
    """
    Get the account's own withdrawal requests, newest first.
    """
    withdrawals = await list_withdrawals(
        session, account_id=current_account.id, status=status_filter, limit=limit, offset=offset
    )
    return {
        "withdrawals": [w.to_dict() for w in withdrawals],
        "limit": limit,
        "offset": offset
    }
