"""
Wallet API endpoints - balance and ledger history
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_account
from app.db.session import get_db
from app.models.account import Account
from app.repos.ledger_repo import get_entries_for_account
from app.services.tokens import get_balance

router = APIRouter()


@router.get("/")
async def get_wallet_balance(
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db)
):
    """
    Get the current balance, computed from the ledger.
    
    Admins are exempt from balance checks and get ``balance: null``.
    """
    balance = await get_balance(session, current_account.id)
    return {
        "account_id": str(current_account.id),
        "balance": balance,
        "unlimited": current_account.is_admin
    }


@router.get("/transactions")
async def get_wallet_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db)
):
    """
    Get the account's ledger entries, newest first.
    """
    entries = await get_entries_for_account(
        session, current_account.id, limit=limit, offset=offset
    )
    
    return {
        "transactions": [entry.to_dict() for entry in entries],
        "limit": limit,
        "offset": offset
    }
