"""
Payment request API endpoints - screenshot upload and token purchase claims
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.auth import get_current_account
from app.db.session import get_db
from app.models.account import Account
from app.services.notifications import ChangePublisher, get_publisher
from app.services.payments import submit_payment, list_payment_requests
from app.services.storage import LocalScreenshotStorage, get_storage

router = APIRouter()


class PaymentSubmit(BaseModel):
    """Payment request submission model"""
    amount: int = Field(..., gt=0, description="Tokens purchased (1 token = 1 PKR)")
    method: str = Field(..., description="jazzcash or easypaisa")
    screenshot_ref: str = Field(..., min_length=1, description="Reference returned by the screenshot upload")


@router.post("/screenshots", status_code=201)
async def upload_screenshot_endpoint(
    file: UploadFile = File(...),
    current_account: Account = Depends(get_current_account),
    storage: LocalScreenshotStorage = Depends(get_storage)
):
    """
    Upload a payment screenshot and get back its storage reference.
    """
    data = await file.read()
    ref = storage.save(current_account.id, file.filename, data, file.content_type)
    return {"screenshot_ref": ref}


@router.post("/", status_code=201)
async def submit_payment_endpoint(
    data: PaymentSubmit,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher),
    storage: LocalScreenshotStorage = Depends(get_storage)
):
    """
    Submit a payment for verification. Tokens are credited only after admin approval.
    """
    request = await submit_payment(
        session=session,
        account_id=current_account.id,
        amount=data.amount,
        method=data.method,
        screenshot_ref=data.screenshot_ref,
        publisher=publisher,
        storage=storage
    )
    return {
        "success": True,
        "message": "Payment request submitted! Admin will verify and add tokens to your account.",
        "payment_request": request.to_dict()
    }


@router.get("/")
async def list_my_payments_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status_filter: Optional[str] = None,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db)
):
    """
    Get the account's own payment requests, newest first.
    """
    requests = await list_payment_requests(
        session, account_id=current_account.id, status=status_filter, limit=limit, offset=offset
    )
    return {
        "payment_requests": [r.to_dict() for r in requests],
        "limit": limit,
        "offset": offset
    }
