"""
Authentication API endpoints
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import verify_password, create_access_token, get_current_account
from app.core.config import settings
from app.db.session import get_db
from app.models.account import Account
from app.repos.account_repo import get_account_by_email
from app.services.notifications import ChangePublisher, get_publisher
from app.services.registration import register_account

router = APIRouter()


class AccountRegister(BaseModel):
    """Account registration request model"""
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    username: str = Field(..., min_length=3, max_length=48)
    password: str = Field(..., min_length=6)
    game_uid: Optional[str] = Field(None, max_length=64, description="In-game player UID")


class AccountLogin(BaseModel):
    """Account login request model"""
    email: str
    password: str


class TokenResponse(BaseModel):
    """Token response model"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account: dict


def _token_response(account: Account) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(account),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        account=account.to_dict()
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register_endpoint(
    data: AccountRegister,
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Register a new player.
    
    The account starts with the welcome bonus already in its ledger.
    """
    account = await register_account(
        session=session,
        email=data.email,
        username=data.username,
        password=data.password,
        game_uid=data.game_uid,
        publisher=publisher
    )
    return _token_response(account)


@router.post("/login", response_model=TokenResponse)
async def login_endpoint(
    data: AccountLogin,
    session: AsyncSession = Depends(get_db)
):
    """Login with email and password."""
    account = await get_account_by_email(session, data.email.strip().lower())
    if not account or not account.password_hash or not verify_password(data.password, account.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )
    return _token_response(account)


@router.get("/me")
async def get_me(current_account: Account = Depends(get_current_account)):
    """Get the authenticated account."""
    return current_account.to_dict()
