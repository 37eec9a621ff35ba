"""
Tournament API endpoints
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import parse_uuid
from app.core.auth import get_current_account, get_current_admin
from app.db.session import get_db
from app.models.account import Account
from app.models.tournament import Tournament
from app.services import tournaments as tournament_service
from app.services.notifications import ChangePublisher, get_publisher
from app.services.participation import join_tournament

router = APIRouter()


class TournamentCreate(BaseModel):
    """Tournament creation request model"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    mode: str = Field("1v1", description="1v1 or squad")
    entry_fee: int = Field(20, ge=0)
    kill_reward: int = Field(5, ge=0)
    booyah_reward: int = Field(100, ge=0)
    max_players: int = Field(40, gt=0)
    scheduled_at: Optional[datetime] = None
    room_id: Optional[str] = Field(None, max_length=64)
    room_password: Optional[str] = Field(None, max_length=64)
    rules: Optional[List[str]] = None


class TournamentUpdate(BaseModel):
    """Tournament update request model; omitted fields are left unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    mode: Optional[str] = None
    entry_fee: Optional[int] = Field(None, ge=0)
    kill_reward: Optional[int] = Field(None, ge=0)
    booyah_reward: Optional[int] = Field(None, ge=0)
    max_players: Optional[int] = Field(None, gt=0)
    scheduled_at: Optional[datetime] = None
    room_id: Optional[str] = Field(None, max_length=64)
    room_password: Optional[str] = Field(None, max_length=64)
    rules: Optional[List[str]] = None
    status: Optional[str] = None
    details: Optional[dict] = None


class ResultRow(BaseModel):
    """One participant's result"""
    account_id: str
    placement: int = Field(..., ge=1)
    kills: int = Field(0, ge=0)


class ResultsSubmit(BaseModel):
    """Results submission request model"""
    results: List[ResultRow]


def _view(tournament: Tournament, account: Account) -> dict:
    reveal = account.is_admin or tournament.has_participant(account.id)
    return tournament.to_dict(reveal_room=reveal)


@router.get("/")
async def list_tournaments_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status_filter: Optional[str] = None,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db)
):
    """
    Get list of tournaments.
    """
    tournaments = await tournament_service.list_tournaments(
        session, status=status_filter, limit=limit, offset=offset
    )
    return {
        "tournaments": [_view(t, current_account) for t in tournaments],
        "limit": limit,
        "offset": offset
    }


@router.get("/{tournament_id}")
async def get_tournament_endpoint(
    tournament_id: str,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db)
):
    """
    Get tournament details. Room credentials are shown to participants and admins only.
    """
    tournament = await tournament_service.get_tournament(session, parse_uuid(tournament_id, "tournament ID"))
    return _view(tournament, current_account)


@router.post("/{tournament_id}/join")
async def join_tournament_endpoint(
    tournament_id: str,
    current_account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Join a tournament, paying its entry fee from the token balance.
    """
    tournament, entry = await join_tournament(
        session=session,
        account_id=current_account.id,
        tournament_id=parse_uuid(tournament_id, "tournament ID"),
        publisher=publisher
    )
    return {
        "success": True,
        "message": f"Successfully joined {tournament.title}!",
        "tournament": tournament.to_dict(reveal_room=True),
        "ledger_entry": entry.to_dict() if entry else None
    }


@router.post("/", status_code=201)
async def create_tournament_endpoint(
    data: TournamentCreate,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Create a tournament (admin only).
    """
    tournament = await tournament_service.create_tournament(
        session=session,
        admin_id=current_admin.id,
        publisher=publisher,
        **data.model_dump()
    )
    return tournament.to_dict(reveal_room=True)


@router.patch("/{tournament_id}")
async def update_tournament_endpoint(
    tournament_id: str,
    data: TournamentUpdate,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Update a tournament (admin only).
    """
    tournament = await tournament_service.update_tournament(
        session=session,
        tournament_id=parse_uuid(tournament_id, "tournament ID"),
        admin_id=current_admin.id,
        changes=data.model_dump(exclude_unset=True),
        publisher=publisher
    )
    return tournament.to_dict(reveal_room=True)


@router.delete("/{tournament_id}", status_code=204)
async def delete_tournament_endpoint(
    tournament_id: str,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Delete a tournament nobody has joined (admin only).
    """
    await tournament_service.delete_tournament(
        session=session,
        tournament_id=parse_uuid(tournament_id, "tournament ID"),
        admin_id=current_admin.id,
        publisher=publisher
    )


@router.post("/{tournament_id}/results")
async def record_results_endpoint(
    tournament_id: str,
    data: ResultsSubmit,
    current_admin: Account = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    publisher: ChangePublisher = Depends(get_publisher)
):
    """
    Record results of a live tournament and pay out rewards (admin only).
    """
    tournament = await tournament_service.record_results(
        session=session,
        tournament_id=parse_uuid(tournament_id, "tournament ID"),
        admin_id=current_admin.id,
        results=[row.model_dump() for row in data.results],
        publisher=publisher
    )
    return tournament.to_dict(reveal_room=True)
