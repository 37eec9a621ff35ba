"""
Tournament repository for tournament definitions and participant lists
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, update, func

from app.models.tournament import Tournament
from app.models.enums import TournamentStatus


async def create_tournament(
    session: AsyncSession,
    title: str,
    max_players: int,
    entry_fee: int = 0,
    description: Optional[str] = None,
    mode: str = '1v1',
    kill_reward: int = 0,
    booyah_reward: int = 0,
    scheduled_at=None,
    room_id: Optional[str] = None,
    room_password: Optional[str] = None,
    rules: Optional[list] = None,
    created_by: Optional[UUID] = None
) -> Tournament:
    """
    Create a new tournament in 'waiting' state with no participants.
    
    Returns:
        Created Tournament instance (flushed, not committed)
    """
    tournament = Tournament(
        title=title,
        description=description,
        mode=mode,
        entry_fee=entry_fee,
        kill_reward=kill_reward,
        booyah_reward=booyah_reward,
        scheduled_at=scheduled_at,
        status=TournamentStatus.WAITING.value,
        max_players=max_players,
        current_players=0,
        participants=[],
        room_id=room_id,
        room_password=room_password,
        rules=rules or [],
        details={},
        created_by=created_by
    )
    session.add(tournament)
    await session.flush()
    return tournament


async def get_tournament_by_id(session: AsyncSession, tournament_id: UUID) -> Optional[Tournament]:
    """
    Get tournament by ID.
    
    Args:
        session: Database session
        tournament_id: Tournament UUID
    
    Returns:
        Tournament instance or None if not found
    """
    result = await session.execute(
        select(Tournament).where(Tournament.id == tournament_id)
    )
    return result.scalar_one_or_none()


async def lock_tournament(session: AsyncSession, tournament_id: UUID) -> Optional[Tournament]:
    """
    Load a tournament with a row-level lock, refreshing any cached instance.
    """
    result = await session.execute(
        select(Tournament)
        .where(Tournament.id == tournament_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_tournaments(
    session: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    status: Optional[str] = None
) -> List[Tournament]:
    """
    Get list of tournaments, newest first.
    
    Args:
        session: Database session
        limit: Maximum number of tournaments to return
        offset: Number of tournaments to skip
        status: Filter by tournament status
    
    Returns:
        List of Tournament instances
    """
    query = select(Tournament).order_by(desc(Tournament.created_at))
    
    if status:
        query = query.where(Tournament.status == status)
    
    query = query.limit(limit).offset(offset)
    
    result = await session.execute(query)
    return result.scalars().all()


async def count_tournaments(session: AsyncSession, status: Optional[str] = None) -> int:
    query = select(func.count(Tournament.id))
    if status:
        query = query.where(Tournament.status == status)
    result = await session.execute(query)
    return result.scalar_one()


async def append_participant(
    session: AsyncSession,
    tournament: Tournament,
    account_id: UUID
) -> bool:
    """
    Compare-and-swap append of one participant.
    
    The update only applies if nobody else changed the participant count
    or status since ``tournament`` was read. Status becomes 'full' when the
    append reaches capacity.
    
    Returns:
        True if the row was updated, False if the snapshot was stale
    """
    seen = tournament.current_players
    participants = list(tournament.participants or []) + [str(account_id)]
    new_count = len(participants)
    new_status = (
        TournamentStatus.FULL.value
        if new_count >= tournament.max_players
        else TournamentStatus.WAITING.value
    )
    
    result = await session.execute(
        update(Tournament)
        .where(
            Tournament.id == tournament.id,
            Tournament.current_players == seen,
            Tournament.status == TournamentStatus.WAITING.value,
            Tournament.max_players > seen
        )
        .values(
            participants=participants,
            current_players=new_count,
            status=new_status,
            updated_at=func.now()
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def delete_tournament(session: AsyncSession, tournament: Tournament) -> None:
    await session.delete(tournament)
    await session.flush()
