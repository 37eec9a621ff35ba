"""
Tournament administration - creation, edits, deletion and results

Status rules enforced here:
- 'full' is never requested directly; while a tournament is waiting or
  full its status follows the participant count.
- 'completed' is terminal.
- max_players cannot drop below the current participant count.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ArenaError, InvalidStateError, InvalidTransition, TournamentNotFound, ValidationError
)
from app.models.enums import EntryType, TournamentMode, TournamentStatus
from app.models.ledger_entry import LedgerEntry
from app.models.tournament import Tournament
from app.repos.audit_log_repo import create_audit_log
from app.repos.ledger_repo import append_entry, record_committed
from app.repos import tournament_repo
from app.services.locks import locks, tournament_key, account_key
from app.services.notifications import (
    ChangePublisher, get_publisher, ENTITY_TOURNAMENT, ENTITY_LEDGER, ENTITY_ACCOUNT
)

logger = logging.getLogger(__name__)

DEFAULT_RULES = ['No cheating allowed', 'Use registered UID only']

EDITABLE_FIELDS = {
    'title', 'description', 'mode', 'entry_fee', 'kill_reward', 'booyah_reward',
    'scheduled_at', 'room_id', 'room_password', 'rules', 'max_players', 'status', 'details'
}

_NON_NEGATIVE = ('entry_fee', 'kill_reward', 'booyah_reward')


def _validate_fields(fields: Dict[str, Any]) -> None:
    if 'title' in fields and not (fields['title'] or '').strip():
        raise ValidationError("Tournament title is empty", "Title is required")
    if 'mode' in fields:
        try:
            TournamentMode(fields['mode'])
        except ValueError:
            raise ValidationError(f"Unknown tournament mode {fields['mode']!r}", "Mode must be 1v1 or squad")
    for name in _NON_NEGATIVE:
        if name in fields:
            value = fields[name]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
    if 'max_players' in fields:
        value = fields['max_players']
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(f"max_players must be a positive integer, got {value!r}")
    if 'rules' in fields and not isinstance(fields['rules'], list):
        raise ValidationError("rules must be a list of strings")
    if 'details' in fields and not isinstance(fields['details'], dict):
        raise ValidationError("details must be an object")


async def create_tournament(
    session: AsyncSession,
    admin_id: UUID,
    title: str,
    max_players: int,
    entry_fee: int = 0,
    description: Optional[str] = None,
    mode: str = TournamentMode.SOLO.value,
    kill_reward: int = 0,
    booyah_reward: int = 0,
    scheduled_at: Optional[datetime] = None,
    room_id: Optional[str] = None,
    room_password: Optional[str] = None,
    rules: Optional[List[str]] = None,
    publisher: Optional[ChangePublisher] = None
) -> Tournament:
    """
    Create a tournament open for joining.
    
    Returns:
        The committed Tournament in 'waiting' state with no participants
    """
    publisher = publisher or get_publisher()
    
    _validate_fields({
        'title': title,
        'mode': mode,
        'entry_fee': entry_fee,
        'kill_reward': kill_reward,
        'booyah_reward': booyah_reward,
        'max_players': max_players,
        'rules': rules if rules is not None else []
    })
    
    try:
        tournament = await tournament_repo.create_tournament(
            session=session,
            title=title.strip(),
            description=description,
            mode=mode,
            entry_fee=entry_fee,
            kill_reward=kill_reward,
            booyah_reward=booyah_reward,
            scheduled_at=scheduled_at,
            max_players=max_players,
            room_id=room_id,
            room_password=room_password,
            rules=rules if rules is not None else list(DEFAULT_RULES),
            created_by=admin_id
        )
        await create_audit_log(
            session=session,
            admin_id=admin_id,
            action="tournament_create",
            resource_type="tournament",
            resource_id=tournament.id,
            details={"title": tournament.title, "entry_fee": entry_fee, "max_players": max_players}
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    
    await session.refresh(tournament)
    logger.info(f"Tournament {tournament.id} '{tournament.title}' created by admin {admin_id}")
    await publisher.publish(ENTITY_TOURNAMENT, tournament.id)
    return tournament


def _next_status(tournament: Tournament, requested: Optional[str]) -> str:
    current = tournament.status
    if requested is not None:
        try:
            TournamentStatus(requested)
        except ValueError:
            raise ValidationError(f"Unknown tournament status {requested!r}", "Invalid status")
        if requested == TournamentStatus.FULL.value:
            raise InvalidTransition("Tournament", current, requested)
        target = requested
    else:
        target = current
    
    if current == TournamentStatus.COMPLETED.value and target != current:
        raise InvalidTransition("Tournament", current, target)
    
    # waiting/full follow the participant count
    if target in (TournamentStatus.WAITING.value, TournamentStatus.FULL.value):
        if tournament.current_players >= tournament.max_players:
            return TournamentStatus.FULL.value
        return TournamentStatus.WAITING.value
    return target


async def update_tournament(
    session: AsyncSession,
    tournament_id: UUID,
    admin_id: UUID,
    changes: Dict[str, Any],
    publisher: Optional[ChangePublisher] = None
) -> Tournament:
    """
    Apply an admin edit to a tournament.
    
    Args:
        session: Database session
        tournament_id: Tournament to edit
        admin_id: Acting admin
        changes: Field -> new value; only EDITABLE_FIELDS are accepted
        publisher: Change publisher
    
    Returns:
        The refreshed Tournament
    
    Raises:
        TournamentNotFound: unknown tournament
        InvalidTransition: illegal status change
        ValidationError: unknown field, bad value or capacity below participant count
    """
    publisher = publisher or get_publisher()
    
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable: {sorted(unknown)}", "Some fields cannot be changed")
    _validate_fields(changes)
    
    async with locks.hold(tournament_key(tournament_id)):
        try:
            tournament = await tournament_repo.lock_tournament(session, tournament_id)
            if not tournament:
                raise TournamentNotFound(tournament_id)
            
            new_max = changes.get('max_players', tournament.max_players)
            if new_max < tournament.current_players:
                raise ValidationError(
                    f"max_players {new_max} is below current participant count {tournament.current_players}",
                    "Max players cannot be lower than current players"
                )
            
            for field, value in changes.items():
                if field == 'status':
                    continue
                if field == 'title':
                    value = value.strip()
                setattr(tournament, field, value)
            
            tournament.status = _next_status(tournament, changes.get('status'))
            
            await create_audit_log(
                session=session,
                admin_id=admin_id,
                action="tournament_update",
                resource_type="tournament",
                resource_id=tournament_id,
                details={"fields": sorted(changes), "status": tournament.status}
            )
            await session.commit()
        except ArenaError as e:
            await session.rollback()
            logger.warning(f"Update of tournament {tournament_id} rejected: {e.message}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Update of tournament {tournament_id} failed: {e}")
            raise
    
    await session.refresh(tournament)
    logger.info(f"Tournament {tournament_id} updated by admin {admin_id}: {sorted(changes)}")
    await publisher.publish(ENTITY_TOURNAMENT, tournament.id)
    return tournament


async def delete_tournament(
    session: AsyncSession,
    tournament_id: UUID,
    admin_id: UUID,
    publisher: Optional[ChangePublisher] = None
) -> None:
    """Delete a tournament nobody has joined yet."""
    publisher = publisher or get_publisher()
    
    async with locks.hold(tournament_key(tournament_id)):
        try:
            tournament = await tournament_repo.lock_tournament(session, tournament_id)
            if not tournament:
                raise TournamentNotFound(tournament_id)
            if tournament.current_players > 0:
                raise InvalidStateError(
                    f"Tournament {tournament_id} has {tournament.current_players} participants",
                    "Cannot delete a tournament with participants"
                )
            
            await tournament_repo.delete_tournament(session, tournament)
            await create_audit_log(
                session=session,
                admin_id=admin_id,
                action="tournament_delete",
                resource_type="tournament",
                resource_id=tournament_id,
                details={"title": tournament.title}
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    
    logger.info(f"Tournament {tournament_id} deleted by admin {admin_id}")
    await publisher.publish(ENTITY_TOURNAMENT, tournament_id)


def _parse_results(tournament: Tournament, results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not results:
        raise ValidationError("No results submitted", "Please submit at least one result")
    
    parsed = []
    seen = set()
    winners = 0
    for row in results:
        account_id = str(row.get('account_id'))
        placement = row.get('placement')
        kills = row.get('kills', 0)
        
        if not tournament.has_participant(account_id):
            raise ValidationError(
                f"Account {account_id} is not a participant of tournament {tournament.id}",
                "Results contain a player who did not join"
            )
        if account_id in seen:
            raise ValidationError(f"Duplicate result for account {account_id}", "Duplicate player in results")
        if isinstance(placement, bool) or not isinstance(placement, int) or placement < 1:
            raise ValidationError(f"Invalid placement {placement!r} for account {account_id}")
        if isinstance(kills, bool) or not isinstance(kills, int) or kills < 0:
            raise ValidationError(f"Invalid kills {kills!r} for account {account_id}")
        
        seen.add(account_id)
        if placement == 1:
            winners += 1
        parsed.append({"account_id": account_id, "placement": placement, "kills": kills})
    
    if winners > 1:
        raise ValidationError("More than one placement 1", "Only one player can win")
    return sorted(parsed, key=lambda r: r["placement"])


async def record_results(
    session: AsyncSession,
    tournament_id: UUID,
    admin_id: UUID,
    results: List[Dict[str, Any]],
    publisher: Optional[ChangePublisher] = None
) -> Tournament:
    """
    Pay out a live tournament and mark it completed.
    
    Each participant row ``{account_id, placement, kills}`` earns
    kills x kill_reward as 'kill_reward'; placement 1 earns booyah_reward
    as 'tournament_win'. Payouts, status change and the stored results
    commit together.
    
    Raises:
        TournamentNotFound: unknown tournament
        InvalidTransition: tournament is not live
        ValidationError: malformed rows or non-participants
    """
    publisher = publisher or get_publisher()
    
    existing = await tournament_repo.get_tournament_by_id(session, tournament_id)
    if not existing:
        raise TournamentNotFound(tournament_id)
    participant_keys = [account_key(a) for a in (existing.participants or [])]
    
    entries: List[LedgerEntry] = []
    async with locks.hold_many(tournament_key(tournament_id), *participant_keys):
        try:
            tournament = await tournament_repo.lock_tournament(session, tournament_id)
            if not tournament:
                raise TournamentNotFound(tournament_id)
            if tournament.status != TournamentStatus.LIVE.value:
                raise InvalidTransition("Tournament", tournament.status, TournamentStatus.COMPLETED.value)
            
            rows = _parse_results(tournament, results)
            winner_id = None
            for row in rows:
                account_id = UUID(row["account_id"])
                earned = 0
                if row["kills"] > 0 and tournament.kill_reward > 0:
                    kill_amount = row["kills"] * tournament.kill_reward
                    entries.append(await append_entry(
                        session=session,
                        account_id=account_id,
                        amount=kill_amount,
                        entry_type=EntryType.KILL_REWARD,
                        reason=f"Kill Reward: {tournament.title} ({row['kills']} kills)",
                        admin_id=admin_id,
                        related_entity="tournament",
                        related_id=tournament.id
                    ))
                    earned += kill_amount
                if row["placement"] == 1:
                    winner_id = account_id
                    if tournament.booyah_reward > 0:
                        entries.append(await append_entry(
                            session=session,
                            account_id=account_id,
                            amount=tournament.booyah_reward,
                            entry_type=EntryType.TOURNAMENT_WIN,
                            reason=f"Booyah Reward: {tournament.title}",
                            admin_id=admin_id,
                            related_entity="tournament",
                            related_id=tournament.id
                        ))
                        earned += tournament.booyah_reward
                row["tokens"] = earned
            
            tournament.status = TournamentStatus.COMPLETED.value
            tournament.winner_id = winner_id
            tournament.details = {**(tournament.details or {}), "results": rows}
            
            await create_audit_log(
                session=session,
                admin_id=admin_id,
                action="tournament_results",
                resource_type="tournament",
                resource_id=tournament_id,
                details={
                    "winner_id": str(winner_id) if winner_id else None,
                    "payout_total": sum(e.amount for e in entries)
                }
            )
            await session.commit()
        except ArenaError as e:
            await session.rollback()
            logger.warning(f"Results for tournament {tournament_id} rejected: {e.message}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Results for tournament {tournament_id} failed: {e}")
            raise
    
    await session.refresh(tournament)
    record_committed(*entries)
    logger.info(
        f"Tournament {tournament_id} completed with {len(entries)} payouts, winner {tournament.winner_id}"
    )
    
    await publisher.publish(ENTITY_TOURNAMENT, tournament.id)
    for entry in entries:
        await publisher.publish(ENTITY_LEDGER, entry.id)
    for account_id in sorted({str(e.account_id) for e in entries}):
        await publisher.publish(ENTITY_ACCOUNT, account_id)
    return tournament


async def list_tournaments(
    session: AsyncSession,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> List[Tournament]:
    if status is not None:
        try:
            TournamentStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown tournament status {status!r}", "Invalid status filter")
    return await tournament_repo.get_tournaments(session, limit=limit, offset=offset, status=status)


async def get_tournament(session: AsyncSession, tournament_id: UUID) -> Tournament:
    tournament = await tournament_repo.get_tournament_by_id(session, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)
    return tournament
