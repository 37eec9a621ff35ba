"""
Tournament participation - the join transaction

Joining debits the entry fee and appends the player to the participant
list in one database transaction. Joins against the same tournament are
serialised by the keyed lock, and the participant append is a
compare-and-swap on the count read under that lock, so a second process
racing on the same row loses cleanly and re-validates.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import (
    ArenaError, InvalidStateError, TournamentNotFound, AccountNotFound,
    AlreadyJoined, NotJoinable, TournamentFull, InsufficientBalance
)
from app.core.metrics import TOURNAMENT_JOIN_COUNT
from app.models.enums import EntryType, TournamentStatus
from app.models.ledger_entry import LedgerEntry
from app.models.tournament import Tournament
from app.repos.account_repo import lock_account
from app.repos.ledger_repo import append_entry, current_balance, record_committed
from app.repos.tournament_repo import lock_tournament, append_participant
from app.services.locks import locks, tournament_key, account_key
from app.services.notifications import (
    ChangePublisher, get_publisher, ENTITY_TOURNAMENT, ENTITY_LEDGER, ENTITY_ACCOUNT
)

# Configure logging
logger = logging.getLogger(__name__)


async def _attempt_join(
    session: AsyncSession,
    account_id: UUID,
    tournament_id: UUID
) -> Tuple[bool, Optional[Tournament], Optional[LedgerEntry]]:
    """
    One validate-then-write pass. Returns (won, tournament, entry); won is
    False when the compare-and-swap saw a stale participant count.
    """
    # Step 1: Lock tournament row
    tournament = await lock_tournament(session, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)
    
    # Step 2: Lock account row
    account = await lock_account(session, account_id)
    if not account:
        raise AccountNotFound(account_id)
    
    # Step 3: Admins never join; players join at most once
    if account.is_admin or tournament.has_participant(account_id):
        raise AlreadyJoined(account_id, tournament_id)
    
    # Step 4: Only waiting tournaments accept players; full is reported as such
    if tournament.status == TournamentStatus.FULL.value:
        raise TournamentFull(tournament_id)
    if tournament.status != TournamentStatus.WAITING.value:
        raise NotJoinable(tournament_id, tournament.status)
    
    # Step 5: Capacity
    if tournament.current_players >= tournament.max_players:
        raise TournamentFull(tournament_id)
    
    # Step 6: Balance, computed from the ledger
    available = await current_balance(session, account_id)
    if available < tournament.entry_fee:
        raise InsufficientBalance(account_id, tournament.entry_fee, available)
    
    # Step 7: Participant append, conditional on the count we validated
    won = await append_participant(session, tournament, account_id)
    if not won:
        return False, None, None
    
    # Step 8: Entry fee debit in the same transaction
    entry = None
    if tournament.entry_fee > 0:
        entry = await append_entry(
            session=session,
            account_id=account_id,
            amount=-tournament.entry_fee,
            entry_type=EntryType.TOURNAMENT_ENTRY,
            reason=f"Tournament Entry: {tournament.title}",
            related_entity="tournament",
            related_id=tournament.id
        )
    
    return True, tournament, entry


async def join_tournament(
    session: AsyncSession,
    account_id: UUID,
    tournament_id: UUID,
    publisher: Optional[ChangePublisher] = None
) -> Tuple[Tournament, Optional[LedgerEntry]]:
    """
    Join a tournament, paying its entry fee.
    
    Preconditions are checked in a fixed order and each failure raises a
    distinct error: TournamentNotFound, AccountNotFound, AlreadyJoined,
    NotJoinable, TournamentFull, InsufficientBalance. On success the
    participant append and the fee debit commit together; the tournament
    becomes 'full' when the last slot is taken.
    
    Args:
        session: Database session
        account_id: Joining account
        tournament_id: Tournament to join
        publisher: Change publisher (defaults to the process publisher)
    
    Returns:
        Tuple of (refreshed tournament, ledger entry or None for free tournaments)
    """
    publisher = publisher or get_publisher()
    
    async with locks.hold_many(tournament_key(tournament_id), account_key(account_id)):
        for attempt in range(1, settings.join_max_attempts + 1):
            try:
                won, tournament, entry = await _attempt_join(session, account_id, tournament_id)
                if won:
                    await session.commit()
                    break
                await session.rollback()
                logger.warning(
                    f"Join of {account_id} to {tournament_id} lost a race on attempt {attempt}, re-validating"
                )
            except ArenaError as e:
                await session.rollback()
                TOURNAMENT_JOIN_COUNT.labels(status="rejected").inc()
                logger.warning(f"Join rejected for account {account_id} on tournament {tournament_id}: {e.message}")
                raise
            except Exception as e:
                await session.rollback()
                TOURNAMENT_JOIN_COUNT.labels(status="error").inc()
                logger.error(f"Join failed for account {account_id} on tournament {tournament_id}: {e}")
                raise
        else:
            TOURNAMENT_JOIN_COUNT.labels(status="contended").inc()
            raise InvalidStateError(
                f"Join of {account_id} to {tournament_id} gave up after {settings.join_max_attempts} attempts",
                "Tournament is busy, please try again"
            )
    
    await session.refresh(tournament)
    if entry is not None:
        record_committed(entry)
    TOURNAMENT_JOIN_COUNT.labels(status="success").inc()
    logger.info(
        f"Account {account_id} joined tournament {tournament_id} "
        f"({tournament.current_players}/{tournament.max_players}, status {tournament.status})"
    )
    
    await publisher.publish(ENTITY_TOURNAMENT, tournament.id)
    if entry is not None:
        await publisher.publish(ENTITY_LEDGER, entry.id)
        await publisher.publish(ENTITY_ACCOUNT, account_id)
    
    return tournament, entry
