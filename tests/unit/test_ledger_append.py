"""
Unit tests for ledger append guards
"""

import pytest
from uuid import uuid4
from unittest.mock import AsyncMock, MagicMock

from app.core.errors import AccountNotFound, InvalidAmount
from app.models.account import Account
from app.models.enums import EntryType
from app.repos.ledger_repo import append_entry


class TestAppendEntry:
    """append_entry validates before touching the cached balance"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, 1.5, True, "10"])
    async def test_rejects_zero_and_non_integer_amounts(self, amount):
        account = Account(id=uuid4(), email="p@example.com", username="p", role="player", balance=100)
        session = AsyncMock()
        session.add = MagicMock()
        result = MagicMock()
        result.scalar_one_or_none.return_value = account
        session.execute.return_value = result

        with pytest.raises(InvalidAmount):
            await append_entry(session, account.id, amount, EntryType.BONUS, "Grant")

        assert account.balance == 100
        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_account_is_reported_before_bad_amount(self):
        session = AsyncMock()
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session.execute.return_value = result

        with pytest.raises(AccountNotFound):
            await append_entry(session, uuid4(), 0, EntryType.BONUS, "Grant")

    @pytest.mark.asyncio
    async def test_unknown_account(self):
        session = AsyncMock()
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session.execute.return_value = result

        with pytest.raises(AccountNotFound):
            await append_entry(session, uuid4(), 10, EntryType.BONUS, "Grant")

        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_moves_cached_balance_by_amount(self):
        account_id = uuid4()
        account = Account(id=account_id, email="p@example.com", username="p", role="player", balance=100)
        session = AsyncMock()
        session.add = MagicMock()
        result = MagicMock()
        result.scalar_one_or_none.return_value = account
        session.execute.return_value = result

        entry = await append_entry(session, account_id, -20, EntryType.TOURNAMENT_ENTRY, "Tournament Entry: Solo")

        assert account.balance == 80
        assert entry.amount == -20
        assert entry.entry_type == "tournament_entry"
        session.add.assert_called_once_with(entry)
        session.flush.assert_awaited_once()
        session.commit.assert_not_called()
