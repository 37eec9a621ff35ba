"""
Integration tests for admin token adjustments, reconciliation and stats
"""

import pytest
from uuid import uuid4

from sqlalchemy import update

from app.core.errors import AccountNotFound, InsufficientBalance, InvalidAmount, ValidationError
from app.models.account import Account
from app.models.enums import Decision
from app.repos.ledger_repo import current_balance
from app.services.payments import submit_payment, decide_payment
from app.services.registration import register_account
from app.services.tokens import adjust_tokens, reconcile_balance, get_stats, get_balance

pytestmark = pytest.mark.integration


class TestAdjustTokens:

    async def test_grant_is_bonus(self, async_session, player, admin, publisher):
        entry = await adjust_tokens(async_session, player.id, 25, "Tournament compensation", admin.id, publisher=publisher)

        assert entry.entry_type == "bonus"
        assert entry.admin_id == admin.id
        assert await current_balance(async_session, player.id) == 125

    async def test_penalty_is_recorded(self, async_session, player, admin, publisher):
        entry = await adjust_tokens(async_session, player.id, -30, "Teaming", admin.id, publisher=publisher)

        assert entry.entry_type == "penalty"
        assert await current_balance(async_session, player.id) == 70

    async def test_penalty_cannot_go_negative(self, async_session, player, admin, publisher):
        with pytest.raises(InsufficientBalance):
            await adjust_tokens(async_session, player.id, -101, "Cheating", admin.id, publisher=publisher)
        assert await current_balance(async_session, player.id) == 100

    async def test_zero_amount(self, async_session, player, admin):
        with pytest.raises(InvalidAmount):
            await adjust_tokens(async_session, player.id, 0, "Nothing", admin.id)

    async def test_admin_target_rejected(self, async_session, admin, publisher):
        with pytest.raises(ValidationError):
            await adjust_tokens(async_session, admin.id, 10, "Self grant", admin.id, publisher=publisher)

    async def test_unknown_account(self, async_session, admin, publisher):
        with pytest.raises(AccountNotFound):
            await adjust_tokens(async_session, uuid4(), 10, "Grant", admin.id, publisher=publisher)


class TestBalances:

    async def test_registration_grants_welcome_bonus(self, async_session, publisher):
        account = await register_account(
            async_session, "NewPlayer@Example.com", "new_player", "secret123", game_uid="123456789", publisher=publisher
        )

        assert account.email == "newplayer@example.com"
        assert account.balance == 50
        assert await current_balance(async_session, account.id) == 50
        assert publisher.of_kind("account") == [str(account.id)]

    async def test_duplicate_registration_rejected(self, async_session, player, publisher):
        with pytest.raises(ValidationError):
            await register_account(async_session, player.email, "someone_else", "secret123", publisher=publisher)

    async def test_admin_balance_is_none(self, async_session, admin):
        assert await get_balance(async_session, admin.id) is None

    async def test_reconcile_consistent_after_mutations(self, async_session, player, admin, publisher):
        await adjust_tokens(async_session, player.id, 40, "Grant", admin.id, publisher=publisher)
        await adjust_tokens(async_session, player.id, -15, "Fine", admin.id, publisher=publisher)

        report = await reconcile_balance(async_session, player.id)

        assert report == {
            "account_id": str(player.id),
            "cached_balance": 125,
            "ledger_balance": 125,
            "consistent": True
        }

    async def test_reconcile_detects_drift(self, async_session, player):
        await async_session.execute(
            update(Account).where(Account.id == player.id).values(balance=999)
        )
        await async_session.commit()

        report = await reconcile_balance(async_session, player.id)

        assert report["consistent"] is False
        assert report["ledger_balance"] == 100

    async def test_stats(self, async_session, player, second_player, admin, tournament, publisher, screenshot_storage):
        ref = screenshot_storage.save(player.id, "receipt.png", b"\x89PNG", "image/png")
        ref2 = screenshot_storage.save(second_player.id, "receipt.png", b"\x89PNG", "image/png")
        request = await submit_payment(
            async_session, player.id, 300, "jazzcash", ref, publisher=publisher, storage=screenshot_storage
        )
        await decide_payment(async_session, request.id, Decision.APPROVE, admin.id, publisher=publisher)
        await submit_payment(
            async_session, second_player.id, 200, "easypaisa", ref2, publisher=publisher, storage=screenshot_storage
        )

        stats = await get_stats(async_session)

        assert stats["total_players"] == 2
        assert stats["total_tournaments"] == 1
        assert stats["tokens_in_circulation"] == 500
        assert stats["total_revenue"] == 300
        assert stats["pending_payments"] == 1
        assert stats["pending_withdrawals"] == 0
