"""
HTTP tests for the API routers
"""

import pytest
from uuid import uuid4

from tests.fixtures.database import TEST_PASSWORD, auth_headers, create_test_player, create_test_tournament

pytestmark = pytest.mark.integration


class TestAuthEndpoints:

    async def test_register_login_and_me(self, test_client, publisher):
        response = await test_client.post("/api/v1/auth/register", json={
            "email": "Rookie@Example.com",
            "username": "rookie",
            "password": "secret123",
            "game_uid": "5123456789"
        })
        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["account"]["balance"] == 50
        assert body["account"]["email"] == "rookie@example.com"

        response = await test_client.post("/api/v1/auth/login", json={
            "email": "rookie@example.com",
            "password": "secret123"
        })
        assert response.status_code == 200
        token = response.json()["access_token"]

        response = await test_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["username"] == "rookie"

    async def test_duplicate_registration(self, test_client, player):
        response = await test_client.post("/api/v1/auth/register", json={
            "email": player.email,
            "username": "another_name",
            "password": "secret123"
        })

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    async def test_wrong_password(self, test_client, player):
        response = await test_client.post("/api/v1/auth/login", json={
            "email": player.email,
            "password": TEST_PASSWORD + "x"
        })

        assert response.status_code == 401

    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/v1/wallet/")

        assert response.status_code in (401, 403)


class TestWalletEndpoints:

    async def test_player_balance(self, test_client, player_headers):
        response = await test_client.get("/api/v1/wallet/", headers=player_headers)

        assert response.status_code == 200
        assert response.json()["balance"] == 100
        assert response.json()["unlimited"] is False

    async def test_admin_is_unlimited(self, test_client, admin_headers):
        response = await test_client.get("/api/v1/wallet/", headers=admin_headers)

        assert response.json()["balance"] is None
        assert response.json()["unlimited"] is True


class TestTournamentEndpoints:

    async def test_join_deducts_entry_fee(self, test_client, tournament, player_headers):
        response = await test_client.post(f"/api/v1/tournaments/{tournament.id}/join", headers=player_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["tournament"]["current_players"] == 1
        assert body["tournament"]["room_id"] == "ROOM42"
        assert body["ledger_entry"]["amount"] == -20

        response = await test_client.get("/api/v1/wallet/", headers=player_headers)
        assert response.json()["balance"] == 80

    async def test_double_join_maps_to_conflict(self, test_client, tournament, player_headers):
        await test_client.post(f"/api/v1/tournaments/{tournament.id}/join", headers=player_headers)
        response = await test_client.post(f"/api/v1/tournaments/{tournament.id}/join", headers=player_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "AlreadyJoined"
        assert body["kind"] == "InvalidState"
        assert body["detail"]

    async def test_insufficient_balance(self, test_client, async_session, admin):
        poor = await create_test_player(async_session, "poor_player", balance=10)
        pricey = await create_test_tournament(async_session, title="High Stakes", entry_fee=50, created_by=admin.id)

        response = await test_client.post(f"/api/v1/tournaments/{pricey.id}/join", headers=auth_headers(poor))

        assert response.status_code == 400
        assert response.json()["error"] == "InsufficientBalance"
        assert response.json()["kind"] == "InsufficientFunds"

    async def test_unknown_tournament(self, test_client, player_headers):
        response = await test_client.post(f"/api/v1/tournaments/{uuid4()}/join", headers=player_headers)

        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"

    async def test_malformed_id(self, test_client, player_headers):
        response = await test_client.get("/api/v1/tournaments/not-a-uuid", headers=player_headers)

        assert response.status_code == 400

    async def test_room_hidden_from_non_participants(self, test_client, tournament, player_headers, admin_headers):
        response = await test_client.get(f"/api/v1/tournaments/{tournament.id}", headers=player_headers)
        assert response.json()["room_id"] is None
        assert response.json()["room_password"] is None

        response = await test_client.get(f"/api/v1/tournaments/{tournament.id}", headers=admin_headers)
        assert response.json()["room_password"] == "pass42"

    async def test_list_with_status_filter(self, test_client, tournament, player_headers):
        response = await test_client.get("/api/v1/tournaments/?status_filter=waiting", headers=player_headers)
        assert [t["id"] for t in response.json()["tournaments"]] == [str(tournament.id)]

        response = await test_client.get("/api/v1/tournaments/?status_filter=live", headers=player_headers)
        assert response.json()["tournaments"] == []

    async def test_admin_creates_tournament(self, test_client, admin_headers, publisher):
        response = await test_client.post("/api/v1/tournaments/", headers=admin_headers, json={
            "title": "Squad Clash",
            "mode": "squad",
            "entry_fee": 40,
            "max_players": 12
        })

        assert response.status_code == 201
        assert response.json()["status"] == "waiting"
        assert response.json()["mode"] == "squad"
        assert publisher.of_kind("tournament") == [response.json()["id"]]

    async def test_player_cannot_create_tournament(self, test_client, player_headers):
        response = await test_client.post("/api/v1/tournaments/", headers=player_headers, json={
            "title": "Nope",
            "max_players": 2
        })

        assert response.status_code == 403

    async def test_results_flow(self, test_client, tournament, player, player_headers, admin_headers):
        await test_client.post(f"/api/v1/tournaments/{tournament.id}/join", headers=player_headers)
        response = await test_client.patch(
            f"/api/v1/tournaments/{tournament.id}", headers=admin_headers, json={"status": "live"}
        )
        assert response.json()["status"] == "live"

        response = await test_client.post(
            f"/api/v1/tournaments/{tournament.id}/results",
            headers=admin_headers,
            json={"results": [{"account_id": str(player.id), "placement": 1, "kills": 2}]}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["winner_id"] == str(player.id)

        response = await test_client.get("/api/v1/wallet/", headers=player_headers)
        assert response.json()["balance"] == 100 - 20 + 2 * 5 + 100

    async def test_delete_empty_tournament(self, test_client, tournament, admin_headers):
        response = await test_client.delete(f"/api/v1/tournaments/{tournament.id}", headers=admin_headers)

        assert response.status_code == 204


class TestPaymentEndpoints:

    async def test_upload_submit_and_approve(self, test_client, player, player_headers, admin_headers):
        response = await test_client.post(
            "/api/v1/payments/screenshots",
            headers=player_headers,
            files={"file": ("receipt.png", b"\x89PNG fake image", "image/png")}
        )
        assert response.status_code == 201
        ref = response.json()["screenshot_ref"]
        assert ref.startswith(f"payment-screenshots/{player.id}/")

        response = await test_client.post("/api/v1/payments/", headers=player_headers, json={
            "amount": 250,
            "method": "jazzcash",
            "screenshot_ref": ref
        })
        assert response.status_code == 201
        request_id = response.json()["payment_request"]["id"]
        assert response.json()["payment_request"]["status"] == "pending"

        response = await test_client.post(
            f"/api/v1/admin/payments/{request_id}/decide",
            headers=admin_headers,
            json={"decision": "approve"}
        )
        assert response.status_code == 200
        assert response.json()["payment_request"]["status"] == "approved"

        response = await test_client.get("/api/v1/wallet/", headers=player_headers)
        assert response.json()["balance"] == 350

        response = await test_client.post(
            f"/api/v1/admin/payments/{request_id}/decide",
            headers=admin_headers,
            json={"decision": "reject", "rejection_reason": "late"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "AlreadyProcessed"

    async def test_admin_views_payment_screenshot(self, test_client, player_headers, admin_headers, screenshot_storage):
        response = await test_client.post(
            "/api/v1/payments/screenshots",
            headers=player_headers,
            files={"file": ("receipt.png", b"\x89PNG receipt bytes", "image/png")}
        )
        ref = response.json()["screenshot_ref"]
        response = await test_client.post("/api/v1/payments/", headers=player_headers, json={
            "amount": 100,
            "method": "easypaisa",
            "screenshot_ref": ref
        })
        request_id = response.json()["payment_request"]["id"]

        response = await test_client.get(f"/api/v1/admin/payments/{request_id}/screenshot", headers=admin_headers)
        assert response.status_code == 200
        assert response.content == b"\x89PNG receipt bytes"
        assert response.headers["content-type"] == "image/png"

        response = await test_client.get(f"/api/v1/admin/payments/{request_id}/screenshot", headers=player_headers)
        assert response.status_code == 403

        screenshot_storage.path_for(ref).unlink()
        response = await test_client.get(f"/api/v1/admin/payments/{request_id}/screenshot", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"

    async def test_screenshot_of_unknown_request(self, test_client, admin_headers):
        response = await test_client.get(f"/api/v1/admin/payments/{uuid4()}/screenshot", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "RequestNotFound"

    async def test_submit_with_foreign_screenshot_rejected(self, test_client, player_headers, second_player):
        response = await test_client.post(
            "/api/v1/payments/screenshots",
            headers=auth_headers(second_player),
            files={"file": ("receipt.png", b"\x89PNG", "image/png")}
        )
        foreign_ref = response.json()["screenshot_ref"]

        response = await test_client.post("/api/v1/payments/", headers=player_headers, json={
            "amount": 100,
            "method": "jazzcash",
            "screenshot_ref": foreign_ref
        })

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    async def test_non_image_upload_rejected(self, test_client, player_headers):
        response = await test_client.post(
            "/api/v1/payments/screenshots",
            headers=player_headers,
            files={"file": ("notes.txt", b"hello", "text/plain")}
        )

        assert response.status_code == 422

    async def test_unknown_method(self, test_client, player_headers):
        response = await test_client.post("/api/v1/payments/", headers=player_headers, json={
            "amount": 100,
            "method": "bank",
            "screenshot_ref": "payment-screenshots/x/1_a.png"
        })

        assert response.status_code == 422

    async def test_admin_routes_require_admin(self, test_client, player_headers):
        for path in ("/api/v1/admin/payments", "/api/v1/admin/stats", "/api/v1/admin/ledger"):
            response = await test_client.get(path, headers=player_headers)
            assert response.status_code == 403


class TestWithdrawalEndpoints:

    async def test_fee_quote(self, test_client):
        response = await test_client.get("/api/v1/withdrawals/fee?amount=1000")

        assert response.json() == {"amount": 1000, "service_fee": 20, "net_amount": 980, "minimum": 50}

    async def test_submit_reserves_tokens(self, test_client, player_headers, admin_headers):
        response = await test_client.post("/api/v1/withdrawals/", headers=player_headers, json={
            "amount": 60,
            "account_number": "03001234567",
            "method": "easypaisa"
        })
        assert response.status_code == 201
        withdrawal = response.json()["withdrawal"]
        assert withdrawal["status"] == "pending"

        response = await test_client.get("/api/v1/wallet/", headers=player_headers)
        assert response.json()["balance"] == 40

        response = await test_client.post(
            f"/api/v1/admin/withdrawals/{withdrawal['id']}/decide",
            headers=admin_headers,
            json={"decision": "reject", "rejection_reason": "Wrong number"}
        )
        assert response.json()["withdrawal"]["status"] == "rejected"

        response = await test_client.get("/api/v1/wallet/", headers=player_headers)
        assert response.json()["balance"] == 100

    async def test_below_minimum(self, test_client, player_headers):
        response = await test_client.post("/api/v1/withdrawals/", headers=player_headers, json={
            "amount": 20,
            "account_number": "03001234567",
            "method": "jazzcash"
        })

        assert response.status_code == 400
        assert response.json()["error"] == "BelowMinimum"


class TestAdminEndpoints:

    async def test_adjust_and_reconcile(self, test_client, player, admin_headers):
        response = await test_client.post(
            f"/api/v1/admin/accounts/{player.id}/tokens",
            headers=admin_headers,
            json={"amount": -30, "reason": "Emulator use"}
        )
        assert response.status_code == 200
        assert response.json()["ledger_entry"]["type"] == "penalty"

        response = await test_client.get(f"/api/v1/admin/accounts/{player.id}/reconcile", headers=admin_headers)
        assert response.json()["consistent"] is True
        assert response.json()["ledger_balance"] == 70

        response = await test_client.get("/api/v1/admin/audit-logs", headers=admin_headers)
        assert [log["action"] for log in response.json()["logs"]] == ["token_adjustment"]

    async def test_stats(self, test_client, player, tournament, admin_headers):
        response = await test_client.get("/api/v1/admin/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["total_players"] == 1
        assert response.json()["tokens_in_circulation"] == 100
