"""
Tests for API route endpoints.

Tests: GET /, GET /health, POST /initialize-fee-vault, POST /tip,
GET /debug-idl, error envelopes, rate limiting and idempotent retries.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from solana.rpc.core import RPCException
from solders.pubkey import Pubkey

from services.pda_service import derive_fee_vault
from tests.conftest import (
    FEE_WALLET,
    INVALID_WALLET_BAD_BASE58,
    INVALID_WALLET_SHORT,
    PROGRAM_ID,
    TEST_SIGNATURE,
)

REQUIRED_TIP_FIELDS = ["viewerUserId", "creatorUserId", "viewerWallet", "creatorWallet", "amount"]


def _preflight_failure(message: str, logs: list[str], code: int = -32002) -> RPCException:
    info = SimpleNamespace(message=message, code=code, data=SimpleNamespace(logs=logs))
    return RPCException(info)


class TestRootEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_root_reports_wallet_and_program(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"]
        assert data["wallet"] == str(FEE_WALLET.pubkey())
        assert data["programId"] == PROGRAM_ID
        assert "timestamp" in data


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_returns_balance(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["solanaConnected"] is True
        assert data["balanceLamports"] == 5_000_000_000
        assert data["balanceSol"] == 5.0

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unreachable_rpc_returns_503(self, client, mock_connection):
        mock_connection.get_balance.side_effect = httpx.ConnectError("All connection attempts failed")
        response = await client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["solanaConnected"] is False
        assert "connection attempts failed" in data["error"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_balance_lookup_disabled(self, relayer_context, mock_connection):
        from dataclasses import replace
        from main import create_app
        from tests.conftest import make_settings

        context = replace(relayer_context, settings=make_settings(health_include_balance=False))
        transport = httpx.ASGITransport(app=create_app(context))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "balanceLamports" not in data
        mock_connection.get_balance.assert_not_awaited()


class TestInitializeFeeVault:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_success(self, client):
        response = await client.post("/initialize-fee-vault")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["txSig"] == TEST_SIGNATURE
        assert data["feeVault"] == str(derive_fee_vault(Pubkey.from_string(PROGRAM_ID)))

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_reinitialization_is_500_with_logs(self, client, mock_program):
        logs = [
            "Program 11111111111111111111111111111111 invoke [2]",
            "Allocate: account Address { address: x, base: None } already in use",
            "Program 11111111111111111111111111111111 failed: custom program error: 0x0",
        ]
        mock_program.rpc["initialize_fee_vault"] = AsyncMock(
            side_effect=_preflight_failure("Transaction simulation failed", logs)
        )
        response = await client.post("/initialize-fee-vault")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "already_initialized"
        assert body["error"]["message"] == "Transaction simulation failed"
        assert body["error"]["details"]["logs"] == logs

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_network_failure_is_500(self, client, mock_program):
        mock_program.rpc["initialize_fee_vault"] = AsyncMock(
            side_effect=httpx.ConnectError("connection refused")
        )
        response = await client.post("/initialize-fee-vault")
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "network_error"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_rate_limited(self, client):
        for _ in range(5):
            assert (await client.post("/initialize-fee-vault")).status_code == 200
        response = await client.post("/initialize-fee-vault")
        assert response.status_code == 429
        assert response.json()["error"]["code"] == "rate_limited"
        assert response.headers["Retry-After"] == "3600"


class TestTipEndpoint:
    """Tests for POST /tip."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_valid_tip_returns_signature(self, client, tip_payload):
        response = await client.post("/tip", json=tip_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["txSig"] == TEST_SIGNATURE
        assert data["message"] == "Tip sent and fee reimbursed"

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", REQUIRED_TIP_FIELDS)
    async def test_missing_field_is_400_naming_it(self, client, tip_payload, mock_program, missing):
        del tip_payload[missing]
        response = await client.post("/tip", json=tip_payload)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert missing in error["message"]
        mock_program.rpc["tip_creator"].assert_not_awaited()

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_empty_body_is_400(self, client):
        response = await client.post("/tip", json={})
        assert response.status_code == 400
        message = response.json()["error"]["message"]
        for field in REQUIRED_TIP_FIELDS:
            assert field in message

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, "abc", None, True, 1.5, 2**64])
    async def test_bad_amount_is_400(self, client, tip_payload, mock_program, amount):
        tip_payload["amount"] = amount
        response = await client.post("/tip", json=tip_payload)
        assert response.status_code == 400
        assert "amount" in response.json()["error"]["message"]
        mock_program.rpc["tip_creator"].assert_not_awaited()

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_numeric_string_amount_accepted(self, client, tip_payload, mock_program):
        tip_payload["amount"] = "10000"
        response = await client.post("/tip", json=tip_payload)
        assert response.status_code == 200
        assert mock_program.rpc["tip_creator"].await_args.args[2] == 10000

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["viewerWallet", "creatorWallet"])
    @pytest.mark.parametrize("bad_wallet", [INVALID_WALLET_SHORT, INVALID_WALLET_BAD_BASE58])
    async def test_malformed_wallet_is_400_before_network(
        self, client, tip_payload, mock_program, mock_connection, field, bad_wallet
    ):
        tip_payload[field] = bad_wallet
        response = await client.post("/tip", json=tip_payload)

        assert response.status_code == 400
        assert field in response.json()["error"]["message"]
        mock_program.rpc["tip_creator"].assert_not_awaited()
        mock_connection.get_balance.assert_not_awaited()

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_user_id_longer_than_seed_is_400(self, client, tip_payload, mock_program):
        tip_payload["viewerUserId"] = "v" * 33
        response = await client.post("/tip", json=tip_payload)
        assert response.status_code == 400
        assert "viewerUserId" in response.json()["error"]["message"]
        mock_program.rpc["tip_creator"].assert_not_awaited()

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_empty_user_id_is_400(self, client, tip_payload):
        tip_payload["creatorUserId"] = ""
        response = await client.post("/tip", json=tip_payload)
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_chain_failure_is_500_with_logs_and_code(self, client, tip_payload, mock_program):
        logs = ["Program log: AnchorError occurred. Error Code: InsufficientViewerFunds. Error Number: 6002."]
        mock_program.rpc["tip_creator"] = AsyncMock(
            side_effect=_preflight_failure("Transaction simulation failed", logs, code=-32002)
        )
        response = await client.post("/tip", json=tip_payload)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["message"] == "Transaction simulation failed"
        assert error["details"]["logs"] == logs
        assert error["details"]["code"] == -32002

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_retry_without_key_submits_twice(self, client, tip_payload, mock_program):
        await client.post("/tip", json=tip_payload)
        await client.post("/tip", json=tip_payload)
        assert mock_program.rpc["tip_creator"].await_count == 2

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_idempotent_retry_submits_once(self, client, tip_payload, mock_program):
        headers = {"X-Idempotency-Key": "tip-123"}
        first = await client.post("/tip", json=tip_payload, headers=headers)
        second = await client.post("/tip", json=tip_payload, headers=headers)

        assert first.status_code == second.status_code == 200
        assert first.json()["txSig"] == second.json()["txSig"] == TEST_SIGNATURE
        assert mock_program.rpc["tip_creator"].await_count == 1

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_idempotency_key_reused_with_other_body_is_409(self, client, tip_payload):
        headers = {"X-Idempotency-Key": "tip-456"}
        await client.post("/tip", json=tip_payload, headers=headers)
        tip_payload["amount"] = 20000
        response = await client.post("/tip", json=tip_payload, headers=headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_failed_tip_is_not_cached(self, client, tip_payload, mock_program):
        headers = {"X-Idempotency-Key": "tip-789"}
        mock_program.rpc["tip_creator"] = AsyncMock(
            side_effect=[httpx.ConnectError("timeout"), TEST_SIGNATURE]
        )
        first = await client.post("/tip", json=tip_payload, headers=headers)
        second = await client.post("/tip", json=tip_payload, headers=headers)
        assert first.status_code == 500
        assert second.status_code == 200
        assert mock_program.rpc["tip_creator"].await_count == 2

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_failed_keys_leave_no_locks_behind(self, relayer_context, tip_payload, mock_program):
        from main import create_app
        app = create_app(relayer_context)
        mock_program.rpc["tip_creator"] = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            for i in range(25):
                response = await c.post("/tip", json=tip_payload, headers={"X-Idempotency-Key": f"k{i}"})
                assert response.status_code == 500

        cache = app.state.idempotency
        assert len(cache) == 0
        assert cache._locks == {}
        assert cache._holders == {}


class TestDebugIdlEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_lists_instructions_and_accounts(self, client):
        response = await client.get("/debug-idl")
        assert response.status_code == 200
        data = response.json()
        assert data["programId"] == PROGRAM_ID
        assert data["idlName"] == "tip_relay"
        assert "tipCreator" in data["instructions"]
        assert "initializeFeeVault" in data["instructions"]
        assert data["accounts"] == ["FeeVault", "UserProfile"]
        assert data["hasTipCreator"] is True

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_has_no_side_effects(self, client, mock_program, mock_connection):
        await client.get("/debug-idl")
        mock_program.rpc["tip_creator"].assert_not_awaited()
        mock_program.rpc["initialize_fee_vault"].assert_not_awaited()
        mock_connection.get_balance.assert_not_awaited()
