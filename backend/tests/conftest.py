"""
Pytest configuration and shared fixtures for Tip Relayer tests.

Provides a relayer context with a real fee-wallet keypair, program id and
IDL, but fake RPC connection / anchorpy program objects, plus an httpx
client wired to an app built around that context.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from solders.keypair import Keypair

from config import Settings
from solana_client import RelayerContext, load_idl

# Deterministic keys so derived addresses are stable across runs
FEE_WALLET = Keypair.from_seed(bytes([1] * 32))
PROGRAM_KEYPAIR = Keypair.from_seed(bytes([2] * 32))
VIEWER_KEYPAIR = Keypair.from_seed(bytes([3] * 32))
CREATOR_KEYPAIR = Keypair.from_seed(bytes([4] * 32))

PROGRAM_ID = str(PROGRAM_KEYPAIR.pubkey())
VALID_WALLET_1 = str(VIEWER_KEYPAIR.pubkey())
VALID_WALLET_2 = str(CREATOR_KEYPAIR.pubkey())
FEE_WALLET_SECRET = json.dumps(list(bytes(FEE_WALLET)))

INVALID_WALLET_SHORT = "not-a-wallet"
INVALID_WALLET_BAD_BASE58 = "0OIl" * 11  # 44 chars, none of them base58

TEST_SIGNATURE = str(FEE_WALLET.sign_message(b"relayed-tip"))


def make_settings(**overrides) -> Settings:
    values = {
        "fee_wallet_secret": FEE_WALLET_SECRET,
        "anchor_program_id": PROGRAM_ID,
        "solana_rpc_url": "http://127.0.0.1:8899",
        "cors_origins": "http://localhost:3000",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def relayer_settings() -> Settings:
    return make_settings()


@pytest.fixture
def mock_connection():
    """Mock solana AsyncClient; 5 SOL in the fee wallet."""
    connection = MagicMock()
    connection.get_balance = AsyncMock(return_value=MagicMock(value=5_000_000_000))
    connection.close = AsyncMock()
    return connection


@pytest.fixture
def mock_program():
    """Mock anchorpy Program exposing the snake_case rpc namespace."""
    program = MagicMock()
    program.rpc = {
        "initialize_fee_vault": AsyncMock(return_value=TEST_SIGNATURE),
        "tip_creator": AsyncMock(return_value=TEST_SIGNATURE),
    }
    return program


@pytest.fixture
def relayer_context(relayer_settings, mock_connection, mock_program) -> RelayerContext:
    return RelayerContext(
        settings=relayer_settings,
        fee_wallet=FEE_WALLET,
        program_id=PROGRAM_KEYPAIR.pubkey(),
        idl=load_idl(relayer_settings.resolved_idl_path),
        connection=mock_connection,
        program=mock_program,
    )


@pytest_asyncio.fixture(scope="function")
async def client(relayer_context):
    """httpx client against a fresh app (fresh rate limiter and idempotency cache)."""
    from main import create_app
    app = create_app(relayer_context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def tip_payload() -> dict:
    return {
        "viewerUserId": "v1",
        "creatorUserId": "c1",
        "viewerWallet": VALID_WALLET_1,
        "creatorWallet": VALID_WALLET_2,
        "amount": 10000,
    }
