"""
Solana relayer context: fee wallet, program id, IDL and RPC connection.

Everything here is loaded once at startup and never mutated afterwards.
Handlers receive the context through deps.get_relayer_context, so tests can
substitute a context with fake connection/program objects.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any

from anchorpy import Idl, Program, Provider, Wallet
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from config import Settings
from exceptions import ConfigError

logger = logging.getLogger(__name__)

KEYPAIR_LENGTH = 64
_COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class RelayerContext:
    """Read-only state shared by every request."""

    settings: Settings
    fee_wallet: Keypair
    program_id: Pubkey
    idl: Idl
    connection: Any  # solana.rpc.async_api.AsyncClient
    program: Any  # anchorpy.Program

    @property
    def wallet_address(self) -> Pubkey:
        return self.fee_wallet.pubkey()

    async def close(self) -> None:
        await self.connection.close()


def load_fee_wallet(secret: str) -> Keypair:
    """
    Parse the fee wallet keypair from its JSON byte-array form.

    Args:
        secret: JSON array of the 64 raw keypair bytes (secret key + public key)

    Raises:
        ConfigError if the secret is missing or malformed
    """
    if not secret or not secret.strip():
        raise ConfigError("FEE_WALLET_SECRET not set")

    try:
        raw = json.loads(secret)
    except json.JSONDecodeError as exc:
        raise ConfigError("FEE_WALLET_SECRET must be a JSON array of byte values") from exc

    if not isinstance(raw, list) or len(raw) != KEYPAIR_LENGTH:
        raise ConfigError(f"FEE_WALLET_SECRET must contain exactly {KEYPAIR_LENGTH} byte values")
    if not all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in raw):
        raise ConfigError("FEE_WALLET_SECRET values must be integers between 0 and 255")

    try:
        return Keypair.from_bytes(bytes(raw))
    except Exception as exc:  # solders rejects keypairs whose public half does not match
        raise ConfigError(f"FEE_WALLET_SECRET is not a valid keypair: {exc}") from exc


def load_program_id(value: str) -> Pubkey:
    """Parse the on-chain program id, raising ConfigError if missing or malformed."""
    if not value or not value.strip():
        raise ConfigError("ANCHOR_PROGRAM_ID not set")
    try:
        return Pubkey.from_string(value.strip())
    except Exception as exc:  # solders reports bad base58 and wrong sizes with its own error types
        raise ConfigError(f"ANCHOR_PROGRAM_ID is not a valid public key: {value}") from exc


def load_idl(path: str) -> Idl:
    """Load and parse the program interface definition (Anchor IDL JSON)."""
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            raw = f.read()
    except FileNotFoundError as exc:
        raise ConfigError(f"IDL file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"IDL file could not be read: {path} ({exc})") from exc

    try:
        return Idl.from_json(raw)
    except Exception as exc:  # anchorpy_core surfaces serde errors as plain exceptions
        raise ConfigError(f"IDL file could not be parsed: {path} ({exc})") from exc


def _commitment(level: str) -> Commitment:
    level = level.strip().lower()
    if level not in _COMMITMENT_LEVELS:
        raise ConfigError(
            f"PREFLIGHT_COMMITMENT must be one of {', '.join(_COMMITMENT_LEVELS)}, got '{level}'"
        )
    return Commitment(level)


def build_relayer_context(settings: Settings) -> RelayerContext:
    """
    Build the relayer context from settings.

    Fails fast with ConfigError when the secret, program id or IDL are
    missing or malformed. No network calls are made here.
    """
    fee_wallet = load_fee_wallet(settings.fee_wallet_secret)
    program_id = load_program_id(settings.anchor_program_id)
    idl = load_idl(settings.resolved_idl_path)
    commitment = _commitment(settings.preflight_commitment)

    idl_address = idl.metadata.get("address") if isinstance(idl.metadata, dict) else None
    if idl_address and idl_address != str(program_id):
        logger.warning(f"IDL metadata address {idl_address} differs from ANCHOR_PROGRAM_ID {program_id}")

    connection = AsyncClient(settings.solana_rpc_url, commitment=commitment)
    provider = Provider(
        connection,
        Wallet(fee_wallet),
        opts=TxOpts(preflight_commitment=commitment),
    )
    program = Program(idl, program_id, provider)

    logger.info(
        f"Relayer context ready: wallet={fee_wallet.pubkey()} program={program_id} "
        f"rpc={settings.solana_rpc_url} idl={idl.name}"
    )
    return RelayerContext(
        settings=settings,
        fee_wallet=fee_wallet,
        program_id=program_id,
        idl=idl,
        connection=connection,
        program=program,
    )
