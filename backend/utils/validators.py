"""
Input validation utilities for the Tip Relayer.

Provides reusable validators for Solana addresses and PDA seed inputs.
"""
from solders.pubkey import Pubkey

from domain.constants import MAX_SEED_LENGTH
from domain.errors import ValidationError

# base58 encoding of 32 bytes is 32..44 characters
_MIN_ADDRESS_LENGTH = 32
_MAX_ADDRESS_LENGTH = 44


def validate_solana_address(address: str, field: str = "wallet") -> Pubkey:
    """
    Validate a Solana address and return it as a Pubkey.

    Args:
        address: base58-encoded public key string
        field: request field name, used in the error message

    Returns:
        The parsed Pubkey

    Raises:
        ValidationError (HTTP 400) if the address is missing or malformed
    """
    if not address:
        raise ValidationError("Wallet address is required", field=field)

    if not _MIN_ADDRESS_LENGTH <= len(address) <= _MAX_ADDRESS_LENGTH:
        raise ValidationError(
            f"Invalid Solana address: expected {_MIN_ADDRESS_LENGTH}-{_MAX_ADDRESS_LENGTH} characters, got {len(address)}",
            field=field,
        )

    try:
        return Pubkey.from_string(address)
    except Exception:  # solders reports bad base58 and wrong sizes with its own error types
        raise ValidationError(f"Invalid Solana address: {address[:12]}...", field=field)


def seed_length_ok(value: str) -> bool:
    """True if the UTF-8 encoding of value fits in a single PDA seed."""
    return len(value.encode("utf-8")) <= MAX_SEED_LENGTH
