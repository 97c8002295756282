"""
PDA service — deterministic program-derived address derivation.

Pure functions: the same seeds and program id always produce the same
address. Nothing is cached or stored; addresses are recomputed per request.
"""
from typing import Sequence

from solders.pubkey import Pubkey

from domain.constants import FEE_VAULT_SEED, MAX_SEED_LENGTH, PROFILE_SEED
from exceptions import SeedTooLongError


def derive_address(seeds: Sequence[bytes], program_id: Pubkey) -> tuple[Pubkey, int]:
    """
    Derive a program address and its bump seed.

    Raises:
        SeedTooLongError if any seed is longer than 32 bytes
    """
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise SeedTooLongError(
                f"Seed of {len(seed)} bytes exceeds the {MAX_SEED_LENGTH}-byte limit"
            )
    return Pubkey.find_program_address(list(seeds), program_id)


def fee_vault_seeds() -> list[bytes]:
    return [FEE_VAULT_SEED]


def profile_seeds(wallet: Pubkey, user_id: str) -> list[bytes]:
    return [PROFILE_SEED, bytes(wallet), user_id.encode("utf-8")]


def derive_fee_vault(program_id: Pubkey) -> Pubkey:
    """Fee vault PDA: seeds ["fee_vault"]."""
    address, _ = derive_address(fee_vault_seeds(), program_id)
    return address


def derive_profile(wallet: Pubkey, user_id: str, program_id: Pubkey) -> Pubkey:
    """User profile PDA: seeds ["profile", wallet, user_id]."""
    address, _ = derive_address(profile_seeds(wallet, user_id), program_id)
    return address
