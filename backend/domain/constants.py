"""
Domain constants used across services/routers.
"""

# PDA seed tags (must match the on-chain program)
FEE_VAULT_SEED = b"fee_vault"
PROFILE_SEED = b"profile"

# Solana rejects any single seed longer than this
MAX_SEED_LENGTH = 32

# Instruction names as declared in the IDL
INITIALIZE_FEE_VAULT_IX = "initializeFeeVault"
TIP_CREATOR_IX = "tipCreator"

LAMPORTS_PER_SOL = 1_000_000_000
U64_MAX = 2**64 - 1

TIP_SUCCESS_MESSAGE = "Tip sent and fee reimbursed"
