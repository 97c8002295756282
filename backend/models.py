"""
Pydantic models for request/response validation.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from domain.constants import MAX_SEED_LENGTH, TIP_SUCCESS_MESSAGE, U64_MAX
from utils.validators import seed_length_ok


class RelayBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True)


# ── Request Models ──────────────────────────────────────────────────

class TipRequest(RelayBase):
    """Tip relayed on behalf of a viewer; the fee wallet pays network fees."""
    viewer_user_id: str = Field(
        ...,
        alias="viewerUserId",
        min_length=1,
        description="Viewer's platform user id (PDA seed, max 32 bytes)",
    )
    creator_user_id: str = Field(
        ...,
        alias="creatorUserId",
        min_length=1,
        description="Creator's platform user id (PDA seed, max 32 bytes)",
    )
    viewer_wallet: str = Field(..., alias="viewerWallet", min_length=1, description="Viewer's Solana address")
    creator_wallet: str = Field(..., alias="creatorWallet", min_length=1, description="Creator's Solana address")
    amount: int = Field(..., gt=0, le=U64_MAX, description="Tip amount in lamports")

    @field_validator("amount", mode="before")
    @classmethod
    def amount_not_boolean(cls, value):
        # bool is an int subclass; true/false are not amounts
        if isinstance(value, bool):
            raise ValueError("amount must be a positive integer")
        return value

    @field_validator("viewer_user_id", "creator_user_id")
    @classmethod
    def user_id_fits_seed(cls, value: str) -> str:
        if not seed_length_ok(value):
            raise ValueError(f"must be at most {MAX_SEED_LENGTH} bytes when UTF-8 encoded")
        return value


# ── Response Models ─────────────────────────────────────────────────

class RootStatusResponse(RelayBase):
    status: str = "Relayer is live"
    wallet: str = Field(..., description="Fee wallet public key")
    program_id: str = Field(..., alias="programId")
    timestamp: str


class HealthResponse(RelayBase):
    status: str = "healthy"
    solana_connected: Optional[bool] = Field(None, alias="solanaConnected")
    wallet: str
    balance_lamports: Optional[int] = Field(None, alias="balanceLamports")
    balance_sol: Optional[float] = Field(None, alias="balanceSol")
    timestamp: str


class InitializeFeeVaultResponse(RelayBase):
    success: bool = True
    tx_sig: str = Field(..., alias="txSig", description="Transaction signature")
    fee_vault: str = Field(..., alias="feeVault", description="Derived fee vault address")


class TipResponse(RelayBase):
    success: bool = True
    tx_sig: str = Field(..., alias="txSig", description="Transaction signature")
    message: str = TIP_SUCCESS_MESSAGE


class DebugIdlResponse(RelayBase):
    program_id: str = Field(..., alias="programId")
    idl_name: str = Field(..., alias="idlName")
    instructions: List[str]
    accounts: List[str]
    has_tip_creator: bool = Field(..., alias="hasTipCreator")
