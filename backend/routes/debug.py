"""
IDL introspection endpoint.
"""
from fastapi import APIRouter, Depends

from deps import get_relayer_context
from models import DebugIdlResponse
from services import relayer_service
from solana_client import RelayerContext

router = APIRouter(tags=["debug"])


@router.get("/debug-idl", response_model=DebugIdlResponse)
async def debug_idl(ctx: RelayerContext = Depends(get_relayer_context)):
    """Instruction/account names from the loaded IDL and whether tipCreator exists."""
    return DebugIdlResponse(**relayer_service.describe_idl(ctx))
