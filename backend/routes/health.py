"""
Status and health check endpoints.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from deps import get_relayer_context
from domain.constants import LAMPORTS_PER_SOL
from models import HealthResponse, RootStatusResponse
from services import relayer_service
from solana_client import RelayerContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/", response_model=RootStatusResponse)
async def root_status(ctx: RelayerContext = Depends(get_relayer_context)):
    """Liveness: fee wallet and program id, no network I/O."""
    return RootStatusResponse(
        wallet=str(ctx.wallet_address),
        program_id=str(ctx.program_id),
        timestamp=_now(),
    )


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    response_model=HealthResponse,
    response_model_exclude_none=True,
)
async def health_check(ctx: RelayerContext = Depends(get_relayer_context)):
    """Health check — verifies RPC connectivity by fetching the fee wallet balance."""
    if not ctx.settings.health_include_balance:
        return HealthResponse(wallet=str(ctx.wallet_address), timestamp=_now())

    try:
        lamports = await relayer_service.fetch_balance(ctx)
    except Exception as e:
        logger.error(f"Health check failed: {e!r}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "solanaConnected": False,
                "error": str(e) or repr(e),
            },
        )

    return HealthResponse(
        solana_connected=True,
        wallet=str(ctx.wallet_address),
        balance_lamports=lamports,
        balance_sol=lamports / LAMPORTS_PER_SOL,
        timestamp=_now(),
    )
