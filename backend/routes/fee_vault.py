"""
Fee vault endpoint — one-time initialization of the program's fee vault PDA.
"""
import logging

from fastapi import APIRouter, Depends

from config import settings
from deps import get_relayer_context
from domain.errors import ChainExecutionError
from domain.responses import RELAY_ERROR_RESPONSES
from domain.results import ChainFailure
from middleware.rate_limit import rate_limit
from models import InitializeFeeVaultResponse
from services import relayer_service
from solana_client import RelayerContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["fee-vault"])


@router.post(
    "/initialize-fee-vault",
    response_model=InitializeFeeVaultResponse,
    responses=RELAY_ERROR_RESPONSES,
    dependencies=[Depends(rate_limit(settings.init_rate_limit, settings.init_rate_window_seconds))],
)
async def initialize_fee_vault(ctx: RelayerContext = Depends(get_relayer_context)):
    """
    Initialize the fee vault, signed solely by the fee wallet.

    Fails with 500 (and the program logs) if the vault already exists or the
    fee wallet cannot pay for it.
    """
    fee_vault, result = await relayer_service.initialize_fee_vault(ctx)
    if isinstance(result, ChainFailure):
        raise ChainExecutionError(result)
    return InitializeFeeVaultResponse(tx_sig=result.signature, fee_vault=str(fee_vault))
