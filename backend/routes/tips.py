"""
Tip endpoint — relays a viewer-to-creator tip with the fee wallet paying fees.
"""
import logging

from fastapi import APIRouter, Depends, Header

from config import settings
from deps import get_idempotency_cache, get_relayer_context
from domain.errors import ChainExecutionError
from domain.responses import RELAY_ERROR_RESPONSES, StandardErrorResponse
from domain.results import ChainFailure
from middleware.rate_limit import rate_limit
from models import TipRequest, TipResponse
from services import relayer_service
from services.idempotency import IdempotencyCache, request_hash
from solana_client import RelayerContext
from utils.validators import validate_solana_address

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tips"])


async def _relay_tip(ctx: RelayerContext, tip: TipRequest, viewer, creator) -> TipResponse:
    result = await relayer_service.send_tip(ctx, tip, viewer, creator)
    if isinstance(result, ChainFailure):
        raise ChainExecutionError(result)
    return TipResponse(tx_sig=result.signature)


@router.post(
    "/tip",
    response_model=TipResponse,
    responses={
        **RELAY_ERROR_RESPONSES,
        409: {"model": StandardErrorResponse, "description": "Idempotency key reused with a different body"},
    },
    dependencies=[Depends(rate_limit(settings.tip_rate_limit, settings.tip_rate_window_seconds))],
)
async def tip(
    request: TipRequest,
    ctx: RelayerContext = Depends(get_relayer_context),
    cache: IdempotencyCache = Depends(get_idempotency_cache),
    x_idempotency_key: str | None = Header(None, alias="X-Idempotency-Key"),
):
    """
    Relay a tip. Only the fee wallet signs.

    Both wallets are validated before any network call. With an
    X-Idempotency-Key header, a retry returns the first signature instead of
    sending a second transaction.
    """
    viewer = validate_solana_address(request.viewer_wallet, field="viewerWallet")
    creator = validate_solana_address(request.creator_wallet, field="creatorWallet")

    if not x_idempotency_key:
        return await _relay_tip(ctx, request, viewer, creator)

    req_hash = request_hash(request.model_dump(by_alias=True))
    async with cache.hold(x_idempotency_key):
        cached = cache.get(x_idempotency_key, req_hash)
        if cached:
            return TipResponse(tx_sig=cached)
        response = await _relay_tip(ctx, request, viewer, creator)
        cache.put(x_idempotency_key, req_hash, response.tx_sig)
        return response
