"""
Relayer service — derives PDAs and invokes the tip program with the fee
wallet as the only signer.

Nothing here raises across the network-call boundary: every invocation
returns a ChainSuccess (signature) or a ChainFailure (kind, message, program
logs, error code) and the routers decide the HTTP response.
"""
import logging

import httpx
from anchorpy import Context
from anchorpy.error import ProgramError
from pyheck import snake
from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID

from domain.constants import INITIALIZE_FEE_VAULT_IX, TIP_CREATOR_IX
from domain.enums import FailureKind
from domain.results import ChainFailure, ChainResult, ChainSuccess
from models import TipRequest
from services import pda_service
from solana_client import RelayerContext

logger = logging.getLogger(__name__)

_NETWORK_ERRORS = (httpx.HTTPError, SolanaRpcException, OSError)


def classify_error(text: str) -> FailureKind:
    """
    Classify a failure from its message and program logs.

    Falls back to TRANSACTION_FAILED when nothing recognizable is found.
    """
    lower = text.lower()

    if "already in use" in lower:
        # system program refuses to allocate the PDA a second time
        return FailureKind.ALREADY_INITIALIZED
    elif (
        "insufficient funds" in lower
        or "insufficient lamports" in lower
        or "no record of a prior credit" in lower
    ):
        return FailureKind.INSUFFICIENT_FUNDS
    else:
        return FailureKind.TRANSACTION_FAILED


def describe_failure(exc: Exception) -> ChainFailure:
    """Turn an exception from the chain client into a ChainFailure."""
    message = str(exc) or exc.__class__.__name__
    logs: list[str] = []
    code = None

    if isinstance(exc, ProgramError):
        message = getattr(exc, "msg", None) or message
        code = getattr(exc, "code", None)
        logs = list(getattr(exc, "logs", None) or [])
    elif isinstance(exc, RPCException) and exc.args:
        info = exc.args[0]
        message = getattr(info, "message", None) or message
        code = getattr(info, "code", None)
        data = getattr(info, "data", None)
        logs = list(getattr(data, "logs", None) or [])

    kind = classify_error(" ".join([message, *logs]))
    if kind is FailureKind.TRANSACTION_FAILED:
        if isinstance(exc, _NETWORK_ERRORS):
            kind = FailureKind.NETWORK_ERROR
        elif isinstance(exc, ProgramError):
            kind = FailureKind.PROGRAM_ERROR

    return ChainFailure(kind=kind, message=message, logs=tuple(logs), code=code)


async def _invoke(ctx: RelayerContext, instruction: str, *args, accounts: dict) -> ChainResult:
    """Call an IDL instruction through anchorpy; the provider wallet (fee wallet) signs."""
    method = ctx.program.rpc[snake(instruction)]
    try:
        signature = await method(*args, ctx=Context(accounts=accounts))
    except Exception as e:
        failure = describe_failure(e)
        logger.error(f"{instruction} failed ({failure.kind.value}): {failure.message}")
        for line in failure.logs:
            logger.error(f"  {line}")
        return failure

    tx_sig = str(signature)
    logger.info(f"{instruction} submitted: {tx_sig}")
    return ChainSuccess(signature=tx_sig)


async def initialize_fee_vault(ctx: RelayerContext) -> tuple[Pubkey, ChainResult]:
    """
    Initialize the program's fee vault, with the fee wallet as authority.

    Returns:
        (fee vault address, result)
    """
    fee_vault = pda_service.derive_fee_vault(ctx.program_id)
    logger.info(f"Initializing fee vault {fee_vault}")
    result = await _invoke(
        ctx,
        INITIALIZE_FEE_VAULT_IX,
        accounts={
            "fee_vault": fee_vault,
            "authority": ctx.wallet_address,
            "system_program": SYS_PROGRAM_ID,
        },
    )
    return fee_vault, result


async def send_tip(ctx: RelayerContext, tip: TipRequest, viewer: Pubkey, creator: Pubkey) -> ChainResult:
    """
    Relay a tip from viewer to creator.

    The fee wallet is the fee payer and the only signer; viewer and creator
    wallets are passed as plain accounts.
    """
    viewer_profile = pda_service.derive_profile(viewer, tip.viewer_user_id, ctx.program_id)
    creator_profile = pda_service.derive_profile(creator, tip.creator_user_id, ctx.program_id)
    fee_vault = pda_service.derive_fee_vault(ctx.program_id)

    logger.info(
        f"Relaying tip of {tip.amount} lamports: {tip.viewer_user_id} ({viewer}) -> "
        f"{tip.creator_user_id} ({creator})"
    )
    return await _invoke(
        ctx,
        TIP_CREATOR_IX,
        tip.viewer_user_id,
        tip.creator_user_id,
        tip.amount,
        accounts={
            "viewer_profile": viewer_profile,
            "creator_profile": creator_profile,
            "fee_vault": fee_vault,
            "fee_payer": ctx.wallet_address,
            "viewer": viewer,
            "creator": creator,
            "system_program": SYS_PROGRAM_ID,
        },
    )


async def fetch_balance(ctx: RelayerContext) -> int:
    """Fee wallet balance in lamports. Network errors propagate to the caller."""
    resp = await ctx.connection.get_balance(ctx.wallet_address)
    return resp.value


def describe_idl(ctx: RelayerContext) -> dict:
    """Instruction and account names declared by the loaded IDL."""
    instructions = [ix.name for ix in ctx.idl.instructions]
    accounts = [acc.name for acc in (ctx.idl.accounts or [])]
    return {
        "program_id": str(ctx.program_id),
        "idl_name": ctx.idl.name,
        "instructions": instructions,
        "accounts": accounts,
        "has_tip_creator": any(snake(name) == snake(TIP_CREATOR_IX) for name in instructions),
    }
