"""
Shared FastAPI dependencies.

The relayer context and idempotency cache are built explicitly (in the app
lifespan / create_app) and stored on app.state; routers receive them through
these dependencies instead of importing module-level globals.
"""

from __future__ import annotations

from fastapi import Request

from services.idempotency import IdempotencyCache
from solana_client import RelayerContext


def get_relayer_context(request: Request) -> RelayerContext:
    """Relayer context loaded at startup (fee wallet, program, connection)."""
    context = getattr(request.app.state, "relayer", None)
    if context is None:
        raise RuntimeError("Relayer context not initialized; startup did not complete")
    return context


def get_idempotency_cache(request: Request) -> IdempotencyCache:
    return request.app.state.idempotency
