"""
Tip Relayer — FastAPI Application

Fee-relaying gateway for the tip_relay Anchor program: derives PDAs, signs
with the custodial fee wallet and submits to Solana so viewers and creators
never pay network fees.
"""
import asyncio
import logging
import os
import sys
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.errors import DomainError
from domain.responses import error_response
from exceptions import ConfigError
from middleware.rate_limit import RateLimiter
from routes import debug, fee_vault, health, tips
from services.idempotency import IdempotencyCache
from solana_client import RelayerContext, build_relayer_context

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Fatal errors ────────────────────────────────────────────────────

def _die(message: str, exc_info=None):
    """Log and terminate; the process supervisor is expected to restart us."""
    logger.critical(message, exc_info=exc_info)
    logging.shutdown()
    os._exit(1)


def install_fatal_handlers():
    """Treat uncaught exceptions (threads, main thread, event loop) as fatal."""

    def _excepthook(exc_type, exc, tb):
        _die(f"Uncaught exception: {exc!r}", exc_info=(exc_type, exc, tb))

    def _thread_excepthook(args):
        _die(
            f"Uncaught exception in thread {args.thread.name if args.thread else '?'}: {args.exc_value!r}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    def _loop_exception_handler(loop, context):
        exc = context.get("exception")
        _die(f"Unhandled asyncio error: {context.get('message')}", exc_info=exc)

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook
    asyncio.get_running_loop().set_exception_handler(_loop_exception_handler)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load fee wallet, program id and IDL (fail fast). Shutdown: close RPC client."""
    install_fatal_handlers()

    owns_context = getattr(app.state, "relayer", None) is None
    if owns_context:
        try:
            settings.validate_production_settings()
            app.state.relayer = build_relayer_context(settings)
        except (ConfigError, ValueError) as e:
            logger.critical(f"Startup aborted: {e}")
            raise

    yield  # app runs here

    if owns_context:
        await app.state.relayer.close()
        app.state.relayer = None
    logger.info("Shutting down")


# ── Exception Handlers ──────────────────────────────────────────────

async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions inside a request.

    The full traceback is logged server-side; clients get a generic 500.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("internal_server_error", "Internal server error"),
    )


async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses.

    Keeps the original HTTP status code, but wraps the payload.
    """
    headers = getattr(exc, "headers", None)
    if isinstance(exc, DomainError):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.code, exc.message, exc.details or None),
            headers=headers,
        )

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            "http_error",
            message,
            detail if not isinstance(detail, str) else None,
        ),
        headers=headers,
    )


async def validation_exception_handler(request, exc: RequestValidationError):
    """Schema violations are client errors (400), naming each offending field."""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.append({
            "field": ".".join(loc) or "body",
            "type": err.get("type"),
            "message": err.get("msg"),
        })

    missing = [f["field"] for f in fields if f["type"] == "missing"]
    invalid = [f"{f['field']} ({f['message']})" for f in fields if f["type"] != "missing"]
    parts = []
    if missing:
        parts.append(f"missing required parameters: {', '.join(missing)}")
    if invalid:
        parts.append(f"invalid parameters: {', '.join(invalid)}")
    message = "; ".join(parts) or "Invalid request"

    logger.info(f"Rejected {request.url.path}: {message}")
    return JSONResponse(
        status_code=400,
        content=error_response("validation_error", message[0].upper() + message[1:], {"fields": fields}),
    )


# ── App Factory ─────────────────────────────────────────────────────

def create_app(context: RelayerContext | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        context: pre-built relayer context (tests); when omitted it is built
            from settings during startup.
    """
    app = FastAPI(
        title="Tip Relayer API",
        description="Fee-relaying gateway for the tip_relay Solana program",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.relayer = context
    app.state.rate_limiter = RateLimiter()
    app.state.idempotency = IdempotencyCache(ttl_seconds=settings.idempotency_ttl_seconds)

    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(fee_vault.router)
    app.include_router(tips.router)
    app.include_router(debug.router)

    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    return app


app = create_app()


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level="info")
