"""
Configuration management for the Tip Relayer gateway.

Loads settings from .env via pydantic-settings.

Notes:
    - FEE_WALLET_SECRET and ANCHOR_PROGRAM_ID are required; they are parsed
      (and rejected if malformed) when the relayer context is built at startup.
    - validate_production_settings() enforces strict CORS in production.
"""
import logging
import os

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Solana ──────────────────────────────────────────────────────
    solana_rpc_url: str = "https://api.devnet.solana.com"
    preflight_commitment: str = "processed"

    # ── Fee Wallet (pays network fees for every relayed transaction) ─
    # JSON array of the 64 raw keypair bytes, e.g. "[12,34,...]"
    fee_wallet_secret: str = ""

    # ── Program ─────────────────────────────────────────────────────
    anchor_program_id: str = ""
    idl_path: str = "idl/tip_relay.json"

    # ── Server ──────────────────────────────────────────────────────
    port: int = 8080
    environment: str = "development"
    health_include_balance: bool = True

    # ── Rate limits (per client IP) ─────────────────────────────────
    tip_rate_limit: int = 30
    tip_rate_window_seconds: int = 60
    init_rate_limit: int = 5
    init_rate_window_seconds: int = 3600

    # ── Idempotency (X-Idempotency-Key on /tip) ─────────────────────
    idempotency_ttl_seconds: int = 300

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def resolved_idl_path(self) -> str:
        """IDL path; relative paths are resolved against the backend directory."""
        if os.path.isabs(self.idl_path):
            return self.idl_path
        return os.path.join(BACKEND_DIR, self.idl_path)

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup, before the relayer context is built.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if "devnet" in self.solana_rpc_url or "testnet" in self.solana_rpc_url:
                logger.warning(f"⚠️  Production environment is using a test cluster: {self.solana_rpc_url}")
            logger.info("✅ Production settings validated")
        else:
            if "*" in self.cors_origins:
                logger.warning("⚠️  CORS_ORIGINS contains '*' (open access)")


# Global settings instance
settings = Settings()
