"""
Custom exception classes for relayer startup and Solana operations.
"""


class ConfigError(ValueError):
    """Raised when required configuration is missing or malformed (fatal at startup)."""
    pass


class SeedTooLongError(ValueError):
    """Raised when a PDA seed exceeds the 32-byte Solana limit."""
    pass
