"""
Domain enums (minimal set used for clarity in services).
"""

from enum import Enum


class FailureKind(str, Enum):
    ALREADY_INITIALIZED = "already_initialized"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    PROGRAM_ERROR = "program_error"
    NETWORK_ERROR = "network_error"
    TRANSACTION_FAILED = "transaction_failed"
