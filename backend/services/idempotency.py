"""
In-process idempotency cache for relayed tips.

A client that sends X-Idempotency-Key gets the first successful signature
back on retries instead of a second on-chain transfer. Entries expire after
IDEMPOTENCY_TTL_SECONDS. Requests without a key are never deduplicated.
Not shared between worker processes.
"""
import asyncio
import hashlib
import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass

from domain.errors import ConflictError

logger = logging.getLogger(__name__)


def request_hash(payload: dict) -> str:
    """Stable sha256 of a JSON-serializable request body."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class _Entry:
    signature: str
    request_hash: str
    expires_at: float


class IdempotencyCache:
    """Maps idempotency keys to the signature of the first successful request."""

    def __init__(self, ttl_seconds: int = 300):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, _Entry] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def _purge(self) -> None:
        now = time.monotonic()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
            lock = self._locks.get(key)
            if lock is not None and key not in self._holders:
                del self._locks[key]

    def lock(self, key: str) -> asyncio.Lock:
        """Per-key lock shared by every request using that key."""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    @asynccontextmanager
    async def hold(self, key: str):
        """
        Hold the lock for key; concurrent retries with one key submit at most once.

        The lock is dropped when its last holder leaves and no entry was stored
        (failed or conflicting requests), so unique keys do not accumulate.
        """
        lock = self.lock(key)
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                if key not in self._entries:
                    self._locks.pop(key, None)

    def get(self, key: str, req_hash: str) -> str | None:
        """
        Return the cached signature for key, or None.

        Raises:
            ConflictError (409) if key was used with a different request body
        """
        self._purge()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.request_hash != req_hash:
            raise ConflictError(
                "Idempotency key already used with a different request body",
                details={"idempotencyKey": key},
            )
        logger.info(f"Idempotency hit for key {key}: {entry.signature}")
        return entry.signature

    def put(self, key: str, req_hash: str, signature: str) -> None:
        self._entries[key] = _Entry(
            signature=signature,
            request_hash=req_hash,
            expires_at=time.monotonic() + self.ttl_seconds,
        )

    def __len__(self) -> int:
        self._purge()
        return len(self._entries)
