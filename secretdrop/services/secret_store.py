"""Secret storage with atomic exactly-once reads.

SecretStore implements the public contract once (payload policy, collision
retry, uniform not-found handling, logging and metrics); backends only
provide the indivisible primitives: insert-if-absent, take-and-delete, and
the expiry sweep.
"""

from __future__ import annotations

import heapq
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Optional

from secretdrop.core.errors import (
    GenerationExhaustedError,
    NotFoundError,
    PayloadEmptyError,
    PayloadTooLargeError,
    ValidationError,
)
from secretdrop.core.logging import key_fingerprint, structured_log
from secretdrop.core.telemetry import (
    record_secret_not_found,
    record_secret_rejected,
    record_secret_revealed,
    record_secret_stored,
    span,
)
from secretdrop.models.entities import DEFAULT_CONTENT_TYPE, Secret
from secretdrop.services.key_generator import KeyGenerator

DEFAULT_MAX_PAYLOAD_BYTES = 64 * 1024
DEFAULT_KEY_MAX_ATTEMPTS = 5


class SecretStore(ABC):
    """Holds live secrets keyed by random identifiers.

    Every key present in the store is unconsumed and unexpired as far as any
    reader can tell: entries past their expiry are treated as absent even
    before the sweeper removes them.
    """

    backend_name = "abstract"

    def __init__(
        self,
        key_generator: Optional[KeyGenerator] = None,
        *,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
        default_ttl_seconds: Optional[float] = None,
        max_ttl_seconds: Optional[float] = None,
        key_max_attempts: int = DEFAULT_KEY_MAX_ATTEMPTS,
    ) -> None:
        if key_max_attempts < 1:
            raise ValueError("key_max_attempts must be >= 1")
        self.key_generator = key_generator or KeyGenerator()
        self.max_payload_bytes = max_payload_bytes
        self.default_ttl_seconds = default_ttl_seconds or None
        self.max_ttl_seconds = max_ttl_seconds or None
        self.key_max_attempts = key_max_attempts

    # --- public contract ---

    def put(
        self,
        payload: bytes,
        ttl_seconds: Optional[float] = None,
        content_type: Optional[str] = None,
    ) -> str:
        """Store payload and return its key.

        Raises ValidationError for empty or oversized payloads and
        non-positive TTLs (nothing is stored), GenerationExhaustedError when
        no unused key was found within key_max_attempts.
        """
        with span("secret_store.put", {"backend": self.backend_name}):
            try:
                payload = bytes(payload)
                ttl = self._validate(payload, ttl_seconds)
            except ValidationError:
                record_secret_rejected()
                raise

            content_type = content_type or DEFAULT_CONTENT_TYPE
            for attempt in range(1, self.key_max_attempts + 1):
                key = self.key_generator.generate()
                if self._insert(key, payload, ttl, content_type):
                    record_secret_stored(len(payload))
                    structured_log(
                        "INFO",
                        "Secret stored",
                        secret_ref=key_fingerprint(key),
                        operation="secret.put",
                        metadata={"size_bytes": len(payload), "ttl_seconds": ttl, "attempt": attempt},
                    )
                    return key
                structured_log(
                    "WARNING",
                    "Generated key collides with a live secret; retrying",
                    operation="secret.put",
                    metadata={"attempt": attempt},
                )

            structured_log(
                "ERROR",
                "Key generation exhausted",
                operation="secret.put",
                metadata={"attempts": self.key_max_attempts},
            )
            raise GenerationExhaustedError(self.key_max_attempts)

    def take_once(self, key: str) -> Secret:
        """Return the secret for key and delete it, in one indivisible step.

        Of any number of concurrent callers presenting the same key, exactly
        one gets the secret. Unknown, malformed, expired and already-read keys
        all raise the same NotFoundError.

        There is no rollback: if the caller fails to deliver the payload
        after this returns (client disconnect, cancelled request), the secret
        is gone anyway.
        """
        with span("secret_store.take_once", {"backend": self.backend_name}):
            secret = self._take(key) if self.key_generator.is_well_formed(key) else None
            if secret is None:
                record_secret_not_found()
                structured_log("INFO", "Secret not found", operation="secret.take_once")
                raise NotFoundError()
            record_secret_revealed()
            structured_log(
                "INFO",
                "Secret revealed and destroyed",
                secret_ref=key_fingerprint(key),
                operation="secret.take_once",
                metadata={"size_bytes": secret.size},
            )
            return secret

    @abstractmethod
    def sweep_expired(self, now: Any = None) -> int:
        """Remove every secret whose expiry has passed. Returns the number removed."""

    @abstractmethod
    def is_live(self, key: str) -> bool:
        """Expiry-aware existence check for the sweeper and tests.

        Never expose this to untrusted callers: it answers "does this key
        exist" without consuming it.
        """

    @abstractmethod
    def count(self) -> int:
        """Number of entries held, including expired ones not yet swept."""

    def ping(self) -> None:
        """Raise if the storage medium is unavailable."""

    def close(self) -> None:
        """Release backend resources."""

    def __len__(self) -> int:
        return self.count()

    # --- backend primitives ---

    @abstractmethod
    def _insert(self, key: str, payload: bytes, ttl: Optional[float], content_type: str) -> bool:
        """Insert a new secret unless key is held by a live one. Returns False on collision."""

    @abstractmethod
    def _take(self, key: str) -> Optional[Secret]:
        """Atomically remove and return the live secret for key, or None."""

    # --- helpers ---

    def _validate(self, payload: bytes, ttl_seconds: Optional[float]) -> Optional[float]:
        """Check payload policy and resolve the effective TTL."""
        if not payload:
            raise PayloadEmptyError()
        if len(payload) > self.max_payload_bytes:
            raise PayloadTooLargeError(len(payload), self.max_payload_bytes)
        return self.resolve_ttl(ttl_seconds)

    def resolve_ttl(self, ttl_seconds: Optional[float]) -> Optional[float]:
        """TTL a put with ttl_seconds would get: clamped, or the default (None = no limit)."""
        if ttl_seconds is None:
            return self.default_ttl_seconds
        if ttl_seconds <= 0:
            raise ValidationError(
                "ttl_seconds must be positive",
                details={"ttl_seconds": ttl_seconds},
            )
        # Compare before float(): ints past the float range overflow.
        if self.max_ttl_seconds is not None and ttl_seconds >= self.max_ttl_seconds:
            return float(self.max_ttl_seconds)
        try:
            return float(ttl_seconds)
        except OverflowError as e:
            raise ValidationError("ttl_seconds is too large") from e


@dataclass
class _Shard:
    lock: Lock = field(default_factory=Lock)
    secrets: dict[str, Secret] = field(default_factory=dict)
    # (expires_at, key) min-heap; entries whose secret is gone are "stale"
    expiries: list[tuple[float, str]] = field(default_factory=list)
    stale: int = 0


class MemorySecretStore(SecretStore):
    """Process-local store, sharded by key hash.

    Each shard has its own lock, so puts for different keys rarely contend and
    a take_once serializes only the shard that owns its key. The sweeper takes
    the same shard locks, which makes expiry and consumption agree on a single
    winner. No lock is ever held across I/O.
    """

    backend_name = "memory"
    compact_min_stale = 64

    def __init__(
        self,
        key_generator: Optional[KeyGenerator] = None,
        *,
        num_shards: int = 16,
        clock: Callable[[], float] = time.monotonic,
        **kwargs: Any,
    ) -> None:
        super().__init__(key_generator, **kwargs)
        if num_shards < 1:
            raise ValueError("num_shards must be >= 1")
        self._shards = [_Shard() for _ in range(num_shards)]
        self._clock = clock

    def _shard_for(self, key: str) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def _insert(self, key: str, payload: bytes, ttl: Optional[float], content_type: str) -> bool:
        shard = self._shard_for(key)
        with shard.lock:
            now = self._clock()
            existing = shard.secrets.get(key)
            if existing is not None:
                if not existing.is_expired(now):
                    return False
                # Dead but unswept; its heap entry becomes stale.
                shard.stale += 1
            secret = Secret(
                key=key,
                payload=payload,
                created_at=now,
                expires_at=now + ttl if ttl else None,
                content_type=content_type,
            )
            shard.secrets[key] = secret
            if secret.expires_at is not None:
                heapq.heappush(shard.expiries, (secret.expires_at, key))
        return True

    def _take(self, key: str) -> Optional[Secret]:
        shard = self._shard_for(key)
        with shard.lock:
            secret = shard.secrets.pop(key, None)
            if secret is None:
                return None
            if secret.expires_at is not None:
                shard.stale += 1
                self._maybe_compact(shard)
            if secret.is_expired(self._clock()):
                return None
            secret.consumed = True
        return secret

    def sweep_expired(self, now: Optional[float] = None) -> int:
        removed = 0
        for shard in self._shards:
            with shard.lock:
                current = self._clock() if now is None else now
                heap = shard.expiries
                while heap and heap[0][0] <= current:
                    expires_at, key = heapq.heappop(heap)
                    entry = shard.secrets.get(key)
                    if entry is not None and entry.expires_at == expires_at:
                        del shard.secrets[key]
                        removed += 1
                    else:
                        shard.stale -= 1
        return removed

    def is_live(self, key: str) -> bool:
        shard = self._shard_for(key)
        with shard.lock:
            entry = shard.secrets.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def count(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.secrets)
        return total

    def _maybe_compact(self, shard: _Shard) -> None:
        """Rebuild the expiry heap once stale entries dominate it. Caller holds shard.lock."""
        if shard.stale < self.compact_min_stale or shard.stale * 2 <= len(shard.expiries):
            return
        shard.expiries = [
            (s.expires_at, k) for k, s in shard.secrets.items() if s.expires_at is not None
        ]
        heapq.heapify(shard.expiries)
        shard.stale = 0

