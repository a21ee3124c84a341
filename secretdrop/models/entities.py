"""Stored secret entity and its Firestore document shape."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass
class Secret:
    """A live secret.

    Timestamps are in the owning store's clock: seconds from time.monotonic()
    for the in-memory store, aware UTC datetimes for Firestore.
    """

    key: str
    payload: bytes = field(repr=False)
    created_at: Any
    expires_at: Optional[Any] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    consumed: bool = False

    def is_expired(self, now: Any) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    @property
    def size(self) -> int:
        return len(self.payload)

    def to_firestore_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload,
            "content_type": self.content_type,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_firestore_dict(cls, key: str, d: dict[str, Any]) -> "Secret":
        return cls(
            key=key,
            payload=bytes(d.get("payload") or b""),
            created_at=d.get("created_at"),
            expires_at=_as_datetime(d.get("expires_at")),
            content_type=d.get("content_type") or DEFAULT_CONTENT_TYPE,
        )


def _as_datetime(value: Any) -> Optional[datetime]:
    # Firestore returns DatetimeWithNanoseconds, a datetime subclass.
    if value is None or isinstance(value, datetime):
        return value
    raise TypeError(f"expires_at must be a datetime, got {type(value).__name__}")
