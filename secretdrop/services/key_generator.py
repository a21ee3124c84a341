"""Random, URL-safe secret keys."""

import math
import re
import secrets

from secretdrop.core.errors import GenerationExhaustedError

MIN_KEY_BYTES = 16  # 128 bits
MAX_KEY_BYTES = 128
DEFAULT_KEY_BYTES = 32

_URLSAFE_RE = re.compile(r"[A-Za-z0-9_\-]+")


def encoded_length(num_bytes: int) -> int:
    """Length of token_urlsafe(num_bytes): unpadded base64."""
    return math.ceil(num_bytes * 4 / 3)


class KeyGenerator:
    """Produces keys from the OS CSPRNG, base64url-encoded without padding.

    Keys carry no information about the store (no counters, no timestamps).
    Collisions with a live key are the caller's problem: the store retries.
    """

    def __init__(self, num_bytes: int = DEFAULT_KEY_BYTES) -> None:
        if not MIN_KEY_BYTES <= num_bytes <= MAX_KEY_BYTES:
            raise ValueError(
                f"num_bytes must be between {MIN_KEY_BYTES} and {MAX_KEY_BYTES}, got {num_bytes}"
            )
        self.num_bytes = num_bytes

    def generate(self) -> str:
        try:
            return secrets.token_urlsafe(self.num_bytes)
        except (OSError, NotImplementedError) as e:
            raise GenerationExhaustedError(message="Random source unavailable") from e

    @staticmethod
    def is_well_formed(key: str) -> bool:
        """True if key could have come from a generator of any allowed size.

        Deliberately independent of the configured size so keys held by a
        durable store stay redeemable across a key_bytes change.
        """
        return (
            encoded_length(MIN_KEY_BYTES) <= len(key) <= encoded_length(MAX_KEY_BYTES)
            and _URLSAFE_RE.fullmatch(key) is not None
        )
