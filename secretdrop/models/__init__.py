"""Data models: stored entity and Pydantic schemas."""

from secretdrop.models.entities import DEFAULT_CONTENT_TYPE, Secret
from secretdrop.models.schemas import (
    ErrorResponse,
    PayloadEncoding,
    SecretCreate,
    SecretCreatedResponse,
    SecretReveal,
    SecretRevealResponse,
)

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "Secret",
    "ErrorResponse",
    "PayloadEncoding",
    "SecretCreate",
    "SecretCreatedResponse",
    "SecretReveal",
    "SecretRevealResponse",
]
