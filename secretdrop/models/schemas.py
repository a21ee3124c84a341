"""Pydantic request/response models for the JSON API."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

PayloadEncoding = Literal["text", "base64"]


# --- Request ---
class SecretCreate(BaseModel):
    """POST /v1/secrets request body."""

    payload: str = Field(..., description="Secret content; UTF-8 text or base64, see encoding")
    encoding: PayloadEncoding = Field(default="text", description="How payload is encoded")
    ttl_seconds: Optional[int] = Field(
        default=None,
        gt=0,
        description="Seconds until the secret expires unread; server default if omitted",
    )
    content_type: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Media type returned with the payload on reveal",
    )


class SecretReveal(BaseModel):
    """POST /v1/secrets/reveal request body."""

    reference: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        description="Bare key or a retrieval URL containing /secret/<key>",
    )


# --- Response ---
class SecretCreatedResponse(BaseModel):
    """201 Created response for POST /v1/secrets."""

    key: str
    url: str
    expires_in_seconds: Optional[int] = None


class SecretRevealResponse(BaseModel):
    """200 response for POST /v1/secrets/reveal. The secret no longer exists once this is sent."""

    payload: str
    encoding: PayloadEncoding = "text"
    content_type: str


class ErrorResponse(BaseModel):
    """Body returned for any SecretDropError."""

    error: str
    message: str
    details: dict = Field(default_factory=dict)
