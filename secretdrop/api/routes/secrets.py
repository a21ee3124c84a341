"""JSON secrets API: POST /v1/secrets, POST /v1/secrets/reveal."""

import asyncio
import base64
import binascii
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from secretdrop.api.dependencies import get_secret_store, public_base_url, reject_oversized_json_body
from secretdrop.api.links import build_secret_url, extract_key, safe_media_type
from secretdrop.api.routes.drop import NO_STORE_HEADERS
from secretdrop.core.errors import ValidationError
from secretdrop.models.schemas import (
    ErrorResponse,
    SecretCreate,
    SecretCreatedResponse,
    SecretReveal,
    SecretRevealResponse,
)
from secretdrop.services.secret_store import SecretStore

router = APIRouter(prefix="/v1/secrets", tags=["secrets"])


def _decode_payload(body: SecretCreate) -> bytes:
    if body.encoding == "text":
        return body.payload.encode("utf-8")
    try:
        return base64.b64decode(body.payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("payload is not valid base64", details={"encoding": "base64"}) from e


def _encode_payload(payload: bytes) -> tuple[str, str]:
    try:
        return payload.decode("utf-8"), "text"
    except UnicodeDecodeError:
        return base64.b64encode(payload).decode("ascii"), "base64"


@router.post(
    "",
    response_model=SecretCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(reject_oversized_json_body)],
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def create_secret(
    body: SecretCreate,
    request: Request,
    response: Response,
    store: Annotated[SecretStore, Depends(get_secret_store)],
) -> SecretCreatedResponse:
    """Store a secret; the returned key/url work exactly once."""
    payload = _decode_payload(body)
    key = await asyncio.to_thread(store.put, payload, body.ttl_seconds, safe_media_type(body.content_type))
    ttl = store.resolve_ttl(body.ttl_seconds)
    response.headers.update(NO_STORE_HEADERS)
    return SecretCreatedResponse(
        key=key,
        url=build_secret_url(public_base_url(request), key),
        expires_in_seconds=int(ttl) if ttl else None,
    )


@router.post("/reveal", response_model=SecretRevealResponse, responses={404: {"model": ErrorResponse}})
async def reveal_secret(
    body: SecretReveal,
    response: Response,
    store: Annotated[SecretStore, Depends(get_secret_store)],
) -> SecretRevealResponse:
    """Return a secret by key or retrieval URL and destroy it."""
    secret = await asyncio.to_thread(store.take_once, extract_key(body.reference))
    payload, encoding = _encode_payload(secret.payload)
    response.headers.update(NO_STORE_HEADERS)
    return SecretRevealResponse(payload=payload, encoding=encoding, content_type=secret.content_type)
