"""Plain-text store/retrieve used by the web page: POST /store, GET /secret/{key}."""

import asyncio
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse, Response

from secretdrop.api.dependencies import get_secret_store, public_base_url, reject_oversized_body
from secretdrop.api.links import build_secret_url, safe_media_type
from secretdrop.models.schemas import ErrorResponse
from secretdrop.services.secret_store import SecretStore

router = APIRouter(tags=["drop"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store",
    "X-Content-Type-Options": "nosniff",
}


@router.post(
    "/store",
    status_code=status.HTTP_201_CREATED,
    response_class=PlainTextResponse,
    dependencies=[Depends(reject_oversized_body)],
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def store_secret(
    request: Request,
    store: Annotated[SecretStore, Depends(get_secret_store)],
    ttl: Annotated[Optional[int], Query(gt=0, description="Seconds until the secret expires unread")] = None,
) -> PlainTextResponse:
    """Store the raw request body; respond with the one-time retrieval URL."""
    body = await request.body()
    content_type = safe_media_type(request.headers.get("content-type"))
    key = await asyncio.to_thread(store.put, body, ttl, content_type)
    url = build_secret_url(public_base_url(request), key)
    return PlainTextResponse(url, status_code=status.HTTP_201_CREATED, headers=NO_STORE_HEADERS)


@router.get("/secret/{key}", responses={404: {"model": ErrorResponse}})
async def retrieve_secret(
    key: str,
    store: Annotated[SecretStore, Depends(get_secret_store)],
) -> Response:
    """Return the payload and destroy it. A dropped connection after this point still loses it."""
    secret = await asyncio.to_thread(store.take_once, key)
    return Response(content=secret.payload, media_type=secret.content_type, headers=NO_STORE_HEADERS)
