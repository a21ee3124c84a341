"""FastAPI dependencies: settings, secret store, request size guard."""

from fastapi import Request

from secretdrop.core.config import Settings
from secretdrop.core.errors import PayloadTooLargeError
from secretdrop.core.telemetry import record_secret_rejected
from secretdrop.services.secret_store import SecretStore


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_secret_store(request: Request) -> SecretStore:
    """Store created in the app lifespan."""
    return request.app.state.secret_store


def public_base_url(request: Request) -> str:
    """Base for retrieval links: configured public URL, else the request's own."""
    settings = get_app_settings(request)
    return settings.public_base_url or str(request.base_url).rstrip("/")


JSON_ENVELOPE_BYTES = 1024


def json_body_limit(max_payload_bytes: int) -> int:
    """Largest JSON request that can still carry a max-size payload as base64."""
    return max_payload_bytes * 4 // 3 + JSON_ENVELOPE_BYTES


def _check_content_length(request: Request, allowed: int, limit: int) -> None:
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > allowed:
        record_secret_rejected()
        raise PayloadTooLargeError(int(declared), limit)


def reject_oversized_body(request: Request) -> None:
    """Fail fast on Content-Length above the payload limit, before reading the body."""
    limit = get_app_settings(request).max_payload_bytes
    _check_content_length(request, limit, limit)


def reject_oversized_json_body(request: Request) -> None:
    """Same guard for JSON bodies, allowing for base64 and envelope overhead."""
    limit = get_app_settings(request).max_payload_bytes
    _check_content_length(request, json_body_limit(limit), limit)
