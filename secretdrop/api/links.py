"""Retrieval references: building them on store, extracting keys on retrieve."""

from typing import Optional

from secretdrop.models.entities import DEFAULT_CONTENT_TYPE

SECRET_PATH_MARKER = "/secret/"

# Only types a browser will not render as active content are echoed back.
_SAFE_MEDIA_TYPES = ("text/plain", "application/octet-stream", "application/json")


def build_secret_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}{SECRET_PATH_MARKER}{key}"


def extract_key(reference: str) -> str:
    """Return the key from a bare key or a URL containing /secret/<key>."""
    reference = reference.strip()
    if SECRET_PATH_MARKER in reference:
        reference = reference.split(SECRET_PATH_MARKER, 1)[1]
    for sep in ("?", "#", "/"):
        reference = reference.split(sep, 1)[0]
    return reference


def safe_media_type(content_type: Optional[str]) -> str:
    """Media type to store for a payload; anything renderable becomes octet-stream."""
    if not content_type:
        return DEFAULT_CONTENT_TYPE
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type not in _SAFE_MEDIA_TYPES:
        return "application/octet-stream"
    if media_type == "text/plain" and "charset" not in content_type.lower():
        return DEFAULT_CONTENT_TYPE
    return content_type.strip()
