"""Unit tests for retrieval reference helpers."""

import pytest

from secretdrop.api.links import build_secret_url, extract_key, safe_media_type
from secretdrop.models.entities import DEFAULT_CONTENT_TYPE


@pytest.mark.parametrize(
    "reference",
    [
        "AbC_-123",
        "  AbC_-123 \n",
        "http://localhost:8080/secret/AbC_-123",
        "https://drop.example.com/secret/AbC_-123/",
        "drop.example.com/secret/AbC_-123?utm=1",
        "https://drop.example.com/secret/AbC_-123#frag",
    ],
)
def test_extract_key(reference: str) -> None:
    assert extract_key(reference) == "AbC_-123"


def test_build_secret_url() -> None:
    assert build_secret_url("http://h:8080/", "k") == "http://h:8080/secret/k"
    assert extract_key(build_secret_url("https://x.io", "abc")) == "abc"


@pytest.mark.parametrize(
    ("given", "expected"),
    [
        (None, DEFAULT_CONTENT_TYPE),
        ("", DEFAULT_CONTENT_TYPE),
        ("text/plain", DEFAULT_CONTENT_TYPE),
        ("text/plain; charset=latin-1", "text/plain; charset=latin-1"),
        ("application/json", "application/json"),
        ("application/octet-stream", "application/octet-stream"),
        ("text/html", "application/octet-stream"),
        ("image/svg+xml", "application/octet-stream"),
        ("application/x-www-form-urlencoded", "application/octet-stream"),
    ],
)
def test_safe_media_type(given, expected) -> None:
    assert safe_media_type(given) == expected
