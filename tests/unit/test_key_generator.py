"""Unit tests for key generation."""

import re
from unittest.mock import patch

import pytest

from secretdrop.core.errors import GenerationExhaustedError
from secretdrop.services.key_generator import KeyGenerator, encoded_length


def test_default_key_is_256_bit_urlsafe() -> None:
    key = KeyGenerator().generate()
    assert len(key) == 43
    assert re.fullmatch(r"[A-Za-z0-9_\-]+", key)
    assert "=" not in key


def test_keys_are_unique() -> None:
    gen = KeyGenerator(16)
    keys = {gen.generate() for _ in range(2000)}
    assert len(keys) == 2000


def test_rejects_less_than_128_bits() -> None:
    with pytest.raises(ValueError):
        KeyGenerator(15)
    assert KeyGenerator(16).num_bytes == 16


def test_encoded_length_matches_generated() -> None:
    for n in (16, 17, 18, 32, 64):
        assert len(KeyGenerator(n).generate()) == encoded_length(n)


def test_is_well_formed() -> None:
    gen = KeyGenerator()
    assert gen.is_well_formed(gen.generate())
    assert gen.is_well_formed(KeyGenerator(16).generate())
    assert not gen.is_well_formed("")
    assert not gen.is_well_formed("short")
    assert not gen.is_well_formed("a" * 42 + "/")
    assert not gen.is_well_formed("a" * 42 + "=")
    assert not gen.is_well_formed("a" * 500)
    assert not gen.is_well_formed("a" * 43 + "\n")


@patch("secretdrop.services.key_generator.secrets.token_urlsafe", side_effect=OSError("no entropy"))
def test_entropy_failure_is_generation_error(_mock) -> None:
    with pytest.raises(GenerationExhaustedError) as exc:
        KeyGenerator().generate()
    assert exc.value.status_code == 503
