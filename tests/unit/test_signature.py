"""Unit tests for webhook signature verification."""

from __future__ import annotations

import pytest

from astrohook.signature import compute_signature, normalize_signature, verify

SECRET = "shared-secret"
BODY = b'{"ref": "refs/heads/main", "repository": {"name": "astro-blog"}}'


def _flip_bit(data: bytes, bit: int) -> bytes:
    buffer = bytearray(data)
    buffer[bit // 8] ^= 1 << (bit % 8)
    return bytes(buffer)


def test_compute_signature_is_lowercase_hex() -> None:
    """The digest is 64 lowercase hex characters."""
    signature = compute_signature(BODY, SECRET)

    assert len(signature) == 64
    assert signature == signature.lower()
    int(signature, 16)


def test_verify_accepts_matching_signature() -> None:
    """A digest computed with the shared secret verifies."""
    assert verify(BODY, compute_signature(BODY, SECRET), SECRET) is True


@pytest.mark.parametrize(
    "presented",
    [
        pytest.param("{sig}", id="bare-hex"),
        pytest.param("sha256={sig}", id="prefixed"),
        pytest.param("SHA256={upper}", id="upper-prefixed"),
        pytest.param("{upper}", id="upper-hex"),
        pytest.param("  sha256={sig}\n", id="whitespace"),
    ],
)
def test_verify_accepts_signature_formats(presented: str) -> None:
    """Gitea and GitHub signature formats give the same verdict."""
    signature = compute_signature(BODY, SECRET)
    header = presented.format(sig=signature, upper=signature.upper())

    assert verify(BODY, header, SECRET) is True


@pytest.mark.parametrize("bit", [0, 7, 100, len(BODY) * 8 - 1])
def test_verify_rejects_flipped_body_bit(bit: int) -> None:
    """Changing any bit of the body invalidates the signature."""
    signature = compute_signature(BODY, SECRET)

    assert verify(_flip_bit(BODY, bit), signature, SECRET) is False


@pytest.mark.parametrize("position", [0, 31, 63])
def test_verify_rejects_altered_signature(position: int) -> None:
    """Changing any digit of the signature invalidates it."""
    signature = compute_signature(BODY, SECRET)
    replacement = "0" if signature[position] != "0" else "1"
    tampered = signature[:position] + replacement + signature[position + 1 :]

    assert verify(BODY, tampered, SECRET) is False


def test_verify_rejects_wrong_secret() -> None:
    """A signature made with another secret does not verify."""
    assert verify(BODY, compute_signature(BODY, "other"), SECRET) is False


@pytest.mark.parametrize(
    "presented",
    [
        pytest.param(None, id="none"),
        pytest.param("", id="empty"),
        pytest.param("sha256=", id="prefix-only"),
        pytest.param("abc123", id="too-short"),
        pytest.param("é" * 64, id="non-ascii"),
        pytest.param("sha1=deadbeef", id="other-algorithm"),
    ],
)
def test_verify_rejects_malformed_signatures(presented: str | None) -> None:
    """Malformed signatures fail verification without raising."""
    assert verify(BODY, presented, SECRET) is False


def test_normalize_signature_strips_prefix_and_case() -> None:
    """The prefix is removed and hex digits lowercased."""
    assert normalize_signature(" sha256=ABCdef ") == "abcdef"


def test_normalize_signature_keeps_bare_hex() -> None:
    """Bare hex passes through unchanged apart from case."""
    assert normalize_signature("ABCDEF") == "abcdef"
