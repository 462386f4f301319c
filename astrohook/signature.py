"""HMAC-SHA256 verification of webhook deliveries.

Gitea sends the bare hex digest in ``X-Gitea-Signature``; GitHub and
compatible hosts send ``sha256=<hex>`` in ``X-Hub-Signature-256``. Both forms
are accepted.

>>> body = b'{"ref": "refs/heads/main"}'
>>> verify(body, compute_signature(body, "s3cret"), "s3cret")
True
>>> verify(body, "sha256=" + compute_signature(body, "s3cret"), "s3cret")
True

"""

from __future__ import annotations

import hashlib
import hmac

__all__ = ["SIGNATURE_PREFIX", "compute_signature", "normalize_signature", "verify"]

SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of ``raw_body`` keyed by ``secret``."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def normalize_signature(presented: str) -> str:
    """Strip whitespace and an optional ``sha256=`` prefix, then lowercase."""
    candidate = presented.strip()
    if candidate[: len(SIGNATURE_PREFIX)].lower() == SIGNATURE_PREFIX:
        candidate = candidate[len(SIGNATURE_PREFIX) :]
    return candidate.lower()


def verify(raw_body: bytes, presented_signature: str | None, secret: str) -> bool:
    """Return whether ``presented_signature`` authenticates ``raw_body``.

    The comparison is constant-time. Malformed input (``None``, non-ASCII,
    wrong length) fails verification instead of raising.
    """
    if not isinstance(presented_signature, str) or not presented_signature:
        return False

    received = normalize_signature(presented_signature)
    if not received.isascii():
        return False

    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(received, expected)
