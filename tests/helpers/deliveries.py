"""Builders for signed push deliveries."""

from __future__ import annotations

import msgspec

from astrohook.signature import compute_signature

SECRET = "s3cret-webhook-key"


def push_body(ref: str = "refs/heads/main", name: str = "astro-blog") -> bytes:
    """Return a minimal Gitea push payload for ``ref``."""
    return msgspec.json.encode(
        {
            "ref": ref,
            "before": "0" * 40,
            "after": "f" * 40,
            "repository": {"name": name, "full_name": f"me/{name}"},
            "pusher": {"login": "me"},
        }
    )


def gitea_headers(body: bytes, secret: str) -> dict[str, str]:
    """Return headers as Gitea sends them: bare hex signature."""
    return {
        "Content-Type": "application/json",
        "X-Gitea-Event": "push",
        "X-Gitea-Signature": compute_signature(body, secret),
    }


def github_headers(body: bytes, secret: str) -> dict[str, str]:
    """Return headers as GitHub sends them: ``sha256=`` prefixed."""
    return {
        "Content-Type": "application/json",
        "X-GitHub-Event": "push",
        "X-Hub-Signature-256": f"sha256={compute_signature(body, secret)}",
    }
