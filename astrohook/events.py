"""Typed models for push deliveries.

Only the fields the dispatcher needs are declared; msgspec ignores the rest
of the (large) Gitea/GitHub push payload.
"""

from __future__ import annotations

import dataclasses as dc

import msgspec

from astrohook.errors import PayloadError

__all__ = ["PushPayload", "PushRepository", "WebhookEvent", "decode_push"]


class PushRepository(msgspec.Struct, kw_only=True):
    """Repository block of a push payload."""

    name: str = ""
    full_name: str = ""


class PushPayload(msgspec.Struct, kw_only=True):
    """Subset of a push payload used for branch filtering."""

    ref: str | None = None
    repository: PushRepository | None = None


@dc.dataclass(frozen=True, slots=True)
class WebhookEvent:
    """An authenticated delivery, valid for the duration of one request."""

    branch_ref: str
    repository_name: str
    raw_payload: bytes
    signature_header: str

    def targets(self, tracked_ref: str) -> bool:
        """Return whether the push updates ``tracked_ref``."""
        return self.branch_ref == tracked_ref


def decode_push(raw_payload: bytes, signature_header: str) -> WebhookEvent:
    """Decode an authenticated body into a :class:`WebhookEvent`.

    Raises
    ------
    PayloadError
        If the body is not a JSON object of the expected shape.

    """
    try:
        payload = msgspec.json.decode(raw_payload, type=PushPayload)
    except msgspec.DecodeError as exc:
        msg = f"Malformed push payload: {exc}"
        raise PayloadError(msg) from exc

    repository = payload.repository or PushRepository()
    return WebhookEvent(
        branch_ref=payload.ref or "",
        repository_name=repository.name or repository.full_name or "unknown",
        raw_payload=raw_payload,
        signature_header=signature_header,
    )
