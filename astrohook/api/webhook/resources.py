"""Webhook endpoint that authenticates pushes and starts deployments.

``POST /webhook`` walks each delivery through a fixed sequence:

1. read the whole body;
2. reject it with 401 when the signature header is missing or wrong;
3. decode the JSON push payload (500 when that fails);
4. acknowledge pushes to other branches with ``ignored``;
5. acknowledge pushes to the tracked branch with ``building`` and hand the
   event to the scheduler, without waiting for the deployment.

``GET /webhook`` returns a short usage description.

Usage
-----
Register the resource on the Falcon app::

    app.add_route("/webhook", WebhookResource(dependencies))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from http import HTTPStatus

import falcon

from astrohook.errors import (
    InvalidSignatureError,
    MissingSignatureError,
    PayloadError,
)
from astrohook.events import decode_push
from astrohook.signature import verify

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from astrohook.config import WebhookConfig
    from astrohook.journal import DeployLog
    from astrohook.scheduler import DeployScheduler

__all__ = ["SIGNATURE_HEADERS", "WebhookResource", "WebhookResourceDependencies"]

# Gitea first; GitHub-compatible hosts send the prefixed form.
SIGNATURE_HEADERS = ("X-Gitea-Signature", "X-Hub-Signature-256")

USAGE = {
    "message": "Gitea Webhook Endpoint",
    "method": "POST required",
    "usage": "Send POST request with Gitea webhook payload",
}


@dc.dataclass(frozen=True, slots=True)
class WebhookResourceDependencies:
    """Collaborators of :class:`WebhookResource`.

    Attributes
    ----------
    config
        Loaded service configuration (secret, tracked branch).
    journal
        Receives one entry per delivery outcome.
    scheduler
        Starts deployments for accepted pushes.
    log_hint
        Command returned to the caller for following the deployment.

    """

    config: WebhookConfig
    journal: DeployLog
    scheduler: DeployScheduler
    log_hint: str


def _signature_header(req: Request) -> str | None:
    for name in SIGNATURE_HEADERS:
        value = req.get_header(name)
        if value:
            return value
    return None


class WebhookResource:
    """Resource for push deliveries from the code host."""

    def __init__(self, dependencies: WebhookResourceDependencies) -> None:
        """Configure the resource with its dependencies."""
        self._config = dependencies.config
        self._journal = dependencies.journal
        self._scheduler = dependencies.scheduler
        self._log_hint = dependencies.log_hint

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Describe how the endpoint is meant to be called."""
        resp.media = USAGE
        resp.status = HTTPStatus.OK

    async def on_options(self, _req: Request, _resp: Response) -> None:
        """Answer OPTIONS like any other unsupported method."""
        raise falcon.HTTPRouteNotFound

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle a push delivery.

        Parameters
        ----------
        req
            Falcon request carrying the signed push payload.
        resp
            Falcon response; always answered before any deployment work.

        Raises
        ------
        MissingSignatureError
            If no signature header is present.
        InvalidSignatureError
            If the signature does not match the body.
        PayloadError
            If the authenticated body cannot be decoded.

        """
        raw_body = await req.stream.read()

        signature = _signature_header(req)
        if signature is None:
            await self._journal.error("Rejected delivery: missing signature header")
            raise MissingSignatureError

        if not verify(raw_body, signature, self._config.secret):
            await self._journal.error("Rejected delivery: signature mismatch")
            raise InvalidSignatureError

        try:
            event = decode_push(raw_body, signature)
        except PayloadError as exc:
            await self._journal.error("Failed to decode push payload: %s", exc)
            raise

        tracked_ref = self._config.tracked_ref
        if not event.targets(tracked_ref):
            await self._journal.info(
                "Skipped push to %s: only %s deploys",
                event.branch_ref or "<no ref>",
                tracked_ref,
            )
            resp.media = {"message": "ignored", "reason": "wrong branch"}
            resp.status = HTTPStatus.OK
            return

        await self._journal.success(
            "Accepted push for %s on %s", event.repository_name, self._config.git_branch
        )
        resp.media = {"message": "ok", "status": "building", "log": self._log_hint}
        resp.status = HTTPStatus.OK
        self._scheduler.schedule(event)
