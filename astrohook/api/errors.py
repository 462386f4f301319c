"""Falcon error handlers for the webhook API.

These translate domain exceptions raised by the resources into the JSON
bodies the code host sees, and turn Falcon's routing errors into the plain
``Not Found`` response used for every unknown method/path combination.

Usage
-----
Register the handlers on the Falcon app::

    from astrohook.api.errors import handle_auth_error, handle_payload_error
    from astrohook.errors import AuthError, PayloadError

    app.add_error_handler(AuthError, handle_auth_error)
    app.add_error_handler(PayloadError, handle_payload_error)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from astrohook.errors import AuthError, PayloadError
    from astrohook.journal import DeployLog

__all__ = [
    "build_unexpected_error_handler",
    "handle_auth_error",
    "handle_not_found",
    "handle_payload_error",
]


async def handle_auth_error(
    _req: Request,
    resp: Response,
    ex: AuthError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``AuthError`` to an HTTP 401 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        Missing or invalid signature error.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_401
    resp.media = {"error": str(ex)}


async def handle_payload_error(
    _req: Request,
    resp: Response,
    ex: PayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``PayloadError`` to an HTTP 500 JSON response."""
    resp.status = falcon.HTTP_500
    resp.media = {"error": str(ex)}


async def handle_not_found(
    _req: Request,
    resp: Response,
    _ex: falcon.HTTPError,
    _params: dict[str, typ.Any],
) -> None:
    """Answer unknown routes and unsupported methods with a plain 404."""
    resp.status = falcon.HTTP_404
    resp.content_type = falcon.MEDIA_TEXT
    resp.text = "Not Found"


def build_unexpected_error_handler(
    journal: DeployLog,
) -> typ.Callable[..., typ.Awaitable[None]]:
    """Return a catch-all handler that journals the error and answers 500.

    Parameters
    ----------
    journal
        Journal that records the failure before the response is sent.

    Returns
    -------
    Callable
        Async Falcon error handler to register for ``Exception``.

    """

    async def handle_unexpected_error(
        _req: Request,
        resp: Response,
        ex: Exception,
        _params: dict[str, typ.Any],
    ) -> None:
        await journal.error("Webhook handling failed: %s", ex)
        resp.status = falcon.HTTP_500
        resp.media = {"error": str(ex)}

    return handle_unexpected_error
