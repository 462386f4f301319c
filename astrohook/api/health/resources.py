"""Liveness probe for process supervisors and load balancers.

The resource is stateless and always answers, whatever the state of the
deployment pipeline.

Usage
-----
Register the endpoint on the Falcon app::

    from astrohook.api.health.resources import HealthResource

    app.add_route("/health", HealthResource())

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon

from astrohook import SERVICE_NAME

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource"]


class HealthResource:
    """Liveness probe resource returning a fixed status document."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with liveness status.

        """
        resp.media = {"status": "ok", "service": SERVICE_NAME}
        resp.status = HTTPStatus.OK

    async def on_options(self, _req: Request, _resp: Response) -> None:
        """Answer OPTIONS like any other unsupported method."""
        raise falcon.HTTPRouteNotFound
