"""Application factory for the webhook Falcon ASGI application.

Usage
-----
Build the app from a loaded configuration::

    from astrohook.api.app import AppDependencies, create_app

    app = create_app(AppDependencies.from_config(config))

Tests swap in their own scheduler so no deployment actually runs::

    deps = AppDependencies(config=config, journal=journal, scheduler=fake)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon
import falcon.asgi

from astrohook.api.errors import (
    build_unexpected_error_handler,
    handle_auth_error,
    handle_not_found,
    handle_payload_error,
)
from astrohook.api.health.resources import HealthResource
from astrohook.api.webhook.resources import (
    WebhookResource,
    WebhookResourceDependencies,
)
from astrohook.errors import AuthError, PayloadError
from astrohook.journal import DeployJournal
from astrohook.pipeline import DeploymentPipeline
from astrohook.scheduler import TaskScheduler

if typ.TYPE_CHECKING:
    from astrohook.config import WebhookConfig
    from astrohook.scheduler import DeployScheduler

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    config
        Loaded service configuration.
    journal
        Deploy journal shared by the resources and the pipeline.
    scheduler
        Starts deployments for accepted pushes.

    """

    config: WebhookConfig
    journal: DeployJournal
    scheduler: DeployScheduler

    @classmethod
    def from_config(cls, config: WebhookConfig) -> AppDependencies:
        """Wire the journal, pipeline and scheduler for ``config``."""
        journal = DeployJournal(config.log_file)
        pipeline = DeploymentPipeline.from_config(config, journal)
        return cls(
            config=config,
            journal=journal,
            scheduler=TaskScheduler(pipeline, journal),
        )

    @property
    def log_hint(self) -> str:
        """Return the command that follows deployment progress."""
        return f"tail -f {self.journal.path}"


def create_app(dependencies: AppDependencies) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Registers ``/health`` and ``/webhook``; every other method/path
    combination answers with a plain-text 404.

    Parameters
    ----------
    dependencies
        Configuration, journal and scheduler used by the webhook resource.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route(
        "/webhook",
        WebhookResource(
            WebhookResourceDependencies(
                config=dependencies.config,
                journal=dependencies.journal,
                scheduler=dependencies.scheduler,
                log_hint=dependencies.log_hint,
            )
        ),
    )

    app.add_error_handler(Exception, build_unexpected_error_handler(dependencies.journal))
    app.add_error_handler(AuthError, handle_auth_error)
    app.add_error_handler(PayloadError, handle_payload_error)
    app.add_error_handler(falcon.HTTPRouteNotFound, handle_not_found)
    app.add_error_handler(falcon.HTTPMethodNotAllowed, handle_not_found)

    return app
