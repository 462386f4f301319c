"""Runtime entrypoint for the webhook service.

``create_app`` is the Granian factory target (``astrohook.runtime:create_app``):
it loads the ``.env`` configuration and builds the Falcon ASGI app. ``main``
validates the configuration first, so a missing file or key stops the process
with a diagnostic before anything binds, then starts Granian.

The configuration file is ``.env`` in the current directory unless
``ASTROHOOK_ENV_FILE`` points elsewhere. Settings:

- ``PORT``: Listen port (default ``28080``)
- ``WEBHOOK_SECRET``: Shared HMAC secret (required)
- ``BLOG_PATH``: Working copy to deploy (required)
- ``GIT_REPO``: Remote to fetch instead of ``origin`` (optional)
- ``GIT_BRANCH``: Tracked branch (default ``main``)
- ``LOG_LEVEL``: Log level (default ``info``)
- ``HOST``: Bind address (default ``0.0.0.0``)
- ``LOG_FILE``: Journal path (default ``logs/webhook.log``)
- ``PACKAGE_MANAGER``: Install/build tool (default ``pnpm``)

Run the service directly with ``python -m astrohook.runtime``.
"""

from __future__ import annotations

import typing as typ

from astrohook.config import WebhookConfig, resolve_env_file
from astrohook.errors import ConfigError
from astrohook.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "load_config", "main"]

logger = get_logger(__name__)


def load_config() -> WebhookConfig:
    """Load and validate the configuration, exiting on failure.

    Raises
    ------
    SystemExit
        If the ``.env`` file is absent or incomplete.

    """
    path = resolve_env_file()
    try:
        return WebhookConfig.from_env_file(path)
    except ConfigError as exc:
        # Validation failures need no traceback
        log_error(logger, "Cannot start webhook service: %s", exc)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the ``.env`` configuration.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from astrohook.api.app import AppDependencies
    from astrohook.api.app import create_app as _create_api_app

    return _create_api_app(AppDependencies.from_config(load_config()))


def main() -> None:
    """Start the webhook service using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = load_config()

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Webhook service listening on %s:%d (branch=%s, blog_path=%s, log_level=%s)",
        config.host,
        config.port,
        config.git_branch,
        config.blog_path,
        normalized_level,
    )
    log_info(logger, "Webhook URL: http://localhost:%d/webhook", config.port)
    log_info(logger, "Health check: http://localhost:%d/health", config.port)

    # One worker: overlapping deployments are serialized in-process.
    server = Granian(
        "astrohook.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
        workers=1,
    )
    server.serve()


if __name__ == "__main__":
    main()
