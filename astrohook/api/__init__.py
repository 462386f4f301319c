"""HTTP surface of the webhook service.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: the liveness probe, the webhook endpoint and the error
handlers that shape their responses.

Usage
-----
Create the application from loaded dependencies::

    from astrohook.api import AppDependencies, create_app

    app = create_app(AppDependencies.from_config(config))

"""

from astrohook.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
