"""Liveness probe resource.

Usage
-----
Import the resource for route registration::

    from astrohook.api.health.resources import HealthResource
"""
