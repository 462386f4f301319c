"""Gitea push webhook that rebuilds and redeploys an Astro site."""

SERVICE_NAME = "gitea-astro-webhook"

__all__ = ["SERVICE_NAME"]
