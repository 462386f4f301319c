"""Exceptions raised by the webhook service.

``AuthError`` and ``PayloadError`` are raised while handling a request and
turned into HTTP responses by :mod:`astrohook.api.errors`.
``PipelineStepError`` never reaches HTTP: the pipeline catches it at the step
boundary. ``ConfigError`` is raised at startup, before the server binds.
"""

from __future__ import annotations

import typing as typ

__all__ = [
    "AuthError",
    "ConfigError",
    "InvalidSignatureError",
    "MissingSignatureError",
    "PayloadError",
    "PipelineStepError",
    "WebhookError",
]


class WebhookError(Exception):
    """Base class for errors raised by the webhook service."""


class ConfigError(WebhookError):
    """Raised when the ``.env`` configuration is absent or incomplete."""

    @classmethod
    def missing_file(cls, path: object) -> ConfigError:
        """Return an error for a configuration file that does not exist."""
        return cls(
            f"configuration file {path} does not exist; "
            "copy .env.example to .env and fill it in"
        )

    @classmethod
    def missing_keys(cls, keys: typ.Iterable[str]) -> ConfigError:
        """Return an error naming required keys that are unset."""
        return cls(f"missing required settings: {', '.join(keys)}")

    @classmethod
    def invalid_value(cls, key: str, value: str, reason: str) -> ConfigError:
        """Return an error for a setting that cannot be used as given."""
        return cls(f"invalid {key} value {value!r}: {reason}")


class AuthError(WebhookError):
    """Raised when a webhook delivery cannot be authenticated."""


class MissingSignatureError(AuthError):
    """Raised when no signature header accompanies the delivery."""

    def __init__(self) -> None:
        """Initialise with the message returned to the caller."""
        super().__init__("Missing signature")


class InvalidSignatureError(AuthError):
    """Raised when the presented signature does not match the body."""

    def __init__(self) -> None:
        """Initialise with the message returned to the caller."""
        super().__init__("Invalid signature")


class PayloadError(WebhookError):
    """Raised when an authenticated body cannot be decoded."""


class PipelineStepError(WebhookError):
    """Raised by a deployment step that did not complete.

    Attributes
    ----------
    step
        Name of the failing step.
    reason
        Human-readable failure description recorded in the run outcome.
    output
        Combined output captured before the failure, if any.

    """

    def __init__(self, step: str, reason: str, *, output: str = "") -> None:
        """Initialise with the failing step, the reason and captured output."""
        self.step = step
        self.reason = reason
        self.output = output
        super().__init__(f"{step}: {reason}")
