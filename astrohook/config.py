"""Configuration for the webhook service.

Settings are read once at startup from a ``.env`` file of ``KEY=value`` lines
(``#`` comments ignored) and validated eagerly. The resulting
``WebhookConfig`` is frozen and handed to the app factory; nothing re-reads
the file afterwards.

Usage
-----
>>> from pathlib import Path
>>> config = WebhookConfig.from_env_file(Path(".env"))
>>> config.git_branch
'main'

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

from dotenv import dotenv_values

from astrohook.errors import ConfigError

__all__ = [
    "DEFAULT_ENV_FILE",
    "DEFAULT_LOG_FILE",
    "DEFAULT_PORT",
    "ENV_FILE_VARIABLE",
    "WebhookConfig",
    "resolve_env_file",
]

DEFAULT_PORT = 28080
DEFAULT_ENV_FILE = ".env"
DEFAULT_LOG_FILE = "logs/webhook.log"
ENV_FILE_VARIABLE = "ASTROHOOK_ENV_FILE"

_MIN_PORT = 1
_MAX_PORT = 65535
_REQUIRED_KEYS = ("WEBHOOK_SECRET", "BLOG_PATH")


def resolve_env_file() -> Path:
    """Return the ``.env`` path, honouring ``ASTROHOOK_ENV_FILE``."""
    override = os.environ.get(ENV_FILE_VARIABLE, "").strip()
    return Path(override) if override else Path.cwd() / DEFAULT_ENV_FILE


@dc.dataclass(frozen=True, slots=True)
class WebhookConfig:
    """Process-wide webhook settings.

    Attributes
    ----------
    secret
        Shared HMAC secret configured on the code host (``WEBHOOK_SECRET``).
    blog_path
        Working copy that is fetched, installed and built (``BLOG_PATH``).
    git_branch
        Tracked branch; only pushes to ``refs/heads/<git_branch>`` deploy.
    port
        Listen port (``PORT``).
    git_repo
        Optional remote URL fetched instead of ``origin`` (``GIT_REPO``).
    log_level
        femtologging level name (``LOG_LEVEL``).
    host
        Bind address (``HOST``).
    log_file
        Journal location (``LOG_FILE``), relative paths resolved against
        the current directory.
    package_manager
        Executable used for the install and build steps
        (``PACKAGE_MANAGER``).

    """

    secret: str
    blog_path: Path
    git_branch: str = "main"
    port: int = DEFAULT_PORT
    git_repo: str | None = None
    log_level: str = "info"
    host: str = "0.0.0.0"  # noqa: S104 - webhook must be reachable from the code host
    log_file: Path = Path(DEFAULT_LOG_FILE)
    package_manager: str = "pnpm"

    @property
    def tracked_ref(self) -> str:
        """Return the full ref a push must carry to trigger a deploy."""
        return f"refs/heads/{self.git_branch}"

    @staticmethod
    def _parse_port(raw: str | None) -> int:
        if raw is None or not raw.strip():
            return DEFAULT_PORT
        try:
            port = int(raw)
        except ValueError as exc:
            raise ConfigError.invalid_value("PORT", raw, "not an integer") from exc
        if not _MIN_PORT <= port <= _MAX_PORT:
            reason = f"must be {_MIN_PORT}-{_MAX_PORT}"
            raise ConfigError.invalid_value("PORT", raw, reason)
        return port

    @classmethod
    def from_mapping(cls, values: dict[str, str | None]) -> WebhookConfig:
        """Build and validate a configuration from raw key/value pairs.

        Raises
        ------
        ConfigError
            If a required key is missing or a value is unusable.

        """
        settings = {
            key: value.strip()
            for key, value in values.items()
            if value is not None and value.strip()
        }
        missing = [key for key in _REQUIRED_KEYS if key not in settings]
        if missing:
            raise ConfigError.missing_keys(missing)

        branch = settings.get("GIT_BRANCH", "main")
        if branch.startswith("refs/"):
            raise ConfigError.invalid_value(
                "GIT_BRANCH", branch, "use the branch name, not the full ref"
            )

        return cls(
            secret=settings["WEBHOOK_SECRET"],
            blog_path=Path(settings["BLOG_PATH"]),
            git_branch=branch,
            port=cls._parse_port(settings.get("PORT")),
            git_repo=settings.get("GIT_REPO"),
            log_level=settings.get("LOG_LEVEL", "info"),
            host=settings.get("HOST", "0.0.0.0"),  # noqa: S104
            log_file=Path(settings.get("LOG_FILE", DEFAULT_LOG_FILE)),
            package_manager=settings.get("PACKAGE_MANAGER", "pnpm"),
        )

    @classmethod
    def from_env_file(cls, path: Path) -> WebhookConfig:
        """Load the ``.env`` file at ``path``.

        Raises
        ------
        ConfigError
            If the file is absent or fails validation.

        """
        if not path.is_file():
            raise ConfigError.missing_file(path)
        return cls.from_mapping(dict(dotenv_values(path)))
