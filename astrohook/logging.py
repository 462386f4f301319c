"""femtologging helpers shared by the webhook service.

Log calls go through these helpers so every message is pre-formatted with
percent-style interpolation before it reaches femtologging, and so the
configured ``LOG_LEVEL`` is normalized in one place.

Example:
>>> from astrohook.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Deploying %s", "main")

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger


class LogLevel(enum.StrEnum):
    """Log levels understood by femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return the upper-cased level and whether the input was rejected.

    Unknown or empty levels fall back to ``INFO``.

    Parameters
    ----------
    level : str | None
        Raw ``LOG_LEVEL`` value, e.g. ``"info"``.

    Returns
    -------
    tuple[str, bool]
        The normalized level and ``True`` when the input was invalid.

    """
    if not level:
        return ("INFO", True)

    candidate = level.strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)
    return ("INFO", True)


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Install the femtologging root handler at the normalized level.

    Parameters
    ----------
    level : str | None
        Raw ``LOG_LEVEL`` value.
    force : bool, optional
        Replace an existing handler configuration.

    Returns
    -------
    tuple[str, bool]
        Same as :func:`normalize_log_level`.

    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


class _SupportsLog(typ.Protocol):
    """Anything shaped like a femtologging logger."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: str,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    """Format and forward one record; ``stack_info`` is never requested."""
    message = template % args if args else template
    logger.log(level, message, exc_info=exc_info, stack_info=False)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Emit an INFO record, interpolating ``args`` into ``template``.

    Parameters
    ----------
    logger : _SupportsLog
        femtologging logger (or a compatible double) to write to.
    template : str
        Percent-style message; left untouched when no arguments follow.
    *args : object
        Values substituted into ``template``.
    exc_info : object | None, optional
        Exception to attach to the record, if any.

    """
    _emit(logger, "INFO", template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Emit a WARNING record, interpolating ``args`` into ``template``.

    Parameters
    ----------
    logger : _SupportsLog
        femtologging logger (or a compatible double) to write to.
    template : str
        Percent-style message; left untouched when no arguments follow.
    *args : object
        Values substituted into ``template``.
    exc_info : object | None, optional
        Exception to attach to the record, if any.

    """
    _emit(logger, "WARNING", template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Emit an ERROR record, interpolating ``args`` into ``template``.

    Parameters
    ----------
    logger : _SupportsLog
        femtologging logger (or a compatible double) to write to.
    template : str
        Percent-style message; left untouched when no arguments follow.
    *args : object
        Values substituted into ``template``.
    exc_info : object | None, optional
        Exception to attach to the record, if any.

    """
    _emit(logger, "ERROR", template, args, exc_info)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Emit an ERROR record carrying ``exc`` as its exception info.

    Parameters
    ----------
    logger : _SupportsLog
        femtologging logger (or a compatible double) to write to.
    message : str
        Already formatted description of the failure; never interpolated.
    exc : BaseException
        Exception whose traceback accompanies the record.

    """
    _emit(logger, "ERROR", message, (), exc)


__all__ = [
    "LogLevel",
    "configure_logging",
    "get_logger",
    "log_error",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
