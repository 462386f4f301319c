r"""Append-only deploy journal.

Every request outcome and pipeline transition is written here, both to the
femtologging logger and to a newline-delimited log file::

    [2024-07-08T09:15:02.113Z] [INFO] Fetching main
    [2024-07-08T09:15:03.402Z] [SUCCESS] Fetch complete

The file is opened in append mode for each entry, so several concurrent
runs can share it without coordination.

Usage
-----
>>> import asyncio
>>> from pathlib import Path
>>> journal = DeployJournal(Path("logs/webhook.log"))
>>> asyncio.run(journal.info("Received push for %s", "blog"))

"""

from __future__ import annotations

import asyncio
import datetime as dt
import enum
import typing as typ

from astrohook.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from pathlib import Path

__all__ = ["DeployJournal", "DeployLog", "JournalLevel", "format_entry"]

logger = get_logger(__name__)


class JournalLevel(enum.StrEnum):
    """Levels written to the journal file."""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


_EMITTERS = {
    JournalLevel.INFO: log_info,
    JournalLevel.SUCCESS: log_info,
    JournalLevel.WARNING: log_warning,
    JournalLevel.ERROR: log_error,
}


@typ.runtime_checkable
class DeployLog(typ.Protocol):
    """Capability to record leveled deployment messages durably.

    The pipeline, the scheduler and the HTTP resources depend only on this
    port. The level helpers take percent-style templates; arguments are only
    interpolated when given.

    """

    async def append(self, level: JournalLevel, message: str) -> None:
        """Record ``message`` at ``level``."""
        ...

    async def info(self, template: str, *args: object) -> None:
        """Record an INFO entry."""
        ...

    async def success(self, template: str, *args: object) -> None:
        """Record a SUCCESS entry."""
        ...

    async def warning(self, template: str, *args: object) -> None:
        """Record a WARNING entry."""
        ...

    async def error(self, template: str, *args: object) -> None:
        """Record an ERROR entry."""
        ...


def _timestamp(moment: dt.datetime) -> str:
    """Render ``moment`` as ISO 8601 UTC with millisecond precision."""
    utc = moment.astimezone(dt.UTC)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_entry(level: JournalLevel, message: str, moment: dt.datetime) -> str:
    """Return the journal text for one entry, trailing newline included.

    Multi-line messages (captured command output) are split so that every
    physical line carries the timestamp and level prefix.
    """
    prefix = f"[{_timestamp(moment)}] [{level}]"
    lines = message.rstrip().splitlines() or [""]
    return "".join(f"{prefix} {line}".rstrip() + "\n" for line in lines)


class DeployJournal:
    """File-backed :class:`DeployLog` that also echoes to femtologging.

    Parameters
    ----------
    path
        Log file location. The parent directory is created on first write.
    clock
        Returns the current time; injectable for tests.

    """

    def __init__(
        self,
        path: Path,
        *,
        clock: typ.Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Configure the journal with its file path and clock."""
        self.path = path
        self._clock = clock or (lambda: dt.datetime.now(dt.UTC))

    async def append(self, level: JournalLevel, message: str) -> None:
        """Echo ``message`` to the process log and append it to the file."""
        level = JournalLevel(level)
        _EMITTERS[level](logger, "[%s] %s", level, message)
        line = format_entry(level, message, self._clock())
        await asyncio.to_thread(self._write, line)

    def _write(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(line)

    async def info(self, template: str, *args: object) -> None:
        """Append an INFO entry."""
        await self.append(JournalLevel.INFO, _render(template, args))

    async def success(self, template: str, *args: object) -> None:
        """Append a SUCCESS entry."""
        await self.append(JournalLevel.SUCCESS, _render(template, args))

    async def warning(self, template: str, *args: object) -> None:
        """Append a WARNING entry."""
        await self.append(JournalLevel.WARNING, _render(template, args))

    async def error(self, template: str, *args: object) -> None:
        """Append an ERROR entry."""
        await self.append(JournalLevel.ERROR, _render(template, args))


def _render(template: str, args: tuple[object, ...]) -> str:
    return template % args if args else template
