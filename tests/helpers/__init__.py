"""Shared test utilities."""

from __future__ import annotations

import asyncio
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

T = typ.TypeVar("T")


def run_async(coro_func: typ.Callable[[], typ.Coroutine[typ.Any, typ.Any, T]]) -> T:
    """Execute an async callable within the test context."""
    return asyncio.run(coro_func())


def journal_lines(path: Path) -> list[str]:
    """Return the journal file's lines, or an empty list if it is absent."""
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()
