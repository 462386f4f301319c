"""Fetch step against real local git repositories."""

from __future__ import annotations

import asyncio
import shutil
import subprocess
import typing as typ

import pytest

from astrohook.pipeline import (
    CommandResult,
    DeploymentPipeline,
    StepName,
    run_command,
)

if typ.TYPE_CHECKING:
    import pathlib
    from collections.abc import Mapping, Sequence

    from astrohook.journal import DeployJournal

pytestmark = pytest.mark.skipif(
    shutil.which("git") is None, reason="git binary required for fetch tests"
)


def _git(repo: pathlib.Path, *args: str) -> str:
    result = subprocess.run(  # noqa: S603  # fixed git commands in temp repos
        [  # noqa: S607
            "git",
            "-C",
            str(repo),
            "-c",
            "user.email=astrohook@example.com",
            "-c",
            "user.name=astrohook",
            *args,
        ],
        check=True,
        capture_output=True,
        text=True,
        timeout=10,
    )
    return result.stdout.strip()


def _commit(repo: pathlib.Path, name: str, content: str) -> str:
    (repo / name).write_text(content, encoding="utf-8")
    _git(repo, "add", name)
    _git(repo, "commit", "-m", f"update {name}")
    return _git(repo, "rev-parse", "HEAD")


def _git_only_runner(
    argv: Sequence[str], cwd: pathlib.Path, env: Mapping[str, str] | None
) -> CommandResult:
    """Run git for real; pretend the package manager succeeded."""
    if argv[0] == "git":
        return run_command(argv, cwd, env)
    return CommandResult(returncode=0, stdout=f"{' '.join(argv)} ok")


@pytest.fixture
def repos(tmp_path: pathlib.Path) -> tuple[pathlib.Path, pathlib.Path]:
    """Create an upstream repo and a clone of it on branch main."""
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    _git(upstream, "init")
    _git(upstream, "checkout", "-b", "main")
    _commit(upstream, "index.md", "# v1\n")

    clone = tmp_path / "blog"
    subprocess.run(  # noqa: S603  # fixed git clone in temp dir
        ["git", "clone", str(upstream), str(clone)],  # noqa: S607
        check=True,
        capture_output=True,
        timeout=10,
    )
    return upstream, clone


def test_fetch_resets_working_copy_to_remote_tip(
    repos: tuple[pathlib.Path, pathlib.Path], journal: DeployJournal
) -> None:
    """Local edits are discarded and HEAD matches the remote branch."""
    upstream, clone = repos
    tip = _commit(upstream, "index.md", "# v2\n")
    (clone / "index.md").write_text("local edit\n", encoding="utf-8")

    pipeline = DeploymentPipeline(clone, "main", journal, runner=_git_only_runner)
    run = asyncio.run(pipeline.run())

    assert run.succeeded is True, run.outcome
    assert _git(clone, "rev-parse", "HEAD") == tip
    assert (clone / "index.md").read_text(encoding="utf-8") == "# v2\n"


def test_fetch_of_unknown_branch_fails(
    repos: tuple[pathlib.Path, pathlib.Path], journal: DeployJournal
) -> None:
    """A branch missing on the remote fails the fetch step."""
    _, clone = repos

    pipeline = DeploymentPipeline(clone, "nope", journal, runner=_git_only_runner)
    run = asyncio.run(pipeline.run())

    assert run.outcome is not None
    assert run.outcome.failed_step == StepName.FETCH
    assert run.step_names == [StepName.FETCH]


def test_missing_working_copy_fails_fetch(
    tmp_path: pathlib.Path, journal: DeployJournal
) -> None:
    """A BLOG_PATH that does not exist fails without raising."""
    pipeline = DeploymentPipeline(
        tmp_path / "absent", "main", journal, runner=_git_only_runner
    )
    run = asyncio.run(pipeline.run())

    assert run.outcome is not None
    assert run.outcome.failed_step == StepName.FETCH
    assert "could not run git fetch" in (run.outcome.reason or "")
