"""Fetch, install and build a site working copy.

A :class:`DeploymentPipeline` runs three steps in order against the
configured working directory:

1. ``fetch``: ``git fetch <remote> <branch>`` then ``git reset --hard
   FETCH_HEAD``, so the working copy always matches the remote tip exactly.
2. ``install``: ``<package manager> install``.
3. ``build``: ``<package manager> build``.

A step fails when its command exits non-zero, cannot be started, or writes
one of the step's error markers to stderr. Some tools exit zero while
reporting fatal problems on stderr, and git writes routine progress there,
so stderr is only treated as fatal when it carries a marker. The first
failure ends the run; nothing is retried or rolled back.

Commands are blocking and run in a worker thread so the event loop keeps
serving requests while a build is in progress.

Usage
-----
>>> pipeline = DeploymentPipeline(Path("/srv/blog"), "main", journal)
>>> run = await pipeline.run()
>>> run.outcome.succeeded
True

"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import enum
import os
import subprocess
import typing as typ

from astrohook.errors import PipelineStepError
from astrohook.logging import get_logger, log_exception

if typ.TYPE_CHECKING:
    from pathlib import Path

    from astrohook.config import WebhookConfig
    from astrohook.journal import DeployLog

__all__ = [
    "CommandResult",
    "CommandRunner",
    "DeploymentPipeline",
    "DeploymentRun",
    "RunOutcome",
    "StepName",
    "StepResult",
    "StepSpec",
    "run_command",
    "run_pipeline",
]

logger = get_logger(__name__)

GIT_ERROR_MARKERS = ("fatal:", "error:")
PACKAGE_MANAGER_ERROR_MARKERS = ("ERR",)


class StepName(enum.StrEnum):
    """Deployment steps, in execution order."""

    FETCH = "fetch"
    INSTALL = "install"
    BUILD = "build"


@dc.dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and captured streams of one command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def combined_output(self) -> str:
        """Return stdout followed by stderr, skipping empty streams."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class CommandRunner(typ.Protocol):
    """Callable that runs ``argv`` in ``cwd`` and reports the result."""

    def __call__(
        self,
        argv: typ.Sequence[str],
        cwd: Path,
        env: typ.Mapping[str, str] | None,
    ) -> CommandResult: ...


def run_command(
    argv: typ.Sequence[str],
    cwd: Path,
    env: typ.Mapping[str, str] | None,
) -> CommandResult:
    """Run ``argv`` to completion and capture its output.

    Raises
    ------
    OSError
        If the executable or working directory does not exist.

    """
    completed = subprocess.run(  # noqa: S603 - argv is built from config, no shell
        list(argv),
        cwd=cwd,
        env=dict(env) if env is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )
    return CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


@dc.dataclass(frozen=True, slots=True)
class StepResult:
    """Outcome of a single step."""

    name: StepName
    succeeded: bool
    output: str
    error: str | None = None


@dc.dataclass(frozen=True, slots=True)
class RunOutcome:
    """Terminal state of a run: success, or the step that failed and why."""

    succeeded: bool
    failed_step: StepName | None = None
    reason: str | None = None

    @classmethod
    def success(cls) -> RunOutcome:
        """Return the outcome of a run whose steps all succeeded."""
        return cls(succeeded=True)

    @classmethod
    def failed(cls, step: StepName, reason: str) -> RunOutcome:
        """Return the outcome of a run that stopped at ``step``."""
        return cls(succeeded=False, failed_step=step, reason=reason)


@dc.dataclass(slots=True)
class DeploymentRun:
    """One fetch/install/build execution."""

    started_at: dt.datetime
    steps: list[StepResult] = dc.field(default_factory=list)
    outcome: RunOutcome | None = None
    finished_at: dt.datetime | None = None

    @property
    def succeeded(self) -> bool:
        """Return whether the run finished and every step succeeded."""
        return self.outcome is not None and self.outcome.succeeded

    @property
    def step_names(self) -> list[StepName]:
        """Return the names of the steps that were attempted."""
        return [step.name for step in self.steps]


@dc.dataclass(frozen=True, slots=True)
class StepSpec:
    """What a step runs and how its output is judged."""

    name: StepName
    commands: tuple[tuple[str, ...], ...]
    error_markers: tuple[str, ...]
    started_message: str
    finished_message: str
    env: typ.Mapping[str, str] | None = None


def _first_marker(text: str, markers: tuple[str, ...]) -> str | None:
    return next((marker for marker in markers if marker in text), None)


class DeploymentPipeline:
    """Sequential fetch → install → build against a working directory.

    Parameters
    ----------
    work_dir
        Working copy to update and build.
    remote_branch
        Branch fetched from the remote.
    journal
        Receives every step transition and the final outcome.
    remote
        Remote name or URL to fetch from. Defaults to ``origin``.
    package_manager
        Executable for the install and build steps. Defaults to ``pnpm``.
    runner
        Runs commands; replaced with a fake in tests.

    """

    def __init__(  # noqa: PLR0913 - collaborators are injected individually
        self,
        work_dir: Path,
        remote_branch: str,
        journal: DeployLog,
        *,
        remote: str = "origin",
        package_manager: str = "pnpm",
        runner: CommandRunner = run_command,
        clock: typ.Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Configure the pipeline for one working copy and branch."""
        self.work_dir = work_dir
        self.remote_branch = remote_branch
        self.remote = remote
        self.package_manager = package_manager
        self._journal = journal
        self._runner = runner
        self._clock = clock or (lambda: dt.datetime.now(dt.UTC))

    @classmethod
    def from_config(
        cls,
        config: WebhookConfig,
        journal: DeployLog,
        *,
        runner: CommandRunner = run_command,
    ) -> DeploymentPipeline:
        """Build a pipeline for the configured working copy and branch."""
        return cls(
            config.blog_path,
            config.git_branch,
            journal,
            remote=config.git_repo or "origin",
            package_manager=config.package_manager,
            runner=runner,
        )

    def steps(self) -> tuple[StepSpec, ...]:
        """Return the step definitions in execution order."""
        git_env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        return (
            StepSpec(
                name=StepName.FETCH,
                commands=(
                    ("git", "fetch", self.remote, self.remote_branch),
                    ("git", "reset", "--hard", "FETCH_HEAD"),
                ),
                error_markers=GIT_ERROR_MARKERS,
                started_message=f"Fetching {self.remote}/{self.remote_branch}",
                finished_message="Fetch complete",
                env=git_env,
            ),
            StepSpec(
                name=StepName.INSTALL,
                commands=((self.package_manager, "install"),),
                error_markers=PACKAGE_MANAGER_ERROR_MARKERS,
                started_message=(
                    f"Installing dependencies: {self.package_manager} install"
                ),
                finished_message="Dependencies installed",
            ),
            StepSpec(
                name=StepName.BUILD,
                commands=((self.package_manager, "build"),),
                error_markers=PACKAGE_MANAGER_ERROR_MARKERS,
                started_message=f"Building site: {self.package_manager} build",
                finished_message="Build complete",
            ),
        )

    async def run(self) -> DeploymentRun:
        """Execute every step until one fails and return the run record.

        Never raises for step failures; they end up in ``run.outcome``.
        """
        run = DeploymentRun(started_at=self._clock())
        for spec in self.steps():
            result = await self._run_step(spec)
            run.steps.append(result)
            if not result.succeeded:
                reason = result.error or "unknown error"
                run.outcome = RunOutcome.failed(spec.name, reason)
                break
        else:
            run.outcome = RunOutcome.success()
        run.finished_at = self._clock()

        elapsed = (run.finished_at - run.started_at).total_seconds()
        if run.succeeded:
            await self._journal.success("Deployment complete in %.1fs", elapsed)
        else:
            outcome = typ.cast("RunOutcome", run.outcome)
            await self._journal.error(
                "Deployment failed at %s: %s", outcome.failed_step, outcome.reason
            )
        return run

    async def _run_step(self, spec: StepSpec) -> StepResult:
        await self._journal.info(spec.started_message)
        outputs: list[str] = []
        try:
            for argv in spec.commands:
                result = await self._invoke(spec, argv)
                if result.combined_output:
                    outputs.append(result.combined_output)
                self._check(spec, argv, result)
        except PipelineStepError as exc:
            await self._journal.error("Step %s failed: %s", spec.name, exc.reason)
            return StepResult(
                name=spec.name,
                succeeded=False,
                output="\n".join(outputs),
                error=exc.reason,
            )
        except Exception as exc:  # noqa: BLE001 - a step must never kill the server
            log_exception(logger, f"Unexpected error in step {spec.name}", exc)
            await self._journal.error("Step %s crashed: %s", spec.name, exc)
            return StepResult(
                name=spec.name,
                succeeded=False,
                output="\n".join(outputs),
                error=str(exc),
            )

        await self._journal.success(spec.finished_message)
        return StepResult(name=spec.name, succeeded=True, output="\n".join(outputs))

    async def _invoke(
        self, spec: StepSpec, argv: tuple[str, ...]
    ) -> CommandResult:
        try:
            return await asyncio.to_thread(self._runner, argv, self.work_dir, spec.env)
        except OSError as exc:
            reason = f"could not run {' '.join(argv)}: {exc}"
            raise PipelineStepError(spec.name, reason) from exc

    @staticmethod
    def _check(
        spec: StepSpec, argv: tuple[str, ...], result: CommandResult
    ) -> None:
        stderr = result.stderr.strip()
        if result.returncode != 0:
            detail = stderr or result.stdout.strip() or "no output"
            reason = (
                f"{' '.join(argv)} exited with status {result.returncode}: {detail}"
            )
            raise PipelineStepError(spec.name, reason, output=result.combined_output)
        if _first_marker(stderr, spec.error_markers) is not None:
            raise PipelineStepError(spec.name, stderr, output=result.combined_output)


async def run_pipeline(
    work_dir: Path,
    remote_branch: str,
    journal: DeployLog,
    *,
    runner: CommandRunner = run_command,
) -> DeploymentRun:
    """Run the default pipeline for ``work_dir`` and ``remote_branch``."""
    pipeline = DeploymentPipeline(work_dir, remote_branch, journal, runner=runner)
    return await pipeline.run()
