"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import datetime as dt
import typing as typ

import falcon.testing
import pytest

from astrohook.api.app import AppDependencies, create_app
from astrohook.config import WebhookConfig
from astrohook.journal import DeployJournal
from tests.helpers.deliveries import SECRET
from tests.helpers.fakes import FakeRunner, RecordingScheduler

if typ.TYPE_CHECKING:
    from pathlib import Path


FIXED_NOW = dt.datetime(2024, 7, 8, 9, 15, 2, 113000, tzinfo=dt.UTC)


@pytest.fixture
def config(tmp_path: Path) -> WebhookConfig:
    """Return a configuration rooted in the test's temporary directory."""
    return WebhookConfig(
        secret=SECRET,
        blog_path=tmp_path / "blog",
        git_branch="main",
        log_file=tmp_path / "logs" / "webhook.log",
    )


@pytest.fixture
def journal(config: WebhookConfig) -> DeployJournal:
    """Return a journal writing to the configured log file at a fixed time."""
    return DeployJournal(config.log_file, clock=lambda: FIXED_NOW)


@pytest.fixture
def scheduler() -> RecordingScheduler:
    """Return a scheduler that records accepted events."""
    return RecordingScheduler()


@pytest.fixture
def runner() -> FakeRunner:
    """Return a command runner where every command succeeds silently."""
    return FakeRunner()


@pytest.fixture
def client(
    config: WebhookConfig,
    journal: DeployJournal,
    scheduler: RecordingScheduler,
) -> falcon.testing.TestClient:
    """Create a test client whose deployments are only recorded."""
    deps = AppDependencies(config=config, journal=journal, scheduler=scheduler)
    return falcon.testing.TestClient(create_app(deps))
