"""
Pytest configuration and shared fixtures for afs_restore tests.

Workflow and manager tests run against the in-memory backend with a fixed
clock and a no-op sleep, so no test talks to Azure or waits on real polls.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from afs_restore.core.manager import RestoreManager
from afs_restore.mock_backend import InMemoryBackupBackend
from afs_restore.models.entities import RecoveryPoint, RestoreJob
from afs_restore.restore_config import RestoreOperationConfig
from afs_restore.selection.selector import ScriptedInput, Selector

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ==============================================================================
# Environment
# ==============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep AFS_RESTORE_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("AFS_RESTORE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested waits instead of sleeping."""
    calls: List[float] = []

    def sleep(seconds: float) -> None:
        calls.append(seconds)

    sleep.calls = calls
    return sleep


# ==============================================================================
# Backend and Manager Fixtures
# ==============================================================================


@pytest.fixture
def backend(clock) -> InMemoryBackupBackend:
    """In-memory service with vault V1, shares Share1/Share2 and a week of recovery points."""
    return InMemoryBackupBackend.with_demo_data(clock=clock)


@pytest.fixture
def config() -> RestoreOperationConfig:
    return RestoreOperationConfig(poll_interval_seconds=10.0, max_wait_seconds=None)


@pytest.fixture
def manager(backend, config, no_sleep, clock) -> RestoreManager:
    return RestoreManager(backend, config=config, sleep=no_sleep, clock=clock)


@pytest.fixture
def vault(backend):
    return backend.vaults[0]


@pytest.fixture
def share1(backend, vault):
    return backend.items[vault.name][0]


@pytest.fixture
def latest_point(backend, share1) -> RecoveryPoint:
    return max(backend.recovery_points[share1.name], key=lambda p: p.time)


# ==============================================================================
# Helpers
# ==============================================================================


@pytest.fixture
def scripted_selector():
    """Factory for a Selector that replays the given answers."""
    def make(answers) -> Selector:
        return Selector(ScriptedInput(answers))
    return make


@pytest.fixture
def make_job():
    """Factory for RestoreJob records."""
    def make(status: str = "InProgress", job_id: str = "job-1", **kwargs) -> RestoreJob:
        return RestoreJob(job_id=job_id, status=status, raw_status=status, **kwargs)
    return make


class JobSequence:
    """
    Fetcher that returns jobs with the given statuses in order; the last status repeats.
    """

    def __init__(self, statuses, job_id: str = "job-1"):
        self.statuses = list(statuses)
        self.job_id = job_id
        self.calls = 0
        self.start_time = FIXED_NOW

    def __call__(self) -> RestoreJob:
        status = self.statuses[min(self.calls, len(self.statuses) - 1)]
        self.calls += 1
        return RestoreJob(
            job_id=self.job_id,
            status=status,
            raw_status=status,
            start_time=self.start_time,
            end_time=self.start_time + timedelta(minutes=self.calls) if status in ("Completed", "Failed") else None
        )


@pytest.fixture
def job_sequence():
    return JobSequence
