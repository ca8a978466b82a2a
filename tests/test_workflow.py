"""
End-to-end tests of the interactive restore flow over the in-memory backend.
"""

import json
import threading
from unittest.mock import MagicMock

import pytest

from afs_restore.core.manager import RestoreManager
from afs_restore.core.workflow import RestoreWorkflow
from afs_restore.exceptions import BackupServiceError, JobStatusError, ServiceConnectionError
from afs_restore.models.entities import ConflictPolicy, JobErrorDetail, JobStatus, RestoreScope
from afs_restore.models.results import StopReason
from afs_restore.restore_config import RestoreOperationConfig

# vault, share, recovery point, scope, destination, conflict policy, confirm, export
FULL_ORIGINAL_ANSWERS = ["1", "1", "1", "1", "1", "1", "y", "n"]

# share, recovery point, Specific, two paths, Alternate sa2/share2 at the root, Skip, confirm, export
SPECIFIC_ALTERNATE_ANSWERS = [
    "1", "1", "2", "docs/a.txt", "images/*", "",
    "2", "sa2", "share2", "", "2", "y", "n",
]


@pytest.fixture
def run_workflow(manager, scripted_selector):
    def run(answers, **kwargs):
        workflow = RestoreWorkflow(manager, scripted_selector(answers), **kwargs)
        return workflow.run()
    return run


# ==============================================================================
# Complete Flows
# ==============================================================================


class TestCompleteFlows:
    def test_full_share_to_original_location(self, run_workflow, backend, latest_point, no_sleep, capsys):
        result = run_workflow(FULL_ORIGINAL_ANSWERS)

        assert result.stop_reason == StopReason.TERMINAL
        assert result.job.status == JobStatus.COMPLETED
        assert len(backend.submitted) == 1
        assert backend.last_request.to_service_fields() == {
            "recovery_point_id": latest_point.id,
            "conflict_policy": "Overwrite",
            "scope": "Full",
        }
        assert backend.poll_count == 3
        assert no_sleep.calls == [10.0, 10.0]

        out = capsys.readouterr().out
        assert "Destination: Original location" in out
        assert "Observed statuses: InProgress, Completed" in out
        assert f"Restore job started: {backend.submitted[0].job_id}" in out
        assert "[SUCCESS] Restore completed" in out
        assert "Duration:" in out

    def test_specific_paths_to_alternate_location_failing(self, run_workflow, backend, capsys):
        backend.status_sequence = ["InProgress", "Failed"]
        backend.job_errors = [JobErrorDetail(code="UserErrorTargetShareNotFound",
                                             message="The target file share does not exist")]

        result = run_workflow(SPECIFIC_ALTERNATE_ANSWERS, vault_name="V1")

        assert result.job.is_failed
        request = backend.last_request
        assert request.scope == RestoreScope.SPECIFIC
        assert request.source_file_paths == ["docs/a.txt", "images/*"]
        assert request.target_storage_account == "sa2"
        assert request.target_file_share == "share2"
        assert request.target_folder is None
        assert request.conflict_policy == ConflictPolicy.SKIP

        out = capsys.readouterr().out
        assert "Alternate location (sa2/share2)" in out
        assert "[ERROR] Restore failed" in out
        assert "UserErrorTargetShareNotFound" in out
        assert "Duration:" not in out

    def test_invalid_menu_answer_reprompts(self, run_workflow, backend, capsys):
        result = run_workflow(["0", "abc"] + FULL_ORIGINAL_ANSWERS)

        assert result.reached_terminal
        assert "Enter a number between 1 and 1" in capsys.readouterr().out

    def test_export(self, run_workflow, tmp_path, capsys):
        path = tmp_path / "out" / "job.json"

        result = run_workflow(FULL_ORIGINAL_ANSWERS[:-1] + ["y", str(path)])

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["job_id"] == result.job.job_id
        assert data["status"] == "Completed"
        assert "Job details written to" in capsys.readouterr().out

    def test_export_failure_is_reported(self, run_workflow, tmp_path, capsys):
        result = run_workflow(FULL_ORIGINAL_ANSWERS[:-1] + ["y", str(tmp_path)])

        assert result.reached_terminal
        assert "[ERROR] Export failed" in capsys.readouterr().out


# ==============================================================================
# Early Returns
# ==============================================================================


class TestEarlyReturns:
    def test_vault_not_found(self, run_workflow, backend, capsys):
        assert run_workflow([], vault_name="missing") is None

        out = capsys.readouterr().out
        assert "Vault 'missing' not found" in out
        assert "Available vaults: V1" in out
        assert backend.submitted == []

    def test_no_vaults(self, run_workflow, capsys):
        assert run_workflow([], resource_group="rg-empty") is None
        assert "No Recovery Services vaults found in resource group 'rg-empty'" in capsys.readouterr().out

    def test_no_file_shares(self, run_workflow, backend, capsys):
        backend.items = {}
        assert run_workflow(["1"]) is None
        assert "No protected file shares found in vault 'V1'" in capsys.readouterr().out

    def test_no_recovery_points(self, run_workflow, backend, capsys):
        backend.recovery_points = {}
        assert run_workflow(["1", "1"]) is None
        assert "No recovery points for 'Share1' in the last 30 days" in capsys.readouterr().out

    def test_lookup_failure(self, run_workflow, backend, capsys):
        def fail(vault):
            raise BackupServiceError("list_file_share_items failed: Forbidden", vault_name=vault.name)

        backend.list_file_share_items = fail

        assert run_workflow(["1"]) is None
        assert "Backup service request failed: list_file_share_items failed: Forbidden" in capsys.readouterr().out

    def test_declined_confirmation(self, run_workflow, backend, capsys):
        assert run_workflow(FULL_ORIGINAL_ANSWERS[:-2] + ["n"]) is None
        assert backend.submitted == []
        assert "Restore cancelled. Nothing was submitted." in capsys.readouterr().out

    def test_submission_rejected(self, run_workflow, backend, capsys):
        backend.submission_error = "Another restore is already running for this share"

        assert run_workflow(FULL_ORIGINAL_ANSWERS[:-1]) is None
        assert backend.poll_count == 0
        assert "Restore submission failed: Another restore is already running" in capsys.readouterr().out

    def test_unregistered_storage_account(self, run_workflow, backend, capsys):
        answers = ["1", "1", "1", "1", "2", "sa9", "share2", "", "1", "y"]

        assert run_workflow(answers) is None
        assert backend.submitted == []
        assert "Storage account 'sa9' is not registered" in capsys.readouterr().out

    def test_answers_exhausted(self, run_workflow, backend, capsys):
        assert run_workflow(["1", "1"]) is None
        assert backend.submitted == []
        assert "Input ended. No restore was submitted." in capsys.readouterr().out

    def test_answers_exhausted_after_submission(self, run_workflow, backend, capsys):
        assert run_workflow(FULL_ORIGINAL_ANSWERS[:-1]) is None
        assert len(backend.submitted) == 1
        assert f"Restore job {backend.submitted[0].job_id} was already submitted" in capsys.readouterr().out


# ==============================================================================
# Session and Subscription
# ==============================================================================


class TestSession:
    @pytest.fixture
    def session(self):
        session = MagicMock()
        session.subscription_id = None
        return session

    def test_connection_failure(self, backend, session, scripted_selector, capsys):
        session.connect.side_effect = ServiceConnectionError("Authentication failed: no credential available")
        manager = RestoreManager(backend, session=session)

        assert RestoreWorkflow(manager, scripted_selector([])).run() is None
        assert "Could not connect: Authentication failed" in capsys.readouterr().out
        session.use_subscription.assert_not_called()

    def test_subscription_prompted_when_missing(self, backend, session, config, no_sleep, clock, scripted_selector):
        manager = RestoreManager(backend, config=config, session=session, sleep=no_sleep, clock=clock)

        result = RestoreWorkflow(manager, scripted_selector(["1"] + FULL_ORIGINAL_ANSWERS)).run()

        assert result.reached_terminal
        session.use_subscription.assert_called_once_with("00000000-0000-0000-0000-000000000000")

    def test_subscription_listing_failure(self, backend, session, scripted_selector, capsys):
        def fail():
            raise ServiceConnectionError("Failed to list subscriptions: forbidden")

        backend.list_subscriptions = fail
        manager = RestoreManager(backend, session=session)

        assert RestoreWorkflow(manager, scripted_selector([])).run() is None
        assert "Failed to list subscriptions: forbidden" in capsys.readouterr().out

    def test_subscription_given(self, backend, session, config, no_sleep, clock, scripted_selector):
        manager = RestoreManager(backend, config=config, session=session, sleep=no_sleep, clock=clock)

        result = RestoreWorkflow(manager, scripted_selector(FULL_ORIGINAL_ANSWERS), subscription_id="sub-1").run()

        assert result.reached_terminal
        session.use_subscription.assert_called_once_with("sub-1")


# ==============================================================================
# Watching the Job
# ==============================================================================


class TestWatching:
    def test_status_error_stops_watching(self, run_workflow, backend, capsys):
        def fail(vault, job_id):
            raise JobStatusError("Failed to read job status: timeout", vault_name=vault.name, job_id=job_id)

        backend.get_job = fail

        assert run_workflow(FULL_ORIGINAL_ANSWERS[:-1]) is None
        assert "Could not read the status of job" in capsys.readouterr().out

    def test_max_polls_reported(self, backend, no_sleep, clock, scripted_selector, capsys):
        backend.status_sequence = ["InProgress"]
        config = RestoreOperationConfig(max_wait_seconds=None, max_polls=2)
        manager = RestoreManager(backend, config=config, sleep=no_sleep, clock=clock)

        result = RestoreWorkflow(manager, scripted_selector(FULL_ORIGINAL_ANSWERS)).run()

        assert result.stop_reason == StopReason.MAX_POLLS
        out = capsys.readouterr().out
        assert "Maximum number of status checks reached" in out
        assert "Restore completed" not in out

    def test_cancel_stops_observation_only(self, manager, backend, scripted_selector, capsys):
        backend.status_sequence = ["InProgress"]
        cancel_event = threading.Event()
        workflow = RestoreWorkflow(manager, scripted_selector(FULL_ORIGINAL_ANSWERS), cancel_event=cancel_event)
        workflow.cancel_monitoring()

        result = workflow.run()

        assert result.stop_reason == StopReason.CANCELLED
        assert result.polls == 1
        assert workflow.job_id == backend.submitted[0].job_id
        assert not workflow.monitoring
        assert "It keeps running in the backup service" in capsys.readouterr().out
