"""
Tests for entity, parameter and result models.
"""

from datetime import timedelta

import pytest
from pydantic import TypeAdapter, ValidationError

from afs_restore.models.entities import (
    ConflictPolicy,
    JobErrorDetail,
    JobStatus,
    RestoreJob,
    RestoreScope,
    SourceFileType,
)
from afs_restore.models.parameters import (
    AlternateLocation,
    Destination,
    OriginalLocation,
    RestoreRequest,
    RestoreSelection,
)
from afs_restore.models.results import JobWaitResult, StopReason

from .conftest import FIXED_NOW


class TestJobStatus:
    """Service status strings map onto JobStatus."""

    @pytest.mark.parametrize("raw,expected", [
        ("InProgress", JobStatus.IN_PROGRESS),
        ("inprogress", JobStatus.IN_PROGRESS),
        ("In Progress", JobStatus.IN_PROGRESS),
        ("Completed", JobStatus.COMPLETED),
        ("CompletedWithWarnings", JobStatus.COMPLETED_WITH_WARNINGS),
        ("Cancelling", JobStatus.CANCELLING),
        ("Cancelled", JobStatus.CANCELLED),
        ("Queued", JobStatus.QUEUED),
        ("Rehydrating", JobStatus.UNKNOWN),
        (None, JobStatus.UNKNOWN),
    ])
    def test_from_service(self, raw, expected):
        assert JobStatus.from_service(raw) == expected

    def test_terminal_statuses(self):
        terminal = {s for s in JobStatus if s.is_terminal}
        assert terminal == {
            JobStatus.COMPLETED,
            JobStatus.COMPLETED_WITH_WARNINGS,
            JobStatus.FAILED,
            JobStatus.CANCELLED,
        }


class TestRestoreJob:
    """Derived job properties."""

    def test_status_parsed_from_string(self):
        job = RestoreJob(job_id="j", status="completed")
        assert job.status == JobStatus.COMPLETED
        assert job.is_terminal and job.is_successful

    def test_unknown_status_kept_raw(self):
        job = RestoreJob(job_id="j", status="Paused", raw_status="Paused")
        assert job.status == JobStatus.UNKNOWN
        assert job.display_status == "Paused"
        assert not job.is_terminal

    def test_duration_from_times(self):
        job = RestoreJob(job_id="j", status="Completed", start_time=FIXED_NOW,
                         end_time=FIXED_NOW + timedelta(minutes=5), remote_duration_seconds=1.0)
        assert job.duration_seconds == 300.0

    def test_duration_falls_back_to_remote(self):
        job = RestoreJob(job_id="j", status="Completed", remote_duration_seconds=42.0)
        assert job.duration_seconds == 42.0

    def test_error_summary(self):
        job = RestoreJob(job_id="j", status="Failed", error_details=[
            JobErrorDetail(code="E1", message="first"),
            JobErrorDetail(message="second"),
        ])
        assert job.is_failed
        assert job.error_summary == "E1: first; second"


class TestDestination:
    """Tagged-union destination."""

    def test_blank_folder_is_none(self):
        destination = AlternateLocation(storage_account="sa2", share_name="share2", target_folder="  ")
        assert destination.target_folder is None

    @pytest.mark.parametrize("field", ["storage_account", "share_name"])
    def test_alternate_requires_account_and_share(self, field):
        values = {"storage_account": "sa2", "share_name": "share2", field: "   "}
        with pytest.raises(ValidationError):
            AlternateLocation(**values)

    def test_discriminated_by_kind(self):
        adapter = TypeAdapter(Destination)
        assert isinstance(adapter.validate_python({"kind": "Original"}), OriginalLocation)
        alternate = adapter.validate_python(
            {"kind": "Alternate", "storage_account": "sa2", "share_name": "share2"}
        )
        assert isinstance(alternate, AlternateLocation)
        assert alternate.is_alternate


class TestRestoreSelection:
    """Paths are present exactly when the scope is Specific."""

    def test_specific_requires_paths(self, vault, share1, latest_point):
        with pytest.raises(ValidationError):
            RestoreSelection(vault=vault, item=share1, recovery_point=latest_point, scope=RestoreScope.SPECIFIC)

    def test_full_rejects_paths(self, vault, share1, latest_point):
        with pytest.raises(ValidationError):
            RestoreSelection(vault=vault, item=share1, recovery_point=latest_point,
                             scope=RestoreScope.FULL, paths=("a.txt",))

    def test_defaults(self, vault, share1, latest_point):
        selection = RestoreSelection(vault=vault, item=share1, recovery_point=latest_point)
        assert selection.scope == RestoreScope.FULL
        assert selection.paths == ()
        assert isinstance(selection.destination, OriginalLocation)
        assert selection.conflict_policy == ConflictPolicy.OVERWRITE

    def test_frozen(self, vault, share1, latest_point):
        selection = RestoreSelection(vault=vault, item=share1, recovery_point=latest_point)
        with pytest.raises(ValidationError):
            selection.scope = RestoreScope.SPECIFIC


class TestRestoreRequest:
    """Conditional request fields."""

    def test_full_original_has_no_optional_fields(self, vault, share1, latest_point):
        selection = RestoreSelection(vault=vault, item=share1, recovery_point=latest_point)
        request = RestoreRequest.from_selection(selection)

        assert request.to_service_fields() == {
            "recovery_point_id": latest_point.id,
            "conflict_policy": "Overwrite",
            "scope": "Full",
        }
        assert not request.is_item_level
        assert not request.is_alternate_location

    def test_specific_alternate_without_folder(self, vault, share1, latest_point):
        selection = RestoreSelection(
            vault=vault, item=share1, recovery_point=latest_point,
            scope=RestoreScope.SPECIFIC, paths=("docs/a.txt", "images/*"),
            destination=AlternateLocation(storage_account="sa2", share_name="share2", target_folder=""),
            conflict_policy=ConflictPolicy.SKIP
        )
        fields = RestoreRequest.from_selection(selection).to_service_fields()

        assert fields["source_file_paths"] == ["docs/a.txt", "images/*"]
        assert fields["source_file_type"] == SourceFileType.FILE.value
        assert fields["target_storage_account"] == "sa2"
        assert fields["target_file_share"] == "share2"
        assert fields["conflict_policy"] == "Skip"
        assert "target_folder" not in fields

    def test_alternate_with_folder(self, vault, share1, latest_point):
        selection = RestoreSelection(
            vault=vault, item=share1, recovery_point=latest_point,
            destination=AlternateLocation(storage_account="sa2", share_name="share2", target_folder="restored")
        )
        request = RestoreRequest.from_selection(selection)
        assert request.target_folder == "restored"
        assert request.source_file_paths is None


class TestResults:
    def test_reached_terminal(self, make_job):
        assert JobWaitResult(job=make_job("Completed"), stop_reason=StopReason.TERMINAL).reached_terminal
        assert not JobWaitResult(job=make_job(), stop_reason=StopReason.TIMEOUT).reached_terminal
