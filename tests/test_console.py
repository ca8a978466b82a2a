"""
Tests for console formatting and the final job report.
"""

from datetime import timedelta

import pytest

from afs_restore.models.entities import JobErrorDetail
from afs_restore.utils.console import format_duration, print_job_report

from .conftest import FIXED_NOW


@pytest.mark.parametrize("seconds,expected", [
    (None, "-"),
    (0, "00:00:00"),
    (59.6, "00:01:00"),
    (3725, "01:02:05"),
    (26 * 3600, "26:00:00"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


class TestJobReport:
    def test_completed_shows_duration(self, make_job, capsys):
        job = make_job("Completed", start_time=FIXED_NOW, end_time=FIXED_NOW + timedelta(minutes=5))

        print_job_report(job)

        out = capsys.readouterr().out
        assert "Job ID: job-1" in out
        assert "Duration: 00:05:00" in out
        assert "[SUCCESS] Restore completed" in out

    def test_completed_with_warnings(self, make_job, capsys):
        print_job_report(make_job("CompletedWithWarnings", remote_duration_seconds=30))

        out = capsys.readouterr().out
        assert "Duration: 00:00:30" in out
        assert "[WARNING] Restore completed with warnings" in out

    def test_failed_shows_errors_not_duration(self, make_job, capsys):
        job = make_job(
            "Failed",
            start_time=FIXED_NOW,
            end_time=FIXED_NOW + timedelta(minutes=1),
            error_details=[JobErrorDetail(code="UserErrorShareNotFound", message="Target share missing",
                                          recommendations=["Create the share"])]
        )

        print_job_report(job)

        out = capsys.readouterr().out
        assert "[ERROR] Restore failed" in out
        assert "UserErrorShareNotFound: Target share missing" in out
        assert "- Create the share" in out
        assert "Duration" not in out

    def test_cancelled(self, make_job, capsys):
        print_job_report(make_job("Cancelled"))

        out = capsys.readouterr().out
        assert "[WARNING] Restore job was cancelled" in out
        assert "Duration" not in out
