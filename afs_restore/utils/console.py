"""
Console Output Helpers

Operator-facing output for the restore flow: section banners, step headers,
status-prefixed lines and the final job report.
"""

from datetime import datetime
from typing import Any, Optional

from ..models.entities import JobStatus, RestoreJob


def print_section(title: str, width: int = 60):
    """
    Print a formatted section header.

    Args:
        title: Section title
        width: Width of the header line
    """
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width)


def print_step(step_num: int, description: str):
    """Print a step description."""
    print(f"\n[Step {step_num}] {description}")


def print_success(message: str):
    """Print a success message."""
    print(f"[SUCCESS] {message}")


def print_error(message: str):
    """Print an error message."""
    print(f"[ERROR] {message}")


def print_warning(message: str):
    """Print a warning message."""
    print(f"[WARNING] {message}")


def print_note(message: str):
    """Print an informational note."""
    print(f"[NOTE] {message}")


def print_info(key: str, value: Any):
    """Print information in key-value format."""
    print(f"  • {key}: {value}")


def format_duration(seconds: Optional[float]) -> str:
    """
    Format a duration as HH:MM:SS.

    Hours are not wrapped at 24, so a 26 hour job reads 26:00:00.
    """
    if seconds is None:
        return "-"
    total = int(round(max(0.0, seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def print_job_progress(job: RestoreJob):
    """Print one poll observation."""
    print(f"  [{datetime.now().strftime('%H:%M:%S')}] Job {job.job_id}: {job.display_status}")


def print_job_report(job: RestoreJob):
    """
    Print the final state of a restore job.

    Duration is shown only for jobs that completed; error details only for
    jobs that failed.
    """
    print_section("Restore Job Result")
    print_info("Job ID", job.job_id)
    print_info("Status", job.display_status)
    print_info("Start time", format_timestamp(job.start_time))
    print_info("End time", format_timestamp(job.end_time))

    if job.is_successful:
        print_info("Duration", format_duration(job.duration_seconds))
        if job.status == JobStatus.COMPLETED_WITH_WARNINGS:
            print_warning("Restore completed with warnings")
        else:
            print_success("Restore completed")
    elif job.is_failed:
        print_error("Restore failed")
        if not job.error_details:
            print_info("Error", "The service reported no error details")
        for error in job.error_details:
            print_info("Error", str(error))
            for recommendation in error.recommendations:
                print(f"      - {recommendation}")
    elif job.is_cancelled:
        print_warning("Restore job was cancelled")
