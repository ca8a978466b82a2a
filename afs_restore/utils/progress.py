"""
Progress Tracking Utilities

Tracks the observation of a restore job: poll count, status transitions and
elapsed time. The service does not report byte-level progress for file share
restores, so progress is expressed as the sequence of observed statuses.
"""

import logging
import time
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional, Tuple

from ..models.entities import JobStatus, RestoreJob

logger = logging.getLogger(__name__)


class JobProgressTracker:
    """
    Track the observation of one restore job.

    Example:
        ```python
        tracker = JobProgressTracker(job_id="8a1c...")
        tracker.start_tracking()

        tracker.record_poll(job)
        print(f"Polls: {tracker.polls}, status: {tracker.current_status}")
        print(f"Elapsed: {tracker.elapsed_time_seconds:.1f}s")
        ```
    """

    # Number of status transitions kept for display
    TRANSITION_HISTORY_SIZE = 20

    def __init__(self, job_id: str):
        """
        Initialize progress tracker.

        Args:
            job_id: Identifier of the job being observed
        """
        self.job_id = job_id

        self.polls = 0
        self.current_status: Optional[JobStatus] = None
        self.last_job: Optional[RestoreJob] = None
        self.start_time: Optional[datetime] = None
        self._started_at: Optional[float] = None

        self.transitions: Deque[Tuple[datetime, JobStatus]] = deque(maxlen=self.TRANSITION_HISTORY_SIZE)

        logger.debug(f"Progress tracker initialized for job {job_id}")

    def start_tracking(self) -> None:
        """Start tracking; resets poll count and history."""
        self.start_time = datetime.now()
        self._started_at = time.monotonic()
        self.polls = 0
        self.current_status = None
        self.last_job = None
        self.transitions.clear()

        logger.info(f"Started tracking job {self.job_id}")

    def record_poll(self, job: RestoreJob) -> bool:
        """
        Record one observation of the job.

        Args:
            job: Job as returned by the poll

        Returns:
            True if the status changed since the previous poll
        """
        now = datetime.now()
        if self.start_time is None:
            self.start_time = now
            self._started_at = time.monotonic()
        self.polls += 1
        self.last_job = job

        changed = job.status != self.current_status
        if changed:
            self.transitions.append((now, job.status))
            logger.info(
                f"Job {self.job_id} status: {self.current_status.value if self.current_status else '-'} "
                f"-> {job.display_status}"
            )
        self.current_status = job.status

        logger.debug(f"Poll {self.polls} of job {self.job_id}: {job.display_status}")
        return changed

    @property
    def status_history(self) -> List[JobStatus]:
        """Statuses in the order they were observed, one entry per change."""
        return [status for _, status in self.transitions]

    @property
    def elapsed_time_seconds(self) -> float:
        """Get elapsed time since start in seconds."""
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def is_complete(self) -> bool:
        """Check if the last observed status is terminal."""
        return self.current_status is not None and self.current_status.is_terminal
