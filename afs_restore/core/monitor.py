"""
Job Monitor

Observes a restore job by polling the service until the job reaches a
terminal status or observation is bounded or cancelled.

Polling is driven by tenacity: the "retry" condition is "the job is not
finished yet", the wait strategy is the configured interval (fixed or with
backoff) and the stop strategy combines the total-wait bound, the poll-count
bound and the cancellation event. A wait that would end past the total-wait
bound is not started. Errors raised while fetching the job are
not retried; they propagate to the caller.
"""

import logging
import threading
from typing import Callable, Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_before_delay,
    stop_when_event_set,
    wait_exponential,
    wait_fixed,
)

from ..config.settings import UnknownStatusPolicy
from ..models.entities import JobStatus, RestoreJob
from ..models.results import JobWaitResult, StopReason
from ..restore_config import RestoreOperationConfig
from ..utils.progress import JobProgressTracker

logger = logging.getLogger(__name__)

JobFetcher = Callable[[], RestoreJob]
JobCallback = Callable[[RestoreJob], None]


class JobMonitor:
    """
    Poll a restore job until it finishes.

    Cancelling the monitor stops observation only; the remote job keeps
    running. The sleep between polls wakes immediately on cancellation.

    Example:
        ```python
        monitor = JobMonitor(config)
        result = monitor.wait(
            lambda: backend.get_job(vault, job_id),
            job_id=job_id,
            on_update=lambda job: print(job.display_status)
        )
        if result.reached_terminal:
            print(result.job.status)
        ```
    """

    def __init__(
        self,
        config: Optional[RestoreOperationConfig] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], None]] = None
    ):
        """
        Initialize job monitor.

        Args:
            config: Restore operation configuration (polling cadence and bounds)
            cancel_event: Event that cancels observation when set
            sleep: Sleep function between polls; defaults to waiting on the cancel event
        """
        self.config = config or RestoreOperationConfig()
        self.cancel_event = cancel_event or threading.Event()
        self._sleep = sleep or self.cancel_event.wait

    def cancel(self) -> None:
        """Stop observing at the next opportunity."""
        logger.info("Job observation cancelled")
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def _wait_strategy(self):
        config = self.config
        if config.uses_backoff:
            return wait_exponential(
                multiplier=config.poll_interval_seconds,
                exp_base=config.backoff_factor,
                max=config.max_poll_interval_seconds
            )
        return wait_fixed(config.poll_interval_seconds)

    def _stop_strategy(self):
        stop = stop_when_event_set(self.cancel_event)
        if self.config.max_wait_seconds is not None:
            stop = stop | stop_before_delay(self.config.max_wait_seconds)
        if self.config.max_polls is not None:
            stop = stop | stop_after_attempt(self.config.max_polls)
        return stop

    def _keep_polling(self, job: RestoreJob) -> bool:
        if job.is_terminal:
            return False
        if job.status == JobStatus.UNKNOWN:
            return self.config.unknown_status_policy == UnknownStatusPolicy.KEEP_POLLING
        return True

    @staticmethod
    def _log_next_poll(retry_state) -> None:
        logger.debug(
            f"Job not finished after poll {retry_state.attempt_number}; "
            f"next poll in {retry_state.next_action.sleep:.1f}s"
        )

    def wait(
        self,
        fetch_job: JobFetcher,
        job_id: str,
        on_update: Optional[JobCallback] = None
    ) -> JobWaitResult:
        """
        Poll until the job is terminal or observation stops.

        Args:
            fetch_job: Returns the current job record; called once per poll
            job_id: Identifier of the job, used for tracking and logs
            on_update: Called with every observed job

        Returns:
            JobWaitResult with the last observed job and why polling stopped

        Raises:
            Whatever `fetch_job` raises; fetch errors are not retried
        """
        tracker = JobProgressTracker(job_id)
        tracker.start_tracking()

        def poll() -> RestoreJob:
            if self.cancelled and tracker.last_job is not None:
                return tracker.last_job
            job = fetch_job()
            tracker.record_poll(job)
            if on_update is not None:
                on_update(job)
            return job

        retryer = Retrying(
            retry=retry_if_result(self._keep_polling),
            wait=self._wait_strategy(),
            stop=self._stop_strategy(),
            sleep=self._sleep,
            before_sleep=self._log_next_poll
        )

        logger.info(f"Monitoring job {job_id} ({self.config!r})")
        try:
            job = retryer(poll)
            if tracker.is_complete():
                reason = StopReason.TERMINAL
            else:
                reason = StopReason.UNKNOWN_STATUS
                logger.warning(f"Job {job_id} reported unrecognised status '{job.raw_status}'; stopped polling")
        except RetryError as e:
            job = e.last_attempt.result()
            if self.cancelled:
                reason = StopReason.CANCELLED
            elif self.config.max_polls is not None and tracker.polls >= self.config.max_polls:
                reason = StopReason.MAX_POLLS
            else:
                reason = StopReason.TIMEOUT
            logger.warning(f"Stopped monitoring job {job_id} before it finished: {reason.value}")

        elapsed = tracker.elapsed_time_seconds
        logger.info(
            f"Job {job_id} observation ended: {reason.value} after {tracker.polls} polls "
            f"({elapsed:.1f}s), last status {job.display_status}"
        )
        return JobWaitResult(
            job=job,
            stop_reason=reason,
            polls=tracker.polls,
            elapsed_seconds=elapsed,
            status_history=tracker.status_history
        )
