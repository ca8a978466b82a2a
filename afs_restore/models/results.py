"""
Restore Results

Outcome models for submitting a restore and for waiting on its job.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from .entities import JobStatus, RestoreJob
from .parameters import RestoreRequest


class SubmissionResult(BaseModel):
    """
    Result of submitting a restore request.

    Attributes:
        success: Whether the service accepted the request and created a job
        job_id: Identifier of the created job (success only)
        request: The request that was (or would have been) sent
        error_message: Error message if submission failed
        execution_time_ms: Time spent submitting, in milliseconds
    """
    success: bool = Field(..., description="Whether a job was created")
    job_id: Optional[str] = Field(default=None, description="Created job identifier")
    request: Optional[RestoreRequest] = Field(default=None, description="Submitted request")
    error_message: Optional[str] = Field(default=None, description="Error message if failed")
    execution_time_ms: float = Field(default=0.0, ge=0.0, description="Submission time in milliseconds")


class StopReason(str, Enum):
    """
    Why the job monitor stopped polling.

    Reasons:
        TERMINAL: The job reached a terminal status
        TIMEOUT: The maximum total wait elapsed
        MAX_POLLS: The maximum number of polls was reached
        CANCELLED: Observation was cancelled by the caller
        UNKNOWN_STATUS: An unrecognised status was seen and the policy says stop
    """
    TERMINAL = "TERMINAL"
    TIMEOUT = "TIMEOUT"
    MAX_POLLS = "MAX_POLLS"
    CANCELLED = "CANCELLED"
    UNKNOWN_STATUS = "UNKNOWN_STATUS"


class JobWaitResult(BaseModel):
    """
    Result of observing a restore job.

    Attributes:
        job: Last observed job record
        stop_reason: Why polling stopped
        polls: Number of status requests made
        elapsed_seconds: Wall time spent observing
        status_history: Statuses in the order they were observed, one entry per change
    """
    job: RestoreJob = Field(..., description="Last observed job")
    stop_reason: StopReason = Field(..., description="Why polling stopped")
    polls: int = Field(default=0, ge=0, description="Status requests made")
    elapsed_seconds: float = Field(default=0.0, ge=0.0, description="Time spent observing")
    status_history: List[JobStatus] = Field(default_factory=list, description="Observed status transitions")

    @property
    def reached_terminal(self) -> bool:
        """Check if the job itself finished, as opposed to observation stopping early."""
        return self.stop_reason == StopReason.TERMINAL
