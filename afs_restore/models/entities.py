"""
Restore Entities

Defines the data models observed from the backup service: subscriptions,
vaults, protected file shares, recovery points and restore jobs, together
with the enums that classify them.

These models use Pydantic for validation and are built by the backends from
the raw service responses.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field, field_validator


class JobStatus(str, Enum):
    """
    Status of a restore job as reported by the backup service.

    States:
        QUEUED: Job accepted but not started
        IN_PROGRESS: Job is running
        COMPLETED: Job finished successfully
        COMPLETED_WITH_WARNINGS: Job finished, some items reported warnings
        FAILED: Job failed; error details are attached to the job
        CANCELLING: Cancellation requested, job still winding down
        CANCELLED: Job was cancelled
        UNKNOWN: Any status value this tool does not recognise
    """
    QUEUED = "Queued"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    COMPLETED_WITH_WARNINGS = "CompletedWithWarnings"
    FAILED = "Failed"
    CANCELLING = "Cancelling"
    CANCELLED = "Cancelled"
    UNKNOWN = "Unknown"

    @classmethod
    def from_service(cls, value: Optional[str]) -> "JobStatus":
        """Map a raw service status string onto a JobStatus, case-insensitively."""
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, cls):
            return value
        normalized = str(value).replace(" ", "").lower()
        for status in cls:
            if status.value.lower() == normalized:
                return status
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        """Whether the service will report no further transitions."""
        return self in TERMINAL_JOB_STATUSES


TERMINAL_JOB_STATUSES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.COMPLETED_WITH_WARNINGS,
    JobStatus.FAILED,
    JobStatus.CANCELLED,
})


class RestoreScope(str, Enum):
    """
    What part of the file share is restored.

    Types:
        FULL: The entire share
        SPECIFIC: Only the listed files or folders
    """
    FULL = "Full"
    SPECIFIC = "Specific"


class ConflictPolicy(str, Enum):
    """Rule applied when a restored file already exists at the destination."""
    OVERWRITE = "Overwrite"
    SKIP = "Skip"


class SourceFileType(str, Enum):
    """Marker sent with each source path of an item-level restore."""
    FILE = "File"
    DIRECTORY = "Directory"


class DestinationKind(str, Enum):
    """Discriminator for the restore destination union."""
    ORIGINAL = "Original"
    ALTERNATE = "Alternate"


class BackendType(str, Enum):
    """
    Backup service backend used by the restore manager.

    Types:
        AZURE: Azure Recovery Services through the management SDKs
        IN_MEMORY: Seeded in-memory service for demos and dry runs
    """
    AZURE = "azure"
    IN_MEMORY = "in_memory"


class Subscription(BaseModel):
    """An Azure subscription visible to the signed-in identity."""
    subscription_id: str = Field(..., description="Subscription GUID")
    display_name: str = Field(default="", description="Subscription display name")
    state: Optional[str] = Field(default=None, description="Subscription state (Enabled, Disabled, ...)")


class Vault(BaseModel):
    """
    A Recovery Services vault.

    Attributes:
        id: Full ARM resource ID of the vault
        name: Vault name
        resource_group: Resource group containing the vault
        location: Azure region of the vault
    """
    id: str = Field(default="", description="ARM resource ID")
    name: str = Field(..., description="Vault name")
    resource_group: str = Field(..., description="Resource group name")
    location: Optional[str] = Field(default=None, description="Azure region")


class ProtectedItem(BaseModel):
    """
    A file share registered for backup under a vault.

    Attributes:
        id: Full ARM resource ID of the protected item
        name: Service-side item name (e.g. "AzureFileShare;share1")
        friendly_name: File share name as shown to operators
        container_name: Protection container (storage account registration)
        fabric_name: Backup fabric the container belongs to
        storage_account_name: Storage account hosting the share
        source_resource_id: ARM resource ID of that storage account
        protection_state: Protection state reported by the service
        last_backup_time: Time of the last successful backup
    """
    id: str = Field(default="", description="ARM resource ID")
    name: str = Field(..., description="Protected item name")
    friendly_name: str = Field(..., description="File share name")
    container_name: str = Field(..., description="Protection container name")
    fabric_name: str = Field(default="Azure", description="Backup fabric name")
    storage_account_name: str = Field(default="", description="Hosting storage account name")
    source_resource_id: Optional[str] = Field(default=None, description="Storage account resource ID")
    protection_state: Optional[str] = Field(default=None, description="Protection state")
    last_backup_time: Optional[datetime] = Field(default=None, description="Last backup timestamp")


class RecoveryPoint(BaseModel):
    """A restorable snapshot of a protected file share."""
    id: str = Field(..., description="Recovery point identifier")
    time: datetime = Field(..., description="Snapshot timestamp")
    type: Optional[str] = Field(default=None, description="Recovery point type")
    file_share_snapshot_uri: Optional[str] = Field(default=None, description="Snapshot URI")


class JobErrorDetail(BaseModel):
    """One error entry attached to a failed job."""
    code: Optional[str] = Field(default=None, description="Service error code")
    message: str = Field(default="", description="Error text")
    recommendations: List[str] = Field(default_factory=list, description="Suggested remediations")

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class RestoreJob(BaseModel):
    """
    A restore job as last observed from the service.

    Status transitions are owned by the service; this process only observes
    them by polling.

    Attributes:
        job_id: Service job identifier
        status: Normalised job status
        raw_status: Literal status string returned by the service
        operation: Operation name (e.g. "Restore")
        entity_friendly_name: Name of the share the job acts on
        start_time: When the job started
        end_time: When the job ended (terminal jobs only)
        remote_duration_seconds: Duration as reported by the service
        error_details: Errors reported for failed jobs
        details: Raw service record, kept for export

    Example:
        ```python
        job = RestoreJob(job_id="8a1c...", status="InProgress", start_time=datetime.now())
        job.is_terminal  # False
        ```
    """
    job_id: str = Field(..., description="Job identifier")
    status: JobStatus = Field(default=JobStatus.UNKNOWN, description="Normalised status")
    raw_status: Optional[str] = Field(default=None, description="Status string from the service")
    operation: Optional[str] = Field(default=None, description="Job operation")
    entity_friendly_name: Optional[str] = Field(default=None, description="Target entity name")
    start_time: Optional[datetime] = Field(default=None, description="Job start time")
    end_time: Optional[datetime] = Field(default=None, description="Job end time")
    remote_duration_seconds: Optional[float] = Field(default=None, ge=0.0, description="Service-reported duration")
    error_details: List[JobErrorDetail] = Field(default_factory=list, description="Error entries")
    details: Dict[str, Any] = Field(default_factory=dict, description="Raw service record")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        """Accept raw service strings; unrecognised values become UNKNOWN."""
        if isinstance(v, JobStatus):
            return v
        return JobStatus.from_service(v)

    @property
    def is_terminal(self) -> bool:
        """Check if the job reached a terminal state."""
        return self.status.is_terminal

    @property
    def is_successful(self) -> bool:
        """Check if the job completed (with or without warnings)."""
        return self.status in (JobStatus.COMPLETED, JobStatus.COMPLETED_WITH_WARNINGS)

    @property
    def is_failed(self) -> bool:
        """Check if the job failed."""
        return self.status == JobStatus.FAILED

    @property
    def is_cancelled(self) -> bool:
        """Check if the job was cancelled."""
        return self.status == JobStatus.CANCELLED

    @property
    def duration_seconds(self) -> Optional[float]:
        """Job duration, from start/end times when both are known."""
        if self.start_time and self.end_time:
            return max(0.0, (self.end_time - self.start_time).total_seconds())
        return self.remote_duration_seconds

    @property
    def error_summary(self) -> str:
        """All error messages joined for display."""
        return "; ".join(str(e) for e in self.error_details)

    @property
    def display_status(self) -> str:
        """Status as the service spelled it, falling back to the enum value."""
        return self.raw_status or self.status.value
