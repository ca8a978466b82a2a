"""
In-Memory Backup Backend

Provides an in-memory implementation of the backup service for demos, dry
runs and tests. It serves seeded vaults, file shares and recovery points,
records every restore request it receives, and plays back a scripted
sequence of job statuses for each job it creates.
"""

import logging
import uuid
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .exceptions import JobStatusError, RestoreSubmissionError
from .models.entities import (
    JobErrorDetail,
    JobStatus,
    ProtectedItem,
    RecoveryPoint,
    RestoreJob,
    Subscription,
    Vault,
)
from .models.parameters import RestoreRequest

logger = logging.getLogger(__name__)

DEFAULT_STATUS_SEQUENCE = ("InProgress", "InProgress", "Completed")


class SubmittedRestore(BaseModel):
    """A restore request as received by the in-memory service."""
    model_config = ConfigDict(frozen=True)

    job_id: str
    vault: Vault
    item: ProtectedItem
    request: RestoreRequest


class _JobRecord:
    def __init__(self, job_id: str, vault: Vault, item: ProtectedItem, request: RestoreRequest,
                 statuses: Sequence[str], start_time: datetime):
        self.job_id = job_id
        self.vault = vault
        self.item = item
        self.request = request
        self.pending: Deque[str] = deque(statuses)
        self.status: Optional[str] = None
        self.start_time = start_time
        self.end_time: Optional[datetime] = None


class InMemoryBackupBackend:
    """
    In-memory implementation of the backup service backend.

    Example:
        ```python
        backend = InMemoryBackupBackend.with_demo_data()
        backend.status_sequence = ["InProgress", "Failed"]

        vault = backend.list_vaults()[0]
        item = backend.list_file_share_items(vault)[0]
        ```
    """

    def __init__(
        self,
        subscriptions: Optional[List[Subscription]] = None,
        vaults: Optional[List[Vault]] = None,
        items: Optional[Dict[str, List[ProtectedItem]]] = None,
        recovery_points: Optional[Dict[str, List[RecoveryPoint]]] = None,
        storage_accounts: Optional[Dict[str, List[str]]] = None,
        status_sequence: Sequence[str] = DEFAULT_STATUS_SEQUENCE,
        job_errors: Optional[List[JobErrorDetail]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize in-memory backend.

        Args:
            subscriptions: Subscriptions visible to the caller
            vaults: Vaults in the subscription
            items: Protected file shares keyed by vault name
            recovery_points: Recovery points keyed by protected item name
            storage_accounts: Storage accounts registered with each vault, keyed by vault name
            status_sequence: Statuses reported by successive polls of a new job;
                             the last one repeats
            job_errors: Error details attached to jobs that end Failed
            clock: Returns the current time (UTC)
        """
        self.subscriptions = subscriptions or []
        self.vaults = vaults or []
        self.items = items or {}
        self.recovery_points = recovery_points or {}
        self.storage_accounts = storage_accounts or {}
        self.status_sequence = list(status_sequence)
        self.job_errors = job_errors or []
        self.submission_error: Optional[str] = None
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.submitted: List[SubmittedRestore] = []
        self._jobs: Dict[str, _JobRecord] = {}
        self.poll_count = 0

        logger.info("InMemoryBackupBackend initialized")

    @classmethod
    def with_demo_data(cls, clock: Optional[Callable[[], datetime]] = None, **kwargs) -> "InMemoryBackupBackend":
        """
        Create a backend seeded with one vault, two file shares and a week of daily recovery points.

        Args:
            clock: Returns the current time (UTC); recovery points are placed relative to it
            **kwargs: Passed through to the constructor
        """
        clock = clock or (lambda: datetime.now(timezone.utc))
        now = clock()
        subscription_id = "00000000-0000-0000-0000-000000000000"
        resource_group = "rg-backup"
        vault = Vault(
            id=(f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
                f"/providers/Microsoft.RecoveryServices/vaults/V1"),
            name="V1",
            resource_group=resource_group,
            location="westeurope"
        )

        items = []
        points = {}
        for share, account in (("Share1", "sa1"), ("Share2", "sa1")):
            container = f"StorageContainer;Storage;{resource_group};{account}"
            item_name = f"AzureFileShare;{share.lower()}"
            items.append(ProtectedItem(
                id=f"{vault.id}/backupFabrics/Azure/protectionContainers/{container}/protectedItems/{item_name}",
                name=item_name,
                friendly_name=share,
                container_name=container,
                storage_account_name=account,
                source_resource_id=(f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
                                    f"/providers/Microsoft.Storage/storageAccounts/{account}"),
                protection_state="Protected",
                last_backup_time=now - timedelta(hours=2)
            ))
            points[item_name] = [
                RecoveryPoint(
                    id=str(100000 + day),
                    time=now - timedelta(days=day, hours=2),
                    type="FileSystemConsistent"
                )
                for day in range(7)
            ]

        return cls(
            subscriptions=[Subscription(subscription_id=subscription_id, display_name="Demo", state="Enabled")],
            vaults=[vault],
            items={vault.name: items},
            recovery_points=points,
            storage_accounts={vault.name: ["sa1", "sa2"]},
            clock=clock,
            **kwargs
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_subscriptions(self) -> List[Subscription]:
        return list(self.subscriptions)

    def list_vaults(self, resource_group: Optional[str] = None) -> List[Vault]:
        if resource_group:
            return [v for v in self.vaults if v.resource_group.lower() == resource_group.lower()]
        return list(self.vaults)

    def list_file_share_items(self, vault: Vault) -> List[ProtectedItem]:
        return list(self.items.get(vault.name, []))

    def list_recovery_points(
        self,
        vault: Vault,
        item: ProtectedItem,
        start: datetime,
        end: datetime
    ) -> List[RecoveryPoint]:
        points = self.recovery_points.get(item.name, [])
        return [p for p in points if start <= p.time <= end]

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def trigger_restore(self, vault: Vault, item: ProtectedItem, request: RestoreRequest) -> str:
        """
        Record the request and create a job that plays back `status_sequence`.

        Raises:
            RestoreSubmissionError: If `submission_error` is set, the item is unknown
                                    or the alternate storage account is not registered
        """
        if self.submission_error:
            raise RestoreSubmissionError(
                self.submission_error,
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id
            )
        if item.name not in {i.name for i in self.items.get(vault.name, [])}:
            raise RestoreSubmissionError(
                f"Protected item '{item.friendly_name}' not found in vault '{vault.name}'",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id
            )
        if request.is_alternate_location:
            registered = [a.lower() for a in self.storage_accounts.get(vault.name, [])]
            if request.target_storage_account.lower() not in registered:
                raise RestoreSubmissionError(
                    f"Storage account '{request.target_storage_account}' is not registered with vault '{vault.name}'",
                    vault_name=vault.name,
                    recovery_point_id=request.recovery_point_id
                )

        job_id = str(uuid.uuid4())
        self._jobs[job_id] = _JobRecord(job_id, vault, item, request, self.status_sequence, self._clock())
        self.submitted.append(SubmittedRestore(job_id=job_id, vault=vault, item=item, request=request))

        logger.info(f"Created in-memory restore job {job_id} for '{item.friendly_name}'")
        return job_id

    @property
    def last_request(self) -> Optional[RestoreRequest]:
        return self.submitted[-1].request if self.submitted else None

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def get_job(self, vault: Vault, job_id: str) -> RestoreJob:
        """
        Advance the job to its next scripted status and return it.

        Raises:
            JobStatusError: If the job does not exist in the vault
        """
        record = self._jobs.get(job_id)
        if record is None or record.vault.name != vault.name:
            raise JobStatusError(f"Job not found: {job_id}", vault_name=vault.name, job_id=job_id, status_code=404)

        self.poll_count += 1
        if len(record.pending) > 1:
            record.status = record.pending.popleft()
        elif record.pending:
            record.status = record.pending[0]

        status = JobStatus.from_service(record.status)
        if status.is_terminal and record.end_time is None:
            record.end_time = self._clock()

        errors = list(self.job_errors) if status == JobStatus.FAILED else []
        return RestoreJob(
            job_id=job_id,
            status=record.status,
            raw_status=record.status,
            operation="Restore",
            entity_friendly_name=record.item.friendly_name,
            start_time=record.start_time,
            end_time=record.end_time,
            error_details=errors,
            details=self._job_details(record, errors)
        )

    @staticmethod
    def _job_details(record: _JobRecord, errors: List[JobErrorDetail]) -> Dict:
        return {
            "id": f"{record.vault.id}/backupJobs/{record.job_id}",
            "name": record.job_id,
            "type": "Microsoft.RecoveryServices/vaults/backupJobs",
            "properties": {
                "job_type": "AzureStorageJob",
                "operation": "Restore",
                "status": record.status,
                "entity_friendly_name": record.item.friendly_name,
                "start_time": record.start_time.isoformat(),
                "end_time": record.end_time.isoformat() if record.end_time else None,
                "error_details": [
                    {"error_code": e.code, "error_string": e.message, "recommendations": e.recommendations}
                    for e in errors
                ],
                "extended_info": {
                    "property_bag": record.request.to_service_fields()
                }
            }
        }
