"""
Azure Backup Backend

Implements the backup service operations against Azure Recovery Services
using the management SDKs. All calls go through the explicit
`BackupServiceSession`; SDK exceptions are translated into the restore
tool's exception hierarchy.
"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional
from urllib.parse import urlparse

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError
from azure.mgmt.core.tools import parse_resource_id
from azure.mgmt.recoveryservicesbackup.activestamp.models import (
    AzureFileShareRestoreRequest,
    CopyOptions,
    RecoveryType,
    RestoreFileSpecs,
    RestoreRequestResource,
    RestoreRequestType,
    TargetAFSRestoreInfo,
)
from tenacity import RetryError, Retrying, retry_if_result, stop_before_delay, wait_fixed

from ..client import BackupServiceSession
from ..exceptions import (
    BackupServiceError,
    JobStatusError,
    RestoreSubmissionError,
)
from ..models.entities import (
    ConflictPolicy,
    JobErrorDetail,
    ProtectedItem,
    RecoveryPoint,
    RestoreJob,
    Subscription,
    Vault,
)
from ..models.parameters import RestoreRequest
from ..restore_config import RestoreOperationConfig

logger = logging.getLogger(__name__)

FILE_SHARE_ITEM_FILTER = "backupManagementType eq 'AzureStorage' and itemType eq 'AzureFileShare'"
STORAGE_CONTAINER_FILTER = "backupManagementType eq 'AzureStorage'"
RECOVERY_POINT_TIME_FORMAT = "%Y-%m-%d %I:%M:%S %p"
OPERATION_IN_PROGRESS = "inprogress"
OPERATION_FAILED = ("failed", "canceled", "cancelled")


def _enum_text(value) -> Optional[str]:
    """Text of an SDK enum or plain string value."""
    if value is None:
        return None
    return getattr(value, "value", value) if not isinstance(value, str) else value


def _resource_id_segment(resource_id: Optional[str], key: str) -> Optional[str]:
    """Return the segment following `key` in an ARM resource ID."""
    if not resource_id:
        return None
    parts = resource_id.strip("/").split("/")
    for index, part in enumerate(parts[:-1]):
        if part.lower() == key.lower():
            return parts[index + 1]
    return None


def _pipeline_response(pipeline_response, deserialized, headers):
    return pipeline_response


class AzureBackupBackend:
    """
    Backup service backend for Azure Recovery Services.

    Example:
        ```python
        session = BackupServiceSession(settings.azure)
        session.connect()
        backend = AzureBackupBackend(session, RestoreOperationConfig())

        vaults = backend.list_vaults(resource_group="rg-backup")
        items = backend.list_file_share_items(vaults[0])
        ```
    """

    def __init__(
        self,
        session: BackupServiceSession,
        config: Optional[RestoreOperationConfig] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize Azure backup backend.

        Args:
            session: Connected service session
            config: Restore operation configuration
            sleep: Sleep function used while waiting for a submitted restore's job id
        """
        self._session = session
        self.config = config or RestoreOperationConfig()
        self._sleep = sleep

        logger.info("AzureBackupBackend initialized")

    @property
    def session(self) -> BackupServiceSession:
        return self._session

    def _service_error(self, operation: str, error: AzureError, vault: Optional[Vault] = None) -> BackupServiceError:
        status_code = getattr(error, "status_code", None)
        logger.error(f"{operation} failed: {error}")
        return BackupServiceError(
            f"{operation} failed: {getattr(error, 'message', None) or error}",
            vault_name=vault.name if vault else None,
            operation=operation,
            status_code=status_code
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_subscriptions(self) -> List[Subscription]:
        return self._session.list_subscriptions()

    def list_vaults(self, resource_group: Optional[str] = None) -> List[Vault]:
        """
        List Recovery Services vaults.

        Args:
            resource_group: Restrict the listing to this resource group

        Returns:
            List of Vault
        """
        client = self._session.vaults_client
        try:
            if resource_group:
                raw_vaults = client.vaults.list_by_resource_group(resource_group_name=resource_group)
            else:
                raw_vaults = client.vaults.list_by_subscription_id()
            vaults = [self._to_vault(v) for v in raw_vaults]
        except AzureError as e:
            raise self._service_error("list_vaults", e)

        logger.info(f"Found {len(vaults)} vaults")
        return vaults

    @staticmethod
    def _to_vault(raw) -> Vault:
        resource_group = ""
        if raw.id:
            resource_group = parse_resource_id(raw.id).get("resource_group", "")
        return Vault(id=raw.id or "", name=raw.name, resource_group=resource_group, location=raw.location)

    def list_file_share_items(self, vault: Vault) -> List[ProtectedItem]:
        """
        List protected Azure file shares in a vault.

        Args:
            vault: Vault to list

        Returns:
            List of ProtectedItem
        """
        client = self._session.backup_client
        try:
            raw_items = client.backup_protected_items.list(
                vault_name=vault.name,
                resource_group_name=vault.resource_group,
                filter=FILE_SHARE_ITEM_FILTER
            )
            items = [self._to_protected_item(i) for i in raw_items]
        except AzureError as e:
            raise self._service_error("list_file_share_items", e, vault)

        logger.info(f"Found {len(items)} protected file shares in vault '{vault.name}'")
        return items

    @staticmethod
    def _to_protected_item(raw) -> ProtectedItem:
        props = raw.properties
        container_name = _resource_id_segment(raw.id, "protectionContainers") or ""
        fabric_name = _resource_id_segment(raw.id, "backupFabrics") or "Azure"
        friendly_name = getattr(props, "friendly_name", None) or raw.name.split(";")[-1]
        return ProtectedItem(
            id=raw.id or "",
            name=raw.name,
            friendly_name=friendly_name,
            container_name=container_name,
            fabric_name=fabric_name,
            storage_account_name=container_name.split(";")[-1] if container_name else "",
            source_resource_id=getattr(props, "source_resource_id", None),
            protection_state=_enum_text(getattr(props, "protection_state", None)),
            last_backup_time=getattr(props, "last_backup_time", None)
        )

    def list_recovery_points(
        self,
        vault: Vault,
        item: ProtectedItem,
        start: datetime,
        end: datetime
    ) -> List[RecoveryPoint]:
        """
        List recovery points of a protected file share within a time window.

        Args:
            vault: Vault holding the item
            item: Protected file share
            start: Window start (UTC)
            end: Window end (UTC)

        Returns:
            List of RecoveryPoint
        """
        time_filter = (
            f"startDate eq '{start.strftime(RECOVERY_POINT_TIME_FORMAT)}' "
            f"and endDate eq '{end.strftime(RECOVERY_POINT_TIME_FORMAT)}'"
        )
        client = self._session.backup_client
        try:
            raw_points = client.recovery_points.list(
                vault_name=vault.name,
                resource_group_name=vault.resource_group,
                fabric_name=item.fabric_name,
                container_name=item.container_name,
                protected_item_name=item.name,
                filter=time_filter
            )
            points = []
            for raw in raw_points:
                point = self._to_recovery_point(raw)
                if point is not None:
                    points.append(point)
        except AzureError as e:
            raise self._service_error("list_recovery_points", e, vault)

        logger.info(f"Found {len(points)} recovery points for '{item.friendly_name}'")
        return points

    @staticmethod
    def _to_recovery_point(raw) -> Optional[RecoveryPoint]:
        props = raw.properties
        point_time = getattr(props, "recovery_point_time", None)
        if point_time is None:
            logger.debug(f"Skipping recovery point {raw.name} without a timestamp")
            return None
        return RecoveryPoint(
            id=raw.name,
            time=point_time,
            type=_enum_text(getattr(props, "recovery_point_type", None)),
            file_share_snapshot_uri=getattr(props, "file_share_snapshot_uri", None)
        )

    # ------------------------------------------------------------------
    # Restore submission
    # ------------------------------------------------------------------

    def trigger_restore(self, vault: Vault, item: ProtectedItem, request: RestoreRequest) -> str:
        """
        Start a restore and return the job id the service assigns to it.

        Args:
            vault: Vault holding the item
            item: Protected file share to restore from
            request: Restore request

        Returns:
            Job identifier

        Raises:
            RestoreSubmissionError: If the service rejects the request or never assigns a job
        """
        restore_request = self.build_restore_request(vault, item, request)
        client = self._session.backup_client

        logger.info(
            f"Triggering {restore_request.restore_request_type} restore of '{item.friendly_name}' "
            f"from recovery point {request.recovery_point_id}"
        )
        try:
            response = client.restores.begin_trigger(
                vault_name=vault.name,
                resource_group_name=vault.resource_group,
                fabric_name=item.fabric_name,
                container_name=item.container_name,
                protected_item_name=item.name,
                recovery_point_id=request.recovery_point_id,
                parameters=RestoreRequestResource(properties=restore_request),
                cls=_pipeline_response,
                polling=False
            ).result()
        except HttpResponseError as e:
            logger.error(f"Restore trigger rejected: {e}")
            raise RestoreSubmissionError(
                f"Restore request rejected: {e.message}",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id,
                status_code=e.status_code
            ) from e
        except AzureError as e:
            logger.error(f"Restore trigger failed: {e}")
            raise RestoreSubmissionError(
                f"Restore request failed: {e}",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id
            ) from e

        return self._wait_for_job_id(vault, request, response)

    def build_restore_request(
        self,
        vault: Vault,
        item: ProtectedItem,
        request: RestoreRequest
    ) -> AzureFileShareRestoreRequest:
        """
        Translate a RestoreRequest into the SDK request model.

        Optional request fields map onto optional SDK fields; absent fields
        stay None and are not serialized.
        """
        copy_options = CopyOptions.OVERWRITE if request.conflict_policy == ConflictPolicy.OVERWRITE else CopyOptions.SKIP

        target_details = None
        recovery_type = RecoveryType.ORIGINAL_LOCATION
        if request.is_alternate_location:
            recovery_type = RecoveryType.ALTERNATE_LOCATION
            target_details = TargetAFSRestoreInfo(
                name=request.target_file_share,
                target_resource_id=self._resolve_storage_account_id(vault, request.target_storage_account)
            )

        if request.is_item_level:
            request_type = RestoreRequestType.ITEM_LEVEL_RESTORE
            file_specs = [
                RestoreFileSpecs(
                    path=path,
                    file_spec_type=request.source_file_type.value,
                    target_folder_path=request.target_folder
                )
                for path in request.source_file_paths
            ]
        else:
            request_type = RestoreRequestType.FULL_SHARE_RESTORE
            file_specs = [RestoreFileSpecs(target_folder_path=request.target_folder)] if request.target_folder else None

        return AzureFileShareRestoreRequest(
            recovery_type=recovery_type,
            source_resource_id=item.source_resource_id,
            copy_options=copy_options,
            restore_request_type=request_type,
            restore_file_specs=file_specs,
            target_details=target_details
        )

    def _resolve_storage_account_id(self, vault: Vault, storage_account: str) -> str:
        """Find the resource ID of a storage account registered with the vault."""
        client = self._session.backup_client
        try:
            containers = list(client.backup_protection_containers.list(
                vault_name=vault.name,
                resource_group_name=vault.resource_group,
                filter=STORAGE_CONTAINER_FILTER
            ))
        except AzureError as e:
            raise RestoreSubmissionError(
                f"Failed to list storage accounts registered with the vault: {e}",
                vault_name=vault.name
            ) from e

        for container in containers:
            props = container.properties
            if (getattr(props, "friendly_name", None) or "").lower() == storage_account.lower():
                return props.source_resource_id

        raise RestoreSubmissionError(
            f"Storage account '{storage_account}' is not registered with vault '{vault.name}'",
            vault_name=vault.name,
            context={"registered": [getattr(c.properties, "friendly_name", None) for c in containers]}
        )

    def _wait_for_job_id(self, vault: Vault, request: RestoreRequest, response) -> str:
        """Follow the trigger's operation status until the service assigns a job id."""
        headers = response.http_response.headers
        location = headers.get("Azure-AsyncOperation") or headers.get("Location")
        if not location:
            raise RestoreSubmissionError(
                "Restore accepted without an operation location",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id
            )
        operation_id = urlparse(location).path.rstrip("/").split("/")[-1]
        client = self._session.backup_client

        retryer = Retrying(
            retry=retry_if_result(
                lambda op: (_enum_text(op.status) or "").lower() == OPERATION_IN_PROGRESS
            ),
            wait=wait_fixed(self.config.operation_status_interval_seconds),
            stop=stop_before_delay(self.config.operation_status_timeout_seconds),
            sleep=self._sleep
        )
        try:
            operation = retryer(
                client.backup_operation_statuses.get,
                vault_name=vault.name,
                resource_group_name=vault.resource_group,
                operation_id=operation_id
            )
        except RetryError as e:
            raise RestoreSubmissionError(
                f"Timed out after {self.config.operation_status_timeout_seconds}s waiting for the restore job to be created",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id,
                context={"operation_id": operation_id}
            ) from e
        except AzureError as e:
            raise RestoreSubmissionError(
                f"Failed to read restore operation status: {e}",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id,
                context={"operation_id": operation_id}
            ) from e

        status = (_enum_text(operation.status) or "").lower()
        if status in OPERATION_FAILED:
            error = getattr(operation, "error", None)
            message = getattr(error, "message", None) or status
            raise RestoreSubmissionError(
                f"Restore operation {status}: {message}",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id,
                context={"operation_id": operation_id, "code": getattr(error, "code", None)}
            )

        job_id = getattr(operation.properties, "job_id", None) if operation.properties else None
        if not job_id:
            raise RestoreSubmissionError(
                "Restore operation finished without a job id",
                vault_name=vault.name,
                recovery_point_id=request.recovery_point_id,
                context={"operation_id": operation_id}
            )

        logger.info(f"Restore job created: {job_id}")
        return job_id

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def get_job(self, vault: Vault, job_id: str) -> RestoreJob:
        """
        Fetch the current state of a job.

        Raises:
            JobStatusError: If the job cannot be read
        """
        client = self._session.backup_client
        try:
            resource = client.job_details.get(
                vault_name=vault.name,
                resource_group_name=vault.resource_group,
                job_name=job_id
            )
        except ResourceNotFoundError as e:
            raise JobStatusError(
                f"Job not found: {job_id}",
                vault_name=vault.name,
                job_id=job_id,
                status_code=e.status_code
            ) from e
        except AzureError as e:
            logger.error(f"Failed to read job {job_id}: {e}")
            raise JobStatusError(
                f"Failed to read job status: {e}",
                vault_name=vault.name,
                job_id=job_id,
                status_code=getattr(e, "status_code", None)
            ) from e

        return self._to_restore_job(resource, job_id)

    @staticmethod
    def _to_restore_job(resource, job_id: str) -> RestoreJob:
        props = resource.properties
        errors = [
            JobErrorDetail(
                code=getattr(e, "error_code", None),
                message=getattr(e, "error_string", None) or "",
                recommendations=list(getattr(e, "recommendations", None) or [])
            )
            for e in (getattr(props, "error_details", None) or [])
        ]
        extended_info = getattr(props, "extended_info", None)
        dynamic_error = getattr(extended_info, "dynamic_error_message", None) if extended_info else None
        if dynamic_error and not errors:
            errors.append(JobErrorDetail(message=dynamic_error))

        duration = getattr(props, "duration", None)
        raw_status = _enum_text(getattr(props, "status", None))
        return RestoreJob(
            job_id=resource.name or job_id,
            status=raw_status,
            raw_status=raw_status,
            operation=getattr(props, "operation", None),
            entity_friendly_name=getattr(props, "entity_friendly_name", None),
            start_time=getattr(props, "start_time", None),
            end_time=getattr(props, "end_time", None),
            remote_duration_seconds=duration.total_seconds() if duration is not None else None,
            error_details=errors,
            details=resource.as_dict()
        )
