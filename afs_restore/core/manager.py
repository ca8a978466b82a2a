"""
Restore Manager

Main orchestration class for restore operations: lookups against the backup
service, request validation, submission and job monitoring, over either the
Azure backend or the in-memory backend.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..client import BackupServiceSession
from ..config.settings import RestoreToolSettings
from ..exceptions import RestoreToolError, RestoreValidationError, VaultNotFoundError
from ..mock_backend import InMemoryBackupBackend
from ..models.entities import (
    BackendType,
    ProtectedItem,
    RecoveryPoint,
    RestoreJob,
    Subscription,
    Vault,
)
from ..models.parameters import RestoreRequest, RestoreSelection
from ..models.results import JobWaitResult, SubmissionResult
from ..restore_config import RestoreOperationConfig
from .azure_backend import AzureBackupBackend
from .monitor import JobCallback, JobMonitor
from .validator import RestoreValidator

logger = logging.getLogger(__name__)


class RestoreManager:
    """
    Manages restore operations for protected Azure file shares.

    This is the main entry point for the restore flow, providing a unified
    interface for listing vaults, shares and recovery points, submitting a
    restore and observing the resulting job, whichever backend is in use.

    Example:
        ```python
        manager = RestoreManager.from_settings(load_settings("restore.yaml"))
        manager.connect()

        vault = manager.find_vault("rsv-prod", resource_group="rg-backup")
        item = manager.list_file_share_items(vault)[0]
        point = manager.list_recovery_points(vault, item)[0]

        result = manager.submit_restore(
            RestoreSelection(vault=vault, item=item, recovery_point=point)
        )
        if result.success:
            outcome = manager.wait_for_job(vault, result.job_id)
        ```
    """

    def __init__(
        self,
        backend,
        config: Optional[RestoreOperationConfig] = None,
        session: Optional[BackupServiceSession] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize RestoreManager.

        Args:
            backend: Backup service backend (AzureBackupBackend or InMemoryBackupBackend)
            config: Restore operation configuration (uses defaults if None)
            session: Service session the backend runs on; None for the in-memory backend
            sleep: Sleep function between job polls (defaults to waiting on the cancel event)
            clock: Returns the current UTC time; anchors the recovery point window
        """
        self._backend = backend
        self._config = config or RestoreOperationConfig()
        self._session = session
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._validator = RestoreValidator(self._config)

        logger.info(f"RestoreManager initialized with {type(backend).__name__}")

    @classmethod
    def from_settings(
        cls,
        settings: RestoreToolSettings,
        config: Optional[RestoreOperationConfig] = None,
        session: Optional[BackupServiceSession] = None,
        **kwargs
    ) -> "RestoreManager":
        """
        Create a manager with the backend selected by the settings.

        Args:
            settings: Loaded settings
            config: Restore operation configuration (derived from settings if None)
            session: Pre-built session for the Azure backend
            **kwargs: Passed through to the constructor
        """
        config = config or RestoreOperationConfig.from_settings(settings)

        if settings.backend == BackendType.AZURE:
            session = session or BackupServiceSession(settings.azure)
            backend = AzureBackupBackend(session, config)
        elif settings.backend == BackendType.IN_MEMORY:
            session = None
            backend = InMemoryBackupBackend.with_demo_data()
        else:
            raise ValueError(f"Unsupported backend: {settings.backend}")

        return cls(backend, config=config, session=session, **kwargs)

    @property
    def backend(self):
        return self._backend

    @property
    def config(self) -> RestoreOperationConfig:
        return self._config

    @property
    def session(self) -> Optional[BackupServiceSession]:
        return self._session

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """
        Sign in to the service.

        Raises:
            ServiceConnectionError: If authentication fails
        """
        if self._session is not None:
            self._session.connect()

    @property
    def subscription_id(self) -> Optional[str]:
        if self._session is None:
            return None
        return self._session.subscription_id

    @property
    def needs_subscription(self) -> bool:
        """Check if a subscription must be chosen before vaults can be listed."""
        return self._session is not None and not self._session.subscription_id

    def use_subscription(self, subscription_id: str) -> None:
        if self._session is not None:
            self._session.use_subscription(subscription_id)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def list_subscriptions(self) -> List[Subscription]:
        return self._backend.list_subscriptions()

    def list_vaults(self, resource_group: Optional[str] = None) -> List[Vault]:
        """
        List Recovery Services vaults, optionally in one resource group.

        Raises:
            BackupServiceError: If the service call fails
        """
        vaults = self._backend.list_vaults(resource_group)
        return sorted(vaults, key=lambda v: (v.name.lower(), v.resource_group.lower()))

    def find_vault(self, vault_name: str, resource_group: Optional[str] = None) -> Vault:
        """
        Find a vault by name (case-insensitive).

        Args:
            vault_name: Vault name
            resource_group: Restrict the lookup to this resource group

        Returns:
            The matching Vault

        Raises:
            VaultNotFoundError: If no vault with that name exists
        """
        vaults = self.list_vaults(resource_group)
        for vault in vaults:
            if vault.name.lower() == vault_name.lower():
                logger.info(f"Found vault '{vault.name}' in resource group '{vault.resource_group}'")
                return vault

        where = f" in resource group '{resource_group}'" if resource_group else ""
        raise VaultNotFoundError(
            f"Vault '{vault_name}' not found{where}",
            vault_name=vault_name,
            resource_group=resource_group,
            available_vaults=[v.name for v in vaults]
        )

    def list_file_share_items(self, vault: Vault) -> List[ProtectedItem]:
        items = self._backend.list_file_share_items(vault)
        return sorted(items, key=lambda i: (i.storage_account_name.lower(), i.friendly_name.lower()))

    def recovery_point_window(self):
        """The (start, end) UTC window recovery points are listed for."""
        end = self._clock()
        start = end - timedelta(days=self._config.recovery_point_lookback_days)
        return start, end

    def list_recovery_points(self, vault: Vault, item: ProtectedItem) -> List[RecoveryPoint]:
        """
        List recovery points inside the lookback window, most recent first.

        Raises:
            BackupServiceError: If the service call fails
        """
        start, end = self.recovery_point_window()
        points = self._backend.list_recovery_points(vault, item, start, end)
        return sorted(points, key=lambda p: p.time, reverse=True)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def build_request(self, selection: RestoreSelection) -> RestoreRequest:
        """
        Validate a selection and build the restore request from it.

        Raises:
            RestoreValidationError: If the selection or resulting request is invalid
        """
        self._validator.validate_selection(selection)
        request = RestoreRequest.from_selection(selection)
        self._validator.validate_request(request, vault_name=selection.vault.name)
        return request

    def submit_restore(self, selection: RestoreSelection) -> SubmissionResult:
        """
        Submit a restore.

        Exactly one job is created when this succeeds. Failures are returned,
        not raised, and are never retried.

        Args:
            selection: Completed restore selection

        Returns:
            SubmissionResult with the job id or the error message
        """
        start_time = datetime.now()
        request: Optional[RestoreRequest] = None

        try:
            request = self.build_request(selection)
            logger.info(
                f"Submitting {selection.scope.value} restore of '{selection.item.friendly_name}' "
                f"in vault '{selection.vault.name}': {request.to_service_fields()}"
            )
            job_id = self._backend.trigger_restore(selection.vault, selection.item, request)

            execution_time_ms = (datetime.now() - start_time).total_seconds() * 1000
            return SubmissionResult(
                success=True,
                job_id=job_id,
                request=request,
                execution_time_ms=execution_time_ms
            )

        except RestoreToolError as e:
            execution_time_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Restore submission failed for '{selection.item.friendly_name}': {e}")
            error_message = e.message
            if isinstance(e, RestoreValidationError):
                error_message = f"{e.message}: {'; '.join(e.validation_errors)}"

            return SubmissionResult(
                success=False,
                request=request,
                error_message=error_message,
                execution_time_ms=execution_time_ms
            )

    def get_job(self, vault: Vault, job_id: str) -> RestoreJob:
        """
        Fetch the current state of a job.

        Raises:
            JobStatusError: If the job cannot be read
        """
        return self._backend.get_job(vault, job_id)

    def wait_for_job(
        self,
        vault: Vault,
        job_id: str,
        cancel_event: Optional[threading.Event] = None,
        on_update: Optional[JobCallback] = None
    ) -> JobWaitResult:
        """
        Poll a job until it finishes or observation stops.

        Args:
            vault: Vault the job runs in
            job_id: Job identifier
            cancel_event: Setting this event stops observation (the job keeps running)
            on_update: Called with every observed job

        Returns:
            JobWaitResult

        Raises:
            JobStatusError: If a status request fails
        """
        monitor = JobMonitor(self._config, cancel_event=cancel_event, sleep=self._sleep)
        return monitor.wait(lambda: self.get_job(vault, job_id), job_id=job_id, on_update=on_update)
