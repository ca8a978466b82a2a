"""
Restore Tool Exceptions

Defines the exception hierarchy for the restore assistant. Every exception
carries the vault and job it concerns (when known) plus a free-form context
mapping, so the workflow can report failures to the operator and log them
with enough detail to debug a remote call after the fact.
"""

from typing import Optional, Dict, Any, List


class RestoreToolError(Exception):
    """
    Base exception for all restore assistant errors.

    Attributes:
        message: Human-readable error message
        vault_name: Name of the Recovery Services vault involved (if applicable)
        job_id: Identifier of the restore job involved (if applicable)
        context: Additional context information as key-value pairs

    Example:
        ```python
        try:
            manager.list_vaults()
        except RestoreToolError as e:
            logger.error(f"Restore tool error for {e.vault_name}: {e.message}")
            logger.error(f"Context: {e.context}")
        ```
    """

    def __init__(
        self,
        message: str,
        vault_name: Optional[str] = None,
        job_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.vault_name = vault_name
        self.job_id = job_id
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.vault_name:
            parts.append(f"Vault: {self.vault_name}")
        if self.job_id:
            parts.append(f"Job ID: {self.job_id}")
        if self.context:
            parts.append(f"Context: {self.context}")
        return " | ".join(parts)


class ConfigurationError(RestoreToolError):
    """Raised when settings are invalid or missing."""
    pass


class ServiceConnectionError(RestoreToolError):
    """
    Authentication or connectivity failure.

    Raised when the session cannot obtain a token for the management
    endpoint or the subscription cannot be resolved.

    Additional Attributes:
        subscription_id: Subscription the session was connecting to
    """

    def __init__(
        self,
        message: str,
        subscription_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, None, None, context)
        self.subscription_id = subscription_id


class BackupServiceError(RestoreToolError):
    """
    A call to the remote backup service failed.

    Additional Attributes:
        operation: Name of the remote operation that failed
        status_code: HTTP status code reported by the service (if available)

    Example:
        ```python
        raise BackupServiceError(
            message="Listing protected items failed",
            vault_name="rsv-prod",
            operation="list_file_share_items",
            status_code=403
        )
        ```
    """

    def __init__(
        self,
        message: str,
        vault_name: Optional[str] = None,
        job_id: Optional[str] = None,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, vault_name, job_id, context)
        self.operation = operation
        self.status_code = status_code


class VaultNotFoundError(BackupServiceError):
    """
    The requested vault does not exist in the subscription.

    Additional Attributes:
        resource_group: Resource group the lookup was restricted to
        available_vaults: Names of the vaults that were found instead
    """

    def __init__(
        self,
        message: str,
        vault_name: Optional[str] = None,
        resource_group: Optional[str] = None,
        available_vaults: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, vault_name, None, "find_vault", None, context)
        self.resource_group = resource_group
        self.available_vaults = available_vaults or []


class RestoreSubmissionError(BackupServiceError):
    """
    The service rejected or failed to start a restore.

    Additional Attributes:
        recovery_point_id: Recovery point the restore was requested from
    """

    def __init__(
        self,
        message: str,
        vault_name: Optional[str] = None,
        recovery_point_id: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, vault_name, None, "trigger_restore", status_code, context)
        self.recovery_point_id = recovery_point_id


class JobStatusError(BackupServiceError):
    """Fetching the status of a restore job failed."""

    def __init__(
        self,
        message: str,
        vault_name: Optional[str] = None,
        job_id: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, vault_name, job_id, "get_job", status_code, context)


class RestoreValidationError(RestoreToolError):
    """
    A restore selection violates a request invariant.

    Additional Attributes:
        validation_errors: List of specific validation errors

    Example:
        ```python
        raise RestoreValidationError(
            message="Restore selection is invalid",
            vault_name="rsv-prod",
            validation_errors=["Specific restore requires at least one path"]
        )
        ```
    """

    def __init__(
        self,
        message: str,
        vault_name: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, vault_name, None, context)
        self.validation_errors = validation_errors or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.validation_errors:
            return f"{base} | Errors: {'; '.join(self.validation_errors)}"
        return base


class SelectionAbortedError(RestoreToolError):
    """Raised when the input source is exhausted or the operator interrupts a prompt."""

    def __init__(self, message: str = "Input aborted", prompt: Optional[str] = None):
        super().__init__(message)
        self.prompt = prompt


class JobExportError(RestoreToolError):
    """
    Writing the job record to disk failed.

    Additional Attributes:
        export_path: Path the export was written to
    """

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        export_path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, None, job_id, context)
        self.export_path = export_path
