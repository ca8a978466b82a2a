"""
Azure Files Restore Assistant

Interactive command-line assistant for restoring Azure file shares from a
Recovery Services vault. The backup service does all the restore work; this
package sequences the choices an operator has to make, submits the restore
and watches the job until it finishes.

Features:
- Vault, file share and recovery point selection with numbered menus
- Full share and item-level restores, to the original or an alternate location
- Overwrite or skip policy for files that already exist
- Cancellable, bounded job monitoring with optional backoff
- JSON export of the final job record
- Azure and in-memory backends; scripted answers for unattended runs

Typical usage from external projects:

    from afs_restore import (
        RestoreManager,
        RestoreSelection,
        load_settings
    )

    manager = RestoreManager.from_settings(load_settings("restore.yaml"))
    manager.connect()

    vault = manager.find_vault("rsv-prod")
    item = manager.list_file_share_items(vault)[0]
    point = manager.list_recovery_points(vault, item)[0]

    result = manager.submit_restore(
        RestoreSelection(vault=vault, item=item, recovery_point=point)
    )
    if result.success:
        outcome = manager.wait_for_job(vault, result.job_id)
"""

from .config import RestoreToolSettings, UnknownStatusPolicy, load_settings
from .restore_config import RestoreOperationConfig
from .client import BackupServiceSession

from .core import (
    AzureBackupBackend,
    JobMonitor,
    RestoreManager,
    RestoreValidator,
    RestoreWorkflow
)
from .mock_backend import InMemoryBackupBackend

from .models import (
    JobStatus,
    RestoreScope,
    ConflictPolicy,
    SourceFileType,
    BackendType,
    Subscription,
    Vault,
    ProtectedItem,
    RecoveryPoint,
    JobErrorDetail,
    RestoreJob,
    OriginalLocation,
    AlternateLocation,
    RestoreSelection,
    RestoreRequest,
    SubmissionResult,
    StopReason,
    JobWaitResult
)

from .selection import ConsoleInput, ScriptedInput, Selector, parse_choice

from .exceptions import (
    RestoreToolError,
    ConfigurationError,
    ServiceConnectionError,
    BackupServiceError,
    VaultNotFoundError,
    RestoreSubmissionError,
    JobStatusError,
    RestoreValidationError,
    SelectionAbortedError,
    JobExportError
)

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'RestoreToolSettings',
    'UnknownStatusPolicy',
    'load_settings',
    'RestoreOperationConfig',

    # Session and backends
    'BackupServiceSession',
    'AzureBackupBackend',
    'InMemoryBackupBackend',

    # Core
    'RestoreManager',
    'RestoreValidator',
    'JobMonitor',
    'RestoreWorkflow',

    # Models
    'JobStatus',
    'RestoreScope',
    'ConflictPolicy',
    'SourceFileType',
    'BackendType',
    'Subscription',
    'Vault',
    'ProtectedItem',
    'RecoveryPoint',
    'JobErrorDetail',
    'RestoreJob',
    'OriginalLocation',
    'AlternateLocation',
    'RestoreSelection',
    'RestoreRequest',
    'SubmissionResult',
    'StopReason',
    'JobWaitResult',

    # Selection
    'ConsoleInput',
    'ScriptedInput',
    'Selector',
    'parse_choice',

    # Exceptions
    'RestoreToolError',
    'ConfigurationError',
    'ServiceConnectionError',
    'BackupServiceError',
    'VaultNotFoundError',
    'RestoreSubmissionError',
    'JobStatusError',
    'RestoreValidationError',
    'SelectionAbortedError',
    'JobExportError',

    '__version__'
]
