"""
Restore Models

Exports all data models, entities, parameters and results for restore operations.
"""

from .entities import (
    JobStatus,
    TERMINAL_JOB_STATUSES,
    RestoreScope,
    ConflictPolicy,
    SourceFileType,
    DestinationKind,
    BackendType,
    Subscription,
    Vault,
    ProtectedItem,
    RecoveryPoint,
    JobErrorDetail,
    RestoreJob
)

from .parameters import (
    OriginalLocation,
    AlternateLocation,
    Destination,
    RestoreSelection,
    RestoreRequest
)

from .results import (
    SubmissionResult,
    StopReason,
    JobWaitResult
)

__all__ = [
    # Enums
    'JobStatus',
    'TERMINAL_JOB_STATUSES',
    'RestoreScope',
    'ConflictPolicy',
    'SourceFileType',
    'DestinationKind',
    'BackendType',
    'StopReason',

    # Entities
    'Subscription',
    'Vault',
    'ProtectedItem',
    'RecoveryPoint',
    'JobErrorDetail',
    'RestoreJob',

    # Parameters
    'OriginalLocation',
    'AlternateLocation',
    'Destination',
    'RestoreSelection',
    'RestoreRequest',

    # Results
    'SubmissionResult',
    'JobWaitResult'
]
