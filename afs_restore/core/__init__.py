"""
Core restore operations.
"""

from .azure_backend import AzureBackupBackend
from .manager import RestoreManager
from .monitor import JobMonitor
from .validator import RestoreValidator
from .workflow import RestoreWorkflow

__all__ = [
    'AzureBackupBackend',
    'RestoreManager',
    'JobMonitor',
    'RestoreValidator',
    'RestoreWorkflow'
]
