"""
Configuration Module

Centralized configuration for the restore assistant:
- Subscription, vault and sign-in settings
- Job polling, backoff and bounds
- Recovery point lookup window
- Job export and diagnostic logging

Settings load from environment variables and YAML files using Pydantic.
"""

from .settings import (
    RestoreToolSettings,
    AzureSettings,
    PollingSettings,
    RecoveryPointSettings,
    ExportSettings,
    LoggingSettings,
    AuthMode,
    UnknownStatusPolicy,
    load_settings
)

__all__ = [
    'RestoreToolSettings',
    'AzureSettings',
    'PollingSettings',
    'RecoveryPointSettings',
    'ExportSettings',
    'LoggingSettings',
    'AuthMode',
    'UnknownStatusPolicy',
    'load_settings'
]
