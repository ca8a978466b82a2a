"""
Pydantic Settings for the Restore Assistant

This module provides strongly-typed configuration settings using Pydantic,
with support for environment variables and YAML configuration files.
"""

from typing import Optional, Union
from enum import Enum
from pathlib import Path
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_yaml import to_yaml_str

from ..models.entities import BackendType


class AuthMode(str, Enum):
    """
    How the session obtains Azure credentials.

    - DEFAULT: DefaultAzureCredential chain (environment, managed identity, Azure CLI, ...)
    - INTERACTIVE: Browser sign-in, the interactive equivalent of Connect-AzAccount
    - DEVICE_CODE: Device code sign-in for terminals without a browser
    """
    DEFAULT = "default"
    INTERACTIVE = "interactive"
    DEVICE_CODE = "device_code"


class UnknownStatusPolicy(str, Enum):
    """
    What the job monitor does with a status value it does not recognise.

    - KEEP_POLLING: Treat it as non-terminal and poll again
    - STOP: Stop observing and report the unrecognised status
    """
    KEEP_POLLING = "keep_polling"
    STOP = "stop"


class AzureSettings(BaseSettings):
    """
    Settings that identify where the vault lives and how to sign in.

    Every field is optional: anything not configured is asked for
    interactively or resolved from the signed-in identity.
    """
    subscription_id: Optional[str] = Field(None, description="Subscription containing the vault")
    tenant_id: Optional[str] = Field(None, description="Tenant to authenticate against")
    resource_group: Optional[str] = Field(None, description="Resource group used to filter the vault lookup")
    vault_name: Optional[str] = Field(None, description="Vault to pre-select")
    auth_mode: AuthMode = Field(AuthMode.DEFAULT, description="Credential type used by the session")

    model_config = SettingsConfigDict(
        env_prefix="AFS_RESTORE_AZURE_",
        case_sensitive=False,
        env_parse_none_str="null"
    )


class PollingSettings(BaseSettings):
    """
    Settings that control how restore jobs are observed.

    The defaults poll every 10 seconds without backoff, which is what the
    service's own tooling does. Observation stops after `max_wait_seconds`
    (None means wait until the job finishes, however long that takes) or
    after `max_polls` status requests when set.
    """
    poll_interval_seconds: float = Field(10.0, gt=0,
                                         description="Wait before the first re-poll, in seconds")
    backoff_factor: float = Field(1.0, ge=1.0,
                                  description="Multiplier applied to the wait after each poll (1.0 = fixed interval)")
    max_poll_interval_seconds: float = Field(60.0, gt=0,
                                             description="Upper bound for the wait between polls")
    max_wait_seconds: Optional[float] = Field(21600.0, gt=0,
                                              description="Maximum total observation time (None = unbounded)")
    max_polls: Optional[int] = Field(None, gt=0,
                                     description="Maximum number of status requests (None = unbounded)")
    unknown_status_policy: UnknownStatusPolicy = Field(UnknownStatusPolicy.KEEP_POLLING,
                                                       description="Handling of unrecognised job statuses")
    operation_status_interval_seconds: float = Field(2.0, gt=0,
                                                     description="Poll interval while waiting for a submitted restore to get a job id")
    operation_status_timeout_seconds: float = Field(300.0, gt=0,
                                                    description="Maximum wait for a submitted restore to get a job id")

    model_config = SettingsConfigDict(
        env_prefix="AFS_RESTORE_POLLING_",
        case_sensitive=False,
        env_parse_none_str="null"
    )


class RecoveryPointSettings(BaseSettings):
    """Settings for the recovery point lookup window."""
    lookback_days: int = Field(30, gt=0, description="Recovery points older than this many days are not listed")

    model_config = SettingsConfigDict(env_prefix="AFS_RESTORE_RECOVERY_POINTS_", case_sensitive=False)


class ExportSettings(BaseSettings):
    """Settings for writing the final job record to disk."""
    max_depth: int = Field(10, ge=1, description="Nesting deeper than this is written as a string")
    indent: int = Field(2, ge=0, description="JSON indentation")

    model_config = SettingsConfigDict(env_prefix="AFS_RESTORE_EXPORT_", case_sensitive=False)


class LoggingSettings(BaseSettings):
    """
    Logging settings.

    Operator-facing messages always go to the console; these settings only
    control the diagnostic log.
    """
    log_level: str = Field("WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    log_file: Optional[str] = Field(None, description="Write the diagnostic log to this file instead of stderr")

    model_config = SettingsConfigDict(env_prefix="AFS_RESTORE_LOGGING_", case_sensitive=False)


class RestoreToolSettings(BaseSettings):
    """
    Main settings class that consolidates all configuration categories.

    Usage:
        # Load from environment variables and defaults
        settings = RestoreToolSettings()

        # Load from YAML file
        settings = RestoreToolSettings.from_yaml('restore.yaml')

        # Access nested settings
        interval = settings.polling.poll_interval_seconds
    """
    backend: BackendType = Field(BackendType.AZURE, description="Backup service backend")
    azure: AzureSettings = Field(default_factory=AzureSettings,
                                 description="Subscription, vault and sign-in settings")
    polling: PollingSettings = Field(default_factory=PollingSettings,
                                     description="Job observation settings")
    recovery_points: RecoveryPointSettings = Field(default_factory=RecoveryPointSettings,
                                                   description="Recovery point lookup settings")
    export: ExportSettings = Field(default_factory=ExportSettings,
                                   description="Job export settings")
    logging: LoggingSettings = Field(default_factory=LoggingSettings,
                                     description="Diagnostic logging settings")

    model_config = SettingsConfigDict(
        env_prefix="AFS_RESTORE_",
        case_sensitive=False,
        env_nested_delimiter="__"
    )

    @classmethod
    def from_yaml(cls, yaml_file: Union[str, Path]) -> "RestoreToolSettings":
        """Load settings from YAML file"""
        import yaml
        with open(yaml_file, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self) -> str:
        """Render the effective settings as YAML."""
        return to_yaml_str(self)


def load_settings(config_path: Optional[str] = None) -> RestoreToolSettings:
    """
    Load settings from file and/or environment variables.

    Args:
        config_path: Path to YAML configuration file. If None or the file
                    doesn't exist, falls back to environment variables and
                    default values.

    Returns:
        RestoreToolSettings object with loaded configuration
    """
    if config_path and os.path.exists(config_path):
        return RestoreToolSettings.from_yaml(config_path)
    return RestoreToolSettings()
