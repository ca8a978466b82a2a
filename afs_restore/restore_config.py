"""
Restore Operation Configuration

Runtime configuration for restore operations, providing a single source of
truth for the tunable parameters the manager and job monitor use: polling
cadence and bounds, submission tracking, the recovery point window and the
export depth.

It is normally derived from `RestoreToolSettings`, but can be built directly
by code that drives the manager without the settings layer.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from .config.settings import RestoreToolSettings, UnknownStatusPolicy

logger = logging.getLogger(__name__)


@dataclass
class RestoreOperationConfig:
    """
    Configuration for restore operations.

    Polling Settings:
        poll_interval_seconds: Wait before the first re-poll (default: 10)
        backoff_factor: Multiplier applied to the wait after each poll (default: 1.0, fixed)
        max_poll_interval_seconds: Upper bound on the wait between polls (default: 60)
        max_wait_seconds: Maximum total observation time, None for unbounded (default: 6 hours)
        max_polls: Maximum number of status requests, None for unbounded
        unknown_status_policy: Handling of unrecognised job statuses

    Submission Settings:
        operation_status_interval_seconds: Poll interval while a submitted restore waits for a job id
        operation_status_timeout_seconds: Maximum wait for a job id

    Lookup Settings:
        recovery_point_lookback_days: Recovery point window (default: 30)

    Export Settings:
        export_max_depth: Nesting depth kept in exported job records (default: 10)
        export_indent: JSON indentation of exported job records

    Example:
        ```python
        config = RestoreOperationConfig(
            poll_interval_seconds=5.0,
            backoff_factor=2.0,
            max_wait_seconds=3600.0
        )
        manager = RestoreManager(backend, config=config)
        ```
    """

    # Polling Settings
    poll_interval_seconds: float = 10.0
    backoff_factor: float = 1.0
    max_poll_interval_seconds: float = 60.0
    max_wait_seconds: Optional[float] = 21600.0  # 6 hours
    max_polls: Optional[int] = None
    unknown_status_policy: UnknownStatusPolicy = UnknownStatusPolicy.KEEP_POLLING

    # Submission Settings
    operation_status_interval_seconds: float = 2.0
    operation_status_timeout_seconds: float = 300.0

    # Lookup Settings
    recovery_point_lookback_days: int = 30

    # Export Settings
    export_max_depth: int = 10
    export_indent: int = 2

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ValueError: If any configuration parameter is invalid
        """
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be at least 1.0")
        if self.max_poll_interval_seconds < self.poll_interval_seconds:
            raise ValueError("max_poll_interval_seconds cannot be smaller than poll_interval_seconds")

        if self.max_wait_seconds is not None and self.max_wait_seconds <= 0:
            raise ValueError("max_wait_seconds must be positive or None")
        if self.max_polls is not None and self.max_polls <= 0:
            raise ValueError("max_polls must be positive or None")

        if not self.is_bounded:
            logger.warning(
                "Job observation is unbounded: polling continues until the "
                "service reports a terminal status"
            )

        if self.operation_status_interval_seconds <= 0:
            raise ValueError("operation_status_interval_seconds must be positive")
        if self.operation_status_timeout_seconds <= 0:
            raise ValueError("operation_status_timeout_seconds must be positive")

        if self.recovery_point_lookback_days <= 0:
            raise ValueError("recovery_point_lookback_days must be positive")

        if self.export_max_depth < 1:
            raise ValueError("export_max_depth must be at least 1")
        if self.export_indent < 0:
            raise ValueError("export_indent cannot be negative")

    @classmethod
    def from_settings(cls, settings: RestoreToolSettings) -> 'RestoreOperationConfig':
        """
        Create configuration from loaded settings.

        Args:
            settings: Settings loaded from environment and/or YAML

        Returns:
            RestoreOperationConfig instance
        """
        polling = settings.polling
        return cls(
            poll_interval_seconds=polling.poll_interval_seconds,
            backoff_factor=polling.backoff_factor,
            max_poll_interval_seconds=max(polling.max_poll_interval_seconds, polling.poll_interval_seconds),
            max_wait_seconds=polling.max_wait_seconds,
            max_polls=polling.max_polls,
            unknown_status_policy=polling.unknown_status_policy,
            operation_status_interval_seconds=polling.operation_status_interval_seconds,
            operation_status_timeout_seconds=polling.operation_status_timeout_seconds,
            recovery_point_lookback_days=settings.recovery_points.lookback_days,
            export_max_depth=settings.export.max_depth,
            export_indent=settings.export.indent
        )

    @property
    def is_bounded(self) -> bool:
        """Check if job observation has any bound."""
        return self.max_wait_seconds is not None or self.max_polls is not None

    @property
    def uses_backoff(self) -> bool:
        """Check if the wait between polls grows."""
        return self.backoff_factor > 1.0

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (
            f"RestoreOperationConfig("
            f"interval={self.poll_interval_seconds}s, "
            f"backoff={self.backoff_factor}x up to {self.max_poll_interval_seconds}s, "
            f"max_wait={self.max_wait_seconds}, "
            f"max_polls={self.max_polls}"
            f")"
        )
