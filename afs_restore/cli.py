#!/usr/bin/env python3
"""
Command-line entry point for the Azure Files restore assistant.

    afs-restore --subscription-id <id> --resource-group rg-backup --vault-name rsv-prod
    afs-restore --backend in_memory --answers answers.txt
    afs-restore --config restore.yaml --print-config

Exit codes: 0 when the flow ran (including early returns), 2 on invalid
configuration, 130 when interrupted outside job monitoring.
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

import yaml

from .config.settings import LoggingSettings, RestoreToolSettings, load_settings
from .core.manager import RestoreManager
from .core.workflow import RestoreWorkflow
from .exceptions import ConfigurationError
from .models.entities import BackendType
from .restore_config import RestoreOperationConfig
from .selection.selector import ConsoleInput, ScriptedInput, Selector
from .utils.console import print_error

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

UNBOUNDED = "none"


def _seconds_or_none(value: str):
    if value.strip().lower() in (UNBOUNDED, "unbounded"):
        return UNBOUNDED
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number of seconds or 'none', got '{value}'")
    if seconds <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="afs-restore",
        description="Interactively restore Azure file shares from a Recovery Services vault"
    )
    target = parser.add_argument_group("vault selection")
    target.add_argument("--subscription-id", help="Subscription containing the vault (prompted for when omitted)")
    target.add_argument("--resource-group", help="Only look for vaults in this resource group")
    target.add_argument("--vault-name", help="Vault to use (prompted for when omitted)")

    runtime = parser.add_argument_group("runtime")
    runtime.add_argument("--config", help="YAML settings file")
    runtime.add_argument("--answers",
                         help="Read answers from this file, one per line, instead of the console; "
                              "lines starting with # are comments, write \\# for an answer starting with #")
    runtime.add_argument("--backend", choices=[b.value for b in BackendType],
                         help="Backup service backend (in_memory serves demo data)")
    runtime.add_argument("--poll-interval", type=float, help="Seconds between job status checks")
    runtime.add_argument("--max-wait", type=_seconds_or_none,
                         help="Maximum seconds to watch the job, or 'none' to wait until it finishes")
    runtime.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                         help="Diagnostic log level")
    runtime.add_argument("--log-file", help="Write the diagnostic log to this file")
    runtime.add_argument("--print-config", action="store_true",
                         help="Print the effective settings as YAML and exit")
    return parser


def resolve_settings(args: argparse.Namespace) -> RestoreToolSettings:
    """
    Load settings and apply command-line overrides.

    Raises:
        ConfigurationError: If the settings file is missing or invalid
    """
    if args.config:
        try:
            settings = RestoreToolSettings.from_yaml(args.config)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Settings file not found: {args.config}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Settings file is not valid YAML: {e}") from e
    else:
        settings = load_settings()

    azure_updates = {
        key: value for key, value in (
            ("subscription_id", args.subscription_id),
            ("resource_group", args.resource_group),
            ("vault_name", args.vault_name),
        ) if value
    }
    polling_updates = {}
    if args.poll_interval is not None:
        polling_updates["poll_interval_seconds"] = args.poll_interval
    if args.max_wait is not None:
        polling_updates["max_wait_seconds"] = None if args.max_wait == UNBOUNDED else args.max_wait
    logging_updates = {
        key: value for key, value in (("log_level", args.log_level), ("log_file", args.log_file)) if value
    }

    updates = {}
    if args.backend:
        updates["backend"] = BackendType(args.backend)
    if azure_updates:
        updates["azure"] = settings.azure.model_copy(update=azure_updates)
    if polling_updates:
        updates["polling"] = settings.polling.model_copy(update=polling_updates)
    if logging_updates:
        updates["logging"] = settings.logging.model_copy(update=logging_updates)
    return settings.model_copy(update=updates) if updates else settings


def configure_logging(settings: LoggingSettings) -> None:
    """Configure the diagnostic log from settings."""
    level = getattr(logging, settings.log_level.upper(), None)
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {settings.log_level}")

    kwargs = {"level": level, "format": LOG_FORMAT, "force": True}
    if settings.log_file:
        kwargs["filename"] = settings.log_file
    logging.basicConfig(**kwargs)

    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(max(level, logging.WARNING))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args)
        config = RestoreOperationConfig.from_settings(settings)
        if args.print_config:
            print(settings.to_yaml())
            return EXIT_OK
        configure_logging(settings.logging)
        source = ScriptedInput.from_file(args.answers) if args.answers else ConsoleInput()
    except ConfigurationError as e:
        print_error(f"Invalid configuration: {e.message}")
        return EXIT_CONFIG_ERROR
    except ValueError as e:
        print_error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR
    except OSError as e:
        print_error(f"Cannot read answers file: {e}")
        return EXIT_CONFIG_ERROR

    logger.info(f"Starting restore assistant (backend={settings.backend.value}, {config!r})")
    manager = RestoreManager.from_settings(settings, config=config)
    workflow = RestoreWorkflow(
        manager,
        Selector(source),
        subscription_id=settings.azure.subscription_id,
        resource_group=settings.azure.resource_group,
        vault_name=settings.azure.vault_name
    )

    def handle_interrupt(signum, frame):
        if workflow.monitoring:
            workflow.cancel_monitoring()
        else:
            signal.default_int_handler(signum, frame)

    previous_handler = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        workflow.run()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return EXIT_INTERRUPTED
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        manager.close()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
