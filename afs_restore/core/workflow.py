"""
Restore Workflow

The interactive restore flow: connect, pick a vault, a protected file share
and a recovery point, choose scope, destination and conflict policy, confirm,
submit, watch the job and optionally export the result.

Every step that finds nothing to choose from, and every failure reported by
the service before a job exists, ends the flow early with a message. Nothing
is submitted without the operator's confirmation.
"""

import logging
import threading
from typing import List, Optional

from ..exceptions import (
    BackupServiceError,
    JobExportError,
    JobStatusError,
    SelectionAbortedError,
    ServiceConnectionError,
    VaultNotFoundError,
)
from ..models.entities import (
    ConflictPolicy,
    ProtectedItem,
    RecoveryPoint,
    RestoreScope,
    SourceFileType,
    Subscription,
    Vault,
)
from ..models.parameters import AlternateLocation, OriginalLocation, RestoreSelection
from ..models.results import JobWaitResult, StopReason
from ..selection.selector import Selector
from ..utils.console import (
    format_timestamp,
    print_error,
    print_info,
    print_job_progress,
    print_job_report,
    print_note,
    print_section,
    print_step,
    print_success,
    print_warning,
)
from ..utils.export import export_job
from .manager import RestoreManager

logger = logging.getLogger(__name__)

SCOPE_OPTIONS = [
    (RestoreScope.FULL, "Full share restore"),
    (RestoreScope.SPECIFIC, "Specific files or folders"),
]
DESTINATION_OPTIONS = ["Original location", "Alternate location"]
CONFLICT_OPTIONS = [
    (ConflictPolicy.OVERWRITE, "Overwrite existing files"),
    (ConflictPolicy.SKIP, "Skip existing files"),
]

STOP_MESSAGES = {
    StopReason.CANCELLED: "Stopped watching the job. It keeps running in the backup service.",
    StopReason.TIMEOUT: "Maximum wait reached before the job finished. It keeps running in the backup service.",
    StopReason.MAX_POLLS: "Maximum number of status checks reached. The job keeps running in the backup service.",
    StopReason.UNKNOWN_STATUS: "The service reported a status this tool does not recognise; stopped watching.",
}


def _render_subscription(sub: Subscription) -> str:
    return f"{sub.display_name or '(no name)'} ({sub.subscription_id})"


def _render_vault(vault: Vault) -> str:
    location = f", {vault.location}" if vault.location else ""
    return f"{vault.name} (resource group: {vault.resource_group}{location})"


def _render_item(item: ProtectedItem) -> str:
    return f"{item.friendly_name} (storage account: {item.storage_account_name})"


def _render_recovery_point(point: RecoveryPoint) -> str:
    kind = f" [{point.type}]" if point.type else ""
    return f"{format_timestamp(point.time)}{kind}"


class RestoreWorkflow:
    """
    Sequenced interactive restore.

    Example:
        ```python
        workflow = RestoreWorkflow(
            manager,
            Selector(ScriptedInput(answers)),
            vault_name="V1"
        )
        result = workflow.run()
        ```
    """

    def __init__(
        self,
        manager: RestoreManager,
        selector: Selector,
        subscription_id: Optional[str] = None,
        resource_group: Optional[str] = None,
        vault_name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None
    ):
        """
        Args:
            manager: Restore manager for all service calls
            selector: Prompt helper with the operator's input source
            subscription_id: Subscription to use; prompted for when absent and required
            resource_group: Restricts the vault lookup
            vault_name: Pre-selects the vault
            cancel_event: Setting it stops job observation
        """
        self.manager = manager
        self.selector = selector
        self.subscription_id = subscription_id
        self.resource_group = resource_group
        self.vault_name = vault_name
        self.cancel_event = cancel_event or threading.Event()
        self.monitoring = False
        self.job_id: Optional[str] = None

    def cancel_monitoring(self) -> None:
        """Stop watching the job; the remote job is not affected."""
        self.cancel_event.set()

    def run(self) -> Optional[JobWaitResult]:
        """
        Run the flow.

        Returns:
            The job observation result, or None if the flow ended before a job was watched
        """
        print_section("Azure Files Restore")
        try:
            return self._run()
        except SelectionAbortedError as e:
            logger.info(f"Input aborted at prompt {e.prompt!r}")
            print()
            if self.job_id:
                print_warning(f"Input ended. Restore job {self.job_id} was already submitted.")
            else:
                print_warning("Input ended. No restore was submitted.")
            return None
        finally:
            self.monitoring = False

    def _run(self) -> Optional[JobWaitResult]:
        print_step(1, "Connecting to the backup service")
        try:
            self.manager.connect()
        except ServiceConnectionError as e:
            logger.error(f"Connection failed: {e}")
            print_error(f"Could not connect: {e.message}")
            return None
        print_success("Connected")

        try:
            if not self._choose_subscription():
                return None

            print_step(2, "Selecting the Recovery Services vault")
            vault = self._choose_vault()
            if vault is None:
                return None

            print_step(3, "Selecting the protected file share")
            item = self._choose_item(vault)
            if item is None:
                return None

            print_step(4, "Selecting the recovery point")
            point = self._choose_recovery_point(vault, item)
            if point is None:
                return None
        except (ServiceConnectionError, BackupServiceError) as e:
            logger.error(f"Lookup failed: {e}")
            print_error(f"Backup service request failed: {e.message}")
            return None

        print_step(5, "Choosing what to restore")
        scope, paths = self._choose_scope()

        print_step(6, "Choosing where to restore")
        destination = self._choose_destination()

        print_step(7, "Choosing how to handle existing files")
        policy = self.selector.select(
            "If a restored file already exists", CONFLICT_OPTIONS, render=lambda o: o[1]
        )[0]

        selection = RestoreSelection(
            vault=vault,
            item=item,
            recovery_point=point,
            scope=scope,
            paths=tuple(paths),
            source_file_type=SourceFileType.FILE,
            destination=destination,
            conflict_policy=policy
        )

        print_step(8, "Review")
        self._print_summary(selection)
        if not self.selector.confirm("Start the restore?"):
            print_note("Restore cancelled. Nothing was submitted.")
            return None

        print_step(9, "Submitting the restore")
        submission = self.manager.submit_restore(selection)
        if not submission.success:
            print_error(f"Restore submission failed: {submission.error_message}")
            return None
        logger.info(f"Restore {submission.job_id} submitted in {submission.execution_time_ms:.0f} ms")
        self.job_id = submission.job_id
        print_success(f"Restore job started: {submission.job_id}")

        print_step(10, "Watching the restore job")
        result = self._watch(vault, submission.job_id)
        if result is None:
            return None

        print_job_report(result.job)
        self._offer_export(result)
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _choose_subscription(self) -> bool:
        if self.subscription_id:
            self.manager.use_subscription(self.subscription_id)
            return True
        if not self.manager.needs_subscription:
            return True

        subscriptions = self.manager.list_subscriptions()
        if not subscriptions:
            print_error("No subscriptions are available to the signed-in account")
            return False
        sub = self.selector.select("Select a subscription", subscriptions, render=_render_subscription)
        self.manager.use_subscription(sub.subscription_id)
        print_info("Subscription", _render_subscription(sub))
        return True

    def _choose_vault(self) -> Optional[Vault]:
        if self.vault_name:
            try:
                vault = self.manager.find_vault(self.vault_name, self.resource_group)
            except VaultNotFoundError as e:
                print_error(e.message)
                if e.available_vaults:
                    print_info("Available vaults", ", ".join(e.available_vaults))
                return None
            print_info("Vault", _render_vault(vault))
            return vault

        vaults = self.manager.list_vaults(self.resource_group)
        if not vaults:
            where = f" in resource group '{self.resource_group}'" if self.resource_group else ""
            print_error(f"No Recovery Services vaults found{where}")
            return None
        return self.selector.select("Select a vault", vaults, render=_render_vault)

    def _choose_item(self, vault: Vault) -> Optional[ProtectedItem]:
        items = self.manager.list_file_share_items(vault)
        if not items:
            print_error(f"No protected file shares found in vault '{vault.name}'")
            return None
        return self.selector.select("Select a file share", items, render=_render_item)

    def _choose_recovery_point(self, vault: Vault, item: ProtectedItem) -> Optional[RecoveryPoint]:
        points = self.manager.list_recovery_points(vault, item)
        if not points:
            days = self.manager.config.recovery_point_lookback_days
            print_error(f"No recovery points for '{item.friendly_name}' in the last {days} days")
            return None
        return self.selector.select(
            "Select a recovery point (most recent first)", points, render=_render_recovery_point
        )

    def _choose_scope(self):
        scope = self.selector.select("What do you want to restore", SCOPE_OPTIONS, render=lambda o: o[1])[0]
        paths: List[str] = []
        if scope == RestoreScope.SPECIFIC:
            paths = self.selector.read_paths("Enter the paths to restore, relative to the share root")
        return scope, paths

    def _choose_destination(self):
        choice = self.selector.choose_index("Restore destination", DESTINATION_OPTIONS)
        if choice == 0:
            return OriginalLocation()
        return AlternateLocation(
            storage_account=self.selector.read_text("Target storage account"),
            share_name=self.selector.read_text("Target file share"),
            target_folder=self.selector.read_text("Target folder (empty for the share root)", allow_empty=True)
        )

    @staticmethod
    def _print_summary(selection: RestoreSelection) -> None:
        print_info("Vault", selection.vault.name)
        print_info("File share", _render_item(selection.item))
        print_info("Recovery point", _render_recovery_point(selection.recovery_point))
        if selection.is_item_level:
            print_info("Restore", f"{len(selection.paths)} path(s)")
            for path in selection.paths:
                print(f"      - {path}")
        else:
            print_info("Restore", "Full share")
        destination = selection.destination
        if isinstance(destination, AlternateLocation):
            target = f"{destination.storage_account}/{destination.share_name}"
            if destination.target_folder:
                target += f"/{destination.target_folder}"
            print_info("Destination", f"Alternate location ({target})")
        else:
            print_info("Destination", "Original location")
        print_info("Existing files", selection.conflict_policy.value)

    def _watch(self, vault: Vault, job_id: str) -> Optional[JobWaitResult]:
        print_note("Press Ctrl+C to stop watching. The restore keeps running in the backup service.")
        self.monitoring = True
        try:
            result = self.manager.wait_for_job(
                vault, job_id, cancel_event=self.cancel_event, on_update=print_job_progress
            )
        except JobStatusError as e:
            logger.error(f"Job status request failed: {e}")
            print_error(f"Could not read the status of job {job_id}: {e.message}")
            return None
        finally:
            self.monitoring = False

        print_info("Observed statuses", ", ".join(status.value for status in result.status_history))
        if not result.reached_terminal:
            print_warning(STOP_MESSAGES[result.stop_reason])
        return result

    def _offer_export(self, result: JobWaitResult) -> None:
        if not self.selector.confirm("Export the job details to a JSON file?"):
            return
        path = self.selector.read_text("Export file path")
        config = self.manager.config
        try:
            written = export_job(result.job, path, max_depth=config.export_max_depth, indent=config.export_indent)
        except JobExportError as e:
            print_error(f"Export failed: {e.message}")
            return
        print_success(f"Job details written to {written}")
