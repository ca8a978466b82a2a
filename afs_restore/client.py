"""
Backup Service Session

This module provides the session object every remote call goes through:
it owns the Azure credential and the management SDK clients, and is
created once by the CLI and passed explicitly to the backend.
"""

from typing import List, Optional
import logging

from azure.core.exceptions import AzureError, ClientAuthenticationError
from azure.identity import DefaultAzureCredential, DeviceCodeCredential, InteractiveBrowserCredential
from azure.mgmt.recoveryservices import RecoveryServicesClient
from azure.mgmt.recoveryservicesbackup.activestamp import RecoveryServicesBackupClient
from azure.mgmt.resource import SubscriptionClient

from .config.settings import AzureSettings, AuthMode
from .exceptions import ServiceConnectionError
from .models.entities import Subscription

# Logger setup
logger = logging.getLogger(__name__)

ARM_SCOPE = "https://management.azure.com/.default"


class BackupServiceSession:
    """
    Authenticated session against the Azure management plane.

    SDK clients are created lazily for the selected subscription and
    recreated when the subscription changes.

    Example:
        ```python
        session = BackupServiceSession(settings.azure)
        session.connect()
        session.use_subscription("00000000-0000-0000-0000-000000000000")
        backend = AzureBackupBackend(session, config)
        ```
    """

    def __init__(self, settings: Optional[AzureSettings] = None, credential=None):
        """
        Initialize the session.

        Args:
            settings: Azure settings; defaults are loaded from the environment if None
            credential: Pre-built azure-identity credential (skips credential creation)
        """
        self.settings = settings or AzureSettings()
        self._credential = credential
        self._subscription_id: Optional[str] = self.settings.subscription_id
        self._vaults_client: Optional[RecoveryServicesClient] = None
        self._backup_client: Optional[RecoveryServicesBackupClient] = None

    def _create_credential(self):
        """Build the credential selected by the auth mode."""
        mode = self.settings.auth_mode
        tenant_id = self.settings.tenant_id
        if mode == AuthMode.INTERACTIVE:
            return InteractiveBrowserCredential(tenant_id=tenant_id) if tenant_id else InteractiveBrowserCredential()
        if mode == AuthMode.DEVICE_CODE:
            return DeviceCodeCredential(tenant_id=tenant_id) if tenant_id else DeviceCodeCredential()
        return DefaultAzureCredential()

    def connect(self) -> None:
        """
        Sign in and verify a management-plane token can be obtained.

        Raises:
            ServiceConnectionError: If authentication fails
        """
        if self._credential is None:
            self._credential = self._create_credential()
        try:
            self._credential.get_token(ARM_SCOPE)
        except ClientAuthenticationError as e:
            logger.error(f"Authentication failed: {e}")
            raise ServiceConnectionError(
                f"Authentication failed: {e.message}",
                subscription_id=self._subscription_id
            ) from e
        except AzureError as e:
            logger.error(f"Failed to reach the Azure management endpoint: {e}")
            raise ServiceConnectionError(
                f"Failed to reach the Azure management endpoint: {e}",
                subscription_id=self._subscription_id
            ) from e

        logger.info(f"Session connected (auth_mode={self.settings.auth_mode.value})")

    @property
    def credential(self):
        if self._credential is None:
            raise ServiceConnectionError("Session is not connected")
        return self._credential

    @property
    def subscription_id(self) -> Optional[str]:
        return self._subscription_id

    def use_subscription(self, subscription_id: str) -> None:
        """Select the subscription subsequent calls run against."""
        if subscription_id != self._subscription_id:
            self._close_clients()
            self._subscription_id = subscription_id
            logger.info(f"Using subscription {subscription_id}")

    def _require_subscription(self) -> str:
        if not self._subscription_id:
            raise ServiceConnectionError("No subscription selected for the session")
        return self._subscription_id

    def list_subscriptions(self) -> List[Subscription]:
        """List the subscriptions visible to the signed-in identity."""
        try:
            with SubscriptionClient(self.credential) as client:
                return [
                    Subscription(
                        subscription_id=sub.subscription_id,
                        display_name=sub.display_name or "",
                        state=str(sub.state) if sub.state is not None else None
                    )
                    for sub in client.subscriptions.list()
                ]
        except AzureError as e:
            logger.error(f"Failed to list subscriptions: {e}")
            raise ServiceConnectionError(f"Failed to list subscriptions: {e}") from e

    @property
    def vaults_client(self) -> RecoveryServicesClient:
        """Recovery Services client (vault enumeration)."""
        if self._vaults_client is None:
            self._vaults_client = RecoveryServicesClient(self.credential, self._require_subscription())
        return self._vaults_client

    @property
    def backup_client(self) -> RecoveryServicesBackupClient:
        """Recovery Services Backup client (items, recovery points, restores, jobs)."""
        if self._backup_client is None:
            self._backup_client = RecoveryServicesBackupClient(self.credential, self._require_subscription())
        return self._backup_client

    def _close_clients(self) -> None:
        for client in (self._vaults_client, self._backup_client):
            if client is not None:
                client.close()
        self._vaults_client = None
        self._backup_client = None

    def close(self) -> None:
        """Close the SDK clients and release the credential."""
        self._close_clients()
        close = getattr(self._credential, "close", None)
        if callable(close):
            close()
        logger.info("Session closed")
