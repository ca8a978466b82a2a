"""
Restore Validator

Checks restore selections and requests against the request invariants
before anything is sent to the service.
"""

import logging
from typing import List, Optional

from ..restore_config import RestoreOperationConfig
from ..models.entities import RestoreScope
from ..models.parameters import AlternateLocation, RestoreRequest, RestoreSelection
from ..exceptions import RestoreValidationError

logger = logging.getLogger(__name__)


class RestoreValidator:
    """
    Validator for restore operations.

    Provides validation methods for:
    - Restore selections (scope, paths, destination)
    - Restore requests (conditional fields present only when required)

    Example:
        ```python
        validator = RestoreValidator(config)

        validator.validate_selection(selection)
        request = RestoreRequest.from_selection(selection)
        validator.validate_request(request, vault_name=selection.vault.name)
        ```
    """

    def __init__(self, config: RestoreOperationConfig):
        """
        Initialize restore validator.

        Args:
            config: Restore operation configuration
        """
        self.config = config
        logger.debug("RestoreValidator initialized")

    @staticmethod
    def _path_errors(paths) -> List[str]:
        errors = []
        for index, path in enumerate(paths, start=1):
            if not path or not path.strip():
                errors.append(f"Path {index} is empty")
            elif ".." in path.replace("\\", "/").split("/"):
                errors.append(f"Path '{path}' must not contain '..' segments")
        return errors

    def validate_selection(self, selection: RestoreSelection) -> None:
        """
        Validate an operator's restore selection.

        Args:
            selection: Completed selection

        Raises:
            RestoreValidationError: If the selection violates an invariant
        """
        errors: List[str] = []

        if not selection.recovery_point.id:
            errors.append("Recovery point has no identifier")

        if selection.scope == RestoreScope.SPECIFIC:
            if not selection.paths:
                errors.append("Specific restore requires at least one path")
            errors.extend(self._path_errors(selection.paths))
        elif selection.paths:
            errors.append("Full share restore must not list paths")

        destination = selection.destination
        if isinstance(destination, AlternateLocation):
            if not destination.storage_account:
                errors.append("Alternate location requires a storage account")
            if not destination.share_name:
                errors.append("Alternate location requires a file share name")

        if errors:
            raise RestoreValidationError(
                "Restore selection is invalid",
                vault_name=selection.vault.name,
                validation_errors=errors
            )

        logger.debug(f"Restore selection validated for '{selection.item.friendly_name}'")

    def validate_request(self, request: RestoreRequest, vault_name: Optional[str] = None) -> None:
        """
        Validate a restore request's conditional fields.

        Args:
            request: Request about to be submitted
            vault_name: Vault name, used in the error

        Raises:
            RestoreValidationError: If a conditional field is present or missing out of place
        """
        errors: List[str] = []

        if not request.recovery_point_id:
            errors.append("recovery_point_id is required")

        if request.scope == RestoreScope.SPECIFIC:
            if not request.source_file_paths:
                errors.append("source_file_paths is required for a Specific restore")
            else:
                errors.extend(self._path_errors(request.source_file_paths))
            if request.source_file_type is None:
                errors.append("source_file_type is required for a Specific restore")
        else:
            if request.source_file_paths is not None:
                errors.append("source_file_paths is only allowed for a Specific restore")
            if request.source_file_type is not None:
                errors.append("source_file_type is only allowed for a Specific restore")

        has_account = bool(request.target_storage_account)
        has_share = bool(request.target_file_share)
        if has_account != has_share:
            errors.append("target_storage_account and target_file_share must be given together")
        if request.target_folder is not None:
            if not has_account:
                errors.append("target_folder is only allowed for an alternate location restore")
            if not request.target_folder.strip():
                errors.append("target_folder must be omitted rather than empty")

        if errors:
            raise RestoreValidationError(
                "Restore request is invalid",
                vault_name=vault_name,
                validation_errors=errors
            )

        logger.debug(f"Restore request validated: {request.to_service_fields()}")
