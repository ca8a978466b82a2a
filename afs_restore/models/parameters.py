"""
Restore Parameters

Defines the operator's restore selection and the request built from it.
The destination is a tagged union, and the request carries its optional
fields only when the scope or destination calls for them.
"""

from typing import Any, Dict, List, Optional, Tuple, Union, Literal, Annotated
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .entities import (
    ConflictPolicy,
    DestinationKind,
    ProtectedItem,
    RecoveryPoint,
    RestoreScope,
    SourceFileType,
    Vault,
)


class OriginalLocation(BaseModel):
    """Restore over the share the backup was taken from."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["Original"] = DestinationKind.ORIGINAL.value

    @property
    def is_alternate(self) -> bool:
        return False


class AlternateLocation(BaseModel):
    """
    Restore into another share.

    Attributes:
        storage_account: Target storage account name (must be registered with the vault)
        share_name: Target file share name
        target_folder: Folder inside the target share; None restores to the share root

    Example:
        ```python
        destination = AlternateLocation(storage_account="sa2", share_name="share2")
        destination.target_folder  # None
        ```
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["Alternate"] = DestinationKind.ALTERNATE.value
    storage_account: str = Field(..., min_length=1, description="Target storage account name")
    share_name: str = Field(..., min_length=1, description="Target file share name")
    target_folder: Optional[str] = Field(default=None, description="Target folder (optional)")

    @field_validator("storage_account", "share_name", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("target_folder", mode="before")
    @classmethod
    def empty_folder_is_none(cls, v):
        """An empty or blank folder means the share root."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def is_alternate(self) -> bool:
        return True


Destination = Annotated[
    Union[OriginalLocation, AlternateLocation],
    Field(discriminator="kind")
]


class RestoreSelection(BaseModel):
    """
    Everything the operator chose for one restore.

    Built step by step by the workflow and frozen once complete.

    Attributes:
        vault: Vault holding the backup
        item: Protected file share to restore from
        recovery_point: Snapshot to restore
        scope: FULL share or SPECIFIC paths
        paths: Paths to restore, relative to the share root (SPECIFIC only)
        source_file_type: Marker sent with each path
        destination: OriginalLocation or AlternateLocation
        conflict_policy: What to do with files that already exist
    """
    model_config = ConfigDict(frozen=True)

    vault: Vault
    item: ProtectedItem
    recovery_point: RecoveryPoint
    scope: RestoreScope = RestoreScope.FULL
    paths: Tuple[str, ...] = Field(default_factory=tuple)
    source_file_type: SourceFileType = SourceFileType.FILE
    destination: Destination = Field(default_factory=OriginalLocation)
    conflict_policy: ConflictPolicy = ConflictPolicy.OVERWRITE

    @model_validator(mode="after")
    def check_paths_match_scope(self) -> "RestoreSelection":
        """Paths are present exactly when the scope is SPECIFIC."""
        if self.scope == RestoreScope.SPECIFIC and not self.paths:
            raise ValueError("at least one path is required for a SPECIFIC restore")
        if self.scope == RestoreScope.FULL and self.paths:
            raise ValueError("paths are only allowed for a SPECIFIC restore")
        return self

    @property
    def is_item_level(self) -> bool:
        return self.scope == RestoreScope.SPECIFIC


class RestoreRequest(BaseModel):
    """
    The request sent to the service to start a restore.

    Optional fields stay None unless the selection needs them, so
    `to_service_fields()` omits them entirely.

    Example:
        ```python
        request = RestoreRequest.from_selection(selection)
        request.to_service_fields()
        # {'recovery_point_id': '...', 'conflict_policy': 'Overwrite', 'scope': 'Full'}
        ```
    """
    recovery_point_id: str = Field(..., description="Recovery point to restore from")
    conflict_policy: ConflictPolicy = Field(..., description="Conflict resolution")
    scope: RestoreScope = Field(..., description="Restore scope")
    source_file_paths: Optional[List[str]] = Field(default=None, description="Paths (SPECIFIC only)")
    source_file_type: Optional[SourceFileType] = Field(default=None, description="Path marker (SPECIFIC only)")
    target_storage_account: Optional[str] = Field(default=None, description="Alternate storage account")
    target_file_share: Optional[str] = Field(default=None, description="Alternate file share")
    target_folder: Optional[str] = Field(default=None, description="Alternate folder")

    @classmethod
    def from_selection(cls, selection: RestoreSelection) -> "RestoreRequest":
        """Build the request, filling conditional fields from the scope and destination."""
        fields: Dict[str, Any] = {
            "recovery_point_id": selection.recovery_point.id,
            "conflict_policy": selection.conflict_policy,
            "scope": selection.scope,
        }
        if selection.scope == RestoreScope.SPECIFIC:
            fields["source_file_paths"] = list(selection.paths)
            fields["source_file_type"] = selection.source_file_type
        destination = selection.destination
        if isinstance(destination, AlternateLocation):
            fields["target_storage_account"] = destination.storage_account
            fields["target_file_share"] = destination.share_name
            if destination.target_folder:
                fields["target_folder"] = destination.target_folder
        return cls(**fields)

    @property
    def is_item_level(self) -> bool:
        return self.source_file_paths is not None

    @property
    def is_alternate_location(self) -> bool:
        return self.target_storage_account is not None

    def to_service_fields(self) -> Dict[str, Any]:
        """Request fields with absent optional fields removed."""
        return self.model_dump(mode="json", exclude_none=True)
