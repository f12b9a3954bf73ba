from tfvc_cli.models.items import (
    ExtendedItemInfo,
    ItemInfo,
    LockLevel,
    PendingChange,
    ServerStatusType,
    to_change_types,
)
from tfvc_cli.models.paths import LocalPath, ServerPath, TfsPath, canonicalize_server_path, path_item
from tfvc_cli.models.results import NO_ERRORS, CheckoutResult, DeleteResult, ToolOutput, ValidationInfo
from tfvc_cli.models.workspace import Location, Mapping, Workspace, are_mappings_different

__all__ = [
    "CheckoutResult",
    "DeleteResult",
    "ExtendedItemInfo",
    "ItemInfo",
    "LocalPath",
    "Location",
    "LockLevel",
    "Mapping",
    "NO_ERRORS",
    "PendingChange",
    "ServerPath",
    "ServerStatusType",
    "TfsPath",
    "ToolOutput",
    "ValidationInfo",
    "Workspace",
    "are_mappings_different",
    "canonicalize_server_path",
    "path_item",
    "to_change_types",
]
