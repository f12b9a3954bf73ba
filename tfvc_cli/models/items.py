from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class ServerStatusType(str, Enum):
    ADD = "ADD"
    EDIT = "EDIT"
    RENAME = "RENAME"
    DELETE = "DELETE"
    UNDELETE = "UNDELETE"
    BRANCH = "BRANCH"
    MERGE = "MERGE"
    LOCK = "LOCK"
    UNKNOWN = "UNKNOWN"


# Change-type words reported by the tool; order matters for the output order.
CHANGE_TYPE_MAP: List[Tuple[str, ServerStatusType]] = [
    ("add", ServerStatusType.ADD),
    ("edit", ServerStatusType.EDIT),
    ("encoding", ServerStatusType.UNKNOWN),
    ("rename", ServerStatusType.RENAME),
    ("delete", ServerStatusType.DELETE),
    ("undelete", ServerStatusType.UNDELETE),
    ("branch", ServerStatusType.BRANCH),
    ("merge", ServerStatusType.MERGE),
    ("lock", ServerStatusType.LOCK),
    ("rollback", ServerStatusType.UNKNOWN),
    ("source rename", ServerStatusType.RENAME),
    ("target rename", ServerStatusType.UNKNOWN),
    ("property", ServerStatusType.EDIT),
]


def to_change_types(raw: str) -> List[ServerStatusType]:
    """Map a comma separated change description (``"edit, lock"``) to status types."""
    words = {part.strip().lower() for part in raw.split(",") if part.strip()}
    result: List[ServerStatusType] = []
    for word, status in CHANGE_TYPE_MAP:
        if word in words and status not in result:
            result.append(status)
    return result


class PendingChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    server_item: str
    local_item: Optional[str] = None
    version: str = ""
    owner: str = ""
    date: str = ""
    lock: str = ""
    change_types: Tuple[ServerStatusType, ...] = ()
    workspace: str = ""
    computer: str = ""
    is_candidate: bool = False
    source_item: Optional[str] = None


class ItemInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    server_item: str = ""
    local_item: str = ""
    local_version: int = 0
    server_version: int = 0
    change: str = "none"
    type: str = ""
    lock: str = "none"
    lock_owner: str = ""
    deletion_id: int = 0
    date: str = ""
    file_encoding: Optional[str] = None


class ExtendedItemInfo(ItemInfo):
    """Item info queried for lock inspection."""


class LockLevel(str, Enum):
    NONE = "none"
    CHECKIN = "checkin"
    CHECKOUT = "checkout"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "LockLevel":
        if not value:
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE
