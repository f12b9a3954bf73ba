from enum import Enum
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict


class Location(str, Enum):
    LOCAL = "LOCAL"
    SERVER = "SERVER"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Location":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Mapping(BaseModel):
    """One working folder: server path <-> local path, or a cloak."""

    model_config = ConfigDict(frozen=True)

    server_path: str
    local_path: str = ""
    cloaked: bool = False


class Workspace(BaseModel):
    """Immutable snapshot of a workspace's configuration."""

    model_config = ConfigDict(frozen=True)

    server: str = ""
    name: str
    computer: str = ""
    owner: str = ""
    comment: str = ""
    mappings: Tuple[Mapping, ...] = ()
    location: Location = Location.UNKNOWN


def are_mappings_different(old: Optional[Sequence[Mapping]], new: Optional[Sequence[Mapping]]) -> bool:
    """Ordered, element-wise comparison; ``None`` counts as empty."""
    return list(old or ()) != list(new or ())
