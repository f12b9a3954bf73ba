import os
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tfvc_cli.exceptions import ServerPathFormatError, UnrecognizedPathKind

ROOT = "$/"
SEPARATOR = "/"


class LocalPath(BaseModel):
    """A filesystem path. Its workspace is resolved by the tool from context."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local"] = "local"
    path: str


class ServerPath(BaseModel):
    """A ``$/``-rooted server path qualified by the workspace it belongs to."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["server"] = "server"
    path: str
    workspace: str

    @field_validator("workspace")
    @classmethod
    def _workspace_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("server path requires a workspace name")
        return value


TfsPath = Annotated[Union[LocalPath, ServerPath], Field(discriminator="kind")]


def path_item(path: Union[LocalPath, ServerPath]) -> str:
    """The string passed to the tool for a path."""
    match path:
        case LocalPath():
            return os.path.normpath(os.path.abspath(path.path))
        case ServerPath():
            return path.path
    raise UnrecognizedPathKind(path)


def canonicalize_server_path(path: str, validate_dollar: bool = True) -> str:
    """
    Normalize a server path to ``$/a/b`` form.

    Backslashes become slashes, empty and ``.`` segments are dropped and
    ``..`` pops its parent. Raises ``ServerPathFormatError`` when the path
    is not rooted at ``$/`` or escapes the root, and, when
    ``validate_dollar`` is set, when any segment below the root starts
    with ``$``.
    """
    if not path:
        raise ServerPathFormatError(path, "path is empty")

    normalized = path.replace("\\", SEPARATOR)
    if normalized == "$":
        return ROOT
    if not normalized.startswith(ROOT):
        raise ServerPathFormatError(path, "server paths must start with $/")

    segments = []
    for segment in normalized[len(ROOT):].split(SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise ServerPathFormatError(path, "path escapes the server root")
            segments.pop()
            continue
        if validate_dollar and segment.startswith("$"):
            raise ServerPathFormatError(path, "a path segment may not start with $")
        segments.append(segment)

    return ROOT + SEPARATOR.join(segments)
