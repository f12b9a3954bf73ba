"""
Parsers for the tool's output.

``status`` and ``workspaces`` are requested with ``-format:xml``; ``info``,
``delete``, ``checkout`` and ``undo`` print a plain listing where a line
ending in ``:`` names the directory of the lines that follow it.
"""

import os
import re
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

from tfvc_cli.core.runner import parse_failure
from tfvc_cli.models import (
    CheckoutResult,
    DeleteResult,
    ItemInfo,
    Location,
    Mapping,
    PendingChange,
    ToolOutput,
    Workspace,
    to_change_types,
)

ItemT = TypeVar("ItemT", bound=ItemInfo)

NOT_FOUND_PATTERNS = [
    re.compile(r"^The item (?P<path>.+?) could not be found", re.IGNORECASE),
    re.compile(r"^No items match (?P<path>.+?)\.?$", re.IGNORECASE),
    re.compile(r"^(?P<path>.+?): No file matches\.?$", re.IGNORECASE),
]
UNDO_LINE = re.compile(r"^Undoing (?:[\w ,]+): (?P<name>.+)$")


def _parse_xml(command: str, stdout: str) -> ET.Element:
    try:
        return ET.fromstring(stdout.strip())
    except ET.ParseError as e:
        raise parse_failure(command, str(e)) from e


def parse_status_xml(stdout: str) -> List[PendingChange]:
    if not stdout.strip():
        return []
    root = _parse_xml("status", stdout)
    changes: List[PendingChange] = []
    for section, candidate in (("pending-changes", False), ("candidate-pending-changes", True)):
        for node in root.iter(section):
            for item in node.iter("pending-change"):
                server_item = item.get("server-item")
                if not server_item:
                    raise parse_failure("status", "pending change without server-item")
                changes.append(PendingChange(
                    server_item=server_item,
                    local_item=item.get("local-item"),
                    version=item.get("version", ""),
                    owner=item.get("owner", ""),
                    date=item.get("date", ""),
                    lock=item.get("lock", ""),
                    change_types=tuple(to_change_types(item.get("change-type", ""))),
                    workspace=item.get("workspace", ""),
                    computer=item.get("computer", ""),
                    is_candidate=candidate,
                    source_item=item.get("source-item"),
                ))
    return changes


# "Label:" in the info listing -> field, per section
INFO_FIELDS: Dict[Tuple[str, str], str] = {
    ("local", "local path"): "local_item",
    ("local", "server path"): "server_item",
    ("local", "changeset"): "local_version",
    ("local", "change"): "change",
    ("local", "type"): "type",
    ("server", "server path"): "server_item",
    ("server", "changeset"): "server_version",
    ("server", "deletion id"): "deletion_id",
    ("server", "lock"): "lock",
    ("server", "lock owner"): "lock_owner",
    ("server", "last modified"): "date",
    ("server", "type"): "type",
    ("server", "file type"): "file_encoding",
}
INT_FIELDS = {"local_version", "server_version", "deletion_id"}


def _build_item(fields: Dict[str, str], item_type: Type[ItemT]) -> ItemT:
    values: Dict[str, object] = {}
    for name, raw in fields.items():
        if name in INT_FIELDS:
            try:
                values[name] = int(raw) if raw else 0
            except ValueError as e:
                raise parse_failure("info", f"{name} is not a number: {raw!r}") from e
        elif name == "file_encoding":
            values[name] = raw or None
        else:
            values[name] = raw
    return item_type(**values)


def iter_item_infos(lines: Iterable[str], item_type: Type[ItemT] = ItemInfo) -> Iterator[ItemT]:
    """Lazily parse ``tf info`` blocks, one item per ``Local information:`` header."""
    section: Optional[str] = None
    fields: Dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if stripped == "Local information:":
            if fields:
                yield _build_item(fields, item_type)
            fields = {}
            section = "local"
            continue
        if stripped == "Server information:":
            if section == "server" and fields:
                yield _build_item(fields, item_type)
                fields = {}
            section = "server"
            continue
        if section is None or stripped.lower().startswith("no items match"):
            continue
        label, sep, value = stripped.partition(":")
        if not sep:
            raise parse_failure("info", f"unexpected line {stripped!r}")
        field = INFO_FIELDS.get((section, label.strip().lower()))
        if field:
            fields[field] = value.strip()
    if fields:
        yield _build_item(fields, item_type)


def _iter_listing(stdout: str) -> Iterator[str]:
    """Full paths from a directory-grouped listing."""
    directory: Optional[str] = None
    for line in stdout.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.endswith(":") and (os.path.isabs(stripped[:-1]) or stripped.startswith("$/")):
            directory = stripped[:-1]
            continue
        yield stripped if directory is None else _join(directory, stripped)


def _join(directory: str, name: str) -> str:
    if directory.startswith("$/"):
        return directory.rstrip("/") + "/" + name
    return os.path.join(directory, name)


def _split_stderr(stderr: str) -> Tuple[List[str], List[str]]:
    not_found: List[str] = []
    errors: List[str] = []
    for line in stderr.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        for pattern in NOT_FOUND_PATTERNS:
            match = pattern.match(stripped)
            if match:
                not_found.append(match.group("path"))
                break
        else:
            errors.append(stripped)
    return not_found, errors


def parse_delete_output(output: ToolOutput) -> DeleteResult:
    not_found, errors = _split_stderr(output.stderr)
    return DeleteResult(
        deleted_paths=list(_iter_listing(output.stdout)),
        not_found_paths=not_found,
        errors=errors,
    )


def parse_checkout_output(output: ToolOutput) -> CheckoutResult:
    not_found, errors = _split_stderr(output.stderr)
    return CheckoutResult(
        checked_out_files=list(_iter_listing(output.stdout)),
        not_found_files=not_found,
        errors=errors,
    )


def parse_undo_output(output: ToolOutput) -> List[str]:
    undone: List[str] = []
    directory: Optional[str] = None
    for line in output.stdout.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        match = UNDO_LINE.match(stripped)
        if match:
            name = match.group("name")
            undone.append(name if directory is None or os.path.isabs(name) else _join(directory, name))
        elif stripped.endswith(":"):
            directory = stripped[:-1]
    return undone


def parse_workspaces_xml(stdout: str) -> List[Workspace]:
    if not stdout.strip():
        return []
    root = _parse_xml("workspaces", stdout)
    workspaces: List[Workspace] = []
    for node in root.iter("workspace"):
        name = node.get("name")
        if not name:
            raise parse_failure("workspaces", "workspace without a name")
        mappings = []
        for folder in node.iter("working-folder"):
            server_item = folder.get("server-item")
            if not server_item:
                raise parse_failure("workspaces", "working folder without server-item")
            mappings.append(Mapping(
                server_path=server_item,
                local_path=folder.get("local-item", ""),
                cloaked=folder.get("type", "map").lower() == "cloak",
            ))
        workspaces.append(Workspace(
            server=node.get("server", ""),
            name=name,
            computer=node.get("computer", ""),
            owner=node.get("owner", ""),
            comment=node.get("comment", ""),
            mappings=tuple(mappings),
            location=Location.from_string(node.get("location")),
        ))
    return workspaces
