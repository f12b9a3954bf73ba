from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from tfvc_cli.core.context import ServerContext
from tfvc_cli.core import parsers
from tfvc_cli.core.runner import CommandRunner, ToolCommand
from tfvc_cli.models import (
    CheckoutResult,
    DeleteResult,
    ExtendedItemInfo,
    ItemInfo,
    LockLevel,
    Location,
    Mapping,
    PendingChange,
    Workspace,
    are_mappings_different,
)
from tfvc_cli.utils.logger import get_logger

logger = get_logger()


def get_status_for_files(runner: CommandRunner, context: Optional[ServerContext],
                         paths: Sequence[str]) -> List[PendingChange]:
    """Pending changes for the given local paths."""
    if not paths:
        return []
    output = runner.run(context, ToolCommand(name="status", arguments=["-format:xml", "-recursive", *paths]))
    return parsers.parse_status_xml(output.stdout)


def iter_item_infos(runner: CommandRunner, context: Optional[ServerContext],
                    paths: Sequence[str]) -> Iterator[ItemInfo]:
    if not paths:
        return iter(())
    output = runner.run(context, ToolCommand(name="info", arguments=list(paths)))
    return parsers.iter_item_infos(output.stdout.splitlines())


def get_extended_item_infos(runner: CommandRunner, context: Optional[ServerContext],
                            paths: Sequence[str]) -> List[ExtendedItemInfo]:
    if not paths:
        return []
    output = runner.run(context, ToolCommand(name="info", arguments=list(paths)))
    return list(parsers.iter_item_infos(output.stdout.splitlines(), ExtendedItemInfo))


def delete_files(runner: CommandRunner, context: Optional[ServerContext], items: Sequence[str],
                 workspace: Optional[str], recursive: bool) -> DeleteResult:
    """Pend deletes for items that all belong to ``workspace`` (``None``: resolved from local paths)."""
    if not items:
        return DeleteResult()
    args = ["-recursive"] if recursive else []
    output = runner.run(context, ToolCommand(name="delete", workspace=workspace, arguments=[*args, *items]))
    return parsers.parse_delete_output(output)


def undo_local_files(runner: CommandRunner, context: Optional[ServerContext], items: Sequence[str]) -> List[str]:
    """Undo pending changes; returns the paths the tool reports as undone."""
    if not items:
        return []
    output = runner.run(context, ToolCommand(name="undo", arguments=list(items)))
    return parsers.parse_undo_output(output)


def checkout_files_for_edit(runner: CommandRunner, context: Optional[ServerContext],
                            paths: Sequence[Union[str, Path]], recursive: bool) -> CheckoutResult:
    if not paths:
        return CheckoutResult()
    args = ["-recursive"] if recursive else []
    output = runner.run(context, ToolCommand(name="checkout", arguments=[*args, *(str(p) for p in paths)]))
    return parsers.parse_checkout_output(output)


def lock_items(runner: CommandRunner, context: Optional[ServerContext], items: Sequence[str],
               workspace: Optional[str], level: LockLevel, recursive: bool) -> None:
    if not items:
        return
    args = [f"-lock:{level.value}"]
    if recursive:
        args.append("-recursive")
    runner.run(context, ToolCommand(name="lock", workspace=workspace, arguments=[*args, *items]))


def get_workspace(runner: CommandRunner, context: Optional[ServerContext], name: str) -> Optional[Workspace]:
    """Look up a workspace by name; ``None`` when the server has no such workspace."""
    output = runner.run(context, ToolCommand(name="workspaces", arguments=["-format:xml", name]))
    for workspace in parsers.parse_workspaces_xml(output.stdout):
        if workspace.name == name:
            return workspace
    return None


def get_detailed_workspace(runner: CommandRunner, context: Optional[ServerContext],
                           local_path: Union[str, Path]) -> Optional[Workspace]:
    """The workspace that maps ``local_path``, found by running from that directory."""
    output = runner.run(context, ToolCommand(
        name="workspaces",
        arguments=["-format:xml"],
        working_directory=Path(local_path),
    ))
    workspaces = parsers.parse_workspaces_xml(output.stdout)
    return workspaces[0] if workspaces else None


def _mapping_arguments(mapping: Mapping, remove: bool) -> List[str]:
    if mapping.cloaked:
        return ["-decloak" if remove else "-cloak", mapping.server_path]
    if remove:
        return ["-unmap", mapping.server_path]
    return ["-map", mapping.server_path, mapping.local_path]


def update_workspace(runner: CommandRunner, context: Optional[ServerContext],
                     old: Workspace, new: Workspace) -> None:
    """
    Push the difference between two workspace snapshots.

    Workspace properties go through one ``workspace -edit`` invocation;
    mappings are diffed by value, removed mappings are unmapped first and
    added mappings are mapped in their listed order. Nothing is invoked
    when the snapshots are equal.
    """
    if old == new:
        logger.debug(f"Workspace {old.name} unchanged; nothing to update")
        return

    properties = []
    if new.name != old.name:
        properties.append(f"-newname:{new.name}")
    if new.comment != old.comment:
        properties.append(f"-comment:{new.comment}")
    if new.computer != old.computer:
        properties.append(f"-computer:{new.computer}")
    if new.owner != old.owner:
        properties.append(f"-newowner:{new.owner}")
    if new.location != old.location and new.location != Location.UNKNOWN:
        properties.append(f"-location:{new.location.value.lower()}")
    if properties:
        logger.info(f"Updating workspace {old.name}: {' '.join(properties)}")
        runner.run(context, ToolCommand(name="workspace", arguments=["-edit", *properties, old.name]))

    if not are_mappings_different(old.mappings, new.mappings):
        return
    removed = [m for m in old.mappings if m not in new.mappings]
    added = [m for m in new.mappings if m not in old.mappings]
    for mapping in removed:
        runner.run(context, ToolCommand(name="workfold", workspace=new.name,
                                        arguments=_mapping_arguments(mapping, remove=True)))
    for mapping in added:
        runner.run(context, ToolCommand(name="workfold", workspace=new.name,
                                        arguments=_mapping_arguments(mapping, remove=False)))


def sync_workspace(runner: CommandRunner, context: Optional[ServerContext], root_path: Union[str, Path]) -> None:
    """Get the latest version of everything under ``root_path``."""
    logger.info(f"Syncing {root_path}")
    runner.run(context, ToolCommand(name="get", arguments=["-recursive", str(root_path)],
                                    working_directory=Path(root_path)))
