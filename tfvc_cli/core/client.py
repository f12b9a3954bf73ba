from concurrent.futures import Future
from functools import reduce
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from tfvc_cli.core import commands
from tfvc_cli.core.context import ServerContext
from tfvc_cli.core.executor import OperationExecutor
from tfvc_cli.core.grouping import group_by_workspace
from tfvc_cli.core.runner import CommandRunner
from tfvc_cli.exceptions import NotAuthorized, TfvcError
from tfvc_cli.models import (
    CheckoutResult,
    DeleteResult,
    ExtendedItemInfo,
    ItemInfo,
    LocalPath,
    LockLevel,
    PendingChange,
    TfsPath,
    path_item,
)
from tfvc_cli.utils.logger import get_logger

logger = get_logger()


def _require_context(context: Optional[ServerContext]) -> ServerContext:
    if context is None:
        raise NotAuthorized()
    return context


class TfvcClient:
    """
    Version control operations over arbitrary path sets.

    Each operation has a blocking form that raises on failure and an
    ``*_async`` form that returns a ``Future`` completing with the same
    result or exception. Operations that take ``TfsPath`` items issue one
    tool invocation per workspace group and merge the results.
    """

    def __init__(self, runner: CommandRunner, executor: OperationExecutor):
        self.runner = runner
        self.executor = executor

    def get_status_for_files(self, context: Optional[ServerContext], paths: Sequence[str]) -> List[PendingChange]:
        return commands.get_status_for_files(self.runner, _require_context(context), list(paths))

    def get_status_for_files_async(self, context: Optional[ServerContext], paths: Sequence[str]) -> Future:
        return self.executor.submit(self.get_status_for_files, context, paths)

    def get_local_items_info(self, context: Optional[ServerContext], paths: Sequence[str],
                             on_item_received: Callable[[ItemInfo], None]) -> None:
        for item in commands.iter_item_infos(self.runner, _require_context(context), list(paths)):
            on_item_received(item)

    def get_local_items_info_async(self, context: Optional[ServerContext], paths: Sequence[str],
                                   on_item_received: Callable[[ItemInfo], None]) -> Future:
        return self.executor.submit(self.get_local_items_info, context, paths, on_item_received)

    def get_extended_items_info(self, context: Optional[ServerContext], paths: Sequence[str]) -> List[ExtendedItemInfo]:
        return commands.get_extended_item_infos(self.runner, _require_context(context), list(paths))

    def get_extended_items_info_async(self, context: Optional[ServerContext], paths: Sequence[str]) -> Future:
        return self.executor.submit(self.get_extended_items_info, context, paths)

    def delete_files_recursively(self, context: Optional[ServerContext], items: Sequence[TfsPath]) -> DeleteResult:
        """
        Delete items, one invocation per workspace group.

        Groups run in sequence. A failing group raises; groups already
        processed are not rolled back and their merged result is attached
        to the error as ``partial_result``.
        """
        context = _require_context(context)
        results = []
        try:
            for workspace, group in group_by_workspace(items).items():
                logger.debug(f"Deleting {len(group)} item(s) in workspace {workspace or '<local>'}")
                results.append(commands.delete_files(
                    self.runner, context, [path_item(p) for p in group], workspace, recursive=True))
        except TfvcError as e:
            e.partial_result = reduce(DeleteResult.merge_with, results, DeleteResult())
            raise
        return reduce(DeleteResult.merge_with, results, DeleteResult())

    def delete_files_recursively_async(self, context: Optional[ServerContext], items: Sequence[TfsPath]) -> Future:
        return self.executor.submit(self.delete_files_recursively, context, items)

    def undo_local_changes(self, context: Optional[ServerContext], items: Sequence[TfsPath]) -> List[LocalPath]:
        """Undo pending changes. Returns only the paths the tool actually undid."""
        undone = commands.undo_local_files(self.runner, _require_context(context), [path_item(p) for p in items])
        return [LocalPath(path=p) for p in undone]

    def undo_local_changes_async(self, context: Optional[ServerContext], items: Sequence[TfsPath]) -> Future:
        return self.executor.submit(self.undo_local_changes, context, items)

    def checkout_for_edit(self, context: Optional[ServerContext], paths: Sequence[Union[str, Path]],
                          recursive: bool) -> CheckoutResult:
        return commands.checkout_files_for_edit(self.runner, _require_context(context), list(paths), recursive)

    def checkout_for_edit_async(self, context: Optional[ServerContext], paths: Sequence[Union[str, Path]],
                                recursive: bool) -> Future:
        return self.executor.submit(self.checkout_for_edit, context, paths, recursive)

    def lock_items(self, context: Optional[ServerContext], items: Sequence[TfsPath], level: LockLevel,
                   recursive: bool) -> None:
        context = _require_context(context)
        for workspace, group in group_by_workspace(items).items():
            commands.lock_items(self.runner, context, [path_item(p) for p in group], workspace, level, recursive)

    def lock_items_async(self, context: Optional[ServerContext], items: Sequence[TfsPath], level: LockLevel,
                         recursive: bool) -> Future:
        return self.executor.submit(self.lock_items, context, items, level, recursive)
