from typing import Dict, Iterable, List, Optional

from tfvc_cli.exceptions import UnrecognizedPathKind
from tfvc_cli.models import LocalPath, ServerPath, TfsPath


def workspace_of(path: TfsPath) -> Optional[str]:
    """Grouping key: the server path's workspace, ``None`` for local paths."""
    match path:
        case LocalPath():
            return None
        case ServerPath(workspace=workspace):
            return workspace
        case _:
            raise UnrecognizedPathKind(path)


def group_by_workspace(paths: Iterable[TfsPath]) -> Dict[Optional[str], List[TfsPath]]:
    """
    Partition paths by workspace. The tool accepts one active workspace per
    invocation, so every batched call is issued per group. Groups appear in
    first-seen order and keep the input order of their paths.
    """
    groups: Dict[Optional[str], List[TfsPath]] = {}
    for path in paths:
        groups.setdefault(workspace_of(path), []).append(path)
    return groups
