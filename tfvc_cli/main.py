import typer
from pathlib import Path
from typing import List, Optional

app = typer.Typer()
workspace_app = typer.Typer(help="Show, edit and sync the TFVC workspace.")
app.add_typer(workspace_app, name="workspace")


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
    log_file: Path = typer.Option(None, "--log-file", help="Path to log file")
):
    """
    TFVC CLI
    """
    from tfvc_cli.utils.logger import setup_logging
    setup_logging(debug, log_file)
    if debug:
        from tfvc_cli.utils.logger import get_logger
        logger = get_logger()
        logger.debug("Debug mode enabled")


def _session():
    """Config, runner and server context for the current directory."""
    from tfvc_cli.config import load_config
    from tfvc_cli.core.context import StaticContextProvider
    from tfvc_cli.core.runner import ShellCommandRunner

    config = load_config()
    if config.log_path:
        from tfvc_cli.utils.logger import setup_logging
        setup_logging(log_file=config.log_path)
    runner = ShellCommandRunner(config)
    context = StaticContextProvider(config).create_context(config.collection_url, config.team_project)
    return config, runner, context


def _to_tfs_paths(raw_paths: List[str], workspace: Optional[str]):
    from tfvc_cli.models import LocalPath, ServerPath, canonicalize_server_path

    paths = []
    for raw in raw_paths:
        if raw.startswith("$"):
            if not workspace:
                typer.echo(f"Error: server path {raw} needs --workspace (or 'workspace' in tfvc.json)", err=True)
                raise typer.Exit(code=1)
            paths.append(ServerPath(path=canonicalize_server_path(raw), workspace=workspace))
        else:
            paths.append(LocalPath(path=raw))
    return paths


def _fail(e: Exception):
    from tfvc_cli.messages import get_exception_message
    typer.echo(f"Error: {get_exception_message(e)}", err=True)
    raise typer.Exit(code=1)


@app.command()
def status(paths: List[str] = typer.Argument(None, help="Local paths (default: current directory)")):
    """
    Show pending changes.

    Example:

    $ tfvc status src/
    """
    from rich.console import Console
    from rich.table import Table
    from tfvc_cli.core.client import TfvcClient
    from tfvc_cli.core.executor import OperationExecutor

    try:
        config, runner, context = _session()
        with OperationExecutor(config.max_workers) as executor:
            changes = TfvcClient(runner, executor).get_status_for_files(context, paths or [str(Path.cwd())])
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    if not changes:
        typer.echo("No pending changes.")
        return
    table = Table("Change", "Server item", "Local item")
    for change in changes:
        kinds = ", ".join(c.value for c in change.change_types)
        if change.is_candidate:
            kinds += " (candidate)"
        table.add_row(kinds, change.server_item, change.local_item or "")
    Console().print(table)


@app.command()
def info(
    paths: List[str] = typer.Argument(..., help="Local paths to describe"),
):
    """
    Show local and server information for items, as the tool reports it.
    """
    from tfvc_cli.core.client import TfvcClient
    from tfvc_cli.core.executor import OperationExecutor

    def show(item):
        typer.echo(f"{item.server_item}")
        typer.echo(f"  local:   {item.local_item} (version {item.local_version})")
        typer.echo(f"  server:  version {item.server_version}, {item.type}, change {item.change}")
        if item.lock != "none":
            typer.echo(f"  lock:    {item.lock} by {item.lock_owner}")

    try:
        config, runner, context = _session()
        with OperationExecutor(config.max_workers) as executor:
            TfvcClient(runner, executor).get_local_items_info(context, paths, show)
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


@app.command()
def delete(
    paths: List[str] = typer.Argument(..., help="Local paths or $/ server paths"),
    workspace: str = typer.Option(None, help="Workspace owning the server paths"),
):
    """
    Schedule items for deletion, recursively.

    Example:

    $ tfvc delete old/ $/Project/legacy --workspace my-ws
    """
    from tfvc_cli.core.client import TfvcClient
    from tfvc_cli.core.executor import OperationExecutor

    try:
        config, runner, context = _session()
        items = _to_tfs_paths(paths, workspace or config.workspace)
        with OperationExecutor(config.max_workers) as executor:
            result = TfvcClient(runner, executor).delete_files_recursively(context, items)
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    for path in result.deleted_paths:
        typer.echo(f"Deleted: {path}")
    for path in result.not_found_paths:
        typer.echo(f"Not found: {path}")
    for error in result.errors:
        typer.echo(f"Error: {error}", err=True)
    if result.errors:
        raise typer.Exit(code=1)


@app.command()
def undo(
    paths: List[str] = typer.Argument(..., help="Local paths or $/ server paths"),
    workspace: str = typer.Option(None, help="Workspace owning the server paths"),
):
    """
    Undo pending changes.
    """
    from tfvc_cli.core.client import TfvcClient
    from tfvc_cli.core.executor import OperationExecutor

    try:
        config, runner, context = _session()
        items = _to_tfs_paths(paths, workspace or config.workspace)
        with OperationExecutor(config.max_workers) as executor:
            undone = TfvcClient(runner, executor).undo_local_changes(context, items)
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    for path in undone:
        typer.echo(f"Undone: {path.path}")


@app.command()
def checkout(
    paths: List[str] = typer.Argument(..., help="Local paths to check out"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Check out directories recursively"),
):
    """
    Check out files for edit.
    """
    from tfvc_cli.core.client import TfvcClient
    from tfvc_cli.core.executor import OperationExecutor

    try:
        config, runner, context = _session()
        with OperationExecutor(config.max_workers) as executor:
            result = TfvcClient(runner, executor).checkout_for_edit(context, paths, recursive)
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    for path in result.checked_out_files:
        typer.echo(f"Checked out: {path}")
    for path in result.not_found_files:
        typer.echo(f"Not found: {path}")
    for error in result.errors:
        typer.echo(f"Error: {error}", err=True)
    if result.errors:
        raise typer.Exit(code=1)


def _change_locks(paths: List[str], workspace: Optional[str], level, recursive: bool):
    from tfvc_cli.core.client import TfvcClient
    from tfvc_cli.core.executor import OperationExecutor
    from tfvc_cli.core.locking import LockSelection
    from tfvc_cli.models import LockLevel, path_item

    try:
        config, runner, context = _session()
        items = _to_tfs_paths(paths, workspace or config.workspace)
        with OperationExecutor(config.max_workers) as executor:
            client = TfvcClient(runner, executor)
            infos = client.get_extended_items_info(context, [path_item(p) for p in items])
            # Every named path is part of the request
            selection = LockSelection(infos)
            for index in range(len(selection.items)):
                selection.set_selected(index, True)
            allowed = selection.can_unlock if level == LockLevel.NONE else selection.can_lock
            if not allowed:
                state = "unlocked" if level == LockLevel.NONE else "locked"
                typer.echo(f"Error: some items are already {state}", err=True)
                raise typer.Exit(code=1)
            client.lock_items(context, items, level, recursive)
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


@app.command()
def lock(
    paths: List[str] = typer.Argument(..., help="Local paths or $/ server paths"),
    level: str = typer.Option("checkout", help="Lock level: checkin or checkout"),
    recursive: bool = typer.Option(False, "--recursive", "-r"),
    workspace: str = typer.Option(None, help="Workspace owning the server paths"),
):
    """
    Lock items. Refused when any item is already locked.
    """
    from tfvc_cli.models import LockLevel

    lock_level = LockLevel.from_string(level)
    if lock_level == LockLevel.NONE:
        typer.echo(f"Error: unknown lock level '{level}'", err=True)
        raise typer.Exit(code=1)
    _change_locks(paths, workspace, lock_level, recursive)
    typer.echo(f"Locked {len(paths)} item(s) ({lock_level.value}).")


@app.command()
def unlock(
    paths: List[str] = typer.Argument(..., help="Local paths or $/ server paths"),
    recursive: bool = typer.Option(False, "--recursive", "-r"),
    workspace: str = typer.Option(None, help="Workspace owning the server paths"),
):
    """
    Remove locks. Refused when any item is not locked.
    """
    from tfvc_cli.models import LockLevel

    _change_locks(paths, workspace, LockLevel.NONE, recursive)
    typer.echo(f"Unlocked {len(paths)} item(s).")


def _load_model(config, runner, name: Optional[str]):
    """Build a model and load it synchronously, by name or for the current directory."""
    from tfvc_cli.core.context import StaticContextProvider, config_repository_resolver
    from tfvc_cli.core.executor import OperationExecutor, QueuedDispatcher
    from tfvc_cli.core.notifications import ConsoleNotifier
    from tfvc_cli.core.workspace_model import WorkspaceModel

    executor = OperationExecutor(config.max_workers)
    dispatcher = QueuedDispatcher()
    resolver = config_repository_resolver(config)
    model = WorkspaceModel(
        runner, executor, dispatcher, ConsoleNotifier(),
        context_provider=StaticContextProvider(config),
        repository_resolver=resolver,
    )
    if name:
        repository_context = resolver(config.root_path or Path.cwd())
        if repository_context is None:
            from tfvc_cli.exceptions import TfvcError
            from tfvc_cli.messages import message
            raise TfvcError(message("Workspace.Dialog.Errors.ContextFailed"))
        future = model.load_workspace_by_name(repository_context, name)
    else:
        future = model.load_workspace_for_project(Path.cwd())
    loaded = future.result()
    dispatcher.process_pending()
    return model, executor, dispatcher, loaded


def _show_model(model):
    from rich.console import Console
    from rich.table import Table

    console = Console()
    console.print(f"[bold]{model.name}[/bold] ({model.location.value if model.location else 'unknown'})")
    console.print(f"Owner: {model.owner}  Computer: {model.computer}")
    if model.comment:
        console.print(f"Comment: {model.comment}")
    table = Table("Server path", "Local path", "Cloaked")
    for mapping in model.mappings:
        table.add_row(mapping.server_path, mapping.local_path, "yes" if mapping.cloaked else "")
    console.print(table)


@workspace_app.command("show")
def workspace_show(name: str = typer.Option(None, help="Workspace name (default: the one mapping this directory)")):
    """
    Show workspace properties and working folder mappings.
    """
    try:
        config, runner, _ = _session()
        model, executor, _, loaded = _load_model(config, runner, name)
        executor.shutdown()
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    if not loaded or not model.name:
        raise typer.Exit(code=1)
    _show_model(model)


@workspace_app.command("edit")
def workspace_edit(
    name: str = typer.Option(None, help="Workspace to edit (default: the one mapping this directory)"),
    new_name: str = typer.Option(None, "--new-name"),
    comment: str = typer.Option(None),
    computer: str = typer.Option(None),
    owner: str = typer.Option(None),
    map_: List[str] = typer.Option(None, "--map", help="Add mapping SERVER=LOCAL"),
    unmap: List[str] = typer.Option(None, "--unmap", help="Remove mappings for a server path"),
    cloak: List[str] = typer.Option(None, "--cloak", help="Cloak a server path"),
    sync: bool = typer.Option(False, "--sync", help="Get files after saving"),
):
    """
    Edit workspace properties and mappings, then save.

    Examples:

    $ tfvc workspace edit --comment "build agent"

    $ tfvc workspace edit --map '$/Project/lib=/src/lib' --unmap '$/Project/old' --sync
    """
    from tfvc_cli.exceptions import ValidationFailure
    from tfvc_cli.models import Mapping, canonicalize_server_path

    try:
        config, runner, _ = _session()
        model, executor, dispatcher, loaded = _load_model(config, runner, name)
        if not loaded:
            executor.shutdown()
            raise typer.Exit(code=1)

        if new_name is not None:
            model.name = new_name
        if comment is not None:
            model.comment = comment
        if computer is not None:
            model.computer = computer
        if owner is not None:
            model.owner = owner

        mappings = list(model.mappings)
        for server_path in unmap or []:
            server_path = canonicalize_server_path(server_path)
            mappings = [m for m in mappings if m.server_path != server_path]
        for entry in map_ or []:
            if "=" not in entry:
                typer.echo(f"Error: mapping '{entry}' must be SERVER=LOCAL", err=True)
                raise typer.Exit(code=1)
            server_path, local_path = entry.split("=", 1)
            mappings.append(Mapping(server_path=canonicalize_server_path(server_path),
                                    local_path=str(Path(local_path).resolve())))
        for server_path in cloak or []:
            mappings.append(Mapping(server_path=canonicalize_server_path(server_path), cloaked=True))
        model.mappings = mappings

        root = config.root_path or Path.cwd()
        saved = model.save_workspace(root, sync).result()
        dispatcher.process_pending()
        executor.shutdown()
    except ValidationFailure as e:
        typer.echo(f"Error: {e.info.message}", err=True)
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    if not saved:
        raise typer.Exit(code=1)


@workspace_app.command("sync")
def workspace_sync(path: Path = typer.Argument(None, help="Workspace root (default: config root or cwd)")):
    """
    Get the latest version of every file under the workspace root.
    """
    from tfvc_cli.core.executor import OperationExecutor, QueuedDispatcher
    from tfvc_cli.core.notifications import ConsoleNotifier
    from tfvc_cli.core.workspace_model import WorkspaceModel

    try:
        config, runner, context = _session()
        dispatcher = QueuedDispatcher()
        with OperationExecutor(config.max_workers) as executor:
            model = WorkspaceModel(runner, executor, dispatcher, ConsoleNotifier())
            synced = model.sync_workspace(context, path or config.root_path or Path.cwd()).result()
        dispatcher.process_pending()
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)

    if not synced:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
