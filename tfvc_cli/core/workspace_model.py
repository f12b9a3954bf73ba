"""
Editable, observable model of one workspace.

The model is owned by the interactive thread: setters are called there and
listeners fire there. Loading, saving and syncing run on the
``OperationExecutor``; their results are handed back through the
``UiDispatcher`` and only then applied to the model, so a listener never
sees a mutation without its notification.
"""

from concurrent.futures import Future
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from tfvc_cli.core import commands
from tfvc_cli.core.context import RepositoryContext, RepositoryResolver, ServerContext, ServerContextProvider
from tfvc_cli.core.executor import OperationExecutor, UiDispatcher
from tfvc_cli.core.notifications import Notifier
from tfvc_cli.core.runner import CommandRunner
from tfvc_cli.exceptions import NotAuthorized, TfvcError, ValidationFailure
from tfvc_cli.messages import get_exception_message, message
from tfvc_cli.models import NO_ERRORS, Location, Mapping, ValidationInfo, Workspace, are_mappings_different
from tfvc_cli.utils.logger import get_logger

logger = get_logger()

PROP_NAME = "name"
PROP_COMPUTER = "computer"
PROP_OWNER = "owner"
PROP_COMMENT = "comment"
PROP_SERVER = "server"
PROP_MAPPINGS = "mappings"
PROP_LOADING = "loading"
PROP_SAVING = "saving"
PROP_SYNCING = "syncing"
PROP_LOCATION = "location"

KEY_NAME_EMPTY = "Workspace.Dialog.Errors.NameEmpty"
KEY_MAPPINGS_EMPTY = "Workspace.Dialog.Errors.MappingsEmpty"
KEY_CONTEXT_FAILED = "Workspace.Dialog.Errors.ContextFailed"
KEY_NOT_FOUND = "Workspace.Dialog.Errors.NotFound"
KEY_NOT_FOUND_FOR_PATH = "Workspace.Dialog.Errors.NotFoundForPath"

Listener = Callable[["WorkspaceModel", Optional[str]], None]


class WorkspaceState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"
    DIRTY = "dirty"
    SAVING = "saving"
    SYNCING = "syncing"


class WorkspaceModel:
    def __init__(
        self,
        runner: CommandRunner,
        executor: OperationExecutor,
        dispatcher: UiDispatcher,
        notifier: Notifier,
        context_provider: Optional[ServerContextProvider] = None,
        repository_resolver: Optional[RepositoryResolver] = None,
    ):
        self.runner = runner
        self.executor = executor
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.context_provider = context_provider
        self.repository_resolver = repository_resolver

        self._listeners: List[Listener] = []
        self._loading = False
        self._saving = False
        self._syncing = False
        self._name: Optional[str] = None
        self._computer: Optional[str] = None
        self._owner: Optional[str] = None
        self._comment: Optional[str] = None
        self._server: Optional[str] = None
        self._mappings: List[Mapping] = []
        self._location: Optional[Location] = None

        # Last fetched or saved workspace; saves are diffed against it
        self._old_workspace: Optional[Workspace] = None
        self.current_server_context: Optional[ServerContext] = None

    # Observers

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, prop: Optional[str]) -> None:
        """Fire a change event; ``None`` means every field may have changed."""
        for listener in list(self._listeners):
            listener(self, prop)

    # Fields

    @property
    def loading(self) -> bool:
        return self._loading

    def _set_loading(self, loading: bool) -> None:
        self._loading = loading
        self._notify(PROP_LOADING)

    @property
    def saving(self) -> bool:
        return self._saving

    def _set_saving(self, saving: bool) -> None:
        self._saving = saving
        self._notify(PROP_SAVING)

    @property
    def syncing(self) -> bool:
        return self._syncing

    def _set_syncing(self, syncing: bool) -> None:
        self._syncing = syncing
        self._notify(PROP_SYNCING)

    def _set_field(self, attr: str, prop: str, value) -> None:
        if getattr(self, attr) != value:
            setattr(self, attr, value)
            self._notify(prop)

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._set_field("_name", PROP_NAME, value)

    @property
    def computer(self) -> Optional[str]:
        return self._computer

    @computer.setter
    def computer(self, value: Optional[str]) -> None:
        self._set_field("_computer", PROP_COMPUTER, value)

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @owner.setter
    def owner(self, value: Optional[str]) -> None:
        self._set_field("_owner", PROP_OWNER, value)

    @property
    def comment(self) -> Optional[str]:
        return self._comment

    @comment.setter
    def comment(self, value: Optional[str]) -> None:
        self._set_field("_comment", PROP_COMMENT, value)

    @property
    def server(self) -> Optional[str]:
        return self._server

    @server.setter
    def server(self, value: Optional[str]) -> None:
        self._set_field("_server", PROP_SERVER, value)

    @property
    def mappings(self) -> Tuple[Mapping, ...]:
        return tuple(self._mappings)

    @mappings.setter
    def mappings(self, value: Sequence[Mapping]) -> None:
        if are_mappings_different(self._mappings, value):
            self._mappings = list(value)
            self._notify(PROP_MAPPINGS)

    @property
    def location(self) -> Optional[Location]:
        return self._location

    @location.setter
    def location(self, value: Optional[Location]) -> None:
        self._set_field("_location", PROP_LOCATION, value)

    @property
    def old_workspace(self) -> Optional[Workspace]:
        return self._old_workspace

    def current_workspace(self) -> Workspace:
        """Snapshot of the edited fields."""
        location = self._location or Location.UNKNOWN
        # Loading shows an unknown location as local; that is not an edit
        if (self._old_workspace is not None and self._old_workspace.location == Location.UNKNOWN
                and location == Location.LOCAL):
            location = Location.UNKNOWN
        return Workspace(
            server=self._server or "",
            name=self._name or "",
            computer=self._computer or "",
            owner=self._owner or "",
            comment=self._comment or "",
            mappings=tuple(self._mappings),
            location=location,
        )

    @property
    def is_dirty(self) -> bool:
        if self._old_workspace is None:
            return False
        return self.current_workspace() != self._old_workspace

    @property
    def state(self) -> WorkspaceState:
        if self._loading:
            return WorkspaceState.LOADING
        if self._saving:
            return WorkspaceState.SAVING
        if self._syncing:
            return WorkspaceState.SYNCING
        if self._old_workspace is None:
            return WorkspaceState.EMPTY
        if self.is_dirty:
            return WorkspaceState.DIRTY
        return WorkspaceState.LOADED

    def validate(self) -> ValidationInfo:
        if not self._name:
            return ValidationInfo(field=PROP_NAME, message_key=KEY_NAME_EMPTY, message=message(KEY_NAME_EMPTY))
        if not self._mappings:
            return ValidationInfo(field=PROP_MAPPINGS, message_key=KEY_MAPPINGS_EMPTY,
                                  message=message(KEY_MAPPINGS_EMPTY))
        return NO_ERRORS

    # Loading

    def load_workspace_for_project(self, project_path: Union[str, Path]) -> Future:
        """Load the workspace mapping a local project directory."""
        logger.info("loadWorkspace starting")
        project_path = Path(project_path)

        def fetch():
            logger.info("loadWorkspace: getting repository context")
            repository_context = self.repository_resolver(project_path) if self.repository_resolver else None
            if repository_context is None or not repository_context.url or not repository_context.team_project_name:
                logger.warning("loadWorkspace: Could not determine repositoryContext for project")
                raise TfvcError(message(KEY_CONTEXT_FAILED), key=KEY_CONTEXT_FAILED)
            context = self._create_context(repository_context)
            logger.info("loadWorkspace: getting workspace")
            workspace = commands.get_detailed_workspace(self.runner, context, project_path)
            if workspace is None:
                raise TfvcError(message(KEY_NOT_FOUND_FOR_PATH, project_path), key=KEY_NOT_FOUND_FOR_PATH,
                                params=(str(project_path),))
            return context, workspace

        return self._load(fetch)

    def load_workspace_by_name(self, repository_context: RepositoryContext, workspace_name: str) -> Future:
        logger.info("loadWorkspace starting")
        if repository_context is None:
            raise ValueError("repository_context is required")
        if not workspace_name:
            raise ValueError("workspace_name must not be empty")

        def fetch():
            context = self._create_context(repository_context)
            logger.info("loadWorkspace: getting workspace by name")
            workspace = commands.get_workspace(self.runner, context, workspace_name)
            if workspace is None:
                raise TfvcError(message(KEY_NOT_FOUND, workspace_name), key=KEY_NOT_FOUND, params=(workspace_name,))
            return context, workspace

        return self._load(fetch)

    def load_workspace(self, server_context: ServerContext, workspace: Workspace) -> Future:
        logger.info("loadWorkspace starting")
        if server_context is None:
            raise ValueError("server_context is required")
        if workspace is None:
            raise ValueError("workspace is required")

        def fetch():
            logger.info("loadWorkspace: already have context so load workspace")
            return server_context, workspace

        return self._load(fetch)

    def _create_context(self, repository_context: RepositoryContext) -> ServerContext:
        logger.info("loadWorkspace: getting server context")
        context = None
        if self.context_provider is not None:
            context = self.context_provider.create_context(
                repository_context.url, repository_context.team_project_name, prompt=True)
        if context is None:
            logger.warning("loadWorkspace: Could not get the context for the repository. User may have canceled.")
            raise NotAuthorized(repository_context.url or "")
        return context

    def _load(self, fetch: Callable[[], Tuple[ServerContext, Optional[Workspace]]]) -> Future:
        self._set_loading(True)

        def run() -> bool:
            try:
                context, workspace = fetch()
            except Exception as e:
                logger.warning(f"loadWorkspace failed: {e}")
                self.dispatcher.run_on_ui(partial(self._load_complete, None, None, e))
                return False
            self.dispatcher.run_on_ui(partial(self._load_complete, context, workspace, None))
            return True

        return self.executor.submit(run)

    def _load_complete(self, context: Optional[ServerContext], workspace: Optional[Workspace],
                       error: Optional[BaseException]) -> None:
        if error is not None:
            self.notifier.notify_error(
                message("Workspace.Dialog.Notify.LoadFailure.Title"), get_exception_message(error))
        else:
            self.current_server_context = context
            self._apply(workspace)
        # Update all fields
        self._notify(None)
        self._set_loading(False)
        logger.info("loadWorkspace: done loading")

    def _apply(self, workspace: Workspace) -> None:
        logger.info("loadWorkspace: got workspace, setting fields")
        self._old_workspace = workspace
        self._server = workspace.server
        self._owner = workspace.owner
        self._computer = workspace.computer
        self._name = workspace.name
        self._comment = workspace.comment
        self._mappings = list(workspace.mappings)
        self._location = Location.LOCAL if workspace.location == Location.UNKNOWN else workspace.location

    # Saving and syncing

    def save_workspace(self, workspace_root_path: Union[str, Path], sync_files: bool,
                       on_success: Optional[Callable[[], None]] = None) -> Future:
        """
        Push the edited fields to the server, optionally syncing afterwards.

        Raises ``ValidationFailure`` immediately when ``validate`` fails.
        The returned future resolves to ``True`` on success and ``False``
        on failure; failures are reported through the notifier.
        """
        info = self.validate()
        if not info.ok:
            raise ValidationFailure(info)

        context = self.current_server_context
        baseline = self._old_workspace
        new_workspace = self.current_workspace()
        self._set_saving(True)
        return self.executor.submit(
            self.save_workspace_internal, context, baseline, new_workspace, workspace_root_path, sync_files, on_success)

    def save_workspace_internal(self, context: Optional[ServerContext], baseline: Optional[Workspace],
                                new_workspace: Workspace, workspace_root_path: Union[str, Path],
                                sync_files: bool, on_success: Optional[Callable[[], None]]) -> bool:
        try:
            if context is None:
                raise NotAuthorized()
            if baseline is None:
                raise TfvcError("No workspace has been loaded")
            logger.info(message("Workspace.Dialog.Save.Progress.Updating"))
            commands.update_workspace(self.runner, context, baseline, new_workspace)
            if sync_files:
                logger.info(message("Workspace.Dialog.Save.Progress.Syncing"))
                commands.sync_workspace(self.runner, context, workspace_root_path)
            logger.info(message("Workspace.Dialog.Save.Progress.Done"))
        except Exception as e:
            logger.warning(f"saveWorkspace failed: {e}")
            self.dispatcher.run_on_ui(partial(self._save_failed, e))
            return False
        self.dispatcher.run_on_ui(
            partial(self._save_succeeded, context, new_workspace, workspace_root_path, on_success))
        return True

    def _save_succeeded(self, context: ServerContext, saved: Workspace, workspace_root_path: Union[str, Path],
                        on_success: Optional[Callable[[], None]]) -> None:
        self._old_workspace = saved
        self._set_saving(False)
        if on_success is not None:
            # The success handler is responsible for telling the user
            on_success()
        else:
            self.notifier.notify_success(
                message("Workspace.Dialog.Notify.Success.Title"),
                message("Workspace.Dialog.Notify.Success.Message"),
                action=partial(self.sync_workspace, context, workspace_root_path),
            )

    def _save_failed(self, error: BaseException) -> None:
        self._set_saving(False)
        self.notifier.notify_error(
            message("Workspace.Dialog.Notify.Failure.Title"), get_exception_message(error))

    def sync_workspace(self, context: Optional[ServerContext], workspace_root_path: Union[str, Path]) -> Future:
        """Get all files under the workspace root in the background."""
        self.dispatcher.run_on_ui(partial(self._set_syncing, True))

        def run() -> bool:
            try:
                if context is None:
                    raise NotAuthorized()
                logger.info(message("Workspace.Dialog.Save.Progress.Syncing"))
                commands.sync_workspace(self.runner, context, workspace_root_path)
            except Exception as e:
                logger.warning(f"syncWorkspace failed: {e}")
                self.dispatcher.run_on_ui(partial(self._sync_complete, e))
                return False
            self.dispatcher.run_on_ui(partial(self._sync_complete, None))
            return True

        return self.executor.submit(run)

    def _sync_complete(self, error: Optional[BaseException]) -> None:
        self._set_syncing(False)
        if error is None:
            self.notifier.notify_success(
                message("Workspace.Dialog.Notify.Success.Title"),
                message("Workspace.Dialog.Notify.Success.SyncMessage"))
        else:
            self.notifier.notify_error(
                message("Workspace.Dialog.Notify.Failure.Title"), get_exception_message(error))
