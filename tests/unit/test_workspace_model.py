import pytest
from unittest.mock import MagicMock
from tfvc_cli.core.context import RepositoryContext, ServerContext
from tfvc_cli.core.executor import ImmediateDispatcher, OperationExecutor, QueuedDispatcher
from tfvc_cli.core.notifications import RecordingNotifier
from tfvc_cli.core.runner import MockCommandRunner
from tfvc_cli.core.workspace_model import (
    PROP_LOADING,
    PROP_MAPPINGS,
    PROP_NAME,
    WorkspaceModel,
    WorkspaceState,
)
from tfvc_cli.exceptions import ValidationFailure
from tfvc_cli.models import Location, Mapping, ToolOutput, Workspace

URL = "https://tfs/Collection"

WORKSPACES_XML = f"""<workspaces>
  <workspace name="W1" owner="alice" computer="box" comment="" server="{URL}" location="{{location}}">
    <working-folder server-item="$/P" local-item="/src" type="map"/>
  </workspace>
</workspaces>"""

@pytest.fixture
def context():
    return ServerContext(url=URL, team_project="P")

@pytest.fixture
def runner():
    return MockCommandRunner()

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
def provider(context):
    provider = MagicMock()
    provider.create_context.return_value = context
    return provider

@pytest.fixture
def executor():
    executor = OperationExecutor(max_workers=1)
    yield executor
    executor.shutdown()

@pytest.fixture
def model(runner, executor, notifier, provider):
    def resolve(project_path):
        return RepositoryContext(url=URL, team_project_name="P", local_root=project_path)

    return WorkspaceModel(runner, executor, ImmediateDispatcher(), notifier,
                          context_provider=provider, repository_resolver=resolve)

def load(model, runner, tmp_path, location="local"):
    runner.add_response("workspaces", ToolOutput(stdout=WORKSPACES_XML.format(location=location)))
    assert model.load_workspace_for_project(tmp_path).result(timeout=5) is True
    runner.calls.clear()

def test_setters_notify_only_on_change(model):
    listener = MagicMock()
    model.add_listener(listener)

    model.name = "W1"
    model.name = "W1"
    model.comment = None
    model.mappings = [Mapping(server_path="$/P", local_path="/src")]
    model.mappings = (Mapping(server_path="$/P", local_path="/src"),)

    assert [c.args for c in listener.call_args_list] == [(model, PROP_NAME), (model, PROP_MAPPINGS)]

    model.remove_listener(listener)
    model.name = "W2"
    assert listener.call_count == 2

def test_validate_checks_name_before_mappings(model):
    info = model.validate()
    assert info.field == PROP_NAME
    assert info.message_key == "Workspace.Dialog.Errors.NameEmpty"

    model.name = "W1"
    info = model.validate()
    assert info.field == PROP_MAPPINGS
    assert info.message == "The workspace must have at least one working folder mapping."

    model.mappings = [Mapping(server_path="$/P", local_path="/src")]
    assert model.validate().ok

def test_load_for_project(model, runner, provider, tmp_path, context):
    listener = MagicMock()
    model.add_listener(listener)
    runner.add_response("workspaces", ToolOutput(stdout=WORKSPACES_XML.format(location="server")))

    assert model.load_workspace_for_project(tmp_path).result(timeout=5) is True

    assert model.name == "W1"
    assert model.owner == "alice"
    assert model.computer == "box"
    assert model.server == URL
    assert model.location == Location.SERVER
    assert model.mappings == (Mapping(server_path="$/P", local_path="/src"),)
    assert model.current_server_context == context
    assert not model.loading
    assert model.state == WorkspaceState.LOADED
    assert runner.calls[0].working_directory == tmp_path
    provider.create_context.assert_called_once_with(URL, "P", prompt=True)
    assert [c.args[1] for c in listener.call_args_list] == [PROP_LOADING, None, PROP_LOADING]

def test_load_unknown_location_shows_local(model, runner, tmp_path):
    load(model, runner, tmp_path, location="")
    assert model.location == Location.LOCAL
    assert model.old_workspace.location == Location.UNKNOWN
    assert model.state == WorkspaceState.LOADED

def test_load_for_project_without_workspace(model, runner, notifier, tmp_path):
    runner.add_response("workspaces", ToolOutput(stdout="<workspaces/>"))

    assert model.load_workspace_for_project(tmp_path).result(timeout=5) is False

    assert notifier.errors == [("Unable to Load Workspace", f"No workspace maps '{tmp_path}'.", None)]
    assert model.old_workspace is None
    assert model.state == WorkspaceState.EMPTY

    assert model.state == WorkspaceState.LOADED

def test_load_without_repository_context(runner, executor, notifier, provider, tmp_path):
    model = WorkspaceModel(runner, executor, ImmediateDispatcher(), notifier,
                           context_provider=provider, repository_resolver=lambda path: None)
    listener = MagicMock()
    model.add_listener(listener)

    assert model.load_workspace_for_project(tmp_path).result(timeout=5) is False

    assert notifier.errors == [
        ("Unable to Load Workspace", "Unable to determine the TFVC repository for this project.", None)]
    assert not model.loading
    assert model.name is None
    assert runner.calls == []
    assert [c.args[1] for c in listener.call_args_list].count(None) == 1

def test_load_without_server_context(model, runner, provider, notifier, tmp_path):
    provider.create_context.return_value = None

    assert model.load_workspace_for_project(tmp_path).result(timeout=5) is False

    assert notifier.errors[0][1] == f"Unable to sign in to {URL}."
    assert runner.calls == []
    assert model.state == WorkspaceState.EMPTY

def test_load_by_name(model, runner):
    runner.add_response("workspaces", ToolOutput(stdout=WORKSPACES_XML.format(location="local")))
    repository = RepositoryContext(url=URL, team_project_name="P")

    assert model.load_workspace_by_name(repository, "W1").result(timeout=5) is True

    assert runner.calls[0].arguments == ["-format:xml", "W1"]
    assert model.name == "W1"

def test_load_by_name_missing_workspace(model, runner, notifier):
    runner.add_response("workspaces", ToolOutput(stdout="<workspaces/>"))
    listener = MagicMock()
    model.add_listener(listener)

    assert model.load_workspace_by_name(RepositoryContext(url=URL, team_project_name="P"), "W9").result(timeout=5) is False

    assert notifier.errors == [("Unable to Load Workspace", "Workspace 'W9' could not be found.", None)]
    assert model.name is None
    assert not model.loading
    assert [c.args[1] for c in listener.call_args_list] == [PROP_LOADING, None, PROP_LOADING]

def test_load_by_name_checks_arguments(model):
    with pytest.raises(ValueError):
        model.load_workspace_by_name(None, "W1")
    with pytest.raises(ValueError):
        model.load_workspace_by_name(RepositoryContext(url=URL), "")
    assert not model.loading

def test_load_given_workspace(model, runner, context):
    workspace = Workspace(name="W3", owner="bob", mappings=(Mapping(server_path="$/Q", local_path="/q"),),
                          location=Location.SERVER)

    assert model.load_workspace(context, workspace).result(timeout=5) is True

    assert model.name == "W3"
    assert model.old_workspace == workspace
    assert runner.calls == []
    with pytest.raises(ValueError):
        model.load_workspace(None, workspace)

def test_queued_dispatcher_defers_updates(runner, executor, notifier, context):
    dispatcher = QueuedDispatcher()
    model = WorkspaceModel(runner, executor, dispatcher, notifier)

    assert model.load_workspace(context, Workspace(name="W1")).result(timeout=5) is True

    assert model.name is None
    assert model.loading
    dispatcher.process_pending()
    assert model.name == "W1"
    assert not model.loading

def test_save_rejects_invalid_state(model, runner):
    with pytest.raises(ValidationFailure) as exc_info:
        model.save_workspace("/src", sync_files=False)
    assert exc_info.value.info.field == PROP_NAME
    assert not model.saving
    assert runner.calls == []

def test_save_success_notifies_with_sync_action(model, runner, notifier, tmp_path):
    load(model, runner, tmp_path)
    model.comment = "build agent"
    assert model.state == WorkspaceState.DIRTY

    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is True

    assert [c.name for c in runner.calls] == ["workspace"]
    assert runner.calls[0].arguments == ["-edit", "-comment:build agent", "W1"]
    assert model.old_workspace.comment == "build agent"
    assert model.state == WorkspaceState.LOADED
    assert not model.saving
    title, message, action = notifier.successes[0]
    assert title == "Workspace Updated"

    assert action().result(timeout=5) is True
    assert runner.calls[-1].name == "get"
    assert notifier.successes[-1][1] == "The workspace files were synced."

def test_save_with_sync_runs_on_success(model, runner, notifier, tmp_path):
    load(model, runner, tmp_path)
    model.mappings = list(model.mappings) + [Mapping(server_path="$/Q", local_path="/q")]
    on_success = MagicMock()

    assert model.save_workspace(tmp_path, sync_files=True, on_success=on_success).result(timeout=5) is True

    assert [c.name for c in runner.calls] == ["workfold", "get"]
    on_success.assert_called_once_with()
    assert notifier.successes == []

def test_save_failure_keeps_baseline(model, runner, notifier, tmp_path):
    load(model, runner, tmp_path)
    original = model.old_workspace
    runner.add_response("workspace", ToolOutput(exit_code=100, stderr="TF10158: boom"))
    runner.add_response("workspace", ToolOutput())
    model.name = "W2"

    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is False

    assert model.old_workspace == original
    assert not model.saving
    assert notifier.errors == [
        ("Workspace Update Failed", "The tf command failed with exit code 100: TF10158: boom", None)]

    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is True
    first, second = runner.calls_named("workspace")
    assert first.arguments == second.arguments == ["-edit", "-newname:W2", "W1"]
    assert model.old_workspace.name == "W2"

def test_save_after_save_diffs_against_saved(model, runner, tmp_path):
    load(model, runner, tmp_path)
    model.comment = "one"
    model.save_workspace(tmp_path, sync_files=False).result(timeout=5)
    runner.calls.clear()

    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is True
    assert runner.calls == []

def test_save_without_context_fails(runner, executor, notifier):
    model = WorkspaceModel(runner, executor, ImmediateDispatcher(), notifier)
    model.name = "W1"
    model.mappings = [Mapping(server_path="$/P", local_path="/src")]

    assert model.save_workspace("/src", sync_files=False).result(timeout=5) is False
    assert len(notifier.errors) == 1

def test_sync_workspace(model, runner, notifier, context, tmp_path):
    listener = MagicMock()
    model.add_listener(listener)

    assert model.sync_workspace(context, tmp_path).result(timeout=5) is True

    assert runner.calls[0].arguments == ["-recursive", str(tmp_path)]
    assert not model.syncing
    assert notifier.successes == [("Workspace Updated", "The workspace files were synced.", None)]
    assert [c.args[1] for c in listener.call_args_list] == ["syncing", "syncing"]

def test_sync_failure(model, runner, notifier, context, tmp_path):
    runner.add_response("get", ToolOutput(exit_code=100, stderr="disk full"))
    assert model.sync_workspace(context, tmp_path).result(timeout=5) is False
    assert model.sync_workspace(None, tmp_path).result(timeout=5) is False
    assert len(notifier.errors) == 2
    assert not model.syncing

def test_unknown_location_is_not_an_edit(model, runner, tmp_path):
    load(model, runner, tmp_path, location="")
    assert model.state == WorkspaceState.LOADED

    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is True
    assert runner.calls == []

    model.comment = "x"
    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is True
    assert runner.calls[0].arguments == ["-edit", "-comment:x", "W1"]
    assert "-location:local" not in runner.calls[0].arguments

def test_unknown_location_changed_to_server_is_sent(model, runner, tmp_path):
    load(model, runner, tmp_path, location="")
    model.location = Location.SERVER
    assert model.state == WorkspaceState.DIRTY

    assert model.save_workspace(tmp_path, sync_files=False).result(timeout=5) is True
    assert runner.calls[0].arguments == ["-edit", "-location:server", "W1"]
