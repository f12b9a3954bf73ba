import pytest
from unittest.mock import MagicMock
from tfvc_cli.config import ToolConfig
from tfvc_cli.core.context import ServerContext
from tfvc_cli.core.runner import MockCommandRunner, ShellCommandRunner, ToolCommand, check_output
from tfvc_cli.exceptions import FaultKind, NotAuthorized, ToolFailure
from tfvc_cli.models import ToolOutput

@pytest.fixture
def context():
    return ServerContext(url="https://tfs.example.com/tfs/Collection", user="alice", token="secret")

def test_build_arguments(context):
    runner = ShellCommandRunner(ToolConfig(tf_path="/opt/tee/tf"))
    args = runner.build_arguments(context, ToolCommand(name="delete", workspace="W1", arguments=["-recursive", "$/P/a"]))
    assert args == [
        "/opt/tee/tf", "delete", "-noprompt",
        "-login:alice,secret",
        "-collection:https://tfs.example.com/tfs/Collection",
        "-workspace:W1",
        "-recursive", "$/P/a",
    ]

def test_build_arguments_without_context():
    runner = ShellCommandRunner(ToolConfig())
    assert runner.build_arguments(None, ToolCommand(name="status")) == ["tf", "status", "-noprompt"]

def test_masked_hides_credentials(context):
    runner = ShellCommandRunner(ToolConfig())
    text = runner.masked(runner.build_arguments(context, ToolCommand(name="status")))
    assert "secret" not in text
    assert "-login:********" in text

def test_context_repr_hides_token(context):
    assert "secret" not in repr(context)

def test_run_invokes_and_checks(context, tmp_path):
    invoke = MagicMock(return_value=ToolOutput(exit_code=0, stdout="ok"))
    runner = ShellCommandRunner(ToolConfig(), invoke=invoke)

    output = runner.run(context, ToolCommand(name="get", arguments=["-recursive", "."], working_directory=tmp_path))

    assert output.stdout == "ok"
    args, cwd = invoke.call_args[0]
    assert args[:2] == ["tf", "get"]
    assert cwd == tmp_path

@pytest.mark.parametrize("exit_code", [0, 1])
def test_check_output_accepts_partial_success(context, exit_code):
    output = ToolOutput(exit_code=exit_code, stderr="The item /a could not be found")
    assert check_output(context, ToolCommand(name="delete"), output) is output

def test_check_output_bad_exit_code(context):
    with pytest.raises(ToolFailure) as exc_info:
        check_output(context, ToolCommand(name="status"), ToolOutput(exit_code=100, stderr="x" * 2000))
    error = exc_info.value
    assert error.exit_code == 100
    assert error.fault == FaultKind.BAD_EXIT_CODE
    assert error.key == "ToolException.TF.BadExitCode"
    assert len(error.stderr) == 500

def test_check_output_workspace_not_determined(context):
    output = ToolOutput(exit_code=100, stderr="An argument error occurred: The workspace could not be determined.")
    with pytest.raises(ToolFailure) as exc_info:
        check_output(context, ToolCommand(name="status"), output)
    assert exc_info.value.fault == FaultKind.WORKSPACE_NOT_DETERMINED

@pytest.mark.parametrize("stderr", [
    "TF30063: You are not authorized to access https://tfs.example.com.",
    "Authentication failed",
    "The server returned HTTP 401",
    "The personal access token has expired",
])
def test_check_output_auth_failure(context, stderr):
    with pytest.raises(NotAuthorized) as exc_info:
        check_output(context, ToolCommand(name="status"), ToolOutput(exit_code=100, stderr=stderr))
    assert exc_info.value.url == context.url
    assert exc_info.value.fault == FaultKind.AUTH_EXPIRED

def test_mock_runner_queues_responses(context):
    runner = MockCommandRunner()
    runner.add_response("info", ToolOutput(stdout="first"))
    runner.add_response("info", ToolOutput(stdout="second"))

    assert runner.run(context, ToolCommand(name="info")).stdout == "first"
    assert runner.run(context, ToolCommand(name="info")).stdout == "second"
    assert runner.run(context, ToolCommand(name="info")).stdout == "second"
    assert runner.run(context, ToolCommand(name="status")).stdout == ""
    assert len(runner.calls_named("info")) == 3
    assert runner.contexts == [context] * 4

def test_mock_runner_raises_and_checks(context):
    runner = MockCommandRunner()
    runner.add_response("delete", ToolFailure("boom"))
    runner.add_response("undo", ToolOutput(exit_code=2, stderr="bad"))
    runner.add_response("get", lambda command: ToolOutput(stdout=command.arguments[0]))

    with pytest.raises(ToolFailure, match="boom"):
        runner.run(context, ToolCommand(name="delete"))
    with pytest.raises(ToolFailure):
        runner.run(context, ToolCommand(name="undo"))
    assert runner.run(context, ToolCommand(name="get", arguments=["/src"])).stdout == "/src"
