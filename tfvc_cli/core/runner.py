import re
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Union

from pydantic import BaseModel

from tfvc_cli.config import ToolConfig
from tfvc_cli.core.context import ServerContext
from tfvc_cli.exceptions import FaultKind, NotAuthorized, ToolFailure
from tfvc_cli.models import ToolOutput
from tfvc_cli.utils.logger import get_logger
from tfvc_cli.utils.process import run_process

logger = get_logger()

STDERR_EXCERPT_LENGTH = 500

# Exit codes of the tool: 0 success, 1 partial success (per-item errors on stderr)
SUCCESS_EXIT_CODES = (0, 1)

AUTH_FAILURE_PATTERNS = [
    re.compile(r"TF30063", re.IGNORECASE),
    re.compile(r"authentication (failed|error)", re.IGNORECASE),
    re.compile(r"\(401\)|HTTP(?: status)? 401", re.IGNORECASE),
    re.compile(r"not authorized", re.IGNORECASE),
    re.compile(r"access token .*expired", re.IGNORECASE),
]
WORKSPACE_UNKNOWN_PATTERNS = [
    re.compile(r"workspace could not be determined", re.IGNORECASE),
    re.compile(r"unable to determine the workspace", re.IGNORECASE),
]


class ToolCommand(BaseModel):
    """One tool invocation: ``tf <name> [options] <arguments>``."""

    name: str
    arguments: List[str] = []
    workspace: Optional[str] = None
    working_directory: Optional[Path] = None
    use_login: bool = True


class CommandRunner(Protocol):
    def run(self, context: Optional[ServerContext], command: ToolCommand) -> ToolOutput:
        ...


def parse_failure(command: str, detail: str) -> ToolFailure:
    return ToolFailure(
        f"Unable to parse output of 'tf {command}': {detail}",
        fault=FaultKind.PARSE_FAILURE,
        key="ToolException.TF.ParseFailure",
    )


def check_output(context: Optional[ServerContext], command: ToolCommand, output: ToolOutput) -> ToolOutput:
    """Turn a failed run into the matching structured error."""
    stderr = output.stderr.strip()
    if any(p.search(stderr) for p in AUTH_FAILURE_PATTERNS):
        raise NotAuthorized(context.url if context else "", message=stderr[:STDERR_EXCERPT_LENGTH])

    if output.exit_code in SUCCESS_EXIT_CODES:
        return output

    if any(p.search(stderr) for p in WORKSPACE_UNKNOWN_PATTERNS):
        fault = FaultKind.WORKSPACE_NOT_DETERMINED
        key = "ToolException.TF.WorkspaceCouldNotBeDetermined"
    else:
        fault = FaultKind.BAD_EXIT_CODE
        key = None
    excerpt = stderr[:STDERR_EXCERPT_LENGTH]
    raise ToolFailure(
        f"tf {command.name} failed with exit code {output.exit_code}: {excerpt}",
        exit_code=output.exit_code,
        stderr=excerpt,
        fault=fault,
        key=key,
    )


class ShellCommandRunner:
    def __init__(self, config: ToolConfig, invoke: Callable[..., ToolOutput] = run_process):
        self.config = config
        self._invoke = invoke

    def build_arguments(self, context: Optional[ServerContext], command: ToolCommand) -> List[str]:
        args = [self.config.tf_path, command.name, "-noprompt"]
        if context is not None:
            if command.use_login and context.token:
                args.append(f"-login:{context.user or ''},{context.token}")
            args.append(f"-collection:{context.url}")
        if command.workspace:
            args.append(f"-workspace:{command.workspace}")
        args.extend(command.arguments)
        return args

    @staticmethod
    def masked(args: List[str]) -> str:
        return " ".join("-login:********" if a.startswith("-login:") else a for a in args)

    def run(self, context: Optional[ServerContext], command: ToolCommand) -> ToolOutput:
        args = self.build_arguments(context, command)
        logger.debug(f"Running: {self.masked(args)}")
        output = self._invoke(args, command.working_directory)
        logger.debug(f"tf {command.name} exited with {output.exit_code}")
        return check_output(context, command, output)


Response = Union[ToolOutput, Exception, Callable[[ToolCommand], ToolOutput]]


class MockCommandRunner:
    """Scripted runner: responses are queued per command name."""

    def __init__(self):
        self.calls: List[ToolCommand] = []
        self.contexts: List[Optional[ServerContext]] = []
        self.responses: Dict[str, List[Response]] = {}
        self._lock = threading.Lock()

    def add_response(self, name: str, response: Response) -> None:
        self.responses.setdefault(name, []).append(response)

    def run(self, context: Optional[ServerContext], command: ToolCommand) -> ToolOutput:
        with self._lock:
            self.calls.append(command)
            self.contexts.append(context)
            queued = self.responses.get(command.name)
            if not queued:
                return ToolOutput()
            # The last response keeps answering once the queue is drained
            response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(command)
        return check_output(context, command, response)

    def calls_named(self, name: str) -> List[ToolCommand]:
        return [c for c in self.calls if c.name == name]
