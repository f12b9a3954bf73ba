"""Exception hierarchy for tfvc-cli.

Every error carries an optional message key so the notification layer can
turn it into a user-facing message (see ``tfvc_cli.messages``).
"""

from enum import Enum
from typing import Any, Optional, Sequence


class FaultKind(str, Enum):
    AUTH_EXPIRED = "auth-expired"
    TOOL_NOT_FOUND = "tool-not-found"
    PARSE_FAILURE = "parse-failure"
    BAD_EXIT_CODE = "bad-exit-code"
    WORKSPACE_NOT_DETERMINED = "workspace-not-determined"


class TfvcError(Exception):
    """Base exception for all tfvc-cli errors."""

    def __init__(self, message: str = "", key: Optional[str] = None, params: Sequence[Any] = ()):
        super().__init__(message)
        self.key = key
        self.params = tuple(params)


class LaunchFailure(TfvcError):
    """The external tool could not be started (missing, not executable)."""

    KEY = "ToolException.TF.ExeNotFound"
    fault = FaultKind.TOOL_NOT_FOUND

    def __init__(self, executable: str, reason: str = ""):
        self.executable = executable
        self.reason = reason
        message = f"Unable to start '{executable}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, key=self.KEY, params=(executable,))


class ToolFailure(TfvcError):
    """The tool ran but failed: bad exit code or unparseable output.

    Attributes:
        exit_code: Process exit code (``None`` for parse failures of a
            successful run)
        stderr: Excerpt of the tool's diagnostic output
        fault: Machine-readable ``FaultKind`` value
    """

    KEY = "ToolException.TF.BadExitCode"

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = "", fault: Any = None,
                 key: Optional[str] = None):
        self.exit_code = exit_code
        self.stderr = stderr
        self.fault = fault
        super().__init__(message, key=key or self.KEY, params=(exit_code, stderr))


class NotAuthorized(TfvcError):
    """No server context could be created, or the server rejected credentials."""

    KEY = "Workspace.Dialog.Errors.AuthFailed"
    fault = FaultKind.AUTH_EXPIRED

    def __init__(self, url: str = "", message: str = ""):
        self.url = url
        super().__init__(message or f"Not authorized to access {url or 'the server'}", key=self.KEY, params=(url,))


class ValidationFailure(TfvcError):
    """Workspace save preconditions are unmet."""

    def __init__(self, info: Any):
        self.info = info
        super().__init__(info.message, key=info.message_key, params=())


class UnrecognizedPathKind(TfvcError):
    """A path value is neither a local nor a server path."""

    def __init__(self, path: Any):
        self.path = path
        super().__init__(f"Unknown path type: {path!r}")


class ServerPathFormatError(TfvcError):
    """A server path is not a valid ``$/``-rooted path."""

    KEY = "TFS.ServerPath.Invalid"

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Invalid server path '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, key=self.KEY, params=(path,))
