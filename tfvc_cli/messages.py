"""User-facing message catalog and exception message extraction."""

from concurrent.futures import CancelledError
from typing import Any, Dict

from tfvc_cli.exceptions import TfvcError

MESSAGES: Dict[str, str] = {
    # Tool errors
    "ToolException.TF.BadExitCode": "The tf command failed with exit code {0}: {1}",
    "ToolException.TF.ExeNotFound": "The tf command line tool could not be found at '{0}'. Check the tf_path setting.",
    "ToolException.TF.ParseFailure": "Unable to parse the output of the tf command.",
    "ToolException.TF.WorkspaceCouldNotBeDetermined": "The workspace could not be determined from the local path.",
    "ToolException.TF.Auth.Fail": "Authentication failed while running the tf command.",
    "TFS.ServerPath.Invalid": "'{0}' is not a valid server path.",
    "Errors.Unknown": "An unknown error occurred.",
    "Operation.Cancelled": "The operation was cancelled.",
    # Workspace editing
    "Workspace.Dialog.Errors.NameEmpty": "The workspace name cannot be empty.",
    "Workspace.Dialog.Errors.MappingsEmpty": "The workspace must have at least one working folder mapping.",
    "Workspace.Dialog.Errors.ContextFailed": "Unable to determine the TFVC repository for this project.",
    "Workspace.Dialog.Errors.NotFound": "Workspace '{0}' could not be found.",
    "Workspace.Dialog.Errors.NotFoundForPath": "No workspace maps '{0}'.",
    "Workspace.Dialog.Errors.AuthFailed": "Unable to sign in to {0}.",
    "Workspace.Dialog.Progress.Title": "Updating workspace",
    "Workspace.Dialog.Save.Progress.Updating": "Updating workspace settings...",
    "Workspace.Dialog.Save.Progress.Syncing": "Syncing files...",
    "Workspace.Dialog.Save.Progress.Done": "Done",
    "Workspace.Dialog.Notify.Success.Title": "Workspace Updated",
    "Workspace.Dialog.Notify.Success.Message": "The workspace was saved. Sync now to get the files for the new mappings.",
    "Workspace.Dialog.Notify.Success.SyncMessage": "The workspace files were synced.",
    "Workspace.Dialog.Notify.Failure.Title": "Workspace Update Failed",
    "Workspace.Dialog.Notify.LoadFailure.Title": "Unable to Load Workspace",
}


def message(key: str, *params: Any) -> str:
    """Look up a message by key and format it with positional params."""
    template = MESSAGES.get(key)
    if template is None:
        return key
    try:
        return template.format(*params)
    except (IndexError, KeyError):
        return template


def get_exception_message(exc: BaseException) -> str:
    """Best user-facing message for an exception.

    Catalog messages win for keyed errors; otherwise the exception's own
    text, then its cause's text, then ``repr``.
    """
    if isinstance(exc, CancelledError):
        return message("Operation.Cancelled")

    text = str(exc)
    if isinstance(exc, TfvcError) and exc.key in MESSAGES:
        text = message(exc.key, *exc.params)

    cause = exc.__cause__ or exc.__context__
    if not text and cause is not None:
        if isinstance(cause, TfvcError) and cause.key in MESSAGES:
            text = message(cause.key, *cause.params)
        else:
            text = str(cause)

    if not text:
        text = repr(exc)
    return text
