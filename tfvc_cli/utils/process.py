import os
import subprocess
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Union

from tfvc_cli.exceptions import LaunchFailure
from tfvc_cli.models import ToolOutput
from tfvc_cli.utils.logger import get_logger

logger = get_logger()

# Overlay applied to every tool process
TOOL_ENVIRONMENT = {
    "TF_NOTELEMETRY": "TRUE",
    "TF_ADDITIONAL_JAVA_ARGS": "-Duser.country=US -Duser.language=en -Dfile.encoding=utf-8",
    "LC_ALL": "en_US.UTF-8",
    "LANG": "en_US.UTF-8",
    "PYTHONIOENCODING": "utf-8",
}


def runtime_bin_dir() -> str:
    """Directory holding the running interpreter."""
    return str(Path(sys.executable).resolve().parent)


def patched_path(original: Optional[str] = None) -> str:
    """PATH with the runtime's bin directory in front."""
    if original is None:
        original = os.environ.get("PATH", "")
    if not original:
        return runtime_bin_dir()
    return runtime_bin_dir() + os.pathsep + original


def build_environment(base: Optional[Mapping[str, str]] = None) -> dict:
    env = dict(os.environ if base is None else base)
    env.update(TOOL_ENVIRONMENT)
    env["PATH"] = patched_path(env.get("PATH", ""))
    return env


def start_process(arguments: List[str], working_directory: Optional[Union[str, Path]] = None) -> subprocess.Popen:
    """Launch a tool process with the tool environment. Output is left unread."""
    if not arguments:
        raise ValueError("arguments must contain the executable")

    cwd = str(working_directory) if working_directory else None
    logger.debug(f"Starting process {arguments[0]} (cwd={cwd})")
    try:
        return subprocess.Popen(
            arguments,
            cwd=cwd,
            env=build_environment(),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as e:
        raise LaunchFailure(arguments[0], "not found") from e
    except PermissionError as e:
        raise LaunchFailure(arguments[0], "permission denied") from e
    except OSError as e:
        raise LaunchFailure(arguments[0], str(e)) from e


def run_process(arguments: List[str], working_directory: Optional[Union[str, Path]] = None,
                stdin: Optional[str] = None) -> ToolOutput:
    """Run a tool process to completion and return its raw output."""
    process = start_process(arguments, working_directory)
    stdout, stderr = process.communicate(input=stdin)
    return ToolOutput(exit_code=process.returncode, stdout=stdout or "", stderr=stderr or "")
