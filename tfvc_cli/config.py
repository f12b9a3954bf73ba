import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

CONFIG_FILE_NAME = "tfvc.json"


class ToolConfig(BaseModel):
    tf_path: str = "tf"
    collection_url: Optional[str] = None
    team_project: Optional[str] = None
    workspace: Optional[str] = None
    user: Optional[str] = None
    log_path: Optional[Path] = None
    max_workers: int = 4
    # Directory holding the config file; local paths resolve against it
    root_path: Optional[Path] = None


def find_config_root(start_path: Path = None) -> Optional[Path]:
    """Find tfvc.json in start_path or its parents."""
    if start_path is None:
        start_path = Path.cwd()

    for parent in [start_path] + list(start_path.parents):
        config_path = parent / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path
    return None


def apply_environment(config: ToolConfig) -> ToolConfig:
    """Environment variables win over file settings."""
    overrides = {}
    tf_home = os.environ.get("TF_HOME")
    if tf_home:
        overrides["tf_path"] = str(Path(tf_home) / "tf")
    if os.environ.get("TFVC_COLLECTION_URL"):
        overrides["collection_url"] = os.environ["TFVC_COLLECTION_URL"]
    if os.environ.get("TFVC_WORKSPACE"):
        overrides["workspace"] = os.environ["TFVC_WORKSPACE"]
    if not overrides:
        return config
    return config.model_copy(update=overrides)


def load_config(path: Path = None) -> ToolConfig:
    """Load tool configuration from JSON file, falling back to defaults."""
    if path is None:
        path = find_config_root()
    elif not path.exists():
        raise FileNotFoundError(f"{path} not found.")

    if path is None:
        return apply_environment(ToolConfig(root_path=Path.cwd()))

    with open(path, "r") as f:
        data = json.load(f)

    config = ToolConfig(**data)
    config.root_path = path.parent.resolve()
    if config.log_path and not config.log_path.is_absolute():
        config.log_path = (config.root_path / config.log_path).resolve()
    return apply_environment(config)


def save_config(config: ToolConfig, path: Path) -> None:
    """Save tool configuration to JSON file."""
    data = config.model_dump(mode="json", exclude={"root_path"}, exclude_none=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
