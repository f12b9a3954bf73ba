import os
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict

from tfvc_cli.config import ToolConfig
from tfvc_cli.utils.logger import get_logger

logger = get_logger()


class ServerContext(BaseModel):
    """Opaque session handle handed through to the command runner."""

    model_config = ConfigDict(frozen=True)

    url: str
    team_project: Optional[str] = None
    user: Optional[str] = None
    token: Optional[str] = None

    def __repr__(self) -> str:
        return f"ServerContext(url={self.url!r}, team_project={self.team_project!r})"

    __str__ = __repr__


class RepositoryContext(BaseModel):
    """The TFVC repository a local project is bound to."""

    model_config = ConfigDict(frozen=True)

    url: Optional[str] = None
    team_project_name: Optional[str] = None
    local_root: Optional[Path] = None


class ServerContextProvider(Protocol):
    def create_context(self, url: str, team_project: Optional[str], prompt: bool = True) -> Optional[ServerContext]:
        ...


class RepositoryResolver(Protocol):
    def __call__(self, project_path: Path) -> Optional[RepositoryContext]:
        ...


class StaticContextProvider:
    """Builds contexts from configuration and the environment only.

    Credential acquisition is left to the caller: the token comes from
    ``TFVC_PAT`` when set. Returns ``None`` when no collection URL is known.
    """

    def __init__(self, config: ToolConfig):
        self.config = config

    def create_context(self, url: str, team_project: Optional[str], prompt: bool = True) -> Optional[ServerContext]:
        url = url or self.config.collection_url
        if not url:
            logger.warning("No collection URL configured; cannot create a server context")
            return None
        return ServerContext(
            url=url,
            team_project=team_project or self.config.team_project,
            user=self.config.user,
            token=os.environ.get("TFVC_PAT"),
        )


def config_repository_resolver(config: ToolConfig) -> RepositoryResolver:
    """Resolver that binds every project to the configured collection."""

    def resolve(project_path: Path) -> Optional[RepositoryContext]:
        if not config.collection_url:
            return None
        return RepositoryContext(
            url=config.collection_url,
            team_project_name=config.team_project,
            local_root=Path(project_path),
        )

    return resolve
