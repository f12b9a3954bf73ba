from typing import Callable, List, Optional, Protocol, Tuple

from rich.console import Console

from tfvc_cli.utils.logger import get_logger

logger = get_logger()

Action = Callable[[], None]


class Notifier(Protocol):
    def notify_success(self, title: str, message: str, action: Optional[Action] = None) -> None:
        ...

    def notify_error(self, title: str, message: str, action: Optional[Action] = None) -> None:
        ...


class ConsoleNotifier:
    """Prints notifications. A follow-up action is run when ``run_actions`` is set."""

    def __init__(self, console: Console = None, run_actions: bool = False):
        self.console = console or Console(stderr=True)
        self.run_actions = run_actions

    def notify_success(self, title: str, message: str, action: Optional[Action] = None) -> None:
        logger.info(f"{title}: {message}")
        self.console.print(f"[green]{title}[/green] {message}")
        if action is not None and self.run_actions:
            action()

    def notify_error(self, title: str, message: str, action: Optional[Action] = None) -> None:
        logger.error(f"{title}: {message}")
        self.console.print(f"[red]{title}[/red] {message}")
        if action is not None and self.run_actions:
            action()


class RecordingNotifier:
    def __init__(self):
        self.successes: List[Tuple[str, str, Optional[Action]]] = []
        self.errors: List[Tuple[str, str, Optional[Action]]] = []

    def notify_success(self, title: str, message: str, action: Optional[Action] = None) -> None:
        self.successes.append((title, message, action))

    def notify_error(self, title: str, message: str, action: Optional[Action] = None) -> None:
        self.errors.append((title, message, action))
