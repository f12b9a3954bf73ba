import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Protocol

from tfvc_cli.utils.logger import get_logger

logger = get_logger()


class OperationExecutor:
    """Background work queue for slow tool and network operations."""

    def __init__(self, max_workers: int = 4):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tfvc-op")

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        return self._pool.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "OperationExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()


class UiDispatcher(Protocol):
    def run_on_ui(self, fn: Callable[[], None]) -> None:
        ...


class ImmediateDispatcher:
    """Runs callbacks on the calling thread. For single-threaded callers and tests."""

    def run_on_ui(self, fn: Callable[[], None]) -> None:
        fn()


class QueuedDispatcher:
    """
    Marshals callbacks onto the interactive thread.

    The thread that creates the dispatcher is the interactive thread. Calls
    from it run inline; calls from other threads are queued until the
    interactive thread calls ``process_pending``.
    """

    def __init__(self):
        self._thread_id = threading.get_ident()
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()

    @property
    def on_ui_thread(self) -> bool:
        return threading.get_ident() == self._thread_id

    def run_on_ui(self, fn: Callable[[], None]) -> None:
        if self.on_ui_thread:
            fn()
        else:
            self._queue.put(fn)

    def process_pending(self, timeout: Optional[float] = None) -> int:
        """Run queued callbacks; with a timeout, wait that long for the first one."""
        processed = 0
        if timeout is not None:
            try:
                fn = self._queue.get(timeout=timeout)
            except queue.Empty:
                return 0
            self._run(fn)
            processed += 1
        while True:
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                return processed
            self._run(fn)
            processed += 1

    @staticmethod
    def _run(fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            logger.exception("UI callback failed")
