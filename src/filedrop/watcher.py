"""Watch session and the sequential event loop of the watcher process.

Observer threads only enqueue; copying and publishing happen on the thread
that calls :meth:`Watcher.run`, one event at a time in delivery order.
"""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum, auto
from typing import Optional, Union

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from filedrop import WATCH_ERROR
from filedrop.config import Configuration
from filedrop.events import FileSystemEvent
from filedrop.registrar import WatchSetupError, register_tree

logger = logging.getLogger(__name__)


class WatchError(Exception):
    """Asynchronous failure reported by the watch layer."""

    code = WATCH_ERROR


class WatcherState(Enum):
    INITIALIZING = auto()
    WATCHING = auto()
    SHUTTING_DOWN = auto()


class _QueueingHandler(FileSystemEventHandler):
    """Push every watchdog event into the owning session."""

    def __init__(self, session: "WatchSession") -> None:
        super().__init__()
        self._session = session

    def on_any_event(self, event) -> None:
        self._session.put(FileSystemEvent.from_watchdog(event))


class WatchSession:
    """A watchdog observer plus the queue its threads feed.

    Each registered directory gets its own non-recursive watch.
    """

    def __init__(self, observer=None, event_queue: Optional[queue.Queue] = None) -> None:
        self._observer = observer if observer is not None else Observer()
        self._queue: queue.Queue = event_queue if event_queue is not None else queue.Queue()
        self._handler = _QueueingHandler(self)
        self._watches = []
        self._reported: set[str] = set()
        self._running = False

    @property
    def watched_paths(self) -> list[str]:
        return [watch.path for watch in self._watches]

    def add(self, path: str) -> None:
        self._watches.append(self._observer.schedule(self._handler, path, recursive=False))

    def put(self, item: Union[FileSystemEvent, WatchError]) -> None:
        self._queue.put(item)

    def next(self, timeout: Optional[float] = None) -> Union[FileSystemEvent, WatchError, None]:
        """Pop the next event or error, or ``None`` after ``timeout`` seconds."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def start(self) -> None:
        self._observer.start()
        self._running = True

    def check_health(self) -> None:
        """Report emitter threads that died while the session is running."""
        if not self._running:
            return
        for emitter in list(self._observer.emitters):
            path = emitter.watch.path
            if not emitter.is_alive() and path not in self._reported:
                self._reported.add(path)
                self.put(WatchError(f"stopped receiving events for {path}"))

    def close(self) -> None:
        if self._running:
            self._running = False
            self._observer.stop()
            self._observer.join()


class Watcher:
    """Drive the watch pipeline: register, start, then drain events."""

    def __init__(
        self,
        config: Configuration,
        processor,
        session: Optional[WatchSession] = None,
        poll_interval: float = 0.5,
    ) -> None:
        self.config = config
        self.processor = processor
        self.session = session if session is not None else WatchSession()
        self.poll_interval = poll_interval
        self.state = WatcherState.INITIALIZING

    def start(self) -> None:
        count = register_tree(self.config.path, self.session)
        try:
            self.session.start()
        except OSError as exc:
            raise WatchSetupError(f"cannot start watching {self.config.path}: {exc}") from exc
        self.state = WatcherState.WATCHING
        logger.info(
            "Watching %d directories under %s for *%s files",
            count,
            self.config.path,
            self.config.extension,
        )

    def run(self, stop_event: threading.Event) -> None:
        """Process events until ``stop_event`` is set.

        Watch errors are logged and skipped. Errors raised by the processor,
        such as a fatal broker failure, propagate to the caller.
        """
        if self.state is not WatcherState.WATCHING:
            raise RuntimeError("Watcher.start() must be called before run()")

        while not stop_event.is_set():
            item = self.session.next(timeout=self.poll_interval)
            if item is None:
                self.session.check_health()
                continue
            if isinstance(item, WatchError):
                logger.error("ERROR %s", item)
                continue
            self.processor.process(item)

    def close(self) -> None:
        self.state = WatcherState.SHUTTING_DOWN
        self.session.close()
        logger.info("Watcher stopped")
