"""Worker thread that serializes engine commands."""

import queue
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar
from audioops.core.interfaces import IEngineWorker
from audioops.utils.log import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Command:
    """Command to execute in worker thread."""

    id: str
    func: Callable[[], Any]
    result_event: threading.Event
    result: Optional[Any] = None
    error: Optional[BaseException] = None


class EngineWorker(IEngineWorker):
    """
    Worker thread that executes engine commands one at a time.

    Every engine primitive (load, write, exec, read, delete) is funnelled
    through this thread, so at most one engine invocation is in flight and
    concurrent callers queue in submission order.
    """

    def __init__(self, name: str = "audioops-engine"):
        """
        Initialize worker.

        Args:
            name: Thread name (shows up in logs and debuggers).
        """
        self.name = name
        self._queue: queue.Queue[Optional[Command]] = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._ready_event = threading.Event()
        self._initialized = False

    @property
    def is_running(self) -> bool:
        """Check if the worker accepts commands."""
        return self._initialized

    def start(self) -> None:
        """
        Start the worker thread.

        Blocks until thread is ready to accept commands.
        """
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._ready_event.clear()
        self._initialized = False

        # Daemon thread so an abandoned processor never blocks interpreter exit
        self._thread = threading.Thread(
            target=self._worker_loop, name=self.name, daemon=True
        )
        self._thread.start()

        if not self._ready_event.wait(timeout=5.0):
            raise RuntimeError("Worker thread failed to start within timeout")

        self._initialized = True
        logger.info("Engine worker thread started")

    def stop(self) -> None:
        """
        Stop the worker thread (blocks until done).

        Commands already queued run before the thread exits.
        This method is idempotent and safe to call multiple times.
        """
        if self._thread is None or not self._thread.is_alive():
            self._initialized = False
            self._thread = None
            return

        logger.info("Stopping engine worker thread...")

        # Prevent new commands from being accepted
        self._initialized = False

        # Sentinel lands behind any queued commands
        self._queue.put(None)

        self._thread.join(timeout=5.0)
        if self._thread.is_alive():
            logger.warning("Worker thread did not stop gracefully within timeout")
            self._stop_event.set()
            self._thread.join(timeout=1.0)
            if self._thread.is_alive():
                logger.error("Worker thread still alive after timeout - may need manual cleanup")
        else:
            logger.info("Engine worker thread stopped")
        self._thread = None

    def execute(self, func: Callable[[], T], timeout: Optional[float] = None) -> T:
        """
        Execute a function in the worker thread and return result.

        Args:
            func: Function to execute (no arguments).
            timeout: Maximum time to wait for result (None = infinite).

        Returns:
            Result of function execution.

        Raises:
            RuntimeError: If worker thread is not initialized.
            TimeoutError: If timeout is exceeded.
            Exception: Any exception raised by the function.
        """
        if not self._initialized:
            raise RuntimeError("Worker thread not initialized")

        cmd = Command(
            id=str(uuid.uuid4()),
            func=func,
            result_event=threading.Event(),
        )

        self._queue.put(cmd)

        if not cmd.result_event.wait(timeout=timeout):
            raise TimeoutError(f"Command execution timeout after {timeout}s")

        if cmd.error is not None:
            raise cmd.error

        return cmd.result

    def _worker_loop(self) -> None:
        """Main worker loop."""
        logger.debug("Worker thread started")
        try:
            self._ready_event.set()

            while not self._stop_event.is_set():
                try:
                    cmd = self._queue.get(timeout=0.1)
                except queue.Empty:
                    continue

                if cmd is None:  # Sentinel
                    logger.debug("Received sentinel, exiting worker loop")
                    self._queue.task_done()
                    break

                try:
                    cmd.result = cmd.func()
                except Exception as e:
                    logger.debug(f"Command {cmd.id} raised {type(e).__name__}: {e}")
                    cmd.error = e
                finally:
                    cmd.result_event.set()
                    self._queue.task_done()

        except Exception:
            logger.exception("Fatal error in worker thread")
        finally:
            logger.debug("Worker thread exiting")
