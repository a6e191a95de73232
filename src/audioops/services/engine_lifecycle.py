"""Service for managing transcoding engine lifecycle."""

import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple
from audioops.concurrency.worker import EngineWorker
from audioops.core.exceptions import (
    AudioOpsError,
    BackendError,
    EngineLoadError,
    EngineNotLoadedError,
    ExecutionError,
)
from audioops.core.interfaces import IEngineWorker, ITranscodeBackend, LogListener, ProgressListener
from audioops.core.models import EngineBuild, EngineConfig, EngineState
from audioops.utils.log import get_logger

logger = get_logger(__name__)

# Features the multi-threaded build cannot run without
REQUIRED_FEATURES: Tuple[str, ...] = ("multiple_cpus", "pthreads")


@dataclass(frozen=True)
class EngineHandle:
    """A successfully loaded engine."""

    build: EngineBuild
    """Build selected for this load."""

    reason: str
    """Why the build was selected."""

    attempt: int
    """Load attempt number that produced this handle."""


def select_build(
    features: Mapping[str, bool], forced: Optional[EngineBuild] = None
) -> Tuple[EngineBuild, str]:
    """
    Choose the engine build from probed runtime features.

    Args:
        features: Feature name -> availability, as reported by the backend.
        forced: Build requested by configuration, if any.

    Returns:
        Tuple of (build, human-readable reason).
    """
    if forced is not None:
        return forced, f"Using {forced.value} build: forced by configuration."

    missing = [name for name in REQUIRED_FEATURES if not features.get(name, False)]
    if not missing:
        return (
            EngineBuild.MULTI_THREADED,
            "Using multi-threaded build: "
            f"{', '.join(REQUIRED_FEATURES)} available.",
        )
    return (
        EngineBuild.SINGLE_THREADED,
        f"Falling back to single-threaded build: missing {', '.join(missing)}.",
    )


class EngineLifecycleService:
    """
    Service for managing the shared transcoding engine.

    Responsibilities:
    - Load the engine once, coalescing concurrent first callers
    - Select the engine build from probed features
    - Run engine primitives on the worker thread
    - Translate backend failures into audioops errors
    """

    def __init__(
        self,
        backend: ITranscodeBackend,
        config: EngineConfig,
        worker: Optional[IEngineWorker] = None,
    ):
        """
        Initialize lifecycle service.

        Args:
            backend: Transcoding backend implementation.
            config: Engine configuration.
            worker: Optional worker implementation (for testing).
        """
        self._backend = backend
        self._config = config
        self._worker: IEngineWorker = worker if worker is not None else EngineWorker()
        self._lock = threading.Lock()
        self._state = EngineState.UNLOADED
        self._pending: Optional[Future] = None
        self._handle: Optional[EngineHandle] = None
        self._attempts = 0

    def ensure_loaded(self) -> EngineHandle:
        """
        Load the engine if needed and return its handle.

        Concurrent callers share the in-flight load attempt instead of
        starting their own.

        Raises:
            EngineLoadError: If the load attempt fails. The next call retries.
        """
        attempt = 0
        with self._lock:
            if self._state is EngineState.LOADED and self._handle is not None:
                return self._handle
            pending = self._pending
            owner = pending is None
            if owner:
                pending = Future()
                self._pending = pending
                self._state = EngineState.LOADING
                self._attempts += 1
                attempt = self._attempts

        if owner:
            self._load(pending, attempt)
        return pending.result()

    def _load(self, pending: Future, attempt: int) -> None:
        """Run one load attempt and resolve the shared future."""
        try:
            features = self._backend.probe_features()
            build, reason = select_build(features, self._config.build)
            logger.info(f"Engine build selection (attempt {attempt}): {build.value}. {reason}")
            self._worker.start()
            self._worker.execute(lambda: self._backend.load(build))
        except Exception as e:
            logger.warning(f"Engine load attempt {attempt} failed: {e}")
            try:
                self._worker.stop()
            except Exception as stop_error:
                logger.warning(f"Error stopping worker thread: {stop_error}")
            with self._lock:
                self._state = EngineState.UNLOADED
                self._pending = None
            pending.set_exception(EngineLoadError(e))
            return

        handle = EngineHandle(build=build, reason=reason, attempt=attempt)
        with self._lock:
            self._handle = handle
            self._state = EngineState.LOADED
            self._pending = None
        pending.set_result(handle)
        logger.info("Transcoding engine loaded")

    def shutdown(self) -> None:
        """
        Unload the engine and stop the worker thread.

        This method is idempotent and safe to call multiple times.
        """
        with self._lock:
            if self._state is not EngineState.LOADED:
                logger.debug("Engine not loaded, skipping shutdown")
                return
            self._state = EngineState.UNLOADED
            self._handle = None

        logger.info("Shutting down transcoding engine...")
        try:
            self._worker.execute(self._backend.unload)
        except Exception as e:
            logger.warning(f"Error during backend unload: {e}")

        try:
            self._worker.stop()
        except Exception as e:
            logger.warning(f"Error stopping worker thread: {e}")
        logger.info("Transcoding engine shut down")

    def write(self, name: str, data: bytes) -> None:
        """Write a file into the engine's virtual filesystem."""
        self._run(f"write {name}", lambda: self._backend.write(name, data))

    def exec(
        self,
        args: Sequence[str],
        on_progress: Optional[ProgressListener] = None,
        on_log: Optional[LogListener] = None,
    ) -> None:
        """
        Run the engine and wait for it to finish.

        Raises:
            ExecutionError: If the engine reports a failure.
        """
        argv = tuple(args)
        logger.debug(f"exec: {' '.join(argv)}")
        self._run("exec", lambda: self._backend.exec(argv, on_progress, on_log))

    def read(self, name: str) -> bytes:
        """
        Read a file from the engine's virtual filesystem.

        Raises:
            ExecutionError: If the file cannot be read.
        """
        return self._run(f"read {name}", lambda: self._backend.read(name))

    def delete(self, name: str) -> None:
        """Delete a virtual file. Best effort: failures are logged, never raised."""
        try:
            self._worker.execute(lambda: self._backend.delete(name))
        except FileNotFoundError:
            logger.debug(f"Cleanup: {name} already gone")
        except Exception as e:
            logger.warning(f"Cleanup of {name} failed: {e}")

    def _run(self, action: str, func):
        """Run a primitive on the worker thread, translating failures."""
        if self._state is not EngineState.LOADED:
            raise EngineNotLoadedError("Engine must be loaded before running engine primitives")
        try:
            return self._worker.execute(func)
        except BackendError as e:
            raise ExecutionError(e.message) from e
        except AudioOpsError:
            raise
        except FileNotFoundError as e:
            raise ExecutionError(f"Engine {action} failed: file not found") from e
        except OSError as e:
            raise ExecutionError(f"Engine {action} failed: {e}") from e

    @property
    def state(self) -> EngineState:
        """Get current lifecycle state."""
        return self._state

    @property
    def is_loaded(self) -> bool:
        """Check if engine is loaded."""
        return self._state is EngineState.LOADED

    @property
    def handle(self) -> Optional[EngineHandle]:
        """Get the loaded engine handle, if any."""
        return self._handle

    @property
    def load_attempts(self) -> int:
        """Number of load attempts started so far."""
        return self._attempts

    @property
    def backend(self) -> ITranscodeBackend:
        """Get backend instance."""
        return self._backend
