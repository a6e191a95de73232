"""Null backend for testing (no actual transcoding)."""

import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from audioops.core.exceptions import BackendError
from audioops.core.interfaces import ITranscodeBackend, LogListener, ProgressListener
from audioops.core.models import EngineBuild
from audioops.utils.log import get_logger

logger = get_logger(__name__)

NULL_OUTPUT = b"null-output"

ExecHandler = Callable[
    ["NullBackend", Tuple[str, ...], Optional[ProgressListener], Optional[LogListener]],
    None,
]


def write_null_output(
    backend: "NullBackend",
    args: Tuple[str, ...],
    on_progress: Optional[ProgressListener],
    on_log: Optional[LogListener],
) -> None:
    """Default exec handler: write fixed bytes to the last argument."""
    if args:
        backend.files[args[-1]] = NULL_OUTPUT


class NullBackend(ITranscodeBackend):
    """
    In-memory backend implementation for testing.

    Every exec call is recorded in `executed`. Scripted `progress` values
    and `log_lines` are replayed on each exec before `handler` runs.
    """

    def __init__(
        self,
        features: Optional[Dict[str, bool]] = None,
        handler: Optional[ExecHandler] = None,
        progress: Sequence[float] = (),
        log_lines: Sequence[str] = (),
    ):
        self.files: Dict[str, bytes] = {}
        self.executed: List[Tuple[str, ...]] = []
        self.features: Dict[str, bool] = (
            dict(features)
            if features is not None
            else {"multiple_cpus": True, "pthreads": True}
        )
        self.handler: ExecHandler = handler or write_null_output
        self.progress: List[float] = list(progress)
        self.log_lines: List[str] = list(log_lines)
        self.fail_load = False
        self.load_error: Exception = BackendError("null engine refused to load")
        self.load_calls = 0
        self.build: Optional[EngineBuild] = None
        self.load_thread: Optional[str] = None
        self._loaded = False

    def probe_features(self) -> Dict[str, bool]:
        """Report the configured features."""
        return dict(self.features)

    def load(self, build: EngineBuild) -> None:
        """Load the engine."""
        self.load_calls += 1
        self.load_thread = threading.current_thread().name
        if self.fail_load:
            raise self.load_error
        self.build = build
        self._loaded = True
        logger.info(f"NullBackend loaded ({build.value})")

    def write(self, name: str, data: bytes) -> None:
        """Store a file."""
        self.files[name] = bytes(data)
        logger.debug(f"NullBackend: wrote {name} ({len(data)} bytes)")

    def exec(
        self,
        args: Sequence[str],
        on_progress: Optional[ProgressListener] = None,
        on_log: Optional[LogListener] = None,
    ) -> None:
        """Record the argument vector and run the handler."""
        argv = tuple(args)
        self.executed.append(argv)
        for line in self.log_lines:
            if on_log is not None:
                on_log(line)
        for fraction in self.progress:
            if on_progress is not None:
                on_progress(fraction)
        self.handler(self, argv, on_progress, on_log)

    def read(self, name: str) -> bytes:
        """Read a stored file."""
        try:
            return self.files[name]
        except KeyError:
            raise FileNotFoundError(name) from None

    def delete(self, name: str) -> None:
        """Delete a stored file."""
        try:
            del self.files[name]
        except KeyError:
            raise FileNotFoundError(name) from None

    def unload(self) -> None:
        """Unload the engine and drop every file."""
        self.files.clear()
        self._loaded = False
        logger.info("NullBackend unloaded")

    @property
    def is_loaded(self) -> bool:
        """Check if the engine is loaded."""
        return self._loaded
