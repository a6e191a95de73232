"""Protocol interfaces for transcoding engine abstraction."""

from typing import Callable, Dict, Optional, Protocol, Sequence
from audioops.core.models import EngineBuild

ProgressListener = Callable[[float], None]
"""Receives raw engine progress (fraction, nominally 0.0 to 1.0)."""

LogListener = Callable[[str], None]
"""Receives one engine log line."""


class ITranscodeBackend(Protocol):
    """Interface for a transcoding engine with a virtual filesystem."""

    def probe_features(self) -> Dict[str, bool]:
        """Report which optional runtime features are available."""
        ...

    def load(self, build: EngineBuild) -> None:
        """Load the engine (called in worker thread)."""
        ...

    def write(self, name: str, data: bytes) -> None:
        """Write a file into the virtual filesystem."""
        ...

    def exec(
        self,
        args: Sequence[str],
        on_progress: Optional[ProgressListener] = None,
        on_log: Optional[LogListener] = None,
    ) -> None:
        """
        Run the engine with an argument vector.

        Blocks until the engine finishes, reporting progress and log lines
        through the listeners.

        Raises:
            BackendError: If the engine reports a failure.
        """
        ...

    def read(self, name: str) -> bytes:
        """
        Read a file from the virtual filesystem.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    def delete(self, name: str) -> None:
        """
        Delete a file from the virtual filesystem.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    def unload(self) -> None:
        """Unload the engine and free all resources."""
        ...


class IEngineWorker(Protocol):
    """Interface for engine worker thread communication."""

    def start(self) -> None:
        """Start the worker thread."""
        ...

    def stop(self) -> None:
        """Stop the worker thread (blocks until done)."""
        ...

    def execute(self, command, timeout: Optional[float] = None):
        """Execute a command in the worker thread and return result."""
        ...
