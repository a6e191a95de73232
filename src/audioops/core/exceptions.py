"""Exception classes for audioops."""

from typing import Optional, Sequence, Tuple


class AudioOpsError(Exception):
    """Base exception for audio operation errors."""
    pass


class EngineLoadError(AudioOpsError):
    """Raised when the transcoding engine cannot be loaded (retryable)."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(
            "Transcoding engine failed to load. A content or script blocker may be "
            "interfering with the engine resources. Try disabling blockers or use a "
            f"different environment. Error: {cause}"
        )


class EngineNotLoadedError(AudioOpsError):
    """Raised when engine primitives are used before ensure_loaded()."""
    pass


class ValidationError(AudioOpsError):
    """Raised when request parameters violate a format or parameter constraint."""
    pass


class CoverArtNotFoundError(AudioOpsError):
    """Raised when an input carries no attached image (recoverable)."""
    pass


class ExecutionError(AudioOpsError):
    """Raised when the engine reports an error or produces unusable output."""

    def __init__(self, message: str, log_tail: Sequence[str] = ()):
        self.message = message
        self.log_tail: Tuple[str, ...] = tuple(log_tail)
        if self.log_tail:
            super().__init__(f"{message} Details: {' | '.join(self.log_tail)}")
        else:
            super().__init__(message)


class EmptyOutputError(ExecutionError):
    """Raised when the engine wrote a zero-byte output file."""
    pass


class InvariantError(AudioOpsError):
    """Raised on programmer errors that validated input should never reach."""
    pass


class UnknownFormatError(InvariantError, KeyError):
    """Raised for a format identifier outside the registry."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class BackendError(AudioOpsError):
    """Raised when an engine backend operation fails."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        self.message = message
        if returncode is not None:
            super().__init__(f"Backend error (exit status {returncode}): {message}")
        else:
            super().__init__(f"Backend error: {message}")


class BatchError(AudioOpsError):
    """Raised when a batch finished without producing a single item."""

    def __init__(self, message: str, failures: Sequence = ()):
        self.failures = tuple(failures)
        super().__init__(message)
