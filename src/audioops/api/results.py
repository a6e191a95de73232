"""OperationResult and BatchResult classes."""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class OperationResult:
    """Bytes produced by one operation."""

    data: bytes = field(repr=False)
    """Output file contents."""

    filename: str
    """Suggested file name."""

    mime_type: str
    """MIME type of the output."""

    @property
    def size(self) -> int:
        """Get output size in bytes."""
        return len(self.data)


@dataclass(frozen=True)
class BatchFailure:
    """A file a batch could not process."""

    filename: str
    error: str

    def __str__(self) -> str:
        return f"{self.filename}: {self.error}"


@dataclass(frozen=True)
class BatchResult:
    """Archive plus individual items produced by a batch."""

    archive: OperationResult
    """Zip archive holding every item."""

    items: Tuple[OperationResult, ...]
    """Produced items, in input order."""

    skipped: Tuple[str, ...] = ()
    """Inputs skipped as legitimately empty (no cover art)."""

    failures: Tuple[BatchFailure, ...] = ()
    """Inputs that failed."""
