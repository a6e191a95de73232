"""Service for running operations over many files."""

import io
import math
import zipfile
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple, Type
from audioops.api.results import BatchFailure, BatchResult, OperationResult
from audioops.commands import validate_convert
from audioops.core.exceptions import (
    AudioOpsError,
    BatchError,
    CoverArtNotFoundError,
    InvariantError,
    ValidationError,
)
from audioops.core.models import (
    AddNoiseRequest,
    BatchProgressEvent,
    ConvertRequest,
    ExtractCoverRequest,
    ProgressEvent,
    TrimRequest,
)
from audioops.services.executor import OperationExecutor
from audioops.utils.log import get_logger

logger = get_logger(__name__)

BatchProgressCallback = Callable[[BatchProgressEvent], None]
ARCHIVE_MIME = "application/zip"


def unique_filename(name: str, used: Set[str]) -> str:
    """
    Reserve `name` in `used`, suffixing _1, _2, ... before the extension on collision.
    """
    if name not in used:
        used.add(name)
        return name
    dot = name.rfind(".")
    ext = name[dot:] if dot > 0 else ""
    base = name[: len(name) - len(ext)]
    counter = 1
    candidate = f"{base}_{counter}{ext}"
    while candidate in used:
        counter += 1
        candidate = f"{base}_{counter}{ext}"
    used.add(candidate)
    return candidate


def overall_percent(index: int, file_percent: int, total_files: int) -> int:
    """Fold one file's progress into the batch percentage."""
    return int(math.floor(((index + file_percent / 100) / total_files) * 100 + 0.5))


def build_archive(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """Zip (name, data) pairs in order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buffer.getvalue()


class BatchOrchestrator:
    """
    Service that runs one operation over many files.

    Responsibilities:
    - Run files strictly one after another, in input order
    - Report weighted overall progress
    - Give every produced item a unique name
    - Package the items into a zip archive
    """

    def __init__(self, executor: OperationExecutor):
        """
        Initialize orchestrator.

        Args:
            executor: Single-file operation executor.
        """
        self._executor = executor

    def add_noise(
        self,
        requests: Sequence[AddNoiseRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """Prepend noise to every file."""
        return self._run(
            requests, self._executor.add_noise, "audio_with_noise.zip", on_progress
        )

    def extract_covers(
        self,
        requests: Sequence[ExtractCoverRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """
        Extract covers; files without one are skipped.

        Raises:
            BatchError: If no file had a cover.
        """
        return self._run(
            requests,
            self._executor.extract_cover,
            "covers.zip",
            on_progress,
            skip=(CoverArtNotFoundError,),
            empty_message="No covers found in any of the selected files.",
        )

    def convert(
        self,
        requests: Sequence[ConvertRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """
        Convert every file.

        Raises:
            ValidationError: If any request is incompatible; raised before
                any file is processed.
        """
        requests = list(requests)
        for request in requests:
            validate_convert(request)
        targets = {request.format for request in requests}
        if len(targets) == 1:
            (target,) = targets
            archive_name = f"converted_{getattr(target, 'value', target)}.zip"
        else:
            archive_name = "converted.zip"
        return self._run(requests, self._executor.convert, archive_name, on_progress)

    def trim(
        self,
        requests: Sequence[TrimRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """Trim every file."""
        return self._run(requests, self._executor.trim, "trimmed.zip", on_progress)

    def _run(
        self,
        requests: Sequence,
        operation: Callable[..., OperationResult],
        archive_name: str,
        on_progress: Optional[BatchProgressCallback],
        skip: Tuple[Type[AudioOpsError], ...] = (),
        empty_message: Optional[str] = None,
    ) -> BatchResult:
        requests = list(requests)
        total = len(requests)
        if total == 0:
            raise ValidationError("A batch needs at least one file.")

        self._executor.ensure_ready()

        used: Set[str] = set()
        items: List[OperationResult] = []
        skipped: List[str] = []
        failures: List[BatchFailure] = []
        last_percent = -1

        for index, request in enumerate(requests):
            def file_progress(event: ProgressEvent, index: int = index) -> None:
                nonlocal last_percent
                percent = overall_percent(index, event.percent, total)
                # The batch's own final event is the only 100
                if on_progress is None or percent >= 100 or percent <= last_percent:
                    return
                last_percent = percent
                on_progress(
                    BatchProgressEvent(
                        percent=percent,
                        current_file=index + 1,
                        total_files=total,
                    )
                )

            try:
                result = operation(request, file_progress)
            except skip as e:
                logger.info(f"Skipping {request.filename}: {e}")
                skipped.append(request.filename)
                continue
            except InvariantError:
                raise
            except AudioOpsError as e:
                logger.warning(f"Batch item {request.filename} failed: {e}")
                failures.append(BatchFailure(filename=request.filename, error=str(e)))
                continue

            items.append(
                OperationResult(
                    data=result.data,
                    filename=unique_filename(result.filename, used),
                    mime_type=result.mime_type,
                )
            )

        if not items:
            message = empty_message or f"No files could be processed ({len(failures)} failed)."
            raise BatchError(message, failures)

        if on_progress is not None:
            on_progress(BatchProgressEvent(percent=100, current_file=total, total_files=total))

        archive = OperationResult(
            data=build_archive((item.filename, item.data) for item in items),
            filename=archive_name,
            mime_type=ARCHIVE_MIME,
        )
        logger.info(
            f"Batch {archive_name}: {len(items)} produced, "
            f"{len(skipped)} skipped, {len(failures)} failed"
        )
        return BatchResult(
            archive=archive,
            items=tuple(items),
            skipped=tuple(skipped),
            failures=tuple(failures),
        )
