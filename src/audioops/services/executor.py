"""Service that runs one operation end to end."""

from functools import partial
from typing import Callable, Optional, Sequence
from audioops.api.results import OperationResult
from audioops.commands import (
    EngineCommand,
    FileScope,
    build_add_noise,
    build_convert,
    build_convert_wav_to_mp3,
    build_extract_cover,
    build_read_metadata,
    build_render_waveform,
    build_retag,
    build_trim,
    cover_filename,
    cover_probe_args,
    new_scope,
    parse_ffmetadata,
)
from audioops.core.exceptions import (
    CoverArtNotFoundError,
    EmptyOutputError,
    ExecutionError,
    InvariantError,
)
from audioops.core.models import (
    AddNoiseRequest,
    ConvertRequest,
    ConvertWavToMp3Request,
    EngineConfig,
    ExtractCoverRequest,
    OperationKind,
    ReadMetadataRequest,
    RenderWaveformRequest,
    RetagRequest,
    TrackMetadata,
    TrimRequest,
)
from audioops.formats import describe
from audioops.formats.picture import detect_image_mime
from audioops.services.engine_lifecycle import EngineHandle, EngineLifecycleService
from audioops.services.progress import EngineLogCollector, ProgressCallback, ProgressTranslator
from audioops.utils.log import ENGINE_LOGGER, get_logger

logger = get_logger(__name__)
engine_logger = get_logger(ENGINE_LOGGER)

CommandFactory = Callable[..., EngineCommand]

# Engine log fragments meaning "the input has no image stream"
_NO_COVER_MARKERS = (
    "does not contain any stream",
    "matches no streams",
    "output file is empty",
)


def _is_missing_cover(log_tail: Sequence[str]) -> bool:
    text = "\n".join(log_tail).lower()
    return any(marker in text for marker in _NO_COVER_MARKERS)


class OperationExecutor:
    """
    Service that runs single-file operations on the shared engine.

    Responsibilities:
    - Validate and build the engine command before touching the engine
    - Write inputs, execute, read the output
    - Delete every virtual file the call created, on every exit path
    - Classify failures and attach engine log context
    """

    def __init__(self, lifecycle: EngineLifecycleService, config: EngineConfig):
        """
        Initialize executor.

        Args:
            lifecycle: Engine lifecycle service.
            config: Engine configuration.
        """
        self._lifecycle = lifecycle
        self._config = config

    def ensure_ready(self) -> EngineHandle:
        """Load the engine if it is not loaded yet."""
        return self._lifecycle.ensure_loaded()

    def run(self, request, on_progress: Optional[ProgressCallback] = None):
        """
        Run any operation request.

        Returns:
            OperationResult, or TrackMetadata for metadata reads.

        Raises:
            InvariantError: If the request kind is unknown.
        """
        handlers = {
            OperationKind.ADD_NOISE: self.add_noise,
            OperationKind.EXTRACT_COVER: self.extract_cover,
            OperationKind.READ_METADATA: self.read_metadata,
            OperationKind.RETAG: self.retag,
            OperationKind.CONVERT: self.convert,
            OperationKind.TRIM: self.trim,
            OperationKind.CONVERT_WAV_TO_MP3: self.convert_wav_to_mp3,
            OperationKind.RENDER_WAVEFORM: self.render_waveform,
        }
        handler = handlers.get(getattr(request, "kind", None))
        if handler is None:
            raise InvariantError(f"Unsupported operation request: {type(request).__name__}")
        return handler(request, on_progress)

    def add_noise(
        self, request: AddNoiseRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Prepend noise to a track and encode it as MP3."""
        return self._execute(partial(build_add_noise, request), on_progress)

    def extract_cover(
        self, request: ExtractCoverRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """
        Extract the attached picture of a track.

        Raises:
            CoverArtNotFoundError: If the track has no picture.
        """
        try:
            result = self._execute(partial(build_extract_cover, request), on_progress)
        except EmptyOutputError as e:
            raise CoverArtNotFoundError(f"No cover art found in {request.filename}") from e
        except ExecutionError as e:
            if _is_missing_cover(e.log_tail):
                raise CoverArtNotFoundError(f"No cover art found in {request.filename}") from e
            raise

        mime_type = detect_image_mime(result.data)
        return OperationResult(
            data=result.data,
            filename=cover_filename(request.filename, mime_type),
            mime_type=mime_type,
        )

    def read_metadata(
        self, request: ReadMetadataRequest, on_progress: Optional[ProgressCallback] = None
    ) -> TrackMetadata:
        """Read the canonical tag set of a track."""
        result = self._execute(partial(build_read_metadata, request), on_progress)
        return parse_ffmetadata(result.data.decode("utf-8", errors="replace"))

    def retag(
        self, request: RetagRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Replace the tags of a track without re-encoding."""
        return self._execute(partial(build_retag, request), on_progress)

    def convert(
        self, request: ConvertRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Convert a track to another format."""
        label = describe(request.format).format_id.value.upper()
        return self._execute(
            partial(build_convert, request),
            on_progress,
            empty_message=(
                f"Engine produced an empty {label} file. "
                "Try 44.1/48 kHz and a standard bitrate."
            ),
        )

    def trim(
        self, request: TrimRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Trim a track, optionally removing silence."""
        return self._execute(
            partial(build_trim, request),
            on_progress,
            empty_message="Engine produced an empty trimmed file.",
        )

    def convert_wav_to_mp3(
        self, request: ConvertWavToMp3Request, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Encode a WAV as a tagged MP3."""
        return self._execute(partial(build_convert_wav_to_mp3, request), on_progress)

    def render_waveform(
        self, request: RenderWaveformRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Render a PNG waveform of a track."""
        return self._execute(
            partial(build_render_waveform, request, default_size=self._config.waveform_size),
            on_progress,
        )

    def _execute(
        self,
        factory: CommandFactory,
        on_progress: Optional[ProgressCallback],
        empty_message: str = "Engine produced an empty output file.",
    ) -> OperationResult:
        """Run one command: write, execute, read, clean up."""
        scope = new_scope()
        # Builders validate; nothing reaches the engine before this succeeds
        command = factory(scope)
        self._lifecycle.ensure_loaded()

        logs = EngineLogCollector(self._config.log_buffer_lines)
        translator = ProgressTranslator(on_progress)
        tail_size = self._config.log_tail_lines
        written = []

        def on_log(line: str) -> None:
            logs.append(line)
            engine_logger.debug(line.rstrip())

        try:
            for virtual_file in command.inputs:
                written.append(virtual_file.name)
                self._lifecycle.write(virtual_file.name, virtual_file.data)

            if command.probe_cover is not None:
                cover = self._discover_cover(command.probe_cover, scope)
                if cover is not None:
                    command = factory(scope, source_cover=cover)

            try:
                self._lifecycle.exec(
                    command.args, on_progress=translator.feed, on_log=on_log
                )
                data = self._lifecycle.read(command.output_name)
            except ExecutionError as e:
                raise ExecutionError(e.message, logs.tail(tail_size)) from e

            if not data:
                raise EmptyOutputError(empty_message, logs.tail(tail_size))

            translator.complete()
            logger.info(f"Produced {command.filename} ({len(data)} bytes)")
            return OperationResult(
                data=bytes(data),
                filename=command.filename,
                mime_type=command.mime_type,
            )
        except BaseException:
            translator.fail()
            raise
        finally:
            for name in dict.fromkeys(written + [command.output_name]):
                self._lifecycle.delete(name)

    def _discover_cover(self, input_file: str, scope: FileScope) -> Optional[bytes]:
        """Copy the source's image stream out, or None when there is none."""
        args, output = cover_probe_args(input_file, scope)
        try:
            self._lifecycle.exec(args)
            data = self._lifecycle.read(output)
        except ExecutionError as e:
            logger.debug(f"No cover art found in {input_file}: {e}")
            return None
        finally:
            self._lifecycle.delete(output)
        return bytes(data) if data else None
