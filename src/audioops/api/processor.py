"""AudioProcessor - main public API."""

from typing import Optional, Sequence
from audioops.api.results import BatchResult, OperationResult
from audioops.core.interfaces import ITranscodeBackend
from audioops.core.models import (
    AddNoiseRequest,
    ConvertRequest,
    ConvertWavToMp3Request,
    EngineConfig,
    ExtractCoverRequest,
    FormatCapabilities,
    FormatDescriptor,
    OutputFormat,
    ReadMetadataRequest,
    RenderWaveformRequest,
    RetagRequest,
    TrackMetadata,
    TrimRequest,
)
from audioops.formats import capabilities, describe
from audioops.services.batch import BatchOrchestrator, BatchProgressCallback
from audioops.services.engine_lifecycle import EngineHandle, EngineLifecycleService
from audioops.services.executor import OperationExecutor
from audioops.services.progress import ProgressCallback
from audioops.utils.log import get_logger

logger = get_logger(__name__)


class AudioProcessor:
    """
    Main audio operations facade.

    Owns the shared engine and exposes one method per operation and batch
    variant. The engine loads on first use (or on start()); every engine
    primitive runs on a dedicated worker thread, so operations issued from
    several threads execute one at a time.
    """

    def __init__(
        self, config: EngineConfig = EngineConfig(), backend: Optional[ITranscodeBackend] = None
    ):
        """
        Initialize AudioProcessor.

        Args:
            config: Engine configuration.
            backend: Optional backend implementation (default: FFmpegBackend).
        """
        self._config = config
        self._backend = backend
        if self._backend is None:
            # Lazy import so NullBackend users never need pydub
            from audioops.backends.ffmpeg.backend import FFmpegBackend
            self._backend = FFmpegBackend(config)

        self._lifecycle = EngineLifecycleService(self._backend, config)
        self._executor = OperationExecutor(self._lifecycle, config)
        self._batch = BatchOrchestrator(self._executor)

    def start(self) -> EngineHandle:
        """
        Load the engine now instead of on first use.

        Raises:
            EngineLoadError: If the engine cannot be loaded.
        """
        return self._lifecycle.ensure_loaded()

    def shutdown(self) -> None:
        """Unload the engine and free all resources."""
        self._lifecycle.shutdown()
        logger.info("AudioProcessor shut down")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()
        return False

    @property
    def is_loaded(self) -> bool:
        """Check if the engine is loaded."""
        return self._lifecycle.is_loaded

    @property
    def engine(self) -> Optional[EngineHandle]:
        """Get the loaded engine handle, if any."""
        return self._lifecycle.handle

    @staticmethod
    def describe(format: OutputFormat) -> FormatDescriptor:
        """Get the descriptor of an output format."""
        return describe(format)

    @staticmethod
    def capabilities(format: OutputFormat) -> FormatCapabilities:
        """Get the accepted sample rates and channel counts of a format."""
        return capabilities(format)

    def add_noise(
        self, request: AddNoiseRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """
        Prepend synthesized noise to a track.

        Returns:
            MP3 named <stem>_noise.mp3.
        """
        return self._executor.add_noise(request, on_progress)

    def extract_cover(
        self, request: ExtractCoverRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """
        Extract the attached cover image.

        Raises:
            CoverArtNotFoundError: If the track has no cover.
        """
        return self._executor.extract_cover(request, on_progress)

    def read_metadata(
        self, request: ReadMetadataRequest, on_progress: Optional[ProgressCallback] = None
    ) -> TrackMetadata:
        """Read title, artist, album, year, track and genre."""
        return self._executor.read_metadata(request, on_progress)

    def retag(
        self, request: RetagRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Replace tags (and optionally the cover) without re-encoding."""
        return self._executor.retag(request, on_progress)

    def convert(
        self, request: ConvertRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """
        Convert a track to another format.

        Raises:
            ValidationError: If the sample rate, channel count or bitrate is
                not accepted by the target format. Nothing is executed.
        """
        return self._executor.convert(request, on_progress)

    def trim(
        self, request: TrimRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Cut a time range, optionally removing silence."""
        return self._executor.trim(request, on_progress)

    def convert_wav_to_mp3(
        self, request: ConvertWavToMp3Request, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Encode a WAV as a 320k MP3 carrying tags and cover."""
        return self._executor.convert_wav_to_mp3(request, on_progress)

    def render_waveform(
        self, request: RenderWaveformRequest, on_progress: Optional[ProgressCallback] = None
    ) -> OperationResult:
        """Render a PNG waveform."""
        return self._executor.render_waveform(request, on_progress)

    def add_noise_batch(
        self,
        requests: Sequence[AddNoiseRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """Prepend noise to many tracks; archive audio_with_noise.zip."""
        return self._batch.add_noise(requests, on_progress)

    def extract_covers_batch(
        self,
        requests: Sequence[ExtractCoverRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """Extract covers from many tracks; archive covers.zip."""
        return self._batch.extract_covers(requests, on_progress)

    def convert_batch(
        self,
        requests: Sequence[ConvertRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """Convert many tracks; archive converted_<format>.zip."""
        return self._batch.convert(requests, on_progress)

    def trim_batch(
        self,
        requests: Sequence[TrimRequest],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> BatchResult:
        """Trim many tracks; archive trimmed.zip."""
        return self._batch.trim(requests, on_progress)
