"""Data models and configuration classes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Union

CHANNELS_AUTO = "auto"
"""Channel selection that keeps the source layout."""

SOURCE_FORMAT = "source"
"""Trim target that keeps the input format."""


class OutputFormat(Enum):
    """Supported output formats."""

    MP3 = "mp3"
    OGG = "ogg"
    AAC = "aac"
    WAV = "wav"
    FLAC = "flac"
    AIFF = "aiff"


class NoiseType(Enum):
    """Noise colors the engine can synthesize."""

    WHITE = "white"
    PINK = "pink"


class EngineBuild(Enum):
    """Engine builds selectable at load time."""

    MULTI_THREADED = "multi-threaded"
    SINGLE_THREADED = "single-threaded"


class EngineState(Enum):
    """Engine lifecycle state."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


class OperationKind(Enum):
    """Operation kinds understood by the executor."""

    ADD_NOISE = "add_noise"
    EXTRACT_COVER = "extract_cover"
    READ_METADATA = "read_metadata"
    RETAG = "retag"
    CONVERT = "convert"
    TRIM = "trim"
    CONVERT_WAV_TO_MP3 = "convert_wav_to_mp3"
    RENDER_WAVEFORM = "render_waveform"


@dataclass
class EngineConfig:
    """Configuration for AudioProcessor."""

    ffmpeg_path: Optional[str] = None
    """Engine executable. Default: discovered on PATH."""

    build: Optional[EngineBuild] = None
    """Force an engine build. Default: None (probe features)."""

    log_buffer_lines: int = 50
    """Engine log lines kept per operation. Default: 50."""

    log_tail_lines: int = 10
    """Log lines attached to execution errors. Default: 10."""

    loglevel: str = "info"
    """Engine log verbosity. Default: "info"."""

    waveform_size: Tuple[int, int] = (1200, 240)
    """Default waveform image size (width, height)."""


@dataclass(frozen=True)
class FormatDescriptor:
    """Static description of an output format."""

    format_id: OutputFormat
    codec: str
    extension: str
    mime_type: str
    is_lossless: bool
    supports_cover_art: bool

    picture_comment: bool = False
    """Cover art travels as a METADATA_BLOCK_PICTURE comment, not a stream."""


@dataclass(frozen=True)
class FormatCapabilities:
    """Sample rates and channel counts a format accepts."""

    format_id: OutputFormat
    allowed_sample_rates: FrozenSet[int]
    allowed_channel_counts: FrozenSet[int]


@dataclass(frozen=True)
class TagFields:
    """Tag values to write. None or "" leaves a field out of a retag."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[str] = None
    track: Optional[str] = None
    genre: Optional[str] = None


@dataclass(frozen=True)
class TrackMetadata:
    """Canonical tag set read back from a file."""

    title: str = ""
    artist: str = ""
    album: str = ""
    year: str = ""
    track: str = ""
    genre: str = ""

    def as_dict(self) -> Dict[str, str]:
        """Return the five core tags (genre only when present)."""
        values = {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "year": self.year,
            "track": self.track,
        }
        if self.genre:
            values["genre"] = self.genre
        return values


@dataclass(frozen=True)
class AddNoiseRequest:
    """Prepend synthesized noise to a track."""

    data: bytes = field(repr=False)
    filename: str = "input.mp3"
    duration_seconds: float = 180
    amplitude: float = 0.05
    noise_type: NoiseType = NoiseType.PINK
    bitrate: str = "192k"

    kind = OperationKind.ADD_NOISE


@dataclass(frozen=True)
class ExtractCoverRequest:
    """Pull the attached picture out of a track."""

    data: bytes = field(repr=False)
    filename: str = "input.mp3"

    kind = OperationKind.EXTRACT_COVER


@dataclass(frozen=True)
class ReadMetadataRequest:
    """Read the canonical tag set."""

    data: bytes = field(repr=False)
    filename: str = "input.mp3"

    kind = OperationKind.READ_METADATA


@dataclass(frozen=True)
class RetagRequest:
    """Replace all tags (and optionally the cover) without re-encoding."""

    data: bytes = field(repr=False)
    filename: str = "input.mp3"
    tags: TagFields = TagFields()
    cover: Optional[bytes] = field(default=None, repr=False)
    output_filename: Optional[str] = None

    kind = OperationKind.RETAG


@dataclass(frozen=True)
class ConvertRequest:
    """Transcode to another output format."""

    data: bytes = field(repr=False)
    filename: str
    format: OutputFormat
    bitrate: str = "192k"
    sample_rate: int = 44100
    channels: Union[int, str] = 2
    output_basename: Optional[str] = None

    kind = OperationKind.CONVERT


@dataclass(frozen=True)
class TrimRequest:
    """Cut a time range, optionally removing silence."""

    data: bytes = field(repr=False)
    filename: str
    start_time: float
    end_time: float
    format: Union[OutputFormat, str] = SOURCE_FORMAT
    bitrate: str = "192k"
    remove_silence: bool = False
    silence_threshold_db: float = -50
    silence_duration: float = 0.5
    output_basename: Optional[str] = None

    kind = OperationKind.TRIM


@dataclass(frozen=True)
class ConvertWavToMp3Request:
    """Encode a WAV to MP3, taking tags and cover from an optional MP3 source."""

    data: bytes = field(repr=False)
    filename: str = "input.wav"
    source: Optional[bytes] = field(default=None, repr=False)
    tags: TagFields = TagFields()
    cover: Optional[bytes] = field(default=None, repr=False)
    output_filename: Optional[str] = None

    kind = OperationKind.CONVERT_WAV_TO_MP3


@dataclass(frozen=True)
class RenderWaveformRequest:
    """Render a waveform picture of a track."""

    data: bytes = field(repr=False)
    filename: str = "input.mp3"
    width: Optional[int] = None
    height: Optional[int] = None
    color: str = "0x3b82f6"

    kind = OperationKind.RENDER_WAVEFORM


OperationRequest = Union[
    AddNoiseRequest,
    ExtractCoverRequest,
    ReadMetadataRequest,
    RetagRequest,
    ConvertRequest,
    TrimRequest,
    ConvertWavToMp3Request,
    RenderWaveformRequest,
]


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of one operation."""

    percent: int
    """Integer percentage (0-100)."""


@dataclass(frozen=True)
class BatchProgressEvent:
    """Progress of a batch."""

    percent: int
    """Overall integer percentage (0-100)."""

    current_file: int
    """1-based index of the file being processed."""

    total_files: int
    """Number of files in the batch."""
