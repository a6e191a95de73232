"""
audioops - audio file operations on a shared transcoding engine.

This package turns high-level requests (add noise, extract cover art,
read and rewrite tags, convert, trim, render waveforms) into engine
invocations, runs them one at a time on a lazily loaded engine, reports
progress as integer percentages and packages batch results as zip archives.
"""

from audioops.api.processor import AudioProcessor
from audioops.api.results import BatchFailure, BatchResult, OperationResult
from audioops.core.models import (
    AddNoiseRequest,
    BatchProgressEvent,
    ConvertRequest,
    ConvertWavToMp3Request,
    EngineBuild,
    EngineConfig,
    ExtractCoverRequest,
    NoiseType,
    OutputFormat,
    ProgressEvent,
    ReadMetadataRequest,
    RenderWaveformRequest,
    RetagRequest,
    TagFields,
    TrackMetadata,
    TrimRequest,
)
from audioops.core.exceptions import (
    AudioOpsError,
    BatchError,
    CoverArtNotFoundError,
    EmptyOutputError,
    EngineLoadError,
    ExecutionError,
    InvariantError,
    UnknownFormatError,
    ValidationError,
)
from audioops.utils.log import set_log_level

__version__ = "0.1.0"

__all__ = [
    "AudioProcessor",
    "OperationResult",
    "BatchResult",
    "BatchFailure",
    "EngineConfig",
    "EngineBuild",
    "OutputFormat",
    "NoiseType",
    "TagFields",
    "TrackMetadata",
    "ProgressEvent",
    "BatchProgressEvent",
    "AddNoiseRequest",
    "ExtractCoverRequest",
    "ReadMetadataRequest",
    "RetagRequest",
    "ConvertRequest",
    "TrimRequest",
    "ConvertWavToMp3Request",
    "RenderWaveformRequest",
    "AudioOpsError",
    "EngineLoadError",
    "ValidationError",
    "CoverArtNotFoundError",
    "ExecutionError",
    "EmptyOutputError",
    "InvariantError",
    "UnknownFormatError",
    "BatchError",
    "set_log_level",
]
