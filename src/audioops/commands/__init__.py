"""Engine command builders, one per operation kind."""

from typing import Callable, Dict
from audioops.commands.base import (
    DEFAULT_SCOPE,
    EngineCommand,
    FileScope,
    VirtualFile,
    cover_probe_args,
    new_scope,
    split_filename,
)
from audioops.commands.convert import build_convert, validate_convert, vorbis_quality
from audioops.commands.cover import build_extract_cover, cover_filename
from audioops.commands.metadata import (
    build_convert_wav_to_mp3,
    build_read_metadata,
    build_retag,
    parse_ffmetadata,
)
from audioops.commands.noise import build_add_noise, noise_filter_graph
from audioops.commands.trim import build_trim, plan_trim, silence_threshold
from audioops.commands.waveform import build_render_waveform
from audioops.core.exceptions import InvariantError
from audioops.core.models import OperationKind, OperationRequest

_builders: Dict[OperationKind, Callable[..., EngineCommand]] = {
    OperationKind.ADD_NOISE: build_add_noise,
    OperationKind.EXTRACT_COVER: build_extract_cover,
    OperationKind.READ_METADATA: build_read_metadata,
    OperationKind.RETAG: build_retag,
    OperationKind.CONVERT: build_convert,
    OperationKind.TRIM: build_trim,
    OperationKind.CONVERT_WAV_TO_MP3: build_convert_wav_to_mp3,
    OperationKind.RENDER_WAVEFORM: build_render_waveform,
}


def build_command(
    request: OperationRequest, scope: FileScope = DEFAULT_SCOPE, **kwargs
) -> EngineCommand:
    """
    Build the engine command for any operation request.

    Raises:
        InvariantError: If the request kind has no builder.
    """
    builder = _builders.get(getattr(request, "kind", None))
    if builder is None:
        raise InvariantError(f"No command builder for {type(request).__name__}")
    return builder(request, scope, **kwargs)


__all__ = [
    "DEFAULT_SCOPE",
    "EngineCommand",
    "FileScope",
    "VirtualFile",
    "build_command",
    "build_add_noise",
    "build_extract_cover",
    "build_read_metadata",
    "build_retag",
    "build_convert",
    "build_trim",
    "build_convert_wav_to_mp3",
    "build_render_waveform",
    "cover_filename",
    "cover_probe_args",
    "new_scope",
    "noise_filter_graph",
    "parse_ffmetadata",
    "plan_trim",
    "silence_threshold",
    "split_filename",
    "validate_convert",
    "vorbis_quality",
]
