"""Output format registry."""

from typing import Dict, Optional, Tuple, Union
from audioops.core.exceptions import UnknownFormatError
from audioops.core.models import FormatCapabilities, FormatDescriptor, OutputFormat
from audioops.utils.log import get_logger

logger = get_logger(__name__)

# Registry of all output formats
_format_registry: Dict[OutputFormat, FormatDescriptor] = {
    OutputFormat.MP3: FormatDescriptor(
        OutputFormat.MP3, "libmp3lame", "mp3", "audio/mpeg", False, True
    ),
    OutputFormat.OGG: FormatDescriptor(
        OutputFormat.OGG, "libvorbis", "ogg", "audio/ogg", False, True,
        picture_comment=True,
    ),
    OutputFormat.AAC: FormatDescriptor(
        OutputFormat.AAC, "aac", "m4a", "audio/mp4", False, True
    ),
    # WAV has no tagging container
    OutputFormat.WAV: FormatDescriptor(
        OutputFormat.WAV, "pcm_s16le", "wav", "audio/wav", True, False
    ),
    OutputFormat.FLAC: FormatDescriptor(
        OutputFormat.FLAC, "flac", "flac", "audio/flac", True, True
    ),
    OutputFormat.AIFF: FormatDescriptor(
        OutputFormat.AIFF, "pcm_s16be", "aiff", "audio/aiff", True, True
    ),
}

_STANDARD_RATES = frozenset({44100, 48000, 96000})
_STEREO_OR_MONO = frozenset({1, 2})

# Rate/channel combinations the encoders handle reliably
_capability_registry: Dict[OutputFormat, FormatCapabilities] = {
    OutputFormat.MP3: FormatCapabilities(
        OutputFormat.MP3, frozenset({44100, 48000}), _STEREO_OR_MONO
    ),
    OutputFormat.OGG: FormatCapabilities(OutputFormat.OGG, _STANDARD_RATES, _STEREO_OR_MONO),
    OutputFormat.AAC: FormatCapabilities(OutputFormat.AAC, _STANDARD_RATES, _STEREO_OR_MONO),
    OutputFormat.WAV: FormatCapabilities(OutputFormat.WAV, _STANDARD_RATES, _STEREO_OR_MONO),
    OutputFormat.FLAC: FormatCapabilities(OutputFormat.FLAC, _STANDARD_RATES, _STEREO_OR_MONO),
    OutputFormat.AIFF: FormatCapabilities(OutputFormat.AIFF, _STANDARD_RATES, _STEREO_OR_MONO),
}

_extension_registry: Dict[str, OutputFormat] = {
    "mp3": OutputFormat.MP3,
    "mpeg": OutputFormat.MP3,
    "ogg": OutputFormat.OGG,
    "oga": OutputFormat.OGG,
    "aac": OutputFormat.AAC,
    "m4a": OutputFormat.AAC,
    "wav": OutputFormat.WAV,
    "wave": OutputFormat.WAV,
    "flac": OutputFormat.FLAC,
    "aiff": OutputFormat.AIFF,
    "aif": OutputFormat.AIFF,
}


def resolve_format(format: Union[OutputFormat, str]) -> OutputFormat:
    """
    Coerce a format identifier to OutputFormat.

    Raises:
        UnknownFormatError: If the identifier is not registered.
    """
    if isinstance(format, OutputFormat):
        return format
    try:
        return OutputFormat(str(format).lower())
    except ValueError:
        raise UnknownFormatError(
            f"Unknown output format: {format!r}. "
            f"Supported formats: {', '.join(f.value for f in OutputFormat)}"
        ) from None


def describe(format: Union[OutputFormat, str]) -> FormatDescriptor:
    """
    Get the descriptor of an output format.

    Args:
        format: Output format (enum member or its value).

    Returns:
        FormatDescriptor for the format.

    Raises:
        UnknownFormatError: If the format is not registered.
    """
    return _format_registry[resolve_format(format)]


def capabilities(format: Union[OutputFormat, str]) -> FormatCapabilities:
    """
    Get the sample-rate/channel capabilities of an output format.

    Raises:
        UnknownFormatError: If the format is not registered.
    """
    return _capability_registry[resolve_format(format)]


def supports_cover_art(format: Union[OutputFormat, str]) -> bool:
    """Check if a format can carry embedded cover art."""
    return describe(format).supports_cover_art


def format_for_extension(ext: str) -> Optional[OutputFormat]:
    """
    Map an input file extension to an output format.

    Args:
        ext: Extension with or without the leading dot.

    Returns:
        Matching OutputFormat, or None for unknown extensions.
    """
    return _extension_registry.get(ext.lower().lstrip("."))


def all_formats() -> Tuple[FormatDescriptor, ...]:
    """Get every registered format descriptor."""
    return tuple(_format_registry.values())


logger.debug(f"Registered output formats: {[f.value for f in _format_registry]}")

__all__ = [
    "describe",
    "capabilities",
    "supports_cover_art",
    "format_for_extension",
    "resolve_format",
    "all_formats",
]
