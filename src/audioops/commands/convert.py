"""Format conversion."""

from typing import Dict, Optional, Tuple
from audioops.commands.base import (
    DEFAULT_SCOPE,
    EngineCommand,
    FileScope,
    VirtualFile,
    attached_picture_args,
    container_tag_args,
    input_name,
    picture_comment_args,
    split_filename,
)
from audioops.core.exceptions import ValidationError
from audioops.core.models import CHANNELS_AUTO, ConvertRequest, FormatDescriptor
from audioops.formats import capabilities, describe
from audioops.formats.picture import build_picture_block, detect_image_mime
from audioops.utils.validate import format_number, parse_bitrate

# Vorbis quality per nominal bitrate; tuned values, do not re-derive
VORBIS_QUALITY_FOR_BITRATE: Dict[str, float] = {
    "96k": 2.7,
    "128k": 4,
    "160k": 4.8,
    "192k": 5.5,
    "256k": 6.5,
    "320k": 7.5,
}
DEFAULT_VORBIS_QUALITY = 4


def vorbis_quality(bitrate: str) -> float:
    """Quality scale for a normalized bitrate."""
    return VORBIS_QUALITY_FOR_BITRATE.get(bitrate, DEFAULT_VORBIS_QUALITY)


def validate_convert(request: ConvertRequest) -> Tuple[FormatDescriptor, str]:
    """
    Check a conversion request against the target's capabilities.

    Returns:
        Tuple of (target descriptor, normalized bitrate).

    Raises:
        ValidationError: On an unsupported sample rate, channel count or a
            malformed bitrate.
        UnknownFormatError: If the target format is not registered.
    """
    descriptor = describe(request.format)
    caps = capabilities(request.format)
    label = descriptor.format_id.value.upper()

    if request.sample_rate not in caps.allowed_sample_rates:
        rates = " / ".join(str(rate) for rate in sorted(caps.allowed_sample_rates))
        raise ValidationError(
            f"{label} supports sample rates {rates}. Please pick one of those values."
        )
    # "auto" keeps the source layout and skips the channel check
    if request.channels != CHANNELS_AUTO and request.channels not in caps.allowed_channel_counts:
        counts = " or ".join(str(count) for count in sorted(caps.allowed_channel_counts))
        raise ValidationError(
            f"{label} supports channels {counts}. Please pick a supported value."
        )
    return descriptor, parse_bitrate(request.bitrate)


def build_convert(
    request: ConvertRequest,
    scope: FileScope = DEFAULT_SCOPE,
    source_cover: Optional[bytes] = None,
) -> EngineCommand:
    """
    Build the conversion command.

    Only the primary audio stream is mapped. Formats with attached-picture
    support copy the source image; picture-comment formats embed
    `source_cover` as METADATA_BLOCK_PICTURE and ask the executor to look
    for one when it was not supplied.
    """
    descriptor, bitrate = validate_convert(request)

    stem, _ = split_filename(request.filename)
    source = input_name(scope, request.filename, "wav")
    output = scope.name(f"output.{descriptor.extension}")
    base = request.output_basename or stem

    args = ["-i", source, "-map", "0:a:0"]
    if descriptor.picture_comment:
        args.extend(["-vn", "-map_metadata", "0"])
    elif descriptor.supports_cover_art:
        args.extend(attached_picture_args(descriptor))
        args.extend(["-map_metadata", "0"])
    else:
        args.append("-vn")

    args.extend(["-c:a", descriptor.codec, "-ar", str(request.sample_rate)])
    if request.channels != CHANNELS_AUTO:
        args.extend(["-ac", str(request.channels)])

    if descriptor.picture_comment:
        args.extend(["-qscale:a", format_number(vorbis_quality(bitrate))])
        if source_cover:
            block = build_picture_block(source_cover, detect_image_mime(source_cover))
            args.extend(picture_comment_args(block))
    elif not descriptor.is_lossless:
        args.extend(["-b:a", bitrate])

    args.extend(container_tag_args(descriptor))
    args.extend(["-y", output])

    return EngineCommand(
        inputs=(VirtualFile(source, request.data),),
        args=tuple(args),
        output_name=output,
        filename=f"{base}.{descriptor.extension}",
        mime_type=descriptor.mime_type,
        probe_cover=source if descriptor.picture_comment and source_cover is None else None,
    )
