"""Trimming and silence removal."""

from dataclasses import dataclass
from typing import List, Optional
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
from audioops.core.exceptions import InvariantError, ValidationError
from audioops.core.models import SOURCE_FORMAT, FormatDescriptor, OutputFormat, TrimRequest
from audioops.formats import describe, format_for_extension
from audioops.formats.picture import build_picture_block, detect_image_mime
from audioops.utils.validate import format_number, parse_bitrate


@dataclass(frozen=True)
class TrimPlan:
    """Resolved formats and code path for a trim."""

    source_format: Optional[OutputFormat]
    target: FormatDescriptor
    keep_source: bool
    passthrough: bool
    output_ext: str


def silence_threshold(db: float) -> float:
    """Convert a dB threshold to linear amplitude."""
    return 10 ** (db / 20)


def silence_filter(threshold_db: float, min_duration: float) -> str:
    """silenceremove filter that strips every qualifying period completely."""
    return (
        "silenceremove=stop_periods=-1"
        f":stop_duration={format_number(min_duration)}"
        f":stop_threshold={format_number(silence_threshold(threshold_db))}"
    )


def plan_trim(request: TrimRequest) -> TrimPlan:
    """
    Resolve the target format and pick the stream-copy or re-encode path.

    Stream copy is taken whenever the target equals the source format and
    no silence filter is requested.

    Raises:
        InvariantError: If the end time is not after the start time.
        ValidationError: If "source" is requested for an unknown extension.
    """
    if request.end_time - request.start_time <= 0:
        raise InvariantError("Trim end time must be after start time.")
    if request.start_time < 0:
        raise ValidationError("Trim start time cannot be negative.")

    _, ext = split_filename(request.filename)
    source_format = format_for_extension(ext)
    keep_source = request.format == SOURCE_FORMAT
    if keep_source:
        if source_format is None:
            raise ValidationError(
                f'Keeping the original format is not supported for ".{ext}" files yet.'
            )
        target = describe(source_format)
    else:
        target = describe(request.format)

    passthrough = not request.remove_silence and target.format_id is source_format
    output_ext = ext if (keep_source or passthrough) else target.extension
    return TrimPlan(
        source_format=source_format,
        target=target,
        keep_source=keep_source,
        passthrough=passthrough,
        output_ext=output_ext,
    )


def _reencode_args(
    request: TrimRequest, plan: TrimPlan, source_cover: Optional[bytes]
) -> List[str]:
    target = plan.target
    args = ["-map", "0:a:0", "-map_metadata", "0"]
    args.extend(attached_picture_args(target))
    args.extend(["-c:a", target.codec])

    # Keeping the source format re-encodes at the codec default
    if not target.is_lossless and not plan.keep_source:
        args.extend(["-b:a", parse_bitrate(request.bitrate)])

    if target.picture_comment and source_cover:
        block = build_picture_block(source_cover, detect_image_mime(source_cover))
        args.extend(picture_comment_args(block))

    args.extend(container_tag_args(target))
    return args


def build_trim(
    request: TrimRequest,
    scope: FileScope = DEFAULT_SCOPE,
    source_cover: Optional[bytes] = None,
) -> EngineCommand:
    """
    Build the trim command.

    Seeks to the start time, limits to end - start seconds and optionally
    strips silence. The passthrough path copies every stream, attached
    artwork included, bit for bit.
    """
    plan = plan_trim(request)
    stem, _ = split_filename(request.filename)
    source = input_name(scope, request.filename, "mp3")
    output = scope.name(f"output.{plan.output_ext}")
    base = request.output_basename or stem

    # -ss before -i seeks the input instead of decoding up to the start
    args = [
        "-ss", format_number(request.start_time),
        "-i", source,
        "-t", format_number(request.end_time - request.start_time),
    ]
    if request.remove_silence:
        args.extend(["-af", silence_filter(request.silence_threshold_db, request.silence_duration)])

    if plan.passthrough:
        args.extend(["-map_metadata", "0", "-map", "0:a:0", "-map", "0:v?", "-c", "copy"])
    else:
        args.extend(_reencode_args(request, plan, source_cover))

    args.extend(["-y", output])

    needs_probe = (
        plan.target.picture_comment
        and not plan.passthrough
        and not plan.keep_source
        and source_cover is None
    )
    return EngineCommand(
        inputs=(VirtualFile(source, request.data),),
        args=tuple(args),
        output_name=output,
        filename=f"{base}_trimmed.{plan.output_ext}",
        mime_type=plan.target.mime_type,
        probe_cover=source if needs_probe else None,
    )
