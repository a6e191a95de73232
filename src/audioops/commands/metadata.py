"""Tag reading and writing."""

import re
from typing import Dict, List
from audioops.commands.base import (
    DEFAULT_SCOPE,
    EngineCommand,
    FileScope,
    VirtualFile,
    container_tag_args,
    input_name,
    picture_comment_args,
    split_filename,
    tag_args,
)
from audioops.core.exceptions import ValidationError
from audioops.core.models import (
    ConvertWavToMp3Request,
    FormatDescriptor,
    OutputFormat,
    ReadMetadataRequest,
    RetagRequest,
    TrackMetadata,
)
from audioops.formats import describe, format_for_extension
from audioops.formats.picture import build_picture_block, detect_image_mime

METADATA_MIME = "text/plain"
WAV_TO_MP3_BITRATE = "320k"

# ffmetadata key -> TrackMetadata field
_CANONICAL_KEYS: Dict[str, str] = {
    "title": "title",
    "artist": "artist",
    "album": "album",
    "date": "year",
    "year": "year",
    "track": "track",
    "genre": "genre",
}

_ESCAPE_RE = re.compile(r"\\(.)")

# ID3 frames naming the attached picture
_MP3_COVER_STREAM_TAGS = [
    "-metadata:s:v", "title=Album cover",
    "-metadata:s:v", "comment=Cover (front)",
]


def build_read_metadata(
    request: ReadMetadataRequest, scope: FileScope = DEFAULT_SCOPE
) -> EngineCommand:
    """Export the engine's ffmetadata dump of the input."""
    source = input_name(scope, request.filename, "mp3")
    output = scope.name("metadata.txt")
    stem, _ = split_filename(request.filename)
    return EngineCommand(
        inputs=(VirtualFile(source, request.data),),
        args=("-i", source, "-f", "ffmetadata", "-y", output),
        output_name=output,
        filename=f"{stem}_metadata.txt",
        mime_type=METADATA_MIME,
    )


def parse_ffmetadata(text: str) -> TrackMetadata:
    """
    Parse an ffmetadata dump into the canonical tag set.

    Keys match case-insensitively, unknown keys are ignored and missing
    ones stay empty. Only the global section is read; stream and chapter
    sections would otherwise clobber the file-level title.
    """
    values = {name: "" for name in set(_CANONICAL_KEYS.values())}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith((";", "#")):
            continue
        if line.startswith("["):
            break
        key, sep, value = line.partition("=")
        if not sep:
            continue
        field_name = _CANONICAL_KEYS.get(key.strip().lower())
        if field_name is None:
            continue
        values[field_name] = _ESCAPE_RE.sub(r"\1", value.strip())
    return TrackMetadata(**values)


def _retag_cover_args(descriptor: FormatDescriptor) -> List[str]:
    """Map the provided cover (input 1) as the only image stream."""
    args = ["-map", "1:v", "-c:v", "copy"]
    if descriptor.format_id is OutputFormat.MP3:
        args.extend(_MP3_COVER_STREAM_TAGS)
    else:
        args.extend(["-disposition:v", "attached_pic"])
    return args


def build_retag(
    request: RetagRequest, scope: FileScope = DEFAULT_SCOPE
) -> EngineCommand:
    """
    Rewrite tags without re-encoding audio.

    All existing metadata is dropped first; only non-empty fields are
    written. A provided cover replaces whatever artwork the file had.

    Raises:
        ValidationError: If the input format is unknown, or a cover is given
            for a format that cannot carry one.
    """
    stem, ext = split_filename(request.filename)
    fmt = format_for_extension(ext)
    if fmt is None:
        raise ValidationError(f'Retagging is not supported for ".{ext}" files.')
    descriptor = describe(fmt)
    if request.cover and not descriptor.supports_cover_art:
        raise ValidationError(f"{fmt.value.upper()} files cannot carry cover art.")

    source = input_name(scope, request.filename, ext)
    output = scope.name(f"output.{ext}")
    inputs = [VirtualFile(source, request.data)]

    args = ["-i", source]
    stream_cover = bool(request.cover) and not descriptor.picture_comment
    if stream_cover:
        cover_name = scope.name("cover.jpg")
        inputs.append(VirtualFile(cover_name, request.cover))
        args.extend(["-i", cover_name])

    args.extend(["-map", "0:a", "-c:a", "copy"])
    if fmt is OutputFormat.MP3:
        args.extend(["-id3v2_version", "3"])
    args.extend(["-map_metadata", "-1"])

    if stream_cover:
        args.extend(_retag_cover_args(descriptor))
    elif request.cover:
        block = build_picture_block(request.cover, detect_image_mime(request.cover))
        args.extend(picture_comment_args(block))

    args.extend(tag_args(request.tags))
    args.extend(container_tag_args(descriptor))
    args.extend(["-y", output])

    return EngineCommand(
        inputs=tuple(inputs),
        args=tuple(args),
        output_name=output,
        filename=request.output_filename or f"{stem}_retagged.{ext}",
        mime_type=descriptor.mime_type,
    )


def build_convert_wav_to_mp3(
    request: ConvertWavToMp3Request, scope: FileScope = DEFAULT_SCOPE
) -> EngineCommand:
    """
    Encode a WAV to 320k MP3 with tags.

    Tags and artwork come from the optional MP3 source; an explicit cover
    wins over the source's. Tag fields set to "" are written, clearing the
    value copied from the source.
    """
    stem, _ = split_filename(request.filename)
    wav_name = scope.name("input.wav")
    source_name = scope.name("source.mp3")
    cover_name = scope.name("cover.jpg")
    output = scope.name("output.mp3")

    inputs = [VirtualFile(wav_name, request.data)]
    args = ["-i", wav_name]
    if request.source:
        inputs.append(VirtualFile(source_name, request.source))
        args.extend(["-i", source_name])

    cover_index = None
    if request.cover:
        cover_index = 2 if request.source else 1
        inputs.append(VirtualFile(cover_name, request.cover))
        args.extend(["-i", cover_name])

    args.extend([
        "-map", "0:a",
        "-c:a", "libmp3lame",
        "-b:a", WAV_TO_MP3_BITRATE,
        "-id3v2_version", "3",
    ])
    if request.source:
        args.extend(["-map_metadata", "1"])

    if cover_index is not None:
        args.extend(["-map", f"{cover_index}:v", "-c:v", "copy"])
        args.extend(_MP3_COVER_STREAM_TAGS)
    elif request.source:
        args.extend(["-map", "1:v?"])

    args.extend(tag_args(request.tags, keep_empty=True))
    args.extend(["-y", output])

    return EngineCommand(
        inputs=tuple(inputs),
        args=tuple(args),
        output_name=output,
        filename=request.output_filename or f"{stem}.mp3",
        mime_type=describe(OutputFormat.MP3).mime_type,
    )
