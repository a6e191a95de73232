"""Shared pieces for engine command builders."""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from audioops.core.models import FormatDescriptor, OutputFormat, TagFields

COVER_PROBE_OUTPUT = "extracted_cover.jpg"


@dataclass(frozen=True)
class VirtualFile:
    """A file to write into the engine's virtual filesystem."""

    name: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class EngineCommand:
    """Everything the executor needs to run one operation."""

    inputs: Tuple[VirtualFile, ...]
    """Files to write before executing."""

    args: Tuple[str, ...]
    """Engine argument vector."""

    output_name: str
    """Virtual file the engine writes."""

    filename: str
    """File name handed back to the caller."""

    mime_type: str
    """MIME type of the result."""

    probe_cover: Optional[str] = None
    """Input to search for cover art before running (picture-comment formats)."""

    @property
    def cleanup_names(self) -> Tuple[str, ...]:
        """Every virtual file this command touches."""
        return tuple(f.name for f in self.inputs) + (self.output_name,)


@dataclass(frozen=True)
class FileScope:
    """Prefix that keeps one call's virtual files apart from another's."""

    prefix: str = ""

    def name(self, base: str) -> str:
        """Scope a virtual file name."""
        return f"{self.prefix}{base}"


DEFAULT_SCOPE = FileScope()


def new_scope() -> FileScope:
    """Create a scope with a unique prefix."""
    return FileScope(f"{uuid.uuid4().hex[:12]}_")


def split_filename(filename: str) -> Tuple[str, str]:
    """
    Split a file name into (stem, lowercase extension).

    The extension is empty when the name has no dot.
    """
    dot = filename.rfind(".")
    if dot <= 0:
        return filename, ""
    return filename[:dot], filename[dot + 1:].lower()


def input_name(scope: FileScope, filename: str, default_ext: str) -> str:
    """Virtual name for an input, keeping its extension for demuxer probing."""
    _, ext = split_filename(filename)
    return scope.name(f"input.{ext or default_ext}")


def attached_picture_args(descriptor: FormatDescriptor) -> List[str]:
    """Carry the source image as an attached picture, or drop video."""
    if descriptor.supports_cover_art and not descriptor.picture_comment:
        # "?" keeps the mapping optional for inputs without artwork
        return ["-map", "0:v?", "-c:v", "copy", "-disposition:v", "attached_pic"]
    return ["-vn"]


def picture_comment_args(picture_block: Optional[str]) -> List[str]:
    """Embed a base64 picture block as a Vorbis comment."""
    if not picture_block:
        return []
    return ["-metadata", f"METADATA_BLOCK_PICTURE={picture_block}"]


def container_tag_args(descriptor: FormatDescriptor) -> List[str]:
    """Extra muxer flags some containers need to store tags and artwork."""
    if descriptor.format_id is OutputFormat.AIFF:
        return ["-write_id3v2", "1"]
    return []


def tag_args(tags: TagFields, keep_empty: bool = False) -> List[str]:
    """
    Build -metadata pairs for tag fields.

    Args:
        tags: Tag values.
        keep_empty: Write "" values (clears the field) instead of skipping them.
            None is always skipped.
    """
    pairs = [
        ("title", tags.title),
        ("artist", tags.artist),
        ("album", tags.album),
        ("date", tags.year),
        ("track", tags.track),
        ("genre", tags.genre),
    ]
    args: List[str] = []
    for key, value in pairs:
        if value is None:
            continue
        if value == "" and not keep_empty:
            continue
        args.extend(["-metadata", f"{key}={value}"])
    return args


def cover_probe_args(input_file: str, scope: FileScope) -> Tuple[Tuple[str, ...], str]:
    """Arguments that copy the first image stream of an input to a file."""
    output = scope.name(COVER_PROBE_OUTPUT)
    return ("-i", input_file, "-an", "-vcodec", "copy", "-y", output), output
