"""Cover art extraction."""

from audioops.commands.base import (
    DEFAULT_SCOPE,
    EngineCommand,
    FileScope,
    VirtualFile,
    input_name,
    split_filename,
)
from audioops.core.models import ExtractCoverRequest
from audioops.formats.picture import JPEG_MIME, PNG_MIME

_IMAGE_EXTENSIONS = {JPEG_MIME: "jpg", PNG_MIME: "png"}


def cover_filename(source_filename: str, mime_type: str = JPEG_MIME) -> str:
    """Result name for a cover pulled out of `source_filename`."""
    stem, _ = split_filename(source_filename)
    return f"{stem}_cover.{_IMAGE_EXTENSIONS.get(mime_type, 'jpg')}"


def build_extract_cover(
    request: ExtractCoverRequest, scope: FileScope = DEFAULT_SCOPE
) -> EngineCommand:
    """Drop audio and copy the image stream verbatim."""
    source = input_name(scope, request.filename, "mp3")
    output = scope.name("cover.jpg")
    return EngineCommand(
        inputs=(VirtualFile(source, request.data),),
        args=("-i", source, "-an", "-vcodec", "copy", "-y", output),
        output_name=output,
        filename=cover_filename(request.filename),
        mime_type=JPEG_MIME,
    )
