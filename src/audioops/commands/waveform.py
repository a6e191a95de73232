"""Waveform rendering."""

import re
from typing import Optional, Tuple
from audioops.commands.base import (
    DEFAULT_SCOPE,
    EngineCommand,
    FileScope,
    VirtualFile,
    input_name,
    split_filename,
)
from audioops.core.exceptions import ValidationError
from audioops.core.models import RenderWaveformRequest
from audioops.formats.picture import PNG_MIME

DEFAULT_WAVEFORM_SIZE = (1200, 240)

_COLOR_RE = re.compile(r"^(0x[0-9a-fA-F]{6}([0-9a-fA-F]{2})?|#[0-9a-fA-F]{6}|[A-Za-z]+)$")


def build_render_waveform(
    request: RenderWaveformRequest,
    scope: FileScope = DEFAULT_SCOPE,
    default_size: Optional[Tuple[int, int]] = None,
) -> EngineCommand:
    """
    Render the whole track as a single PNG frame.

    Raises:
        ValidationError: On a non-positive size or an unparseable color.
    """
    default_width, default_height = default_size or DEFAULT_WAVEFORM_SIZE
    width = request.width if request.width is not None else default_width
    height = request.height if request.height is not None else default_height
    if width <= 0 or height <= 0:
        raise ValidationError(f"Waveform size must be positive, got {width}x{height}")
    if not _COLOR_RE.match(request.color):
        raise ValidationError(f"Unsupported waveform color: {request.color!r}")

    source = input_name(scope, request.filename, "mp3")
    output = scope.name("waveform.png")
    stem, _ = split_filename(request.filename)
    return EngineCommand(
        inputs=(VirtualFile(source, request.data),),
        args=(
            "-i", source,
            "-filter_complex", f"showwavespic=s={width}x{height}:colors={request.color}",
            "-frames:v", "1",
            "-y", output,
        ),
        output_name=output,
        filename=f"{stem}-waveform.png",
        mime_type=PNG_MIME,
    )
