"""METADATA_BLOCK_PICTURE encoding for Vorbis comments.

The block follows the FLAC picture layout (all integers big-endian uint32):

    picture type (3 = front cover)
    MIME type length, MIME type (ASCII)
    description length, description (UTF-8, always empty here)
    width, height, color depth, number of colors (all 0 = unknown)
    picture data length, picture data

The whole block is base64 encoded and stored as a single comment value.
"""

import base64
import struct
from dataclasses import dataclass
from audioops.core.exceptions import ValidationError

FRONT_COVER = 3
JPEG_MIME = "image/jpeg"
PNG_MIME = "image/png"

_JPEG_MAGIC = b"\xff\xd8\xff"
_PNG_MAGIC = b"\x89PNG"
_U32 = struct.Struct(">I")


@dataclass(frozen=True)
class PictureBlock:
    """Decoded picture block."""

    picture_type: int
    mime_type: str
    description: str
    width: int
    height: int
    depth: int
    color_count: int
    data: bytes


def detect_image_mime(data: bytes) -> str:
    """Detect JPEG or PNG from magic bytes, defaulting to JPEG."""
    if data[:3] == _JPEG_MAGIC:
        return JPEG_MIME
    if data[:4] == _PNG_MAGIC:
        return PNG_MIME
    return JPEG_MIME


def build_picture_block(image: bytes, mime_type: str) -> str:
    """
    Serialize a front-cover picture block and base64 encode it.

    Args:
        image: Raw image bytes.
        mime_type: MIME type of the image.

    Returns:
        Base64 text suitable for a METADATA_BLOCK_PICTURE comment.
    """
    mime_bytes = mime_type.encode("ascii")
    description = b""
    block = b"".join(
        [
            _U32.pack(FRONT_COVER),
            _U32.pack(len(mime_bytes)),
            mime_bytes,
            _U32.pack(len(description)),
            description,
            _U32.pack(0),  # width
            _U32.pack(0),  # height
            _U32.pack(0),  # color depth
            _U32.pack(0),  # colors
            _U32.pack(len(image)),
            image,
        ]
    )
    return base64.b64encode(block).decode("ascii")


def parse_picture_block(encoded: str) -> PictureBlock:
    """
    Decode a base64 picture block.

    Raises:
        ValidationError: If the block is truncated.
    """
    raw = base64.b64decode(encoded)
    offset = 0

    def take(size: int) -> bytes:
        nonlocal offset
        if offset + size > len(raw):
            raise ValidationError("Truncated METADATA_BLOCK_PICTURE")
        chunk = raw[offset:offset + size]
        offset += size
        return chunk

    def take_u32() -> int:
        return _U32.unpack(take(4))[0]

    picture_type = take_u32()
    mime_type = take(take_u32()).decode("ascii")
    description = take(take_u32()).decode("utf-8")
    width = take_u32()
    height = take_u32()
    depth = take_u32()
    color_count = take_u32()
    data = take(take_u32())
    return PictureBlock(
        picture_type=picture_type,
        mime_type=mime_type,
        description=description,
        width=width,
        height=height,
        depth=depth,
        color_count=color_count,
        data=data,
    )
