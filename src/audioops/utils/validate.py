"""Validation utilities."""

import re
from audioops.core.exceptions import ValidationError

_BITRATE_RE = re.compile(r"^(\d+)(k)$", re.IGNORECASE)


def validate_amplitude(amplitude: float) -> float:
    """Validate and clamp noise amplitude to [0.0, 1.0]."""
    if amplitude < 0.0:
        return 0.0
    if amplitude > 1.0:
        return 1.0
    return amplitude


def clamp_fraction(fraction: float, upper: float = 0.99) -> float:
    """Clamp a raw progress fraction to [0.0, upper]."""
    if fraction < 0.0:
        return 0.0
    if fraction > upper:
        return upper
    return fraction


def parse_bitrate(bitrate: str) -> str:
    """
    Normalize a bitrate string such as "192K" to "192k".

    Raises:
        ValidationError: If the value does not look like "<digits>k".
    """
    match = _BITRATE_RE.match(bitrate.strip())
    if match is None:
        raise ValidationError(f'Bitrate must look like "128k", got "{bitrate}"')
    return f"{match.group(1)}k"


def format_number(value: float) -> str:
    """Render a number for the engine: integers without a trailing ".0"."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)
