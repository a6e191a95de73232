"""Noise synthesis and concatenation."""

from audioops.commands.base import (
    DEFAULT_SCOPE,
    EngineCommand,
    FileScope,
    VirtualFile,
    input_name,
    split_filename,
)
from audioops.core.exceptions import ValidationError
from audioops.core.models import AddNoiseRequest, NoiseType
from audioops.utils.validate import format_number, parse_bitrate, validate_amplitude

NOISE_CODEC = "libmp3lame"
NOISE_MIME = "audio/mpeg"

# Band edges for the pink-noise filter chain, kept as shipped
NOISE_HIGHPASS_HZ = 20
NOISE_LOWPASS_HZ = 4000

MIN_NOISE_SECONDS = 1


def noise_filter_graph(noise_type: NoiseType) -> str:
    """Filter graph that puts the noise (input 0) before the track (input 1)."""
    if noise_type is NoiseType.PINK:
        return (
            f"[0:a]highpass=f={NOISE_HIGHPASS_HZ},lowpass=f={NOISE_LOWPASS_HZ}[n];"
            "[n][1:a]concat=n=2:v=0:a=1[aout]"
        )
    return "[0:a][1:a]concat=n=2:v=0:a=1[aout]"


def _noise_type(value) -> NoiseType:
    if isinstance(value, NoiseType):
        return value
    try:
        return NoiseType(str(value).lower())
    except ValueError:
        raise ValidationError(
            f"Noise type must be one of {', '.join(t.value for t in NoiseType)}, got {value!r}"
        ) from None


def build_add_noise(
    request: AddNoiseRequest, scope: FileScope = DEFAULT_SCOPE
) -> EngineCommand:
    """
    Build the noise+concat command.

    The output is always MP3 at the requested bitrate, whatever the input.
    """
    noise_type = _noise_type(request.noise_type)
    bitrate = parse_bitrate(request.bitrate)
    duration = max(MIN_NOISE_SECONDS, request.duration_seconds)
    amplitude = validate_amplitude(request.amplitude)

    source = input_name(scope, request.filename, "mp3")
    output = scope.name("output.mp3")
    stem, _ = split_filename(request.filename)

    noise_source = (
        f"anoisesrc=color={noise_type.value}"
        f":duration={format_number(duration)}"
        f":amplitude={format_number(amplitude)}"
    )
    args = (
        "-f", "lavfi",
        "-i", noise_source,
        "-i", source,
        "-filter_complex", noise_filter_graph(noise_type),
        "-map", "[aout]",
        "-c:a", NOISE_CODEC,
        "-b:a", bitrate,
        "-y", output,
    )
    return EngineCommand(
        inputs=(VirtualFile(source, request.data),),
        args=args,
        output_name=output,
        filename=f"{stem}_noise.mp3",
        mime_type=NOISE_MIME,
    )
