"""Tests for the ffmpeg backend.

Progress estimation is tested without ffmpeg; the end-to-end tests run only
when an ffmpeg executable is installed.
"""

import shutil
import subprocess
import pytest
from audioops.backends.ffmpeg.progress import (
    ProgressParser,
    expected_duration,
    lavfi_duration,
    parse_command,
)
from audioops.commands import build_add_noise, build_trim, build_render_waveform
from audioops.core.models import (
    AddNoiseRequest,
    ConvertRequest,
    EngineConfig,
    OutputFormat,
    ReadMetadataRequest,
    RenderWaveformRequest,
    RetagRequest,
    TagFields,
    TrimRequest,
)

FFMPEG = shutil.which("ffmpeg")
requires_ffmpeg = pytest.mark.skipif(FFMPEG is None, reason="ffmpeg not installed")


def fixed_probe(seconds):
    return lambda name: seconds


def test_lavfi_duration():
    """Test reading the duration of a lavfi source."""
    assert lavfi_duration("anoisesrc=color=pink:duration=180:amplitude=0.05") == 180
    assert lavfi_duration("sine=frequency=440") is None


def test_parse_command_attaches_input_options():
    """Test that options bind to the following input and leftovers to the output."""
    inputs, output = parse_command(
        ["-ss", "10", "-i", "in.mp3", "-t", "15.5", "-c", "copy", "-y", "out.mp3"]
    )
    assert len(inputs) == 1
    assert inputs[0].seek == 10
    assert inputs[0].limit is None
    assert output.limit == 15.5


def test_expected_duration_of_noise_concat():
    """Test that the noise and the track add up."""
    command = build_add_noise(AddNoiseRequest(data=b"x", duration_seconds=180))
    assert expected_duration(command.args, fixed_probe(20.0)) == 200.0


def test_expected_duration_of_trim():
    """Test seek and limit handling."""
    command = build_trim(TrimRequest(data=b"x", filename="a.mp3", start_time=10, end_time=25.5))
    assert expected_duration(command.args, fixed_probe(60.0)) == 15.5
    assert expected_duration(command.args, fixed_probe(20.0)) == 10.0
    assert expected_duration(command.args, fixed_probe(None)) is None


def test_single_frame_render_has_no_duration():
    """Test that waveform renders report no progress."""
    command = build_render_waveform(RenderWaveformRequest(data=b"x"))
    assert expected_duration(command.args, fixed_probe(30.0)) is None


def test_progress_parser():
    """Test out_time parsing against the expected duration."""
    fractions = []
    parser = ProgressParser(10.0, fractions.append)
    for line in (
        "frame=0\n",
        "out_time_us=2500000\n",
        "out_time_us=N/A\n",
        "out_time_ms=5000000\n",
        "progress=continue\n",
    ):
        parser.feed_line(line)
    assert fractions == [0.25, 0.5]
    assert not parser.finished

    parser.feed_line("progress=end")
    assert parser.finished


def test_progress_parser_unknown_duration():
    """Test that an unknown duration reports nothing."""
    fractions = []
    parser = ProgressParser(None, fractions.append)
    parser.feed_line("out_time_us=1000000")
    assert fractions == []


@pytest.fixture
def wav_bytes(tmp_path):
    """Two seconds of sine tone as WAV."""
    path = tmp_path / "tone.wav"
    subprocess.run(
        [FFMPEG, "-hide_banner", "-loglevel", "error", "-f", "lavfi",
         "-i", "sine=frequency=440:duration=2", "-y", str(path)],
        check=True,
    )
    return path.read_bytes()


@pytest.fixture
def processor():
    from audioops.api.processor import AudioProcessor

    proc = AudioProcessor(EngineConfig(ffmpeg_path=FFMPEG))
    yield proc
    proc.shutdown()


@requires_ffmpeg
def test_real_convert_to_flac(processor, wav_bytes):
    """Test a real conversion and its progress."""
    events = []
    result = processor.convert(
        ConvertRequest(data=wav_bytes, filename="tone.wav", format=OutputFormat.FLAC),
        on_progress=lambda event: events.append(event.percent),
    )
    assert result.data[:4] == b"fLaC"
    assert result.filename == "tone.flac"
    assert events[-1] == 100
    assert events == sorted(events)
    assert list(processor._lifecycle.backend.workdir.iterdir()) == []


@requires_ffmpeg
def test_real_trim_passthrough(processor, wav_bytes):
    """Test that a same-format trim yields a shorter file."""
    result = processor.trim(
        TrimRequest(data=wav_bytes, filename="tone.wav", start_time=0.5, end_time=1.0)
    )
    assert result.filename == "tone_trimmed.wav"
    assert 0 < len(result.data) < len(wav_bytes)


@requires_ffmpeg
def test_real_retag_round_trip(processor, wav_bytes):
    """Test that tags written by retag are read back."""
    flac = processor.convert(
        ConvertRequest(data=wav_bytes, filename="tone.wav", format=OutputFormat.FLAC)
    )
    retagged = processor.retag(
        RetagRequest(data=flac.data, filename=flac.filename, tags=TagFields(title="Tone", track="7"))
    )
    metadata = processor.read_metadata(
        ReadMetadataRequest(data=retagged.data, filename=retagged.filename)
    )
    assert metadata.title == "Tone"
    assert metadata.track == "7"
    assert metadata.artist == ""
