"""Tests for engine command builders."""

import pytest
from audioops.commands import (
    build_add_noise,
    build_command,
    build_convert,
    build_convert_wav_to_mp3,
    build_extract_cover,
    build_read_metadata,
    build_render_waveform,
    build_retag,
    build_trim,
    new_scope,
    parse_ffmetadata,
    silence_threshold,
    vorbis_quality,
)
from audioops.core.exceptions import InvariantError, ValidationError
from audioops.core.models import (
    CHANNELS_AUTO,
    AddNoiseRequest,
    ConvertRequest,
    ConvertWavToMp3Request,
    ExtractCoverRequest,
    NoiseType,
    OutputFormat,
    ReadMetadataRequest,
    RenderWaveformRequest,
    RetagRequest,
    TagFields,
    TrimRequest,
)
from audioops.formats import all_formats
from audioops.formats.picture import parse_picture_block
from audioops.utils.validate import format_number

AUDIO = b"ID3\x03\x00fake-audio"
JPEG = b"\xff\xd8\xff\xe0cover"


def test_pink_noise_command():
    """Test 180 s of pink noise at 192k, placed before the track."""
    command = build_add_noise(
        AddNoiseRequest(
            data=AUDIO,
            filename="song.mp3",
            duration_seconds=180,
            amplitude=0.05,
            noise_type=NoiseType.PINK,
            bitrate="192k",
        )
    )
    assert command.args == (
        "-f", "lavfi",
        "-i", "anoisesrc=color=pink:duration=180:amplitude=0.05",
        "-i", "input.mp3",
        "-filter_complex",
        "[0:a]highpass=f=20,lowpass=f=4000[n];[n][1:a]concat=n=2:v=0:a=1[aout]",
        "-map", "[aout]",
        "-c:a", "libmp3lame",
        "-b:a", "192k",
        "-y", "output.mp3",
    )
    assert command.filename == "song_noise.mp3"
    assert command.mime_type == "audio/mpeg"
    assert [f.name for f in command.inputs] == ["input.mp3"]


def test_white_noise_and_clamping():
    """Test white noise, amplitude clamping and the minimum duration."""
    command = build_add_noise(
        AddNoiseRequest(
            data=AUDIO,
            filename="take.wav",
            duration_seconds=0,
            amplitude=3.0,
            noise_type="white",
            bitrate="128K",
        )
    )
    assert command.args[3] == "anoisesrc=color=white:duration=1:amplitude=1"
    assert "[0:a][1:a]concat=n=2:v=0:a=1[aout]" in command.args
    assert command.args[command.args.index("-b:a") + 1] == "128k"
    assert command.args[5] == "input.wav"
    assert command.filename == "take_noise.mp3"


def test_noise_rejects_bad_bitrate():
    """Test that a malformed bitrate fails validation."""
    with pytest.raises(ValidationError, match="Bitrate"):
        build_add_noise(AddNoiseRequest(data=AUDIO, bitrate="fast"))


def test_extract_cover_command():
    """Test that audio is dropped and the image copied."""
    command = build_extract_cover(ExtractCoverRequest(data=AUDIO, filename="song.flac"))
    assert command.args == ("-i", "input.flac", "-an", "-vcodec", "copy", "-y", "cover.jpg")
    assert command.filename == "song_cover.jpg"


def test_read_metadata_command():
    """Test the ffmetadata export."""
    command = build_read_metadata(ReadMetadataRequest(data=AUDIO, filename="a.mp3"))
    assert command.args == ("-i", "input.mp3", "-f", "ffmetadata", "-y", "metadata.txt")


def test_parse_ffmetadata():
    """Test case-insensitive keys, date as year and missing fields."""
    text = (
        ";FFMETADATA1\n"
        "TITLE=Night\\=Drive\n"
        "Artist=Someone\n"
        "date=1999\n"
        "encoder=Lavf60\n"
        "[STREAM]\n"
        "title=Album cover\n"
    )
    metadata = parse_ffmetadata(text)
    assert metadata.title == "Night=Drive"
    assert metadata.artist == "Someone"
    assert metadata.year == "1999"
    assert metadata.album == ""
    assert metadata.track == ""
    assert metadata.as_dict() == {
        "title": "Night=Drive",
        "artist": "Someone",
        "album": "",
        "year": "1999",
        "track": "",
    }


def test_convert_mp3_copies_attached_picture():
    """Test the MP3 conversion vector."""
    command = build_convert(
        ConvertRequest(data=AUDIO, filename="track.wav", format=OutputFormat.MP3)
    )
    assert command.args == (
        "-i", "input.wav",
        "-map", "0:a:0",
        "-map", "0:v?", "-c:v", "copy", "-disposition:v", "attached_pic",
        "-map_metadata", "0",
        "-c:a", "libmp3lame",
        "-ar", "44100",
        "-ac", "2",
        "-b:a", "192k",
        "-y", "output.mp3",
    )
    assert command.filename == "track.mp3"
    assert command.probe_cover is None


@pytest.mark.parametrize("descriptor", all_formats(), ids=lambda d: d.format_id.value)
def test_lossless_never_gets_bitrate(descriptor):
    """Test that no lossless target receives a bitrate argument."""
    command = build_convert(
        ConvertRequest(data=AUDIO, filename="in.mp3", format=descriptor.format_id, bitrate="320k")
    )
    has_bitrate = "-b:a" in command.args or "-qscale:a" in command.args
    assert has_bitrate is not descriptor.is_lossless
    assert command.mime_type == descriptor.mime_type


def test_convert_wav_drops_video_and_aiff_writes_id3():
    """Test the WAV and AIFF specifics."""
    wav = build_convert(ConvertRequest(data=AUDIO, filename="a.flac", format=OutputFormat.WAV))
    assert "-vn" in wav.args
    assert "-map_metadata" not in wav.args

    aiff = build_convert(ConvertRequest(data=AUDIO, filename="a.flac", format=OutputFormat.AIFF))
    assert aiff.args[-4:] == ("-write_id3v2", "1", "-y", "output.aiff")


def test_convert_ogg_uses_quality_scale():
    """Test Vorbis quality and the cover probe request."""
    command = build_convert(
        ConvertRequest(
            data=AUDIO,
            filename="song.mp3",
            format=OutputFormat.OGG,
            bitrate="256k",
            channels=CHANNELS_AUTO,
            output_basename="renamed",
        )
    )
    assert command.args == (
        "-i", "input.mp3",
        "-map", "0:a:0",
        "-vn", "-map_metadata", "0",
        "-c:a", "libvorbis",
        "-ar", "44100",
        "-qscale:a", "6.5",
        "-y", "output.ogg",
    )
    assert command.probe_cover == "input.mp3"
    assert command.filename == "renamed.ogg"


def test_convert_ogg_embeds_discovered_cover():
    """Test the METADATA_BLOCK_PICTURE comment."""
    command = build_convert(
        ConvertRequest(data=AUDIO, filename="song.mp3", format=OutputFormat.OGG),
        source_cover=JPEG,
    )
    index = command.args.index("-metadata")
    key, _, value = command.args[index + 1].partition("=")
    assert key == "METADATA_BLOCK_PICTURE"
    block = parse_picture_block(value)
    assert block.data == JPEG
    assert block.mime_type == "image/jpeg"
    assert command.probe_cover is None


def test_vorbis_quality_table():
    """Test the fixed quality table and its default."""
    assert vorbis_quality("96k") == 2.7
    assert vorbis_quality("128k") == 4
    assert vorbis_quality("160k") == 4.8
    assert vorbis_quality("192k") == 5.5
    assert vorbis_quality("320k") == 7.5
    assert vorbis_quality("64k") == 4


def test_convert_rejects_unsupported_sample_rate():
    """Test that the message names the allowed rates."""
    with pytest.raises(ValidationError, match="44100 / 48000"):
        build_convert(
            ConvertRequest(data=AUDIO, filename="a.wav", format=OutputFormat.MP3, sample_rate=96000)
        )


def test_convert_rejects_unsupported_channels():
    """Test the channel check and the auto bypass."""
    with pytest.raises(ValidationError, match="channels 1 or 2"):
        build_convert(
            ConvertRequest(data=AUDIO, filename="a.wav", format=OutputFormat.FLAC, channels=6)
        )
    command = build_convert(
        ConvertRequest(data=AUDIO, filename="a.wav", format=OutputFormat.FLAC, channels="auto")
    )
    assert "-ac" not in command.args


def test_trim_passthrough_is_stream_copy():
    """Test that keeping the source format copies every stream."""
    command = build_trim(
        TrimRequest(data=AUDIO, filename="song.mp3", start_time=10, end_time=25.5)
    )
    assert command.args == (
        "-ss", "10",
        "-i", "input.mp3",
        "-t", "15.5",
        "-map_metadata", "0",
        "-map", "0:a:0",
        "-map", "0:v?",
        "-c", "copy",
        "-y", "output.mp3",
    )
    assert command.filename == "song_trimmed.mp3"
    assert command.probe_cover is None


def test_trim_same_format_takes_passthrough():
    """Test that naming the source format explicitly still stream-copies."""
    command = build_trim(
        TrimRequest(
            data=AUDIO, filename="song.flac", start_time=0, end_time=5, format=OutputFormat.FLAC
        )
    )
    assert ("-c", "copy") == command.args[-4:-2]


def test_trim_with_silence_removal():
    """Test the silence filter and re-encode path."""
    command = build_trim(
        TrimRequest(
            data=AUDIO,
            filename="song.mp3",
            start_time=0,
            end_time=30,
            remove_silence=True,
            silence_threshold_db=-50,
            silence_duration=0.5,
        )
    )
    expected_filter = (
        "silenceremove=stop_periods=-1:stop_duration=0.5"
        f":stop_threshold={format_number(silence_threshold(-50))}"
    )
    assert command.args[command.args.index("-af") + 1] == expected_filter
    assert "copy" != command.args[command.args.index("-c:a") + 1]
    # Keeping the source format does not force a bitrate
    assert "-b:a" not in command.args
    assert abs(silence_threshold(-20) - 0.1) < 1e-12


def test_trim_to_other_formats():
    """Test lossless and lossy re-encode targets."""
    flac = build_trim(
        TrimRequest(data=AUDIO, filename="s.mp3", start_time=1, end_time=2, format=OutputFormat.FLAC)
    )
    assert "-b:a" not in flac.args
    assert flac.filename == "s_trimmed.flac"

    ogg = build_trim(
        TrimRequest(
            data=AUDIO, filename="s.mp3", start_time=1, end_time=2,
            format=OutputFormat.OGG, bitrate="160k",
        )
    )
    assert ogg.args[ogg.args.index("-b:a") + 1] == "160k"
    assert ogg.probe_cover == "input.mp3"


def test_trim_invariants():
    """Test non-positive durations and unknown source formats."""
    with pytest.raises(InvariantError):
        build_trim(TrimRequest(data=AUDIO, filename="s.mp3", start_time=5, end_time=5))
    with pytest.raises(ValidationError):
        build_trim(TrimRequest(data=AUDIO, filename="s.opus", start_time=0, end_time=5))


def test_retag_mp3_with_cover():
    """Test stream copy, metadata clearing and cover replacement."""
    command = build_retag(
        RetagRequest(
            data=AUDIO,
            filename="song.mp3",
            tags=TagFields(title="T", artist="", album=None, year="2001"),
            cover=JPEG,
        )
    )
    assert command.args == (
        "-i", "input.mp3",
        "-i", "cover.jpg",
        "-map", "0:a", "-c:a", "copy",
        "-id3v2_version", "3",
        "-map_metadata", "-1",
        "-map", "1:v", "-c:v", "copy",
        "-metadata:s:v", "title=Album cover",
        "-metadata:s:v", "comment=Cover (front)",
        "-metadata", "title=T",
        "-metadata", "date=2001",
        "-y", "output.mp3",
    )
    assert command.filename == "song_retagged.mp3"
    assert [f.name for f in command.inputs] == ["input.mp3", "cover.jpg"]


def test_retag_ogg_embeds_picture_comment():
    """Test that Ogg covers travel as a comment, not a stream."""
    command = build_retag(RetagRequest(data=AUDIO, filename="a.ogg", cover=JPEG))
    assert len(command.inputs) == 1
    assert any(arg.startswith("METADATA_BLOCK_PICTURE=") for arg in command.args)


def test_retag_rejects_cover_for_wav():
    """Test that WAV cannot carry a cover."""
    with pytest.raises(ValidationError):
        build_retag(RetagRequest(data=AUDIO, filename="a.wav", cover=JPEG))
    with pytest.raises(ValidationError):
        build_retag(RetagRequest(data=AUDIO, filename="a.xyz"))


def test_wav_to_mp3_with_source():
    """Test metadata copy from the source and tag clearing."""
    command = build_convert_wav_to_mp3(
        ConvertWavToMp3Request(
            data=AUDIO,
            filename="mix.wav",
            source=b"source-mp3",
            tags=TagFields(title="New", album=""),
        )
    )
    assert command.args == (
        "-i", "input.wav",
        "-i", "source.mp3",
        "-map", "0:a",
        "-c:a", "libmp3lame",
        "-b:a", "320k",
        "-id3v2_version", "3",
        "-map_metadata", "1",
        "-map", "1:v?",
        "-metadata", "title=New",
        "-metadata", "album=",
        "-y", "output.mp3",
    )
    assert command.filename == "mix.mp3"


def test_wav_to_mp3_explicit_cover_wins():
    """Test that an explicit cover replaces the source image."""
    command = build_convert_wav_to_mp3(
        ConvertWavToMp3Request(data=AUDIO, source=b"src", cover=JPEG)
    )
    index = command.args.index("2:v")
    assert command.args[index - 1] == "-map"
    assert "1:v?" not in command.args


def test_render_waveform():
    """Test the showwavespic render and its validation."""
    command = build_render_waveform(
        RenderWaveformRequest(data=AUDIO, filename="song.mp3"), default_size=(800, 100)
    )
    assert command.args == (
        "-i", "input.mp3",
        "-filter_complex", "showwavespic=s=800x100:colors=0x3b82f6",
        "-frames:v", "1",
        "-y", "waveform.png",
    )
    assert command.filename == "song-waveform.png"
    assert command.mime_type == "image/png"

    with pytest.raises(ValidationError):
        build_render_waveform(RenderWaveformRequest(data=AUDIO, width=0))
    with pytest.raises(ValidationError):
        build_render_waveform(RenderWaveformRequest(data=AUDIO, color="red;rm"))


def test_scoped_names():
    """Test that every virtual name carries the call's prefix."""
    scope = new_scope()
    command = build_command(
        ConvertRequest(data=AUDIO, filename="a.wav", format=OutputFormat.FLAC), scope
    )
    assert all(name.startswith(scope.prefix) for name in command.cleanup_names)
    assert new_scope().prefix != scope.prefix


def test_unknown_request_kind():
    """Test that an unknown request is an invariant violation."""
    with pytest.raises(InvariantError):
        build_command(object())
