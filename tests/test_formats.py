"""Tests for the output format registry."""

import pytest
from audioops.core.exceptions import InvariantError, UnknownFormatError
from audioops.core.models import OutputFormat
from audioops.formats import (
    all_formats,
    capabilities,
    describe,
    format_for_extension,
    resolve_format,
    supports_cover_art,
)


def test_every_format_registered():
    """Test that all six output formats are described."""
    assert {d.format_id for d in all_formats()} == set(OutputFormat)
    for fmt in OutputFormat:
        assert capabilities(fmt).allowed_sample_rates
        assert capabilities(fmt).allowed_channel_counts


def test_descriptor_fields():
    """Test codec, extension and MIME of a few formats."""
    mp3 = describe(OutputFormat.MP3)
    assert (mp3.codec, mp3.extension, mp3.mime_type) == ("libmp3lame", "mp3", "audio/mpeg")
    assert not mp3.is_lossless

    aac = describe("aac")
    assert aac.extension == "m4a"
    assert aac.mime_type == "audio/mp4"

    assert describe(OutputFormat.OGG).picture_comment
    assert describe(OutputFormat.FLAC).is_lossless
    assert describe(OutputFormat.AIFF).codec == "pcm_s16be"


def test_only_wav_lacks_cover_art():
    """Test that WAV is the one format without cover-art support."""
    without = [d.format_id for d in all_formats() if not d.supports_cover_art]
    assert without == [OutputFormat.WAV]
    assert supports_cover_art("flac")


def test_mp3_sample_rates():
    """Test that MP3 accepts only 44.1 and 48 kHz."""
    caps = capabilities(OutputFormat.MP3)
    assert caps.allowed_sample_rates == frozenset({44100, 48000})
    assert 96000 in capabilities(OutputFormat.FLAC).allowed_sample_rates


def test_unknown_format_is_invariant_error():
    """Test that an unknown format id is a programmer error."""
    with pytest.raises(UnknownFormatError):
        describe("opus")
    with pytest.raises(InvariantError):
        capabilities("wma")


def test_resolve_format_case_insensitive():
    """Test that string ids resolve regardless of case."""
    assert resolve_format("FLAC") is OutputFormat.FLAC
    assert resolve_format(OutputFormat.OGG) is OutputFormat.OGG


@pytest.mark.parametrize(
    "ext,expected",
    [
        ("mp3", OutputFormat.MP3),
        (".MPEG", OutputFormat.MP3),
        ("oga", OutputFormat.OGG),
        ("m4a", OutputFormat.AAC),
        ("wave", OutputFormat.WAV),
        ("aif", OutputFormat.AIFF),
        ("flac", OutputFormat.FLAC),
        ("opus", None),
        ("", None),
    ],
)
def test_format_for_extension(ext, expected):
    """Test the input extension map."""
    assert format_for_extension(ext) is expected
