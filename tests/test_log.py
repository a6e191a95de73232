"""Tests for logging configuration."""

import logging
from audioops.backends.null_backend import NullBackend
from audioops.api.processor import AudioProcessor
from audioops.core.models import AddNoiseRequest, EngineConfig
from audioops.utils.log import ENGINE_LOGGER, ROOT_LOGGER, get_logger, set_log_level


def test_loggers_share_package_handler():
    """Test that module loggers nest under the package logger."""
    inside = get_logger("audioops.services.executor")
    outside = get_logger("some_plugin")

    assert inside.name == "audioops.services.executor"
    assert outside.name == f"{ROOT_LOGGER}.some_plugin"
    assert get_logger("some_plugin") is outside
    assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1
    assert not inside.handlers


def test_engine_lines_logged_at_debug(caplog):
    """Test that engine output reaches the engine logger."""
    backend = NullBackend(log_lines=["Stream #0:0: Audio: mp3"])
    processor = AudioProcessor(EngineConfig(), backend=backend)

    set_log_level("DEBUG")
    try:
        with caplog.at_level(logging.DEBUG, logger=ENGINE_LOGGER):
            processor.add_noise(AddNoiseRequest(data=b"audio"))
    finally:
        set_log_level(logging.WARNING)
        processor.shutdown()

    assert "Stream #0:0: Audio: mp3" in [
        r.getMessage() for r in caplog.records if r.name == ENGINE_LOGGER
    ]
