"""ffmpeg backend implementation."""

import os
import subprocess
import tempfile
import threading
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Optional, Sequence
from audioops.backends.ffmpeg.progress import ProgressParser, expected_duration
from audioops.core.exceptions import BackendError
from audioops.core.interfaces import ITranscodeBackend, LogListener, ProgressListener
from audioops.core.models import EngineBuild, EngineConfig
from audioops.utils.log import get_logger

logger = get_logger(__name__)

try:
    from pydub.utils import get_encoder_name, mediainfo_json, which
    PYDUB_AVAILABLE = True
    PYDUB_ERROR = None
except ImportError as e:
    PYDUB_AVAILABLE = False
    PYDUB_ERROR = str(e)

_THREADS_FOR_BUILD = {
    EngineBuild.MULTI_THREADED: "0",
    EngineBuild.SINGLE_THREADED: "1",
}

# stderr lines kept for the failure message
_ERROR_LINES = 5


def _pydub_import_error() -> ImportError:
    message = "pydub is required to locate and probe ffmpeg."
    if PYDUB_ERROR and "audioop" in PYDUB_ERROR.lower():
        message += (
            "\n\npydub is installed but missing the 'audioop' module. "
            "This is common on Python 3.13+ where audioop was removed. "
            "Install audioop-lts to fix this:\n"
            "  pip install audioop-lts"
        )
    elif PYDUB_ERROR:
        message += f"\n\nImport error: {PYDUB_ERROR}"
    return ImportError(message)


class FFmpegBackend(ITranscodeBackend):
    """
    Backend that drives an ffmpeg executable.

    The virtual filesystem is a private temporary directory created at load
    time; every exec runs with that directory as its working directory, so
    virtual names are plain relative paths.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._binary: Optional[str] = None
        self._workdir: Optional[tempfile.TemporaryDirectory] = None
        self._threads = "1"

    def _resolve_binary(self) -> Optional[str]:
        if self._config.ffmpeg_path:
            return self._config.ffmpeg_path
        if not PYDUB_AVAILABLE:
            raise _pydub_import_error()
        return which(get_encoder_name())

    def probe_features(self) -> Dict[str, bool]:
        """
        Report runtime features relevant to build selection.

        pthreads is read from the executable's build configuration.
        """
        features = {
            "multiple_cpus": (os.cpu_count() or 1) > 1,
            "pthreads": False,
        }
        binary = self._resolve_binary()
        if binary is None:
            return features
        try:
            result = subprocess.run(
                [binary, "-hide_banner", "-buildconf"],
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            logger.debug(f"Feature probe failed: {e}")
            return features
        # Threading is on unless the build explicitly disabled it
        features["pthreads"] = (
            result.returncode == 0 and "--disable-pthreads" not in result.stdout
        )
        logger.debug(f"Probed features: {features}")
        return features

    def load(self, build: EngineBuild) -> None:
        """
        Locate and verify ffmpeg, then create the working directory
        (called in worker thread).

        Raises:
            BackendError: If ffmpeg cannot be found or does not run.
            ImportError: If pydub is needed for discovery but missing.
        """
        if self._workdir is not None:
            return

        binary = self._resolve_binary()
        if not binary:
            raise BackendError(
                "ffmpeg executable not found. Install ffmpeg and make sure it is "
                "on PATH, or set EngineConfig.ffmpeg_path."
            )
        try:
            result = subprocess.run(
                [binary, "-hide_banner", "-version"],
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise BackendError(f"Cannot run {binary}: {e}") from e
        if result.returncode != 0:
            raise BackendError(f"{binary} -version failed", result.returncode)

        first_line = result.stdout.splitlines()[0] if result.stdout else binary
        self._binary = binary
        self._threads = _THREADS_FOR_BUILD[build]
        self._workdir = tempfile.TemporaryDirectory(prefix="audioops-")
        logger.info(f"FFmpegBackend loaded: {first_line} ({build.value})")

    @property
    def workdir(self) -> Path:
        """Directory backing the virtual filesystem."""
        if self._workdir is None:
            raise BackendError("ffmpeg backend is not loaded")
        return Path(self._workdir.name)

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or os.sep in name:
            raise BackendError(f"Invalid virtual file name: {name!r}")
        return self.workdir / name

    def write(self, name: str, data: bytes) -> None:
        """Write a file into the working directory."""
        self._path(name).write_bytes(data)

    def read(self, name: str) -> bytes:
        """Read a file from the working directory."""
        return self._path(name).read_bytes()

    def delete(self, name: str) -> None:
        """Delete a file from the working directory."""
        self._path(name).unlink()

    def _probe_duration(self, name: str) -> Optional[float]:
        """Duration of a working-directory file in seconds, if known."""
        if not PYDUB_AVAILABLE:
            return None
        path = self.workdir / name
        if not path.is_file():
            return None
        try:
            info = mediainfo_json(str(path))
            return float(info["format"]["duration"])
        except (KeyError, TypeError, ValueError, OSError) as e:
            logger.debug(f"Could not probe duration of {name}: {e}")
            return None

    def _command(self, args: Sequence[str]) -> List[str]:
        argv = list(args)
        # Thread count is an output option: it goes right before the output name
        argv[-1:-1] = ["-threads", self._threads]
        return [
            self._binary,
            "-hide_banner",
            "-nostdin",
            "-nostats",
            "-loglevel", self._config.loglevel,
            "-progress", "pipe:1",
            *argv,
        ]

    def exec(
        self,
        args: Sequence[str],
        on_progress: Optional[ProgressListener] = None,
        on_log: Optional[LogListener] = None,
    ) -> None:
        """
        Run ffmpeg and wait for it to exit.

        stdout carries the -progress stream; stderr lines are forwarded to
        `on_log` from a reader thread.

        Raises:
            BackendError: If ffmpeg exits with a non-zero status.
        """
        if not args:
            raise BackendError("Empty argument vector")
        workdir = self.workdir
        duration = expected_duration(args, self._probe_duration) if on_progress else None
        parser = ProgressParser(duration, on_progress)
        recent: Deque[str] = deque(maxlen=_ERROR_LINES)

        def pump_stderr(stream) -> None:
            for raw in stream:
                line = raw.rstrip("\r\n")
                if not line:
                    continue
                recent.append(line)
                if on_log is not None:
                    on_log(line)

        command = self._command(args)
        logger.debug(f"Running: {' '.join(command)}")
        try:
            process = subprocess.Popen(
                command,
                cwd=str(workdir),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise BackendError(f"Cannot start ffmpeg: {e}") from e

        reader = threading.Thread(
            target=pump_stderr, args=(process.stderr,), name="audioops-ffmpeg-log", daemon=True
        )
        reader.start()
        try:
            for line in process.stdout:
                parser.feed_line(line)
            returncode = process.wait()
            reader.join()
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            process.stdout.close()
            process.stderr.close()

        if returncode != 0:
            detail = recent[-1] if recent else "ffmpeg failed"
            raise BackendError(detail, returncode)

    def unload(self) -> None:
        """Remove the working directory and everything in it."""
        if self._workdir is None:
            return
        self._workdir.cleanup()
        self._workdir = None
        self._binary = None
        logger.info("FFmpegBackend unloaded")
