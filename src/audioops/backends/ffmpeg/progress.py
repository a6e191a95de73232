"""Progress estimation for ffmpeg runs."""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

# Options that take a value and belong to the next input
_INPUT_OPTIONS = ("-ss", "-t", "-f")
_LAVFI_DURATION_RE = re.compile(r"(?:^|[:=,])d(?:uration)?=([0-9.]+)")

DurationProbe = Callable[[str], Optional[float]]


@dataclass
class InputSpec:
    """One -i input and the options that preceded it."""

    source: str
    seek: float = 0.0
    limit: Optional[float] = None
    lavfi: bool = False


@dataclass
class OutputSpec:
    """Output-side options that bound the produced duration."""

    limit: Optional[float] = None
    concat: bool = False
    single_frame: bool = False


def _to_seconds(value: str) -> Optional[float]:
    """Parse seconds or [HH:]MM:SS[.ms]."""
    try:
        if ":" in value:
            total = 0.0
            for part in value.split(":"):
                total = total * 60 + float(part)
            return total
        return float(value)
    except ValueError:
        return None


def parse_command(args: Sequence[str]):
    """
    Split an argument vector into its inputs and output options.

    Options are attached to the -i that follows them; whatever is left
    after the last input applies to the output.

    Returns:
        Tuple of (inputs, output spec).
    """
    inputs: List[InputSpec] = []
    output = OutputSpec()
    pending: Dict[str, str] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        value = args[i + 1] if i + 1 < len(args) else ""
        if arg == "-i":
            limit = pending.get("-t")
            inputs.append(
                InputSpec(
                    source=value,
                    seek=_to_seconds(pending.get("-ss", "0")) or 0.0,
                    limit=_to_seconds(limit) if limit is not None else None,
                    lavfi=pending.get("-f") == "lavfi",
                )
            )
            pending = {}
            i += 2
            continue
        if arg in _INPUT_OPTIONS:
            pending[arg] = value
            i += 2
            continue
        if arg == "-filter_complex" and "concat=" in value:
            output.concat = True
        if arg.startswith("-frames"):
            output.single_frame = True
        i += 1

    if "-t" in pending:
        output.limit = _to_seconds(pending["-t"])
    return inputs, output


def lavfi_duration(source: str) -> Optional[float]:
    """Duration declared by a lavfi source such as anoisesrc=...:duration=5."""
    match = _LAVFI_DURATION_RE.search(source)
    return float(match.group(1)) if match else None


def expected_duration(args: Sequence[str], probe: DurationProbe) -> Optional[float]:
    """
    Estimate how many seconds of media a command will produce.

    Concatenating filter graphs add their inputs up; anything else follows
    the first input. Input seeks and -t limits are applied. Returns None
    when the duration cannot be known, e.g. for single-frame renders.
    """
    inputs, output = parse_command(args)
    if not inputs or output.single_frame:
        return None

    def input_duration(spec: InputSpec) -> Optional[float]:
        total = lavfi_duration(spec.source) if spec.lavfi else probe(spec.source)
        if total is None:
            return None
        total = max(0.0, total - spec.seek)
        if spec.limit is not None:
            total = min(total, spec.limit)
        return total

    if output.concat:
        durations = [input_duration(spec) for spec in inputs]
        if any(d is None for d in durations):
            return None
        duration = sum(durations)
    else:
        duration = input_duration(inputs[0])
        if duration is None:
            return None

    if output.limit is not None:
        duration = min(duration, output.limit)
    return duration if duration > 0 else None


class ProgressParser:
    """
    Reads ffmpeg's `-progress` key=value stream.

    Each out_time sample is reported as a fraction of the expected duration.
    """

    def __init__(self, duration: Optional[float], on_progress: Optional[Callable[[float], None]]):
        self._duration = duration
        self._on_progress = on_progress
        self.finished = False

    def feed_line(self, line: str) -> None:
        """Handle one line of progress output."""
        key, sep, value = line.strip().partition("=")
        if not sep:
            return
        if key == "progress":
            self.finished = value == "end"
            return
        # out_time_ms is also in microseconds
        if key not in ("out_time_us", "out_time_ms"):
            return
        if self._duration is None or self._on_progress is None:
            return
        try:
            micros = int(value)
        except ValueError:
            return
        self._on_progress(micros / 1_000_000 / self._duration)
