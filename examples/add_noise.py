"""Example: Prepend pink noise to an audio file."""

import sys
from pathlib import Path

from audioops import AddNoiseRequest, AudioOpsError, AudioProcessor, NoiseType

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python add_noise.py <path_to_audio_file> [noise_seconds]")
        sys.exit(1)

    source = Path(sys.argv[1])
    if not source.exists():
        print(f"Error: File not found: {source}")
        sys.exit(1)
    seconds = float(sys.argv[2]) if len(sys.argv) > 2 else 10

    request = AddNoiseRequest(
        data=source.read_bytes(),
        filename=source.name,
        duration_seconds=seconds,
        noise_type=NoiseType.PINK,
    )

    def show(event):
        print(f"\r{event.percent:3d}%", end="", flush=True)

    with AudioProcessor() as processor:
        print(f"Engine: {processor.engine.reason}")
        try:
            result = processor.add_noise(request, on_progress=show)
        except AudioOpsError as e:
            print(f"\nError: {e}")
            sys.exit(1)

    output = source.with_name(result.filename)
    output.write_bytes(result.data)
    print(f"\nWrote {output} ({result.size} bytes)")
