"""Example: Convert several files to FLAC and save the archive."""

import sys
from pathlib import Path

from audioops import AudioOpsError, AudioProcessor, ConvertRequest, OutputFormat

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python convert_batch.py <audio_file> [<audio_file> ...]")
        sys.exit(1)

    paths = [Path(arg) for arg in sys.argv[1:]]
    missing = [str(p) for p in paths if not p.exists()]
    if missing:
        print(f"Error: File(s) not found: {', '.join(missing)}")
        sys.exit(1)

    requests = [
        ConvertRequest(
            data=path.read_bytes(),
            filename=path.name,
            format=OutputFormat.FLAC,
            sample_rate=48000,
            channels="auto",
        )
        for path in paths
    ]

    def show(event):
        print(
            f"\rFile {event.current_file}/{event.total_files}: {event.percent:3d}%",
            end="",
            flush=True,
        )

    processor = AudioProcessor()
    try:
        result = processor.convert_batch(requests, on_progress=show)
    except AudioOpsError as e:
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        processor.shutdown()

    print()
    for failure in result.failures:
        print(f"Failed: {failure}")
    archive = Path(result.archive.filename)
    archive.write_bytes(result.archive.data)
    print(f"Wrote {archive} with {len(result.items)} file(s)")
