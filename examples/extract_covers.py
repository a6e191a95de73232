"""Example: Extract cover art from several files."""

import sys
from pathlib import Path

from audioops import AudioProcessor, BatchError, ExtractCoverRequest

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python extract_covers.py <audio_file> [<audio_file> ...]")
        sys.exit(1)

    paths = [Path(arg) for arg in sys.argv[1:]]
    requests = [ExtractCoverRequest(data=p.read_bytes(), filename=p.name) for p in paths]

    with AudioProcessor() as processor:
        try:
            result = processor.extract_covers_batch(requests)
        except BatchError as e:
            print(f"Error: {e}")
            sys.exit(1)

    for name in result.skipped:
        print(f"No cover: {name}")
    for item in result.items:
        Path(item.filename).write_bytes(item.data)
        print(f"Saved {item.filename} ({item.mime_type})")
