#!/usr/bin/env python3
"""
Print the tuner readings for a recorded audio file.

The file is streamed through the pipeline in capture-sized chunks, so the
output matches what a live tuner would have shown.

Usage:
    python scripts/track_file.py <audio_file> [options]

Examples:
    python scripts/track_file.py tests/fixtures/a440.wav
    python scripts/track_file.py guitar.wav --method autocorrelation --chunk-size 2048
    python scripts/track_file.py voice.wav --config tinytuner.toml -v
"""

import argparse
import logging
import sys
sys.path.insert(0, 'src')

from tinytuner.config import ConfigError, load_config
from tinytuner.sound import track_file


def format_result(result) -> str:
    """One line per reading."""
    line = f"{result.frequency:8.2f} Hz"
    if result.note is None:
        return line + "  (out of range)"
    mark = "*" if result.in_tune else " "
    return (f"{line}  {result.note.name + str(result.note.octave):>4} "
            f"{result.note.deviation:+6.1f} cents {mark}")


def main():
    parser = argparse.ArgumentParser(description="Track the pitch of an audio file")
    parser.add_argument("path", help="Mono audio file")
    parser.add_argument("--config", help="TOML config file")
    parser.add_argument("--method", choices=["yin", "autocorrelation"],
                        help="Period estimation method")
    parser.add_argument("--window", choices=["hann", "none"], help="Analysis window")
    parser.add_argument("--chunk-size", type=int, default=1024,
                        help="Samples per PCM chunk (default: 1024)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.method:
        overrides["method"] = args.method
    if args.window:
        overrides["window"] = args.window

    try:
        config = load_config(args.config, **overrides)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    results = track_file(args.path, config, chunk_size=args.chunk_size)
    if not results:
        print("No pitch detected")
        return 1

    for result in results:
        print(format_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
