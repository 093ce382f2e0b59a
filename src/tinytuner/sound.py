"""
Offline PCM sources.

Recorded audio is fed through exactly the same push path as live capture:
files are read as 16-bit blocks and handed to the pipeline chunk by chunk.

Supported formats are whatever soundfile/libsndfile reads (WAV, FLAC, OGG,
AIFF, ...). Only mono files are accepted.

Usage:
    from tinytuner.sound import track_file

    for result in track_file("guitar_a.wav"):
        print(result.frequency, result.note)
"""

from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np

from .config import TunerConfig
from .pipeline import PitchResult
from .session import ListeningSession


def file_sample_rate(path: Union[str, Path]) -> int:
    """
    Sample rate of a mono audio file.

    Raises:
        ValueError: If the file has more than one channel
    """
    import soundfile as sf

    info = sf.info(str(path))
    if info.channels != 1:
        raise ValueError(
            f"Only mono audio supported. File has {info.channels} channels."
        )
    return info.samplerate


def iter_pcm_chunks(path: Union[str, Path], chunk_size: int = 1024) -> Iterator[bytes]:
    """
    Read an audio file as little-endian 16-bit PCM chunks.

    Args:
        path: Path to a mono audio file
        chunk_size: Samples per chunk

    Yields:
        PCM byte chunks (the last one may be shorter)

    Raises:
        ValueError: If the file has more than one channel
    """
    import soundfile as sf

    with sf.SoundFile(str(path)) as f:
        if f.channels != 1:
            raise ValueError(
                f"Only mono audio supported. File has {f.channels} channels."
            )
        for block in f.blocks(blocksize=chunk_size, dtype="int16"):
            yield block.astype("<i2").tobytes()


def tone_chunks(
    frequency: float,
    duration: float,
    sample_rate: int = 44100,
    amplitude: float = 0.5,
    chunk_size: int = 1024
) -> Iterator[bytes]:
    """
    Synthesize a sine tone as PCM chunks.

    Args:
        frequency: Tone frequency in Hz
        duration: Length in seconds
        sample_rate: Sample rate in Hz
        amplitude: Peak amplitude in [0, 1]
        chunk_size: Samples per chunk
    """
    n = int(round(duration * sample_rate))
    t = np.arange(n) / sample_rate
    samples = amplitude * np.sin(2 * np.pi * frequency * t)
    pcm = np.clip(np.round(samples * 32767), -32768, 32767).astype("<i2")
    for start in range(0, n, chunk_size):
        yield pcm[start:start + chunk_size].tobytes()


def track_file(
    path: Union[str, Path],
    config: Optional[TunerConfig] = None,
    chunk_size: int = 1024
) -> List[PitchResult]:
    """
    Run a file through a fresh pipeline.

    The file's sample rate replaces the one in config.

    Returns:
        One PitchResult per analysis pass that produced an update
    """
    config = config if config is not None else TunerConfig()
    rate = file_sample_rate(path)
    if rate != config.sample_rate:
        config = config.replace(sample_rate=rate)

    session = ListeningSession(config=config)
    return list(session.listen(iter_pcm_chunks(path, chunk_size)))
