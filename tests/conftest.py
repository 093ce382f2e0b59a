"""Shared signal helpers for the tinytuner tests."""

import numpy as np
import pytest

SAMPLE_RATE = 44100


def sine(frequency, n_samples, sample_rate=SAMPLE_RATE, amplitude=0.5):
    """Float sine wave."""
    t = np.arange(n_samples) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t)


def to_pcm(samples):
    """Float samples in [-1, 1] to little-endian 16-bit PCM bytes."""
    return np.clip(np.round(samples * 32767), -32768, 32767).astype("<i2").tobytes()


def pcm_chunks(samples, chunk_size=1024):
    """Split float samples into PCM byte chunks."""
    pcm = to_pcm(samples)
    step = chunk_size * 2
    return [pcm[i:i + step] for i in range(0, len(pcm), step)]


@pytest.fixture
def a440_chunks():
    """One second of A4 as 1024-sample PCM chunks."""
    return pcm_chunks(sine(440.0, SAMPLE_RATE))
