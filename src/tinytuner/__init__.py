"""
tinytuner - Streaming monophonic pitch tracking for instrument tuners.

Turns a live stream of 16-bit PCM chunks into a fundamental frequency, the
nearest equal-tempered note (A4 = 440 Hz) with its cents deviation, and an
unwrapped pointer position for an animated note scale.

Usage:
    from tinytuner import TunerPipeline

    pipeline = TunerPipeline()
    for chunk in capture_stream:
        result = pipeline.process_chunk(chunk)
        if result is not None and result.note is not None:
            print(result.note.name, result.note.octave, result.note.deviation)

Configuration is read by load_config() from ./tinytuner.toml,
~/.tinytuner/config.toml and TINYTUNER_* environment variables.
"""

from .buffer import SampleBuffer, decode_pcm16
from .config import ConfigError, TunerConfig, load_config
from .indicator import IndicatorUpdate, TuningIndicatorModel, ease_out_cubic
from .notes import NOTE_NAMES, NoteInfo, NoteMapper, frequency_to_cents, note_to_frequency
from .pipeline import PitchResult, TunerPipeline
from .pitch import (
    AutocorrelationEstimator,
    PitchEstimator,
    YinEstimator,
    create_estimator,
)
from .session import ListeningSession, ListeningStopped
from .smoothing import PitchPostProcessor
from .window import get_window, hann

__version__ = "0.1.0"
__all__ = [
    "AutocorrelationEstimator",
    "ConfigError",
    "IndicatorUpdate",
    "ListeningSession",
    "ListeningStopped",
    "NOTE_NAMES",
    "NoteInfo",
    "NoteMapper",
    "PitchEstimator",
    "PitchPostProcessor",
    "PitchResult",
    "SampleBuffer",
    "TunerConfig",
    "TunerPipeline",
    "TuningIndicatorModel",
    "YinEstimator",
    "create_estimator",
    "decode_pcm16",
    "ease_out_cubic",
    "frequency_to_cents",
    "get_window",
    "hann",
    "load_config",
    "note_to_frequency",
]
