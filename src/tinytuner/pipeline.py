"""
TunerPipeline - from raw PCM chunks to note readings.

Data flow for one chunk:

    bytes -> decode_pcm16 -> SampleBuffer
          -> (once a frame is available) most recent frame
          -> window + PitchEstimator -> PitchPostProcessor -> frequency
          -> NoteMapper          -> NoteInfo
          -> TuningIndicatorModel -> IndicatorUpdate

The pipeline owns all analysis state (buffer, estimate history, last stable
frequency, pointer position). process_chunk() is its only mutating entry
point and runs synchronously to completion.

Usage:
    pipeline = TunerPipeline()
    for chunk in capture:
        result = pipeline.process_chunk(chunk)
        if result is not None:
            show(result.frequency, result.note)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .buffer import SampleBuffer, decode_pcm16
from .config import TunerConfig
from .indicator import IndicatorUpdate, TuningIndicatorModel
from .notes import NoteInfo, NoteMapper
from .pitch import PitchEstimator, estimator_from_config
from .smoothing import PitchPostProcessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitchResult:
    """Output of one successful analysis pass."""
    frequency: float                      # Smoothed, octave-corrected Hz
    note: Optional[NoteInfo] = None       # None if outside the musical range
    indicator: Optional[IndicatorUpdate] = None
    in_tune_cents: float = 10.0

    @property
    def in_range(self) -> bool:
        """Whether the frequency was mapped to a note."""
        return self.note is not None

    @property
    def in_tune(self) -> bool:
        """Whether the note deviation is within the in-tune tolerance."""
        return self.note is not None and self.note.in_tune(self.in_tune_cents)


class TunerPipeline:
    """
    Streaming pitch tracker.

    Attributes:
        config: TunerConfig in use
        buffer: SampleBuffer holding recent samples
        estimator: PitchEstimator strategy
        postprocessor: PitchPostProcessor (median + octave correction)
        mapper: NoteMapper
        indicator: TuningIndicatorModel
    """

    def __init__(
        self,
        config: Optional[TunerConfig] = None,
        estimator: Optional[PitchEstimator] = None
    ):
        """
        Create a pipeline.

        Args:
            config: Tunable constants (default: TunerConfig())
            estimator: Estimator to use instead of the one named by config
        """
        self.config = config if config is not None else TunerConfig()
        cfg = self.config

        self.buffer = SampleBuffer(cfg.max_buffer, cfg.keep_tail)
        self.estimator = estimator if estimator is not None else estimator_from_config(cfg)
        self.postprocessor = PitchPostProcessor(cfg.history_size, cfg.octave_tolerance)
        self.mapper = NoteMapper(cfg.reference_frequency, cfg.in_tune_cents)
        self.indicator = TuningIndicatorModel(
            cfg.unwrap_threshold, cfg.reference_frequency, cfg.animation_duration
        )

    def __repr__(self) -> str:
        return f"TunerPipeline({self.estimator!r}, {self.buffer!r})"

    def process_chunk(self, data: bytes) -> Optional[PitchResult]:
        """
        Feed one chunk of PCM bytes.

        Args:
            data: Little-endian signed 16-bit mono PCM

        Returns:
            PitchResult, or None if no update should be emitted (not enough
            data yet, silence, or no reliable period)
        """
        cfg = self.config
        self.buffer.append(decode_pcm16(data))

        if not self.buffer.is_ready(cfg.frame_size):
            return None

        frame = self.buffer.extract_window(cfg.frame_size)
        raw = self.estimator.estimate(frame)
        frequency = self.postprocessor.process(raw)
        self.buffer.trim(cfg.max_buffer, cfg.keep_tail)

        if frequency is None:
            return None

        logger.debug("Raw %.2f Hz, smoothed %.2f Hz", raw, frequency)

        if not cfg.min_frequency <= frequency <= cfg.max_frequency:
            return PitchResult(frequency, in_tune_cents=cfg.in_tune_cents)

        note = self.mapper.map(frequency)
        update = self.indicator.update(frequency)
        return PitchResult(frequency, note, update, cfg.in_tune_cents)

    def reset(self) -> None:
        """
        Clear buffered samples and estimate history.

        The indicator keeps its position so a display holds the last reading.
        """
        self.buffer.reset()
        self.postprocessor.reset()
        logger.debug("Pipeline state reset")
