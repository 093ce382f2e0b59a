"""
Post-processing of raw per-frame pitch estimates.

Short-window estimators occasionally lock onto the first overtone or a
subharmonic for a frame or two. PitchPostProcessor damps this in two steps:

1. Median smoothing over the last few raw estimates (FIFO history).
2. Octave correction relative to the last value it returned: a median that
   sits half or double the previous stable frequency (within a tolerance in
   Hz) is moved back onto it.

The correction uses recent history instead of a fixed musical grid, so it
follows key and register changes.
"""

import logging
from collections import deque
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class PitchPostProcessor:
    """
    Median smoothing and octave-jump correction.

    Attributes:
        history_size: Number of raw estimates kept
        octave_tolerance: Tolerance in Hz for the octave checks
        last_stable: Last returned frequency, or None
    """

    def __init__(self, history_size: int = 5, octave_tolerance: float = 5.0):
        if history_size < 1:
            raise ValueError(f"history_size must be at least 1, got {history_size}")
        self.history_size = history_size
        self.octave_tolerance = float(octave_tolerance)
        self._history = deque(maxlen=history_size)
        self.last_stable: Optional[float] = None

    @property
    def history(self) -> Tuple[float, ...]:
        """Raw estimates currently held, oldest first."""
        return tuple(self._history)

    def median(self) -> Optional[float]:
        """Middle element of the sorted history (upper middle for even sizes)."""
        if not self._history:
            return None
        ordered = sorted(self._history)
        return ordered[len(ordered) // 2]

    def process(self, estimate: Optional[float]) -> Optional[float]:
        """
        Smooth and octave-correct a new raw estimate.

        Args:
            estimate: Raw frequency in Hz, or None if the frame had no pitch

        Returns:
            Corrected frequency, or None if estimate was None. A None result
            means "keep showing the previous value", not 0 Hz.
        """
        if estimate is None:
            return None

        self._history.append(float(estimate))
        median = self.median()
        value = median

        last = self.last_stable
        if last is not None:
            # Both checks look at the median and may both apply
            if abs(2.0 * median - last) < self.octave_tolerance:
                value *= 2.0
                logger.debug("Octave up: %.2f Hz -> %.2f Hz (last %.2f)", median, value, last)
            if abs(median / 2.0 - last) < self.octave_tolerance:
                value /= 2.0
                logger.debug("Octave down: %.2f Hz -> %.2f Hz (last %.2f)", median, value, last)

        self.last_stable = value
        return value

    def reset(self) -> None:
        """Forget the history and the last stable frequency."""
        self._history.clear()
        self.last_stable = None
