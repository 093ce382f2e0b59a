"""
Cents position model for a scrolling note-scale display.

The display pointer moves along an unbounded cents axis (A4 = 0). The note
scale it scrolls over repeats every 1200 cents, so a jump of more than half
an octave between consecutive estimates is treated as an octave-aliasing
artifact: the start of the animation is shifted by ±1200 cents so the
pointer travels the short way round instead of crossing the whole scale.

The model only decides the (start, target) pair of each animation. The
animator owns timing and reports intermediate positions back through
set_position().
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .notes import CENTS_PER_OCTAVE, REFERENCE_FREQUENCY, NoteInfo, cents_to_note, frequency_to_cents

logger = logging.getLogger(__name__)


def ease_out_cubic(t: float) -> float:
    """Ease-out cubic curve: 1 - (1 - t)³ on t in [0, 1]."""
    t = min(1.0, max(0.0, t))
    return 1.0 - (1.0 - t) ** 3


@dataclass(frozen=True)
class IndicatorUpdate:
    """Start and target cents of one pointer animation, and its length in seconds."""
    start: float
    target: float
    duration: float = 0.15

    @property
    def distance(self) -> float:
        return self.target - self.start

    def position_at(self, progress: float) -> float:
        """Eased position after the given fraction of the animation."""
        return self.start + self.distance * ease_out_cubic(progress)


class TuningIndicatorModel:
    """
    Unwrapped pointer position for the note scale.

    Attributes:
        current_cents: Position the pointer is at (moved by the animator)
        target_cents: Position the pointer is heading to
        unwrap_threshold: Jump size in cents treated as aliasing (default 600)
        animation_duration: Length of each pointer animation in seconds
    """

    def __init__(
        self,
        unwrap_threshold: float = 600.0,
        reference: float = REFERENCE_FREQUENCY,
        animation_duration: float = 0.15
    ):
        self.unwrap_threshold = float(unwrap_threshold)
        self.animation_duration = float(animation_duration)
        self.reference = float(reference)
        self.current_cents = 0.0
        self.target_cents = 0.0
        self._initialized = False

    @property
    def initialized(self) -> bool:
        """Whether a valid frequency has been seen yet."""
        return self._initialized

    def __repr__(self) -> str:
        return (f"TuningIndicatorModel(current={self.current_cents:.1f}, "
                f"target={self.target_cents:.1f})")

    def update(self, frequency: float) -> IndicatorUpdate:
        """
        Retarget the pointer at a new frequency.

        The first frequency places the pointer directly on its cents value.

        Args:
            frequency: Frequency in Hz (> 0)

        Returns:
            IndicatorUpdate with the (possibly unwrapped) start and the target
        """
        return self.update_cents(frequency_to_cents(frequency, self.reference))

    def update_cents(self, new_cents: float) -> IndicatorUpdate:
        """Same as update() for a value already in absolute cents."""
        if not self._initialized:
            self.current_cents = new_cents
            self.target_cents = new_cents
            self._initialized = True
            return IndicatorUpdate(new_cents, new_cents, self.animation_duration)

        diff = new_cents - self.current_cents
        if abs(diff) > self.unwrap_threshold:
            shift = CENTS_PER_OCTAVE if diff > 0 else -CENTS_PER_OCTAVE
            logger.debug("Unwrapping pointer %.1f -> %.1f (target %.1f)",
                         self.current_cents, self.current_cents + shift, new_cents)
            self.current_cents += shift

        self.target_cents = new_cents
        return IndicatorUpdate(self.current_cents, self.target_cents, self.animation_duration)

    def set_position(self, cents: float) -> None:
        """Record an intermediate animation position."""
        self.current_cents = float(cents)

    def note_info(self) -> Optional[NoteInfo]:
        """Note under the pointer, or None before the first update."""
        if not self._initialized:
            return None
        return cents_to_note(self.current_cents)
