"""
Frequency to musical note conversion.

Pitches are measured in cents relative to the reference A4 (440 Hz by
default): 100 cents per equal-tempered semitone, 1200 per octave.

    cents      = 1200 × log2(f / 440)
    normalized = cents mod 1200                  in [0, 1200), A = 0
    semitone   = nearest 100-cent slot           0..12 (12 wraps to 0)
    deviation  = normalized - 100 × semitone     in (-50, 50]
    octave     = 4 + floor((cents + 900) / 1200) octaves start at C
    name       = NOTE_NAMES[(semitone + 9) mod 12]

The octave is taken from the unrounded cents, so a pitch just below C
keeps the octave of the B beneath it while its name already reads C.
note_to_frequency() inverts this exactly.
"""

import math
from dataclasses import dataclass

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

REFERENCE_FREQUENCY = 440.0
CENTS_PER_OCTAVE = 1200.0
CENTS_PER_SEMITONE = 100.0

# Index of A in NOTE_NAMES; cents are counted from A
_A_INDEX = 9
# Cents from C4 up to A4
_C_TO_A_CENTS = 900.0


@dataclass(frozen=True)
class NoteInfo:
    """Nearest equal-tempered note for a pitch."""
    name: str         # Pitch class, e.g. "A#"
    octave: int       # Scientific octave number (A4 = 440 Hz)
    deviation: float  # Cents from the note, in (-50, 50]
    semitone: int     # Semitones above A within the octave, 0..11

    @property
    def index(self) -> int:
        """Position of the pitch class in NOTE_NAMES (C = 0)."""
        return NOTE_NAMES.index(self.name)

    def in_tune(self, tolerance: float = 10.0) -> bool:
        """Whether the deviation is within tolerance cents."""
        return abs(self.deviation) <= tolerance

    def __str__(self) -> str:
        return f"{self.name}{self.octave} {self.deviation:+.1f}c"


def frequency_to_cents(frequency: float, reference: float = REFERENCE_FREQUENCY) -> float:
    """
    Convert a frequency to cents relative to the reference.

    Raises:
        ValueError: If frequency is not positive
    """
    if not frequency > 0:
        raise ValueError(f"Frequency must be positive, got {frequency}")
    return CENTS_PER_OCTAVE * math.log2(frequency / reference)


def cents_to_frequency(cents: float, reference: float = REFERENCE_FREQUENCY) -> float:
    """Inverse of frequency_to_cents()."""
    return reference * 2.0 ** (cents / CENTS_PER_OCTAVE)


def cents_to_note(cents: float) -> NoteInfo:
    """Map absolute cents (relative to A4) to the nearest note."""
    normalized = cents % CENTS_PER_OCTAVE
    if normalized < 0:
        normalized += CENTS_PER_OCTAVE

    # Half a semitone rounds up
    semitone = int(math.floor(normalized / CENTS_PER_SEMITONE + 0.5))
    deviation = normalized - semitone * CENTS_PER_SEMITONE
    if deviation > 50:
        deviation -= CENTS_PER_SEMITONE
        semitone += 1
    if deviation <= -50:
        deviation += CENTS_PER_SEMITONE
        semitone -= 1
    semitone %= 12

    octave = 4 + int(math.floor((cents + _C_TO_A_CENTS) / CENTS_PER_OCTAVE))
    name = NOTE_NAMES[(semitone + _A_INDEX) % 12]

    return NoteInfo(name=name, octave=octave, deviation=deviation, semitone=semitone)


def note_to_frequency(
    name: str,
    octave: int,
    deviation: float = 0.0,
    reference: float = REFERENCE_FREQUENCY
) -> float:
    """
    Frequency of a note plus a cents deviation.

    Accepts the output of cents_to_note(), including the near-C case where
    the name and octave straddle an octave boundary.

    Raises:
        ValueError: If name is not one of NOTE_NAMES
    """
    if name not in NOTE_NAMES:
        raise ValueError(f"Unknown note name '{name}'. Expected one of {NOTE_NAMES}")

    c_cents = (octave - 4) * CENTS_PER_OCTAVE - _C_TO_A_CENTS
    above_c = (NOTE_NAMES.index(name) * CENTS_PER_SEMITONE + deviation) % CENTS_PER_OCTAVE
    return cents_to_frequency(c_cents + above_c, reference)


class NoteMapper:
    """
    Maps frequencies to NoteInfo.

    Attributes:
        reference: Frequency of A4 in Hz
        in_tune_cents: Tolerance used by is_in_tune()
    """

    def __init__(self, reference: float = REFERENCE_FREQUENCY, in_tune_cents: float = 10.0):
        if reference <= 0:
            raise ValueError(f"Reference frequency must be positive, got {reference}")
        self.reference = float(reference)
        self.in_tune_cents = float(in_tune_cents)

    def cents(self, frequency: float) -> float:
        """Absolute cents of a frequency relative to the reference."""
        return frequency_to_cents(frequency, self.reference)

    def map(self, frequency: float) -> NoteInfo:
        """Nearest note, octave and deviation for a frequency > 0."""
        return cents_to_note(self.cents(frequency))

    def is_in_tune(self, note: NoteInfo) -> bool:
        return note.in_tune(self.in_tune_cents)

    def frequency(self, name: str, octave: int, deviation: float = 0.0) -> float:
        """Inverse of map()."""
        return note_to_frequency(name, octave, deviation, self.reference)
