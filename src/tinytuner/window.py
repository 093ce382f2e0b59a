"""Window functions applied to analysis frames before period estimation."""

from typing import Callable

import numpy as np


def _hanning_window(n: int) -> np.ndarray:
    """Generate Hanning window."""
    i = np.arange(n)
    return 0.5 * (1.0 - np.cos(2 * np.pi * i / (n - 1)))


def hann(frame: np.ndarray) -> np.ndarray:
    """
    Apply a Hann window to a frame.

    Sample i of a frame of length L is multiplied by
    0.5 * (1 - cos(2πi / (L - 1))). Frames shorter than 2 samples are
    returned unchanged.

    Args:
        frame: 1D array of samples

    Returns:
        New windowed array (the input is not modified)
    """
    frame = np.asarray(frame, dtype=np.float64)
    if len(frame) < 2:
        return frame.copy()
    return frame * _hanning_window(len(frame))


def rectangular(frame: np.ndarray) -> np.ndarray:
    """Identity window."""
    return np.array(frame, dtype=np.float64)


_WINDOWS = {
    "hann": hann,
    "none": rectangular,
}


def get_window(name: str) -> Callable[[np.ndarray], np.ndarray]:
    """Look up a window function by name ("hann" or "none")."""
    try:
        return _WINDOWS[name]
    except KeyError:
        raise ValueError(
            f"Unknown window '{name}'. Available: {sorted(_WINDOWS)}"
        ) from None
