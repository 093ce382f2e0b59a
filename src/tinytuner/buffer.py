"""
Sample decoding and buffering.

The capture side delivers raw signed 16-bit little-endian mono PCM in chunks
of arbitrary size. decode_pcm16() turns a chunk into float samples in
[-1, 1], and SampleBuffer accumulates them across chunk boundaries until an
analysis frame is available.

Analysis always runs on the freshest data: extract_window() returns the most
recent samples, not the oldest. After a pass the buffer is trimmed back to a
short tail so consecutive frames overlap.
"""

from typing import Optional

import numpy as np

PCM16_SCALE = 32768.0


def decode_pcm16(data: bytes) -> np.ndarray:
    """
    Decode little-endian signed 16-bit PCM to float samples.

    Args:
        data: Raw PCM bytes; an odd trailing byte is ignored

    Returns:
        1D float64 array, each sample divided by 32768
    """
    n_samples = len(data) // 2
    raw = np.frombuffer(data, dtype="<i2", count=n_samples)
    return raw.astype(np.float64) / PCM16_SCALE


class SampleBuffer:
    """
    Growable sample store with front truncation.

    trim() only fires above max_capacity, so right after a trim the buffer
    holds keep_tail samples and between trims it can reach max_capacity
    plus one appended chunk.

    Attributes:
        max_capacity: Length above which trim() discards old samples
        keep_tail: Number of most recent samples kept by trim()
    """

    def __init__(self, max_capacity: int = 8192, keep_tail: int = 2048):
        if keep_tail > max_capacity:
            raise ValueError(
                f"keep_tail ({keep_tail}) cannot exceed max_capacity ({max_capacity})"
            )
        self.max_capacity = max_capacity
        self.keep_tail = keep_tail
        self._samples = np.zeros(0)

    def __len__(self) -> int:
        return len(self._samples)

    def __repr__(self) -> str:
        return f"SampleBuffer({len(self)} samples, max {self.max_capacity})"

    @property
    def samples(self) -> np.ndarray:
        """Read-only view of the buffered samples."""
        view = self._samples.view()
        view.flags.writeable = False
        return view

    def append(self, samples: np.ndarray) -> None:
        """Append samples to the end of the buffer."""
        samples = np.asarray(samples, dtype=np.float64)
        if samples.size:
            self._samples = np.concatenate([self._samples, samples.ravel()])

    def is_ready(self, window_size: int = 4096) -> bool:
        """Whether at least window_size samples are buffered."""
        return len(self._samples) >= window_size

    def extract_window(self, window_size: int = 4096) -> np.ndarray:
        """
        Copy out the most recent window_size samples.

        Returns:
            Read-only array of length window_size

        Raises:
            ValueError: If fewer than window_size samples are buffered
        """
        if not self.is_ready(window_size):
            raise ValueError(
                f"Need {window_size} samples for a frame, have {len(self._samples)}"
            )
        frame = self._samples[len(self._samples) - window_size:].copy()
        frame.flags.writeable = False
        return frame

    def trim(self, max_len: Optional[int] = None, keep_tail: Optional[int] = None) -> bool:
        """
        Discard old samples once the buffer grows past max_len.

        Args:
            max_len: Trim ceiling (default: max_capacity)
            keep_tail: Samples to keep (default: self.keep_tail)

        Returns:
            True if samples were discarded
        """
        if max_len is None:
            max_len = self.max_capacity
        if keep_tail is None:
            keep_tail = self.keep_tail

        if len(self._samples) <= max_len:
            return False

        self._samples = self._samples[len(self._samples) - keep_tail:].copy()
        return True

    def reset(self) -> None:
        """Drop all buffered samples."""
        self._samples = np.zeros(0)
