"""
Pitch - Fundamental frequency estimation for a single analysis frame.

Two interchangeable strategies share the same guards:

- YinEstimator (default): cumulative mean normalized difference function
  with an absolute threshold and parabolic refinement.
  de Cheveigné & Kawahara (2002): "YIN, a fundamental frequency estimator
  for speech and music"
- AutocorrelationEstimator: normalized autocorrelation peak picking over a
  bounded period range with a confidence threshold. Cheaper to reason about,
  integer-lag precision only.

The window envelope adds about 6.6·(τ/L)² to the YIN CMND, which hides
periods longer than roughly L/8 from the windowed search (below about
85 Hz for 4096 samples at 44.1 kHz). When the windowed search finds no
period, YinEstimator repeats it on the raw frame, so any period shorter
than L/2 can still be found.

Guards applied before either strategy runs:
- Frames shorter than min_frame_size never produce an estimate.
- Frames whose RMS is below silence_rms are rejected before the O(n²)
  search.

All "no pitch" outcomes are reported as None, never as 0 Hz.

Usage:
    estimator = YinEstimator(sample_rate=44100)
    frequency = estimator.estimate(frame)  # float or None
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .window import get_window

logger = logging.getLogger(__name__)


class PitchEstimator(ABC):
    """
    Base class for single-frame period estimators.

    Attributes:
        sample_rate: Sample rate in Hz
        min_frame_size: Shortest frame that is analysed
        silence_rms: RMS floor below which a frame counts as silence
        window: Name of the window applied before the search
    """

    name = "base"

    def __init__(
        self,
        sample_rate: float,
        min_frame_size: int = 2048,
        silence_rms: float = 0.01,
        window: str = "hann"
    ):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.sample_rate = float(sample_rate)
        self.min_frame_size = int(min_frame_size)
        self.silence_rms = float(silence_rms)
        self.window = window
        self._window = get_window(window)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(sample_rate={self.sample_rate:g}, "
                f"window={self.window!r})")

    def estimate(self, frame: np.ndarray) -> Optional[float]:
        """
        Estimate the fundamental frequency of one frame.

        Args:
            frame: 1D array of samples in [-1, 1] (unwindowed)

        Returns:
            Frequency in Hz (> 0), or None if no reliable pitch was found
        """
        frame = np.asarray(frame, dtype=np.float64)
        if frame.ndim != 1:
            raise ValueError("Only mono frames supported. Got shape: {}".format(frame.shape))

        if len(frame) < self.min_frame_size:
            return None

        rms = float(np.sqrt(np.mean(frame * frame)))
        if rms < self.silence_rms:
            logger.debug("Frame RMS %.4f below floor %.4f, skipping", rms, self.silence_rms)
            return None

        frequency = self._search(frame)
        if frequency is None or not math.isfinite(frequency) or frequency <= 0:
            return None
        return float(frequency)

    def _search(self, frame: np.ndarray) -> Optional[float]:
        """Window the frame and run the period search."""
        return self._estimate(self._window(frame))

    @abstractmethod
    def _estimate(self, samples: np.ndarray) -> Optional[float]:
        """Run the period search on a windowed frame."""


def _difference_function(samples: np.ndarray) -> np.ndarray:
    """
    YIN difference function for lags 0 to tau_max - 1.

        d(τ) = Σ_{i=0}^{tau_max-1} (x[i] - x[i+τ])²,  tau_max = L // 2

    Expanded as r(0) + r_τ(0) - 2 r(τ) so the quadratic part runs inside
    numpy: the energy terms come from a prefix sum of x², the cross term
    from np.correlate.
    """
    n = len(samples)
    tau_max = n // 2
    if tau_max < 1:
        return np.zeros(0)

    energy = np.concatenate([[0.0], np.cumsum(samples * samples)])
    e0 = energy[tau_max]
    e_tau = energy[tau_max:2 * tau_max] - energy[0:tau_max]

    cross = np.correlate(samples[:2 * tau_max - 1], samples[:tau_max], mode="valid")

    d = e0 + e_tau - 2.0 * cross
    d[0] = 0.0
    # Rounding can push near-zero lags slightly negative
    return np.maximum(d, 0.0)


def _cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
    """
    cmnd(0) = 1,  cmnd(τ) = d(τ) · τ / Σ_{t=1}^{τ} d(t)

    Lags whose running sum is not positive are set to 1.
    """
    cmnd = np.ones(len(d))
    if len(d) < 2:
        return cmnd

    running = np.cumsum(d[1:])
    tau = np.arange(1, len(d))
    positive = running > 0
    safe = np.where(positive, running, 1.0)
    cmnd[1:] = np.where(positive, d[1:] * tau / safe, 1.0)
    return cmnd


def _parabolic_vertex(cmnd: np.ndarray, tau: int) -> Optional[float]:
    """
    Refine an integer lag with a parabola through tau-1, tau, tau+1.

    Returns None when tau+1 is out of range or the parabola is flat.
    """
    if tau < 1 or tau + 1 >= len(cmnd):
        return None

    c_prev = cmnd[tau - 1]
    c_curr = cmnd[tau]
    c_next = cmnd[tau + 1]

    denom = 2.0 * (2.0 * c_curr - c_next - c_prev)
    if abs(denom) < 1e-12:
        return None

    return tau + (c_next - c_prev) / denom


class YinEstimator(PitchEstimator):
    """
    YIN period estimator.

    The first lag (from 2 upward) where the CMND drops below the threshold is
    taken as the candidate; the candidate follows the dip down to its local
    minimum and is then refined by parabolic interpolation.

    Attributes:
        threshold: Absolute CMND threshold (default 0.1)
    """

    name = "yin"

    def __init__(self, sample_rate: float, threshold: float = 0.1, **kwargs):
        super().__init__(sample_rate, **kwargs)
        self.threshold = float(threshold)

    def difference(self, frame: np.ndarray) -> np.ndarray:
        """Difference function d(τ) of a frame (no window applied)."""
        return _difference_function(np.asarray(frame, dtype=np.float64))

    def cmnd(self, frame: np.ndarray) -> np.ndarray:
        """Cumulative mean normalized difference of a frame (no window applied)."""
        return _cumulative_mean_normalized_difference(self.difference(frame))

    def _search(self, frame: np.ndarray) -> Optional[float]:
        frequency = super()._search(frame)
        if frequency is None and self.window != "none":
            # The window envelope lifts the CMND at long lags
            logger.debug("No windowed YIN period, retrying on the raw frame")
            frequency = self._estimate(frame)
        return frequency

    def _estimate(self, samples: np.ndarray) -> Optional[float]:
        cmnd = _cumulative_mean_normalized_difference(_difference_function(samples))
        tau_max = len(cmnd)
        if tau_max < 4:
            return None

        below = np.nonzero(cmnd[2:] < self.threshold)[0]
        if len(below) == 0:
            logger.debug("No lag below YIN threshold %.3f", self.threshold)
            return None

        tau = int(below[0]) + 2
        while tau + 1 < tau_max and cmnd[tau + 1] < cmnd[tau]:
            tau += 1

        refined = _parabolic_vertex(cmnd, tau)
        if refined is None or refined <= 0:
            return None

        return self.sample_rate / refined


def _round_half_away(x: float) -> int:
    """Round half away from zero."""
    return int(math.floor(x + 0.5)) if x >= 0 else -int(math.floor(-x + 0.5))


class AutocorrelationEstimator(PitchEstimator):
    """
    Normalized autocorrelation estimator.

    For every integer period p in [round(sr/max_frequency), round(sr/min_frequency))
    with p < L/2, computes on the mean-removed frame

        r(p) = Σ x[i] x[i+p] / sqrt(Σ x[i]² × Σ x[i+p]²),  i < L - p

    and accepts the period with the highest r only if r exceeds the confidence
    threshold.

    Attributes:
        min_frequency: Lowest frequency searched (Hz)
        max_frequency: Highest frequency searched (Hz)
        confidence: Minimum accepted normalized correlation
    """

    name = "autocorrelation"

    def __init__(
        self,
        sample_rate: float,
        min_frequency: float = 60.0,
        max_frequency: float = 1000.0,
        confidence: float = 0.5,
        **kwargs
    ):
        super().__init__(sample_rate, **kwargs)
        if not 0 < min_frequency < max_frequency:
            raise ValueError(
                f"Need 0 < min_frequency < max_frequency, got {min_frequency}, {max_frequency}"
            )
        self.min_frequency = float(min_frequency)
        self.max_frequency = float(max_frequency)
        self.confidence = float(confidence)

    def correlation(self, frame: np.ndarray) -> np.ndarray:
        """
        Normalized autocorrelation for lags 0 to L - 1.

        Lags where either energy term is zero are left unnormalized.
        """
        x = np.asarray(frame, dtype=np.float64)
        x = x - np.mean(x)
        n = len(x)

        # Linear (not circular) autocorrelation via zero-padded FFT
        spec = np.fft.rfft(x, n=2 * n)
        r = np.fft.irfft(spec * np.conj(spec), n=2 * n)[:n]

        energy = np.concatenate([[0.0], np.cumsum(x * x)])
        lags = np.arange(n)
        norm1 = energy[n - lags]
        norm2 = energy[n] - energy[lags]

        valid = (norm1 > 0) & (norm2 > 0)
        denom = np.where(valid, np.sqrt(norm1 * norm2), 1.0)
        return np.where(valid, r / denom, r)

    def _estimate(self, samples: np.ndarray) -> Optional[float]:
        n = len(samples)
        min_period = max(1, _round_half_away(self.sample_rate / self.max_frequency))
        max_period = min(_round_half_away(self.sample_rate / self.min_frequency), n // 2)
        if max_period <= min_period:
            return None

        r = self.correlation(samples)[min_period:max_period]
        best = int(np.argmax(r))
        best_correlation = float(r[best])

        if best_correlation <= 0 or best_correlation <= self.confidence:
            logger.debug("Autocorrelation peak %.3f below confidence %.3f",
                         best_correlation, self.confidence)
            return None

        return self.sample_rate / (best + min_period)


_ESTIMATORS = {
    YinEstimator.name: YinEstimator,
    AutocorrelationEstimator.name: AutocorrelationEstimator,
}


def create_estimator(method: str, sample_rate: float, **kwargs) -> PitchEstimator:
    """
    Create an estimator by name.

    Args:
        method: "yin" or "autocorrelation"
        sample_rate: Sample rate in Hz
        **kwargs: Passed to the estimator constructor

    Raises:
        ValueError: If the method is unknown
    """
    try:
        cls = _ESTIMATORS[method]
    except KeyError:
        raise ValueError(
            f"Unknown pitch method '{method}'. Available: {sorted(_ESTIMATORS)}"
        ) from None
    return cls(sample_rate, **kwargs)


def estimator_from_config(config) -> PitchEstimator:
    """Create the estimator described by a TunerConfig."""
    common = dict(
        min_frame_size=config.min_frame_size,
        silence_rms=config.silence_rms,
        window=config.window,
    )
    if config.method == "autocorrelation":
        return AutocorrelationEstimator(
            config.sample_rate,
            min_frequency=config.autocorrelation_min_frequency,
            max_frequency=config.autocorrelation_max_frequency,
            confidence=config.autocorrelation_confidence,
            **common
        )
    return create_estimator(
        config.method, config.sample_rate, threshold=config.yin_threshold, **common
    )
