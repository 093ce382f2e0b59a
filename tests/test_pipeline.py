"""Tests for the streaming TunerPipeline."""

import numpy as np
import pytest

from conftest import SAMPLE_RATE, pcm_chunks, sine
from tinytuner.config import TunerConfig
from tinytuner.pipeline import PitchResult, TunerPipeline
from tinytuner.pitch import AutocorrelationEstimator, PitchEstimator


class FixedEstimator(PitchEstimator):
    """Reports the same frequency for every non-silent frame."""

    name = "fixed"

    def __init__(self, frequency, **kwargs):
        super().__init__(SAMPLE_RATE, **kwargs)
        self.frequency = frequency
        self.calls = 0

    def _estimate(self, samples):
        self.calls += 1
        return self.frequency


def run(pipeline, chunks):
    return [pipeline.process_chunk(chunk) for chunk in chunks]


class TestProcessChunk:
    """Test the decode -> estimate -> map flow."""

    def test_a440(self, a440_chunks):
        pipeline = TunerPipeline()
        outputs = run(pipeline, a440_chunks)

        # 1024-sample chunks: the fourth completes the first 4096-sample frame
        assert outputs[:3] == [None, None, None]
        results = [r for r in outputs if r is not None]
        assert results

        for result in results:
            assert result.frequency == pytest.approx(440.0, rel=0.01)
            assert (result.note.name, result.note.octave) == ("A", 4)
            assert result.in_range
            assert result.in_tune
            assert result.indicator is not None

    def test_low_string(self):
        pipeline = TunerPipeline()
        results = [r for r in run(pipeline, pcm_chunks(sine(146.83, SAMPLE_RATE))) if r]
        assert results
        assert results[-1].note.name == "D"
        assert results[-1].note.octave == 3

    def test_bass_e_string(self):
        pipeline = TunerPipeline()
        results = [r for r in run(pipeline, pcm_chunks(sine(41.2, SAMPLE_RATE))) if r]
        assert results
        assert results[-1].frequency == pytest.approx(41.2, rel=0.01)
        assert (results[-1].note.name, results[-1].note.octave) == ("E", 1)

    def test_animation_duration_from_config(self, a440_chunks):
        pipeline = TunerPipeline(TunerConfig(animation_duration=0.25))
        results = [r for r in run(pipeline, a440_chunks) if r]
        assert results
        assert all(r.indicator.duration == 0.25 for r in results)

    def test_autocorrelation_method(self, a440_chunks):
        pipeline = TunerPipeline(TunerConfig(method="autocorrelation"))
        assert isinstance(pipeline.estimator, AutocorrelationEstimator)
        results = [r for r in run(pipeline, a440_chunks) if r]
        assert results
        assert results[-1].frequency == pytest.approx(440.0, rel=0.01)

    def test_silence_emits_nothing(self):
        pipeline = TunerPipeline()
        chunks = pcm_chunks(np.zeros(SAMPLE_RATE))
        assert all(r is None for r in run(pipeline, chunks))
        assert not pipeline.indicator.initialized

    def test_odd_chunk(self):
        pipeline = TunerPipeline()
        assert pipeline.process_chunk(b"\x01") is None
        assert len(pipeline.buffer) == 0

    def test_buffer_stays_bounded(self, a440_chunks):
        config = TunerConfig()
        pipeline = TunerPipeline(config)
        for chunk in a440_chunks:
            pipeline.process_chunk(chunk)
            assert len(pipeline.buffer) <= config.max_buffer + 1024

    def test_buffer_fills_to_max_between_trims(self, a440_chunks):
        """Trimming waits until the buffer passes max_buffer, then keeps the tail."""
        config = TunerConfig()
        pipeline = TunerPipeline(config)
        lengths = []
        for chunk in a440_chunks:
            pipeline.process_chunk(chunk)
            lengths.append(len(pipeline.buffer))
        assert max(lengths) == config.max_buffer
        assert config.keep_tail in lengths

    def test_analysis_uses_freshest_samples(self):
        """A note change shows up as soon as a frame of the new note is buffered."""
        pipeline = TunerPipeline(TunerConfig(history_size=1))
        run(pipeline, pcm_chunks(sine(220.0, 4096)))
        result = run(pipeline, pcm_chunks(sine(330.0, 4096)))[-1]
        assert result.frequency == pytest.approx(330.0, rel=0.01)

    def test_out_of_range_frequency(self):
        estimator = FixedEstimator(5000.0)
        pipeline = TunerPipeline(estimator=estimator)
        result = run(pipeline, pcm_chunks(sine(440.0, 4096)))[-1]
        assert result == PitchResult(5000.0, None, None)
        assert not result.in_range
        assert not result.in_tune
        assert not pipeline.indicator.initialized

    def test_configured_range(self, a440_chunks):
        pipeline = TunerPipeline(TunerConfig(min_frequency=500.0))
        results = [r for r in run(pipeline, a440_chunks) if r]
        assert results
        assert all(r.note is None for r in results)

    def test_injected_estimator_sees_frames(self):
        estimator = FixedEstimator(330.0)
        pipeline = TunerPipeline(estimator=estimator)
        results = [r for r in run(pipeline, pcm_chunks(sine(440.0, 8192))) if r]
        assert estimator.calls == len(results) > 0
        assert results[-1].note.name == "E"


class TestReset:
    """Test stream-stop reset semantics."""

    def test_reset_clears_analysis_state(self, a440_chunks):
        pipeline = TunerPipeline()
        run(pipeline, a440_chunks)
        pipeline.reset()
        assert len(pipeline.buffer) == 0
        assert pipeline.postprocessor.history == ()
        assert pipeline.postprocessor.last_stable is None

    def test_reset_freezes_indicator(self, a440_chunks):
        pipeline = TunerPipeline()
        run(pipeline, a440_chunks)
        position = pipeline.indicator.current_cents
        pipeline.reset()
        assert pipeline.indicator.initialized
        assert pipeline.indicator.current_cents == position

    def test_restart_is_cold(self, a440_chunks):
        pipeline = TunerPipeline()
        run(pipeline, a440_chunks)
        pipeline.reset()
        # Needs a full frame again before reporting
        assert run(pipeline, a440_chunks[:3]) == [None, None, None]
