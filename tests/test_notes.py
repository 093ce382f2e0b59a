"""Tests for frequency to note mapping."""

import numpy as np
import pytest

from tinytuner.notes import (
    NOTE_NAMES,
    NoteMapper,
    cents_to_frequency,
    cents_to_note,
    frequency_to_cents,
    note_to_frequency,
)


@pytest.fixture
def mapper():
    return NoteMapper()


class TestNoteMapper:
    """Test NoteMapper.map()."""

    def test_a4(self, mapper):
        note = mapper.map(440.0)
        assert (note.name, note.octave) == ("A", 4)
        assert note.deviation == pytest.approx(0.0)

    def test_a_sharp_4(self, mapper):
        note = mapper.map(466.16)
        assert (note.name, note.octave) == ("A#", 4)
        assert note.deviation == pytest.approx(0.0, abs=0.1)

    def test_a3(self, mapper):
        note = mapper.map(220.0)
        assert (note.name, note.octave) == ("A", 3)
        assert note.deviation == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.parametrize("frequency,name,octave", [
        (261.63, "C", 4),
        (246.94, "B", 3),
        (523.26, "C", 5),
        (82.41, "E", 2),
        (27.5, "A", 0),
        (4186.1, "C", 8),
    ])
    def test_named_pitches(self, mapper, frequency, name, octave):
        note = mapper.map(frequency)
        assert (note.name, note.octave) == (name, octave)
        assert abs(note.deviation) < 1.0

    def test_deviation_sign(self, mapper):
        sharp = mapper.map(440.0 * 2 ** (20 / 1200))
        flat = mapper.map(440.0 * 2 ** (-30 / 1200))
        assert sharp.name == flat.name == "A"
        assert sharp.deviation == pytest.approx(20.0)
        assert flat.deviation == pytest.approx(-30.0)

    def test_in_tune(self, mapper):
        assert mapper.is_in_tune(mapper.map(440.0 * 2 ** (9.9 / 1200)))
        assert not mapper.is_in_tune(mapper.map(440.0 * 2 ** (10.5 / 1200)))

    def test_reference_pitch(self):
        note = NoteMapper(reference=432.0).map(432.0)
        assert (note.name, note.octave) == ("A", 4)
        assert note.deviation == pytest.approx(0.0)


class TestCentsToNote:
    """Test the cents arithmetic directly."""

    def test_deviation_range(self):
        for cents in np.linspace(-3000, 3000, 1201):
            note = cents_to_note(cents)
            assert -50 < note.deviation <= 50
            assert 0 <= note.semitone < 12

    def test_half_semitone_is_positive(self):
        note = cents_to_note(50.0)
        assert note.name == "A"
        assert note.deviation == pytest.approx(50.0)

    def test_octave_wraps_at_c(self):
        assert cents_to_note(-900.0).octave == 4   # C4
        assert cents_to_note(-901.0).octave == 3   # a cent below C4

    def test_near_c_keeps_lower_octave(self):
        # 40 cents below C5: named C but the octave counter has not rolled over
        note = cents_to_note(260.0)
        assert (note.name, note.octave) == ("C", 4)
        assert note.deviation == pytest.approx(-40.0)

    def test_index(self):
        assert cents_to_note(0.0).index == NOTE_NAMES.index("A")


class TestInverse:
    """Test frequency reconstruction from note coordinates."""

    def test_round_trip(self, mapper):
        for frequency in np.geomspace(16.0, 8000.0, 97):
            note = mapper.map(frequency)
            rebuilt = mapper.frequency(note.name, note.octave, note.deviation)
            assert rebuilt == pytest.approx(frequency, rel=1e-9)

    def test_round_trip_near_c(self):
        frequency = cents_to_frequency(260.0)
        note = cents_to_note(260.0)
        assert note_to_frequency(note.name, note.octave, note.deviation) == \
            pytest.approx(frequency)

    def test_known_values(self):
        assert note_to_frequency("A", 4) == pytest.approx(440.0)
        assert note_to_frequency("C", 4) == pytest.approx(261.6256, rel=1e-6)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            note_to_frequency("H", 4)

    def test_non_positive_frequency(self):
        with pytest.raises(ValueError):
            frequency_to_cents(0.0)
        with pytest.raises(ValueError):
            frequency_to_cents(-440.0)
