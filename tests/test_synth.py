"""
Tests for the additive sine page renderer.
"""

import numpy as np
import pytest

from conftest import make_note
from sheetnotes.audio.synth import (
    MAX_RENDER_SECONDS,
    NOTE_FREQUENCIES,
    frequency_for,
    note_seconds,
    reference_tone,
    synthesize,
)
from sheetnotes.transcription.validate import sheet_music_from_payload


def _two_notes():
    return [make_note("C4", time=0.0, velocity=80), make_note("E4", time=0.5, velocity=75)]


class TestSynthesize:
    def test_buffer_length_covers_last_note(self):
        pcm = synthesize(_two_notes(), tempo_bpm=120, sample_rate=44100)
        assert len(pcm) == 39690
        assert pcm.sample_rate == 44100
        assert pcm.samples.dtype == np.float32

    def test_note_starts_at_zero_phase(self):
        pcm = synthesize(_two_notes(), 120, 44100)
        assert pcm.samples[0] == pytest.approx(0.0, abs=1e-7)
        assert abs(pcm.samples[1]) > 0

    def test_deterministic(self):
        a = synthesize(_two_notes(), 120, 44100)
        b = synthesize(_two_notes(), 120, 44100)
        assert np.array_equal(a.samples, b.samples)

    def test_empty_input(self):
        pcm = synthesize([], 120, 44100)
        assert len(pcm) == 0
        assert pcm.duration_sec == 0.0

    def test_unknown_pitch_uses_a4(self):
        unknown = synthesize([make_note("H9")], 120, 8000)
        a4 = synthesize([make_note("A4")], 120, 8000)
        assert len(unknown) == int(0.4 * 8000)
        assert np.allclose(unknown.samples, a4.samples)

    def test_tempo_scales_length(self):
        pcm = synthesize([make_note("C4", duration="h")], tempo_bpm=60, sample_rate=1000)
        assert len(pcm) == 1600

    def test_envelope_and_gain(self):
        sr = 44100
        pcm = synthesize([make_note("A4", duration="w", velocity=127)], 120, sr)
        peak = float(np.max(np.abs(pcm.samples)))
        assert peak <= 0.3 + 1e-6
        first = np.max(np.abs(pcm.samples[: sr // 10]))
        last = np.max(np.abs(pcm.samples[-sr // 10:]))
        assert last < first

    def test_missing_velocity_uses_default_gain(self):
        quiet = synthesize([make_note("A4", velocity=None)], 120, 8000)
        assert float(np.max(np.abs(quiet.samples))) <= 0.8 * 0.3 + 1e-6

    def test_overlaps_sum_without_normalizing(self):
        one = synthesize([make_note("A4")], 120, 8000)
        two = synthesize([make_note("A4"), make_note("A4")], 120, 8000)
        assert np.allclose(two.samples, one.samples * 2, atol=1e-6)

    def test_far_onset_skipped_instead_of_allocating(self):
        pcm = synthesize([make_note("C4", time=1e12)], 120, 44100)
        assert len(pcm) == 0

    def test_far_onset_does_not_stretch_page(self):
        pcm = synthesize([make_note("C4", time=0.0), make_note("D4", time=1e12)], 120, 8000)
        assert len(pcm) == int(0.4 * 8000)

    def test_buffer_capped_at_render_window(self):
        pcm = synthesize([make_note("C4", time=MAX_RENDER_SECONDS - 0.1, duration="w")], 120, 100)
        assert len(pcm) == int(MAX_RENDER_SECONDS * 100)

    def test_decoded_far_onset_renders(self):
        sheet = sheet_music_from_payload({"notes": [{"pitch": "C4", "time": 1e12}]})
        assert len(synthesize(sheet.notes, sheet.tempo, 44100)) == 0

    def test_bad_tempo_and_rate_fall_back(self):
        pcm = synthesize([make_note("C4")], tempo_bpm=0, sample_rate=0)
        assert pcm.sample_rate == 44100
        assert len(pcm) == int(round(0.4 * 44100))


class TestLookups:
    def test_flat_aliases(self):
        assert frequency_for("DB4") == NOTE_FREQUENCIES["C#4"]
        assert frequency_for("bb3") == NOTE_FREQUENCIES["A#3"]

    def test_fallback(self):
        assert frequency_for("H9") == 440.0

    def test_note_seconds(self):
        assert note_seconds("q", 120) == pytest.approx(0.4)
        assert note_seconds("w", 60) == pytest.approx(3.2)
        assert note_seconds("zz", 120) == pytest.approx(0.4)


def test_reference_tone():
    pcm = reference_tone(8000)
    assert len(pcm) == 16000
    assert float(np.max(np.abs(pcm.samples))) <= 0.5 + 1e-6
