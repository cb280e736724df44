"""
Tests for the mono 16-bit WAV encoder.
"""

import io
import struct

import numpy as np
import soundfile as sf

from conftest import make_note
from sheetnotes.audio.synth import MonoPCM, synthesize
from sheetnotes.audio.wav import HEADER_BYTES, encode, pcm16, write_wav


def _pcm(values, sr=8000):
    return MonoPCM(np.asarray(values, dtype=np.float32), sr)


class TestEncode:
    def test_header_layout(self):
        data = encode(_pcm([0.0, 0.5, -0.5], sr=22050))
        assert len(data) == HEADER_BYTES + 3 * 2
        assert data[:4] == b"RIFF"
        assert data[8:12] == b"WAVE"
        fmt_tag, channels, rate, byte_rate, block_align, bits = struct.unpack("<HHIIHH", data[20:36])
        assert (fmt_tag, channels, rate) == (1, 1, 22050)
        assert byte_rate == 22050 * 2
        assert (block_align, bits) == (2, 16)
        assert data[36:40] == b"data"
        assert struct.unpack("<I", data[40:44])[0] == 6

    def test_decodes_with_soundfile(self):
        pcm = synthesize([make_note("C4"), make_note("E4", time=0.5)], 120, 44100)
        audio, sr = sf.read(io.BytesIO(encode(pcm)), dtype="float32")
        assert sr == 44100
        assert audio.ndim == 1
        assert audio.shape[0] == len(pcm)
        assert np.allclose(audio, pcm.samples, atol=1.0 / 16384)

    def test_empty_pcm_is_header_only(self):
        assert len(encode(_pcm([]))) == HEADER_BYTES


class TestPcm16:
    def test_asymmetric_scaling_and_clamp(self):
        raw = pcm16(np.array([-1.0, 1.0, 0.0, 2.0, -2.0, 0.5]))
        values = np.frombuffer(raw, dtype="<i2").tolist()
        assert values == [-32768, 32767, 0, 32767, -32768, 16383]

    def test_little_endian(self):
        assert pcm16(np.array([1.0])) == b"\xff\x7f"


def test_write_wav(tmp_path):
    out = write_wav(_pcm([0.1] * 10), tmp_path / "sub" / "page.wav")
    info = sf.info(str(out))
    assert (info.channels, info.frames, info.samplerate) == (1, 10, 8000)
