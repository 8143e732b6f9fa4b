"""Unit tests for instantaneous loudness estimation."""
import numpy as np
import pytest
from noise_challenge.audio.models import AudioFrame
from noise_challenge.audio.dsp.loudness import power_level, spectrum_level
from conftest import make_frame


def test_power_level_full_scale():
    """A full-scale square wave sits around 72 on the level scale."""
    level = power_level(make_frame(1.0))
    assert level == pytest.approx(71.87, abs=0.01)


def test_power_level_tracks_amplitude():
    """Every 10x drop in amplitude costs 20 level units."""
    loud = power_level(make_frame(0.1))
    quiet = power_level(make_frame(0.01))
    assert loud - quiet == pytest.approx(20.0, abs=1e-6)


def test_power_level_silence_is_zero():
    """All-zero frames do not produce -inf."""
    assert power_level(make_frame(0.0)) == 0.0


def test_power_level_int16_matches_float():
    """int16 PCM is normalized before measuring."""
    pcm = np.array([16384, -16384] * 128, dtype=np.int16)
    frame = AudioFrame(pcm_data=pcm, sample_rate=16000, timestamp=0.0, stream_id="test-int16")
    assert power_level(frame) == pytest.approx(power_level(make_frame(0.5)), abs=1e-4)


def test_spectrum_level_matches_power_level():
    """Frequency-domain RMS agrees with the time-domain power path."""
    rng = np.random.default_rng(42)
    samples = (rng.standard_normal(512) * 0.05).astype(np.float32)
    frame = AudioFrame(pcm_data=samples, sample_rate=16000, timestamp=0.0, stream_id="test-noise")

    assert spectrum_level(frame) == pytest.approx(power_level(frame), abs=1e-6)


def test_empty_frame_is_zero():
    """Empty frames measure as silence."""
    frame = AudioFrame(pcm_data=np.array([], dtype=np.int16), sample_rate=16000, timestamp=0.0, stream_id="empty")
    assert power_level(frame) == 0.0
    assert spectrum_level(frame) == 0.0


def test_frame_rejects_stereo():
    """Frames must be mono."""
    with pytest.raises(ValueError):
        AudioFrame(pcm_data=np.zeros((4, 2), dtype=np.int16), sample_rate=16000, timestamp=0.0, stream_id="stereo")
