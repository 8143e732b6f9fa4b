"""Instantaneous loudness estimation for a single audio frame."""
import numpy as np
from noise_challenge.audio.models import AudioFrame

# Samples are scaled by 1/255 before squaring, then compared to this
# reference power, which puts a quiet room around 30 and shouting above 65.
AMPLITUDE_SCALE = 255.0
REFERENCE_POWER = 1e-12


def _power_to_level(mean_power: float) -> float:
    if mean_power <= 0.0:
        return 0.0
    return float(10.0 * np.log10(mean_power / REFERENCE_POWER))


def power_level(frame: AudioFrame) -> float:
    """
    Loudness from the mean-square power of the time-domain samples.

    Args:
        frame: Input audio frame (int16 or float)

    Returns:
        Decibel-like level relative to REFERENCE_POWER (0.0 for silence)
    """
    if frame.is_empty:
        return 0.0

    scaled = frame.as_float() / AMPLITUDE_SCALE
    return _power_to_level(float(np.mean(scaled ** 2)))


def spectrum_level(frame: AudioFrame) -> float:
    """
    Loudness from the RMS of the frequency-domain magnitude bins.

    By Parseval's theorem mean(|X_k|^2) / N equals the time-domain
    mean-square power, so this agrees with power_level().
    """
    if frame.is_empty:
        return 0.0

    scaled = frame.as_float() / AMPLITUDE_SCALE
    magnitudes = np.abs(np.fft.fft(scaled))
    bin_rms = np.sqrt(np.mean(magnitudes ** 2))
    return _power_to_level(float(bin_rms ** 2) / scaled.size)


LEVEL_METHODS = {
    "power": power_level,
    "spectrum": spectrum_level,
}
