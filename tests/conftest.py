"""Shared fixtures: synthetic impulse responses and a default engine."""

import numpy as np
import pytest

from impulse_analysis.core.engine import create_analysis_engine
from impulse_analysis.core.models import Waveform

SAMPLE_RATE = 44100


# ---------------------------------------------------------------------------
# Signal builders
# ---------------------------------------------------------------------------


def _sine(freq: float = 440.0, seconds: float = 1.0, amplitude: float = 0.5,
          sr: int = SAMPLE_RATE) -> np.ndarray:
    t = np.arange(int(seconds * sr)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def _delay_taps(levels=(1.0, 0.5, 0.25), sr: int = SAMPLE_RATE) -> np.ndarray:
    """Three 100-sample pulses at 0 s, 0.5 s and 1.0 s in 2 s of silence."""
    data = np.zeros(sr * 2)
    for start, level in zip((0, sr // 2, sr), levels):
        data[start:start + 100] = level
    return data


def _decaying_noise(rt60: float = 1.0, seconds: float = 2.0,
                    sr: int = SAMPLE_RATE, seed: int = 7) -> np.ndarray:
    """White noise with an exponential envelope reaching -60 dB at ``rt60``."""
    rng = np.random.default_rng(seed)
    t = np.arange(int(seconds * sr)) / sr
    return rng.standard_normal(t.size) * 10 ** (-3.0 * t / rt60)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_sine():
    """Factory for sine test tones."""
    return _sine


@pytest.fixture
def make_delay_taps():
    """Factory for three-tap delay impulse responses."""
    return _delay_taps


@pytest.fixture
def engine():
    """Engine with default configuration."""
    with create_analysis_engine() as eng:
        yield eng


@pytest.fixture
def silence_waveform():
    return Waveform(np.zeros(SAMPLE_RATE), SAMPLE_RATE)


@pytest.fixture
def sine_waveform():
    return Waveform(_sine(), SAMPLE_RATE)


@pytest.fixture
def delay_waveform():
    return Waveform(_delay_taps(), SAMPLE_RATE)


@pytest.fixture
def reverb_waveform():
    return Waveform(_decaying_noise(), SAMPLE_RATE)
