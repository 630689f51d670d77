"""
Spectral feature extractor for the impulse response analyzer.

Slides a Hann window across the normalized signal and reports the mean
spectral centroid, the mean spectral flatness and per-band energies of
the frame-averaged magnitude spectrum.
"""

from typing import Dict, List, Optional, Sequence

import librosa
import numpy as np

from impulse_analysis.core.analyzer_base import BaseAnalyzer
from impulse_analysis.core.features import FeatureExtractor
from impulse_analysis.core.models import SpectralFeatures
from impulse_analysis.core.transform import magnitude_spectrum
from impulse_analysis.utils.config import SpectralSettings


def band_labels(edges: Sequence[float]) -> List[str]:
    """Labels such as "0-100hz" for each consecutive pair of band edges."""
    return [f"{_edge(low)}-{_edge(high)}hz" for low, high in zip(edges, edges[1:])]


def _edge(value: float):
    return int(value) if float(value).is_integer() else value


def frame_centroids(magnitudes: np.ndarray, freqs: np.ndarray) -> np.ndarray:
    """Magnitude-weighted mean frequency per frame (0 for an all-zero frame)."""
    numerator = magnitudes @ freqs
    denominator = magnitudes.sum(axis=-1)
    return np.divide(
        numerator, denominator,
        out=np.zeros_like(numerator), where=denominator != 0,
    )


def frame_flatness(magnitudes: np.ndarray, epsilon: float) -> np.ndarray:
    """
    Geometric over arithmetic mean of the per-frame power spectrum.

    Power is taken as magnitude squared plus ``epsilon``; the classifier
    thresholds were tuned against exactly this formula.
    """
    power = np.square(magnitudes) + epsilon
    geometric = np.exp(np.mean(np.log(power), axis=-1))
    arithmetic = np.mean(power, axis=-1)
    return np.divide(
        geometric, arithmetic,
        out=np.zeros_like(geometric), where=arithmetic != 0,
    )


def band_energies(
    spectrum: np.ndarray,
    freqs: np.ndarray,
    edges: Sequence[float],
    amin: float = 1e-10,
) -> Dict[str, float]:
    """
    Mean power (in dB) of the spectrum bins inside each [low, high) band.

    A band without bins has power 0, which floors at 10*log10(amin).
    """
    power = np.square(spectrum)
    bands: Dict[str, float] = {}
    for label, low, high in zip(band_labels(edges), edges, edges[1:]):
        in_band = (freqs >= low) & (freqs < high)
        band_power = float(np.mean(power[in_band])) if np.any(in_band) else 0.0
        db = librosa.power_to_db(band_power, ref=1.0, amin=amin, top_db=None)
        bands[label] = float(db)
    return bands


class SpectralAnalyzer(BaseAnalyzer[SpectralFeatures]):
    """
    Frame-based spectral analysis using the in-house FFT.

    Frames are transformed in batches; every frame contributes equally
    to the averaged spectrum, centroid and flatness.
    """

    def __init__(self, settings: Optional[SpectralSettings] = None):
        super().__init__("spectral", "1.0.0")
        self.settings = settings or SpectralSettings()
        self._window = FeatureExtractor.hann_window(self.settings.window_length)

    def _analyze_impl(self, signal: np.ndarray, sample_rate: int) -> SpectralFeatures:
        """
        Extract spectral features from a normalized mono signal.

        Args:
            signal: Normalized mono samples
            sample_rate: Sample rate in Hz

        Returns:
            SpectralFeatures: Zero-valued with no bands when the signal is
            shorter than one window
        """
        settings = self.settings
        n_fft = settings.window_length

        frames = FeatureExtractor.frame_signal(signal, n_fft, settings.hop_length)
        frame_count = frames.shape[0]
        if frame_count == 0:
            self.logger.debug(
                "Signal shorter than one window (%d < %d samples)", len(signal), n_fft
            )
            return SpectralFeatures(centroid=0.0, flatness=0.0, frame_count=0, band_energies={})

        freqs = np.arange(n_fft // 2 + 1) * (sample_rate / n_fft)
        spectrum_sum = np.zeros(n_fft // 2 + 1)
        centroid_sum = 0.0
        flatness_sum = 0.0

        for start in range(0, frame_count, settings.frame_batch_size):
            windowed = frames[start:start + settings.frame_batch_size] * self._window
            magnitudes = magnitude_spectrum(windowed)

            spectrum_sum += magnitudes.sum(axis=0)
            centroid_sum += float(frame_centroids(magnitudes, freqs).sum())
            flatness_sum += float(frame_flatness(magnitudes, settings.flatness_epsilon).sum())

        average_spectrum = spectrum_sum / frame_count

        return SpectralFeatures(
            centroid=centroid_sum / frame_count,
            flatness=flatness_sum / frame_count,
            frame_count=frame_count,
            band_energies=band_energies(
                average_spectrum, freqs, settings.band_edges, settings.db_floor_power
            ),
        )
