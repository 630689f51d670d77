"""
Envelope and peak detector for the impulse response analyzer.

Computes the frame-wise RMS envelope, counts salient peaks (echo taps),
estimates the decay time and resamples the envelope to a fixed-length
vector.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from impulse_analysis.core.analyzer_base import BaseAnalyzer
from impulse_analysis.core.features import FeatureExtractor
from impulse_analysis.core.models import EnvelopeFeatures
from impulse_analysis.utils.config import EnvelopeSettings


def rms_envelope(signal: np.ndarray, frame_length: int, hop_length: int) -> np.ndarray:
    """
    RMS of every full frame; frames never extend past the signal.

    Returns:
        np.ndarray: (n - frame_length) // hop + 1 values, or an empty
        array when the signal is shorter than one frame
    """
    frames = FeatureExtractor.frame_signal(signal, frame_length, hop_length)
    if frames.shape[0] == 0:
        return np.zeros(0)
    return np.sqrt(np.mean(np.square(frames), axis=1))


def detect_peaks(
    envelope: Sequence[float],
    sample_rate: int,
    settings: Optional[EnvelopeSettings] = None,
) -> List[int]:
    """
    Find echo taps in an RMS envelope.

    A frame qualifies when it clears the height threshold, is a local
    maximum, lies at least ``distance_frames`` after the previous
    accepted peak and rises above ``prominence_ratio`` times the lowest
    value seen since that peak (plus ``prominence_offset``).

    Args:
        envelope: RMS envelope values
        sample_rate: Sample rate of the signal the envelope came from
        settings: Envelope settings (defaults if None)

    Returns:
        List[int]: Accepted frame indices in ascending order
    """
    settings = settings or EnvelopeSettings()
    values = [float(v) for v in envelope]
    if not values:
        return []

    distance_frames = settings.distance_frames(sample_rate)
    max_value = max(values)
    threshold = max(max_value * settings.peak_relative_height, settings.peak_absolute_floor)

    peaks: List[int] = []
    last_peak = -distance_frames

    # Frame 0 usually holds the direct sound.
    first = values[0]
    second = values[1] if len(values) > 1 else 0.0
    if first > threshold and first >= second:
        peaks.append(0)
        last_peak = 0
    valley = first

    for i in range(1, len(values) - 1):
        v = values[i]
        if v < valley:
            valley = v

        # >= on the left side picks the last frame of a plateau
        is_local_max = v > threshold and v >= values[i - 1] and v > values[i + 1]
        if not is_local_max or i - last_peak < distance_frames:
            continue

        if v > valley * settings.prominence_ratio + settings.prominence_offset:
            peaks.append(i)
            last_peak = i
            valley = v

    return peaks


def estimate_decay(
    envelope: np.ndarray,
    sample_rate: int,
    hop_length: int,
    threshold_ratio: float = 0.001,
) -> Tuple[int, float]:
    """
    Last frame above ``threshold_ratio`` of the envelope maximum.

    The default ratio is the -60 dB point of an RT60 measurement on a
    linear scale.

    Returns:
        Tuple[int, float]: (frame index, decay time in seconds); (0, 0.0)
        when no frame qualifies
    """
    envelope = np.asarray(envelope, dtype=np.float64)
    if envelope.size == 0:
        return 0, 0.0

    above = np.flatnonzero(envelope > envelope.max() * threshold_ratio)
    end_frame = int(above[-1]) if above.size else 0
    return end_frame, end_frame * hop_length / sample_rate


def resample_envelope(values: Sequence[float], length: int) -> np.ndarray:
    """
    Linearly interpolate ``values`` onto ``length`` evenly spaced points.

    Empty input yields zeros; input already of the target length is
    returned as a copy.
    """
    source = np.asarray(values, dtype=np.float64)
    if source.size == 0:
        return np.zeros(length)
    if source.size == length:
        return source.copy()
    if length == 1:
        return source[:1].copy()

    positions = np.arange(length) * ((source.size - 1) / (length - 1))
    return np.interp(positions, np.arange(source.size), source)


class EnvelopeAnalyzer(BaseAnalyzer[EnvelopeFeatures]):
    """Time-domain analysis of the RMS envelope."""

    def __init__(self, settings: Optional[EnvelopeSettings] = None):
        super().__init__("envelope", "1.0.0")
        self.settings = settings or EnvelopeSettings()

    def _analyze_impl(self, signal: np.ndarray, sample_rate: int) -> EnvelopeFeatures:
        settings = self.settings

        envelope = rms_envelope(signal, settings.frame_length, settings.hop_length)
        peaks = detect_peaks(envelope, sample_rate, settings)
        end_frame, decay_time = estimate_decay(
            envelope, sample_rate, settings.hop_length, settings.decay_threshold_ratio
        )

        self.logger.debug(
            "Envelope: %d frames, %d peaks, decay end frame %d",
            envelope.size, len(peaks), end_frame,
        )

        return EnvelopeFeatures(
            envelope=envelope,
            peak_indices=tuple(peaks),
            decay_end_frame=end_frame,
            decay_time=decay_time,
            envelope_vector=resample_envelope(envelope, settings.vector_length),
        )
