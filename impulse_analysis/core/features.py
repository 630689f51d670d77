"""
Signal helpers shared by the analyzers.

Normalization, RMS, windowing and framing of mono float signals.
"""

import librosa
import numpy as np


class FeatureExtractor:
    """
    Stateless signal helpers.

    All methods are static - no instance state needed.
    """

    @staticmethod
    def normalize(signal: np.ndarray) -> np.ndarray:
        """
        Rescale so the largest absolute sample is 1.0.

        Silence is returned unchanged (as float64) rather than divided by zero.
        """
        signal = np.asarray(signal, dtype=np.float64)
        if signal.size == 0:
            return signal.copy()
        peak = np.max(np.abs(signal))
        if peak == 0:
            return signal.copy()
        return signal / peak

    @staticmethod
    def compute_rms(signal: np.ndarray) -> float:
        """Root-mean-square of the whole signal (0.0 when empty)."""
        if signal.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(signal))))

    @staticmethod
    def hann_window(length: int) -> np.ndarray:
        """Symmetric Hann window, 0.5 * (1 - cos(2*pi*k / (length - 1)))."""
        return np.hanning(length)

    @staticmethod
    def frame_signal(
        signal: np.ndarray,
        frame_length: int,
        hop_length: int,
    ) -> np.ndarray:
        """
        Slice a signal into overlapping frames without edge padding.

        Args:
            signal: Mono samples
            frame_length: Samples per frame
            hop_length: Samples between frame starts

        Returns:
            np.ndarray: Read-only view of shape (n_frames, frame_length);
            n_frames is 0 when the signal is shorter than one frame
        """
        if len(signal) < frame_length:
            return np.empty((0, frame_length), dtype=np.float64)

        return librosa.util.frame(
            np.ascontiguousarray(signal, dtype=np.float64),
            frame_length=frame_length,
            hop_length=hop_length,
        ).T

    @staticmethod
    def frame_count(num_samples: int, frame_length: int, hop_length: int) -> int:
        """Number of valid frames: (n - frame_length) // hop + 1, or 0."""
        if num_samples < frame_length:
            return 0
        return (num_samples - frame_length) // hop_length + 1
