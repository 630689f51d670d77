"""
Turbulence estimator for the impulse response analyzer.

Fits a straight line to the decibel envelope between the global peak
and the decay end, and reports the RMS residual. Smooth exponential
decay is close to a line in dB; silent gaps between discrete echoes
are not, so echoic signals score high.
"""

from typing import Optional

import librosa
import numpy as np

from impulse_analysis.core.analyzer_base import BaseAnalyzer
from impulse_analysis.utils.config import TurbulenceSettings


def linear_fit_residual(values: np.ndarray) -> float:
    """
    RMS residual of an ordinary least-squares line through ``values``.

    x runs 0..n-1; slope and intercept use the closed-form sums.
    """
    n = values.size
    x = np.arange(n, dtype=np.float64)
    sum_x = x.sum()
    sum_y = values.sum()
    sum_xy = np.dot(x, values)
    sum_x2 = np.dot(x, x)

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    residuals = values - (slope * x + intercept)
    return float(np.sqrt(np.mean(np.square(residuals))))


class TurbulenceEstimator(BaseAnalyzer[float]):
    """Decay-irregularity score from the RMS envelope."""

    def __init__(self, settings: Optional[TurbulenceSettings] = None):
        super().__init__("turbulence", "1.0.0")
        self.settings = settings or TurbulenceSettings()

    def _analyze_impl(self, envelope: np.ndarray, decay_end_frame: int) -> float:
        """
        Score how far the dB decay departs from a straight line.

        Args:
            envelope: Raw RMS envelope
            decay_end_frame: Last frame above the decay threshold

        Returns:
            float: RMS residual in dB, 0.0 when fewer than ``min_window``
            frames are available
        """
        envelope = np.asarray(envelope, dtype=np.float64)
        min_window = self.settings.min_window
        if envelope.size < min_window:
            return 0.0

        db = librosa.amplitude_to_db(
            envelope, ref=1.0, amin=self.settings.amplitude_floor, top_db=None
        )

        peak = int(np.argmax(db))
        end = min(max(decay_end_frame, peak + min_window), db.size)
        window = db[peak:end]
        if window.size < min_window:
            return 0.0

        return linear_fit_residual(window)
