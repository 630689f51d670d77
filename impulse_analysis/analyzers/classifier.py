"""
Rule-based classifier for the impulse response analyzer.

Maps peak count, decay time, spectral centroid, turbulence and band
energies to a type / duration / brightness / texture record. All
thresholds come from ClassifierThresholds; there is no state.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from impulse_analysis.core.models import BRIGHTNESS_CATEGORIES, Classification
from impulse_analysis.utils.config import ClassifierThresholds

TraceHook = Callable[[Dict[str, Any]], None]


class RuleClassifier:
    """
    Empirical decision rules for impulse responses.

    Intermediate values are emitted as a DEBUG record on
    ``analyzer.classifier`` and, if given, passed to ``trace``.
    """

    def __init__(
        self,
        thresholds: Optional[ClassifierThresholds] = None,
        trace: Optional[TraceHook] = None,
    ):
        self.thresholds = thresholds or ClassifierThresholds()
        self.trace = trace
        self.logger = logging.getLogger("analyzer.classifier")

    @property
    def name(self) -> str:
        return "classifier"

    @property
    def version(self) -> str:
        return "1.0.0"

    def classify(
        self,
        peak_count: int,
        decay_time: float,
        centroid: float,
        turbulence: float,
        band_energies: Mapping[str, float],
    ) -> Classification:
        """
        Classify one impulse response.

        Args:
            peak_count: Accepted envelope peaks
            decay_time: Decay time in seconds
            centroid: Mean spectral centroid in Hz
            turbulence: RMS residual of the dB decay fit
            band_energies: Band label -> dB

        Returns:
            Classification: The four labels
        """
        density = self.density(peak_count, decay_time)
        is_high_density = density > self.thresholds.high_density

        duration = self.duration_category(decay_time)
        brightness = self.brightness_category(centroid, band_energies)
        texture = self.texture_category(turbulence, is_high_density)
        ir_type = "Delay" if peak_count > 1 and not is_high_density else "Reverb"

        self._emit_trace({
            "peak_count": peak_count,
            "decay_time": decay_time,
            "centroid": centroid,
            "turbulence": turbulence,
            "density": density,
            "is_high_density": is_high_density,
            "type": ir_type,
            "duration": duration,
            "brightness": brightness,
            "texture": texture,
        })

        return Classification(
            type=ir_type,
            duration_category=duration,
            brightness_category=brightness,
            texture_category=texture,
        )

    @staticmethod
    def density(peak_count: int, decay_time: float) -> float:
        """Peaks per second of decay (0 when decay time is 0)."""
        return peak_count / decay_time if decay_time > 0 else 0.0

    def duration_category(self, decay_time: float) -> str:
        short_bound, medium_bound = self.thresholds.duration_bounds
        if decay_time < short_bound:
            return "Short"
        if decay_time < medium_bound:
            return "Medium"
        return "Long"

    def brightness_category(
        self, centroid: float, band_energies: Mapping[str, float]
    ) -> str:
        """
        Centroid band, demoted when sub-bass dominates the mids.

        Low becomes Very Low when the sub band exceeds the mid band by
        more than ``sub_dominance_db``; Very Low (original or demoted)
        becomes Sub beyond ``deep_sub_dominance_db``.
        """
        t = self.thresholds
        brightness = BRIGHTNESS_CATEGORIES[-1]
        for category, upper in zip(BRIGHTNESS_CATEGORIES, t.brightness_bounds):
            if centroid < upper:
                brightness = category
                break

        sub_db = band_energies.get(t.sub_band, t.missing_band_db)
        mid_db = band_energies.get(t.mid_band, t.missing_band_db)

        if brightness == "Low" and sub_db > mid_db + t.sub_dominance_db:
            brightness = "Very Low"
        if brightness == "Very Low" and sub_db > mid_db + t.deep_sub_dominance_db:
            brightness = "Sub"
        return brightness

    def texture_category(self, turbulence: float, is_high_density: bool) -> str:
        """Turbulence bands; the top band splits on peak density."""
        for category, upper in zip(
            ("Smooth", "Textured", "Grainy", "Coarse"), self.thresholds.texture_bounds
        ):
            if turbulence < upper:
                return category
        return "Textured" if is_high_density else "Energetic"

    def _emit_trace(self, values: Dict[str, Any]) -> None:
        self.logger.debug("Classification trace", extra={"extra": values})
        if self.trace is not None:
            self.trace(dict(values))
