"""Tests for the rule-based classifier."""

import logging
from unittest.mock import MagicMock

import pytest

from impulse_analysis.analyzers.classifier import RuleClassifier
from impulse_analysis.utils.config import ClassifierThresholds

NEUTRAL_BANDS = {"0-100hz": -20.0, "500-2000hz": -20.0}


@pytest.fixture
def classifier():
    return RuleClassifier()


def _classify(classifier, **overrides):
    values = dict(
        peak_count=1,
        decay_time=1.0,
        centroid=3000.0,
        turbulence=1.0,
        band_energies=NEUTRAL_BANDS,
    )
    values.update(overrides)
    return classifier.classify(**values)


class TestDensity:
    def test_peaks_per_second(self):
        assert RuleClassifier.density(10, 2.0) == 5.0

    def test_zero_decay(self):
        assert RuleClassifier.density(3, 0.0) == 0.0


class TestDuration:
    @pytest.mark.parametrize("decay, expected", [
        (0.0, "Short"),
        (1.49, "Short"),
        (1.5, "Medium"),
        (4.99, "Medium"),
        (5.0, "Long"),
        (12.0, "Long"),
    ])
    def test_bounds(self, classifier, decay, expected):
        assert classifier.duration_category(decay) == expected


class TestBrightness:
    @pytest.mark.parametrize("centroid, expected", [
        (0.0, "Sub"),
        (99.9, "Sub"),
        (100.0, "Very Low"),
        (399.0, "Very Low"),
        (400.0, "Low"),
        (800.0, "Low-Mid"),
        (1200.0, "Mid"),
        (2500.0, "High-Mid"),
        (4000.0, "Bright"),
        (6000.0, "Very Bright"),
        (15000.0, "Very Bright"),
    ])
    def test_centroid_bands(self, classifier, centroid, expected):
        assert classifier.brightness_category(centroid, NEUTRAL_BANDS) == expected

    def test_low_demoted_when_sub_dominates(self, classifier):
        bands = {"0-100hz": -10.0, "500-2000hz": -23.0}
        assert classifier.brightness_category(500.0, bands) == "Very Low"

    def test_low_demoted_twice_when_sub_dominates_heavily(self, classifier):
        bands = {"0-100hz": -10.0, "500-2000hz": -35.0}
        assert classifier.brightness_category(500.0, bands) == "Sub"

    def test_demotion_is_strict(self, classifier):
        bands = {"0-100hz": -10.0, "500-2000hz": -22.0}
        assert classifier.brightness_category(500.0, bands) == "Low"

    def test_very_low_only_demotes_to_sub(self, classifier):
        assert classifier.brightness_category(
            200.0, {"0-100hz": -10.0, "500-2000hz": -23.0}
        ) == "Very Low"
        assert classifier.brightness_category(
            200.0, {"0-100hz": -10.0, "500-2000hz": -35.0}
        ) == "Sub"

    def test_other_categories_never_demoted(self, classifier):
        bands = {"0-100hz": 0.0, "500-2000hz": -80.0}
        assert classifier.brightness_category(1000.0, bands) == "Low-Mid"

    def test_missing_bands_default_to_floor(self, classifier):
        assert classifier.brightness_category(500.0, {}) == "Low"
        assert classifier.brightness_category(500.0, {"0-100hz": -50.0}) == "Sub"


class TestTexture:
    @pytest.mark.parametrize("turbulence, expected", [
        (0.0, "Smooth"),
        (2.99, "Smooth"),
        (3.0, "Textured"),
        (4.5, "Grainy"),
        (5.5, "Coarse"),
        (6.0, "Energetic"),
        (20.0, "Energetic"),
    ])
    def test_bands_at_low_density(self, classifier, turbulence, expected):
        assert classifier.texture_category(turbulence, is_high_density=False) == expected

    def test_dense_turbulence_is_textured(self, classifier):
        assert classifier.texture_category(8.0, is_high_density=True) == "Textured"


class TestType:
    def test_sparse_peaks_are_delay(self, classifier):
        assert _classify(classifier, peak_count=3, decay_time=1.0).type == "Delay"

    def test_dense_peaks_are_reverb(self, classifier):
        result = _classify(classifier, peak_count=10, decay_time=1.0, turbulence=7.0)
        assert result.type == "Reverb"
        assert result.texture_category == "Textured"

    def test_single_peak_is_reverb(self, classifier):
        assert _classify(classifier, peak_count=1).type == "Reverb"

    def test_zero_decay_multiple_peaks_is_delay(self, classifier):
        assert _classify(classifier, peak_count=2, decay_time=0.0).type == "Delay"

    def test_custom_density_threshold(self):
        strict = RuleClassifier(ClassifierThresholds(high_density=2.0))
        assert _classify(strict, peak_count=3, decay_time=1.0).type == "Reverb"


class TestTrace:
    def test_trace_hook_receives_values(self):
        hook = MagicMock()
        classifier = RuleClassifier(trace=hook)

        _classify(classifier, peak_count=3, decay_time=1.5)

        hook.assert_called_once()
        values = hook.call_args[0][0]
        assert values["density"] == pytest.approx(2.0)
        assert values["is_high_density"] is False
        assert values["type"] == "Delay"
        assert values["duration"] == "Medium"

    def test_trace_logged_at_debug(self, classifier, caplog):
        caplog.set_level(logging.DEBUG, logger="analyzer.classifier")

        _classify(classifier, peak_count=3, decay_time=1.0)

        records = [r for r in caplog.records if r.getMessage() == "Classification trace"]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG
        assert records[0].extra["peak_count"] == 3
        assert records[0].extra["texture"] == "Smooth"
