"""
Core module containing data models, the transform engine, signal helpers
and the analysis engine.

The engine is imported lazily because it pulls in every analyzer stage.
"""

# Models are lightweight - import directly
from impulse_analysis.core.models import (
    Waveform,
    SpectralFeatures,
    EnvelopeFeatures,
    FeatureSet,
    Classification,
    FileMeta,
    AnalysisResult,
    validate_label,
)

__all__ = [
    # Models (always available)
    "Waveform",
    "SpectralFeatures",
    "EnvelopeFeatures",
    "FeatureSet",
    "Classification",
    "FileMeta",
    "AnalysisResult",
    "validate_label",
    # Lazy loaded
    "fft",
    "magnitude_spectrum",
    "FeatureExtractor",
    "Analyzer",
    "BaseAnalyzer",
    "ImpulseResponseEngine",
    "create_analysis_engine",
]


def __getattr__(name: str):
    """Lazy load modules that depend on the analyzer stages."""
    if name in ("fft", "magnitude_spectrum"):
        from impulse_analysis.core.transform import fft, magnitude_spectrum
        return fft if name == "fft" else magnitude_spectrum
    elif name == "FeatureExtractor":
        from impulse_analysis.core.features import FeatureExtractor
        return FeatureExtractor
    elif name in ("Analyzer", "BaseAnalyzer"):
        from impulse_analysis.core.analyzer_base import Analyzer, BaseAnalyzer
        return Analyzer if name == "Analyzer" else BaseAnalyzer
    elif name in ("ImpulseResponseEngine", "create_analysis_engine"):
        from impulse_analysis.core.engine import ImpulseResponseEngine, create_analysis_engine
        return ImpulseResponseEngine if name == "ImpulseResponseEngine" else create_analysis_engine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
