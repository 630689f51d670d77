"""
Analyzer stages for impulse response analysis.
"""

from impulse_analysis.analyzers.spectral import SpectralAnalyzer
from impulse_analysis.analyzers.envelope import EnvelopeAnalyzer
from impulse_analysis.analyzers.turbulence import TurbulenceEstimator
from impulse_analysis.analyzers.classifier import RuleClassifier

__all__ = [
    "SpectralAnalyzer",
    "EnvelopeAnalyzer",
    "TurbulenceEstimator",
    "RuleClassifier",
]
