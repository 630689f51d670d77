"""
Utility modules for configuration, logging, and error handling.
"""

from impulse_analysis.utils.errors import (
    ImpulseAnalysisError,
    EmptyInputError,
    PreconditionError,
    TransformError,
    ChannelLayoutError,
    AnalysisError,
    ConfigurationError,
)
from impulse_analysis.utils.logging import (
    get_logger,
    setup_logging,
    setup_logging_from_config,
    JSONFormatter,
)
from impulse_analysis.utils.config import (
    ConfigManager,
    load_config,
    get_default_config,
    SpectralSettings,
    EnvelopeSettings,
    TurbulenceSettings,
    ClassifierThresholds,
)

__all__ = [
    "ImpulseAnalysisError",
    "EmptyInputError",
    "PreconditionError",
    "TransformError",
    "ChannelLayoutError",
    "AnalysisError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
    "SpectralSettings",
    "EnvelopeSettings",
    "TurbulenceSettings",
    "ClassifierThresholds",
]
