"""
Custom exceptions for the impulse response analyzer.

Defines the error hierarchy raised by the transform engine, the
individual analyzers and the analysis engine.
"""

from typing import Optional, Any


class ImpulseAnalysisError(Exception):
    """Base exception for all impulse response analysis errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class EmptyInputError(ImpulseAnalysisError):
    """Raised when a waveform with zero samples is submitted for analysis."""

    def __init__(self, message: str = "Audio buffer is empty", source: Optional[str] = None):
        super().__init__(message, details={"source": source} if source else None)
        self.source = source


class PreconditionError(ImpulseAnalysisError):
    """Raised on internal misuse (a defect in the caller, not bad audio)."""


class TransformError(PreconditionError):
    """Raised when the FFT is called with mismatched or non power-of-two buffers."""

    def __init__(
        self,
        message: str,
        real_shape: Optional[tuple] = None,
        imag_shape: Optional[tuple] = None,
    ):
        super().__init__(message)
        self.real_shape = real_shape
        self.imag_shape = imag_shape
        self.details = {"real_shape": real_shape, "imag_shape": imag_shape}


class ChannelLayoutError(PreconditionError):
    """Raised when a waveform has a channel count other than one or two."""

    def __init__(self, message: str, channels: Optional[int] = None):
        super().__init__(message)
        self.channels = channels
        self.details = {"channels": channels}


class AnalysisError(ImpulseAnalysisError):
    """Raised when an analyzer stage fails unexpectedly."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(ImpulseAnalysisError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
