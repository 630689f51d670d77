"""
Core data models for the impulse response analyzer.

Immutable domain models for decoded waveforms, extracted features,
classification labels and the assembled analysis result.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from impulse_analysis.utils.errors import ChannelLayoutError, PreconditionError


# Classification vocabularies
IR_TYPES = ("Reverb", "Delay")
DURATION_CATEGORIES = ("Short", "Medium", "Long")
BRIGHTNESS_CATEGORIES = (
    "Sub", "Very Low", "Low", "Low-Mid", "Mid", "High-Mid", "Bright", "Very Bright"
)
TEXTURE_CATEGORIES = ("Smooth", "Textured", "Grainy", "Coarse", "Energetic")


@dataclass(frozen=True, eq=False)
class Waveform:
    """
    Decoded audio handed over by an external decoder.

    ``samples`` is either a 1-D mono array or a (channels, n) array.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float64)
        if samples.ndim not in (1, 2):
            raise PreconditionError(
                f"Waveform samples must be 1-D or (channels, n), got shape {samples.shape}",
                details={"shape": samples.shape},
            )
        if samples.ndim == 2 and samples.shape[0] not in (1, 2):
            raise ChannelLayoutError(
                f"Only mono or stereo waveforms are supported, got {samples.shape[0]} channels",
                channels=samples.shape[0],
            )
        if not isinstance(self.sample_rate, (int, np.integer)) or self.sample_rate <= 0:
            raise PreconditionError(
                f"Sample rate must be a positive integer, got {self.sample_rate!r}",
                details={"sample_rate": self.sample_rate},
            )
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_channels(cls, channels: Sequence[Sequence[float]], sample_rate: int) -> "Waveform":
        """Build a waveform from per-channel sample sequences of equal length."""
        arrays = [np.asarray(ch, dtype=np.float64) for ch in channels]
        if not arrays:
            raise ChannelLayoutError("At least one channel is required", channels=0)
        lengths = {a.shape for a in arrays}
        if len(lengths) != 1 or arrays[0].ndim != 1:
            raise PreconditionError(
                "Channels must be 1-D sequences of equal length",
                details={"lengths": [a.shape for a in arrays]},
            )
        if len(arrays) == 1:
            return cls(arrays[0], sample_rate)
        return cls(np.stack(arrays), sample_rate)

    @property
    def channels(self) -> int:
        """Channel count (1 or 2)."""
        return 1 if self.samples.ndim == 1 else self.samples.shape[0]

    @property
    def num_samples(self) -> int:
        """Samples per channel."""
        return self.samples.shape[-1]

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.num_samples / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return self.num_samples == 0

    @property
    def mono(self) -> np.ndarray:
        """Mono mixdown: stereo is averaged, mono passes through."""
        if self.samples.ndim == 1:
            return self.samples
        if self.channels == 1:
            return self.samples[0]
        return (self.samples[0] + self.samples[1]) / 2.0


@dataclass(frozen=True)
class SpectralFeatures:
    """Frame-averaged spectral descriptors."""

    centroid: float  # Hz
    flatness: float  # [0.0, 1.0]
    frame_count: int
    band_energies: Dict[str, float]  # label -> dB, ordered by frequency


@dataclass(frozen=True)
class EnvelopeFeatures:
    """RMS envelope and the time-domain features derived from it."""

    envelope: np.ndarray = field(repr=False, compare=False)
    peak_indices: Tuple[int, ...]
    decay_end_frame: int
    decay_time: float  # seconds
    envelope_vector: np.ndarray = field(repr=False, compare=False)

    @property
    def peak_count(self) -> int:
        return len(self.peak_indices)


@dataclass(frozen=True)
class FeatureSet:
    """Every feature the classifier and the result record consume."""

    rms_energy: float
    spectral_centroid: float
    spectral_flatness: float
    peak_count: int
    decay_time: float
    turbulence: float
    band_energies: Dict[str, float]
    envelope_vector: Tuple[float, ...] = field(repr=False)

    @property
    def formatted_decay_time(self) -> str:
        """Decay time as a two-decimal string with an "s" suffix."""
        return f"{self.decay_time:.2f}s"

    def musical_features_dict(self) -> Dict[str, Any]:
        return {
            'rms_energy': self.rms_energy,
            'brightness_spectral_centroid': self.spectral_centroid,
            'texture_spectral_flatness': self.spectral_flatness,
            'peak_count': self.peak_count,
            'estimated_decay_time': self.formatted_decay_time,
        }

    def vectors_dict(self) -> Dict[str, Any]:
        return {
            'amplitude_envelope': list(self.envelope_vector),
            'frequency_bands_db': dict(self.band_energies),
        }


@dataclass(frozen=True)
class Classification:
    """Four independent categorical labels."""

    type: str
    duration_category: str
    brightness_category: str
    texture_category: str

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_label(self.type, IR_TYPES, "type")
        validate_label(self.duration_category, DURATION_CATEGORIES, "duration_category")
        validate_label(self.brightness_category, BRIGHTNESS_CATEGORIES, "brightness_category")
        validate_label(self.texture_category, TEXTURE_CATEGORIES, "texture_category")

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {
            'type': self.type,
            'duration_category': self.duration_category,
            'brightness_category': self.brightness_category,
            'texture_category': self.texture_category,
        }


@dataclass(frozen=True)
class FileMeta:
    """Metadata about the analyzed buffer."""

    duration_seconds: float
    source: Optional[str] = None  # caller-supplied descriptor, e.g. a path

    def to_dict(self) -> Dict[str, Any]:
        return {'duration_seconds': self.duration_seconds}


@dataclass(frozen=True)
class AnalysisResult:
    """Complete analysis result for one impulse response."""

    classification: Classification
    features: FeatureSet
    file_meta: FileMeta

    # Bookkeeping, not part of the serialized record
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )
    processing_time: float = field(default=0.0, compare=False)  # seconds
    analyzer_versions: Dict[str, str] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the external record shape."""
        return {
            'classification': self.classification.to_dict(),
            'analysis_data': {
                'file_meta': self.file_meta.to_dict(),
                'musical_features': self.features.musical_features_dict(),
                'vectors': self.features.vectors_dict(),
            },
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_summary(self) -> str:
        """Get human-readable summary."""
        c = self.classification
        parts = [
            f"Type: {c.type}",
            f"Duration: {c.duration_category} ({self.features.formatted_decay_time})",
            f"Brightness: {c.brightness_category} ({self.features.spectral_centroid:.0f} Hz)",
            f"Texture: {c.texture_category}",
            f"Peaks: {self.features.peak_count}",
        ]
        if self.file_meta.source:
            parts.insert(0, f"Source: {self.file_meta.source}")
        return " | ".join(parts)


# Validation helpers

def validate_label(value: str, allowed: Sequence[str], name: str) -> None:
    """Validate a categorical label is one of the allowed values."""
    if value not in allowed:
        raise ValueError(
            f"Invalid {name}: {value!r}. Must be one of {tuple(allowed)}"
        )
