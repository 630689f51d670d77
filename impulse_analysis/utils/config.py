"""
Configuration management for the impulse response analyzer.

Loads and validates configuration from YAML files with environment
variable interpolation support, and turns the analysis sections into
typed settings objects consumed by the analyzers.
"""

import math
import numbers
import os
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, TypeVar, get_origin

import yaml

from impulse_analysis.utils.errors import ConfigurationError

S = TypeVar("S")


class ConfigManager:
    """
    Manages application configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Default value support
    - Configuration validation
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dict: Optional pre-loaded configuration dictionary
        """
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            ConfigManager: Initialized with file contents

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {file_path}",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._interpolate_env_vars()
        return manager

    def _interpolate_env_vars(self) -> None:
        """Replace ${ENV_VAR} patterns in all string values."""
        self._config = self._interpolate_dict(self._config)

    def _interpolate_dict(self, d: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively interpolate environment variables in a dictionary."""
        result = {}
        for key, value in d.items():
            if isinstance(value, dict):
                result[key] = self._interpolate_dict(value)
            elif isinstance(value, list):
                result[key] = self._interpolate_list(value)
            elif isinstance(value, str):
                result[key] = self._interpolate_string(value)
            else:
                result[key] = value
        return result

    def _interpolate_list(self, lst: list) -> list:
        """Recursively interpolate environment variables in a list."""
        result = []
        for item in lst:
            if isinstance(item, dict):
                result.append(self._interpolate_dict(item))
            elif isinstance(item, list):
                result.append(self._interpolate_list(item))
            elif isinstance(item, str):
                result.append(self._interpolate_string(item))
            else:
                result.append(item)
        return result

    def _interpolate_string(self, s: str) -> str:
        """Replace ${ENV_VAR} with environment variable value."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)  # Keep original if not found
            return value

        return self._env_pattern.sub(replace, s)

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g. "analysis.spectral.window_length")
            default: Default value if key not found
            required: If True, raise error when key not found

        Returns:
            Configuration value or default

        Raises:
            ConfigurationError: If required key is not found
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """
        Get an entire configuration section as a dictionary.

        Args:
            key: Section key (e.g., "analysis.envelope", "classifier")

        Returns:
            Dictionary of section values (empty dict if not found)
        """
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value using dot notation.

        Example:
            config.set("analysis.spectral.hop_length", 256)
        """
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if k not in current:
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return self._config.copy()

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "performance.max_workers": {"type": int, "required": True},
                "logging.level": {"type": str}
            }

        Raises:
            ConfigurationError: If validation fails
        """
        for key, rules in schema.items():
            value = self.get(key)
            required = rules.get("required", False)
            expected_type = rules.get("type")

            if value is None:
                if required:
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            if expected_type and not isinstance(value, expected_type):
                type_name = getattr(expected_type, "__name__", str(expected_type))
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {type_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


# Typed analysis settings

def _settings_from_section(
    cls: Type[S], section: Optional[Dict[str, Any]], prefix: str
) -> S:
    """Build a settings dataclass from a config section, rejecting unknown keys."""
    section = section or {}
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration keys in {prefix}: {', '.join(unknown)}",
            config_key=f"{prefix}.{unknown[0]}"
        )

    annotations = {f.name: f.type for f in fields(cls)}
    for key, value in section.items():
        _check_type(value, annotations[key], f"{prefix}.{key}")

    values = {
        key: tuple(value) if isinstance(value, list) else value
        for key, value in section.items()
    }
    settings = cls(**values)
    settings.validate()
    return settings


def _is_number(value: Any, integral: bool = False) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, numbers.Integral if integral else numbers.Real)


def _check_type(value: Any, annotation: Any, key: str) -> None:
    """Raise ConfigurationError unless ``value`` fits a settings field annotation."""
    if get_origin(annotation) is tuple:
        if not isinstance(value, (list, tuple)) or not all(_is_number(v) for v in value):
            raise ConfigurationError(f"{key} must be a list of numbers", config_key=key)
    elif annotation is int:
        if not _is_number(value, integral=True):
            raise ConfigurationError(
                f"{key} must be an integer, got {type(value).__name__}", config_key=key
            )
    elif annotation is float:
        if not _is_number(value):
            raise ConfigurationError(
                f"{key} must be a number, got {type(value).__name__}", config_key=key
            )
    elif annotation is str and not isinstance(value, str):
        raise ConfigurationError(
            f"{key} must be a string, got {type(value).__name__}", config_key=key
        )


def _require(condition: bool, message: str, key: str) -> None:
    if not condition:
        raise ConfigurationError(message, config_key=key)


def _strictly_increasing(values: Tuple[float, ...]) -> bool:
    return all(b > a for a, b in zip(values, values[1:]))


@dataclass(frozen=True)
class SpectralSettings:
    """Framing and band layout for the spectral feature extractor."""

    window_length: int = 2048
    hop_length: int = 512
    flatness_epsilon: float = 1e-10
    band_edges: Tuple[int, ...] = (0, 100, 500, 2000, 5000, 20000)
    db_floor_power: float = 1e-10
    frame_batch_size: int = 256

    @classmethod
    def from_config(cls, section: Optional[Dict[str, Any]] = None) -> "SpectralSettings":
        return _settings_from_section(cls, section, "analysis.spectral")

    def validate(self) -> None:
        n = self.window_length
        _require(
            isinstance(n, int) and n > 1 and (n & (n - 1)) == 0,
            f"window_length must be a power of two greater than 1, got {n}",
            "analysis.spectral.window_length",
        )
        _require(self.hop_length > 0, "hop_length must be positive",
                 "analysis.spectral.hop_length")
        _require(self.flatness_epsilon > 0, "flatness_epsilon must be positive",
                 "analysis.spectral.flatness_epsilon")
        _require(self.db_floor_power > 0, "db_floor_power must be positive",
                 "analysis.spectral.db_floor_power")
        _require(self.frame_batch_size > 0, "frame_batch_size must be positive",
                 "analysis.spectral.frame_batch_size")
        _require(
            len(self.band_edges) >= 2 and _strictly_increasing(self.band_edges),
            "band_edges must hold at least two strictly increasing frequencies",
            "analysis.spectral.band_edges",
        )


@dataclass(frozen=True)
class EnvelopeSettings:
    """RMS envelope framing, peak picking and decay parameters."""

    frame_length: int = 2048
    hop_length: int = 512
    peak_min_distance_ms: float = 50.0
    peak_relative_height: float = 0.05
    peak_absolute_floor: float = 0.0001
    prominence_ratio: float = 1.55
    prominence_offset: float = 0.001
    decay_threshold_ratio: float = 0.001
    vector_length: int = 500

    @classmethod
    def from_config(cls, section: Optional[Dict[str, Any]] = None) -> "EnvelopeSettings":
        return _settings_from_section(cls, section, "analysis.envelope")

    def validate(self) -> None:
        _require(self.frame_length > 0, "frame_length must be positive",
                 "analysis.envelope.frame_length")
        _require(self.hop_length > 0, "hop_length must be positive",
                 "analysis.envelope.hop_length")
        _require(self.peak_min_distance_ms >= 0, "peak_min_distance_ms must be >= 0",
                 "analysis.envelope.peak_min_distance_ms")
        _require(self.vector_length >= 0, "vector_length must be >= 0",
                 "analysis.envelope.vector_length")
        _require(0 <= self.peak_relative_height <= 1,
                 "peak_relative_height must be in [0, 1]",
                 "analysis.envelope.peak_relative_height")
        _require(self.peak_absolute_floor >= 0, "peak_absolute_floor must be >= 0",
                 "analysis.envelope.peak_absolute_floor")
        _require(self.prominence_ratio >= 1, "prominence_ratio must be >= 1",
                 "analysis.envelope.prominence_ratio")
        _require(self.prominence_offset >= 0, "prominence_offset must be >= 0",
                 "analysis.envelope.prominence_offset")
        _require(0 <= self.decay_threshold_ratio < 1,
                 "decay_threshold_ratio must be in [0, 1)",
                 "analysis.envelope.decay_threshold_ratio")

    def distance_frames(self, sample_rate: int) -> int:
        """Minimum spacing between accepted peaks, in envelope frames."""
        envelope_rate = sample_rate / self.hop_length
        return int(math.ceil(self.peak_min_distance_ms / 1000.0 * envelope_rate))


@dataclass(frozen=True)
class TurbulenceSettings:
    """Decay-fit parameters for the turbulence estimator."""

    amplitude_floor: float = 1e-5
    min_window: int = 5

    @classmethod
    def from_config(cls, section: Optional[Dict[str, Any]] = None) -> "TurbulenceSettings":
        return _settings_from_section(cls, section, "analysis.turbulence")

    def validate(self) -> None:
        _require(self.amplitude_floor > 0, "amplitude_floor must be positive",
                 "analysis.turbulence.amplitude_floor")
        _require(self.min_window >= 2, "min_window must be at least 2",
                 "analysis.turbulence.min_window")


@dataclass(frozen=True)
class ClassifierThresholds:
    """Empirical thresholds for the rule-based classifier."""

    high_density: float = 4.0
    duration_bounds: Tuple[float, ...] = (1.5, 5.0)
    brightness_bounds: Tuple[float, ...] = (100, 400, 800, 1200, 2500, 4000, 6000)
    sub_dominance_db: float = 12.0
    deep_sub_dominance_db: float = 24.0
    texture_bounds: Tuple[float, ...] = (3.0, 4.0, 5.0, 6.0)
    sub_band: str = "0-100hz"
    mid_band: str = "500-2000hz"
    missing_band_db: float = -100.0

    @classmethod
    def from_config(cls, section: Optional[Dict[str, Any]] = None) -> "ClassifierThresholds":
        return _settings_from_section(cls, section, "classifier")

    def validate(self) -> None:
        for name, expected in (
            ("duration_bounds", 2),
            ("brightness_bounds", 7),
            ("texture_bounds", 4),
        ):
            bounds = getattr(self, name)
            _require(
                len(bounds) == expected and _strictly_increasing(bounds),
                f"{name} must hold {expected} strictly increasing values",
                f"classifier.{name}",
            )


# Loading

CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "analysis": {"type": dict},
    "classifier": {"type": dict},
    "logging.level": {"type": str},
    "logging.format": {"type": str},
    "performance.max_workers": {"type": int},
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    File values are merged over the defaults, so a file only needs the
    keys it changes.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml"

    Returns:
        Dict[str, Any]: Configuration dictionary
    """
    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break
    elif not Path(config_path).exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            config_key=config_path
        )

    if config_path is None:
        return get_default_config()

    manager = ConfigManager.from_file(Path(config_path))
    manager.validate(CONFIG_SCHEMA)
    return _deep_merge(get_default_config(), manager.to_dict())


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _plain(settings: Any) -> Dict[str, Any]:
    return {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in asdict(settings).items()
    }


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "analysis": {
            "spectral": _plain(SpectralSettings()),
            "envelope": _plain(EnvelopeSettings()),
            "turbulence": _plain(TurbulenceSettings()),
        },
        "classifier": _plain(ClassifierThresholds()),
        "logging": {
            "level": "INFO",
            "format": "json",
        },
        "performance": {
            "max_workers": 4,
        },
    }
