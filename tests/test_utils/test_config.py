"""Tests for configuration loading and typed settings."""

from pathlib import Path

import pytest

from impulse_analysis.utils.config import (
    CONFIG_SCHEMA,
    ClassifierThresholds,
    ConfigManager,
    EnvelopeSettings,
    SpectralSettings,
    TurbulenceSettings,
    get_default_config,
    load_config,
)
from impulse_analysis.utils.errors import ConfigurationError


class TestConfigManager:
    def test_dot_notation(self):
        manager = ConfigManager(get_default_config())
        assert manager.get("analysis.spectral.window_length") == 2048
        assert manager.get("analysis.missing", default=7) == 7

    def test_required_key_missing(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager({}).get("performance.max_workers", required=True)
        assert exc_info.value.config_key == "performance.max_workers"

    def test_get_section(self):
        manager = ConfigManager({"logging": {"level": "DEBUG"}, "flag": True})
        assert manager.get_section("logging") == {"level": "DEBUG"}
        assert manager.get_section("flag") == {}
        assert manager.get_section("absent") == {}

    def test_set_creates_nested_keys(self):
        manager = ConfigManager()
        manager.set("analysis.envelope.vector_length", 64)
        assert manager.to_dict() == {"analysis": {"envelope": {"vector_length": 64}}}

    def test_from_file_interpolates_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IR_LOG_LEVEL", "DEBUG")
        monkeypatch.delenv("IR_UNSET_VAR", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: ${IR_LOG_LEVEL}\n  format: ${IR_UNSET_VAR}\n")

        manager = ConfigManager.from_file(path)

        assert manager.get("logging.level") == "DEBUG"
        assert manager.get("logging.format") == "${IR_UNSET_VAR}"

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager.from_file(tmp_path / "absent.yaml")

    def test_from_file_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("analysis: [1, 2\n")
        with pytest.raises(ConfigurationError, match="parse"):
            ConfigManager.from_file(path)

    def test_from_file_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager.from_file(path)

    def test_validate_types(self):
        manager = ConfigManager({"performance": {"max_workers": "four"}})
        with pytest.raises(ConfigurationError, match="max_workers"):
            manager.validate(CONFIG_SCHEMA)

    def test_validate_required(self):
        with pytest.raises(ConfigurationError, match="Required"):
            ConfigManager({}).validate({"logging.level": {"type": str, "required": True}})


class TestLoadConfig:
    def test_explicit_missing_path(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_partial_file_merges_over_defaults(self, tmp_path):
        path = tmp_path / "ir.yaml"
        path.write_text("analysis:\n  envelope:\n    vector_length: 100\n")

        config = load_config(str(path))

        assert config["analysis"]["envelope"]["vector_length"] == 100
        assert config["analysis"]["envelope"]["hop_length"] == 512
        assert config["analysis"]["spectral"] == get_default_config()["analysis"]["spectral"]
        assert config["performance"]["max_workers"] == 4

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "ir.yaml"
        path.write_text("performance:\n  max_workers: many\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_search_path_finds_local_file(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text("performance:\n  max_workers: 2\n")
        monkeypatch.chdir(tmp_path)
        assert load_config()["performance"]["max_workers"] == 2

    def test_shipped_config_matches_defaults(self):
        shipped = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        assert load_config(str(shipped)) == get_default_config()


class TestSettings:
    def test_defaults(self):
        assert SpectralSettings.from_config(None) == SpectralSettings()
        assert EnvelopeSettings.from_config({}) == EnvelopeSettings()
        assert TurbulenceSettings.from_config({}) == TurbulenceSettings()
        assert ClassifierThresholds.from_config({}) == ClassifierThresholds()

    def test_lists_become_tuples(self):
        settings = SpectralSettings.from_config({"band_edges": [0, 50, 100]})
        assert settings.band_edges == (0, 50, 100)

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SpectralSettings.from_config({"fft_size": 1024})
        assert exc_info.value.config_key == "analysis.spectral.fft_size"

    def test_turbulence_floor_key_name(self):
        with pytest.raises(ConfigurationError) as exc_info:
            TurbulenceSettings.from_config({"db_floor": 1e-5})
        assert exc_info.value.config_key == "analysis.turbulence.db_floor"

    @pytest.mark.parametrize("length", [1000, 1, 0])
    def test_window_length_must_be_power_of_two(self, length):
        with pytest.raises(ConfigurationError):
            SpectralSettings.from_config({"window_length": length})

    def test_band_edges_must_increase(self):
        with pytest.raises(ConfigurationError):
            SpectralSettings.from_config({"band_edges": [0, 500, 100]})

    def test_turbulence_window_minimum(self):
        with pytest.raises(ConfigurationError):
            TurbulenceSettings.from_config({"min_window": 1})

    def test_classifier_bounds_length(self):
        with pytest.raises(ConfigurationError, match="brightness_bounds"):
            ClassifierThresholds.from_config({"brightness_bounds": [100, 400]})

    def test_classifier_bounds_order(self):
        with pytest.raises(ConfigurationError, match="texture_bounds"):
            ClassifierThresholds.from_config({"texture_bounds": [3, 5, 4, 6]})

    @pytest.mark.parametrize("cls, key, value", [
        (EnvelopeSettings, "hop_length", "512"),
        (EnvelopeSettings, "vector_length", 2.5),
        (SpectralSettings, "window_length", True),
        (TurbulenceSettings, "min_window", 5.0),
        (TurbulenceSettings, "amplitude_floor", "1e-5"),
        (SpectralSettings, "band_edges", [0, "100", 500]),
        (SpectralSettings, "band_edges", 500),
        (ClassifierThresholds, "sub_band", 100),
    ])
    def test_wrong_value_type(self, cls, key, value):
        with pytest.raises(ConfigurationError) as exc_info:
            cls.from_config({key: value})
        assert exc_info.value.config_key.endswith(f".{key}")

    def test_integers_accepted_for_float_fields(self):
        settings = EnvelopeSettings.from_config({"peak_min_distance_ms": 50, "prominence_ratio": 2})
        assert settings.distance_frames(44100) == 5
        assert settings.prominence_ratio == 2

    @pytest.mark.parametrize("key, value", [
        ("peak_relative_height", -0.1),
        ("peak_relative_height", 1.5),
        ("peak_absolute_floor", -1e-4),
        ("prominence_ratio", 0.5),
        ("prominence_ratio", -1.0),
        ("prominence_offset", -0.001),
    ])
    def test_peak_parameters_out_of_range(self, key, value):
        with pytest.raises(ConfigurationError, match=key):
            EnvelopeSettings.from_config({key: value})
