"""
Tests for configuration loading and validation.
"""

import logging
from pathlib import Path

import pytest

from spectral_hk.utils.config_utils import (DEFAULT_CONFIG, ConfigLoader, ConfigurationError,
                                            HashKeyConfigValidator, load_hashkey_config)

REPO_ROOT = Path(__file__).resolve().parents[1]


class TestValidator:

    def test_defaults(self):
        config = HashKeyConfigValidator.validate(None)
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_partial_override_is_merged(self):
        config = HashKeyConfigValidator.validate({'spectral': {'eigensolver': 'scipy'}})
        assert config['spectral']['eigensolver'] == 'scipy'
        assert config['spectral']['max_vertices'] == 200
        assert DEFAULT_CONFIG['spectral']['eigensolver'] == 'jacobi'

    @pytest.mark.parametrize("override", [
        {'spectral': {'max_vertices': 0}},
        {'spectral': {'round_off': 0.5}},
        {'spectral': {'zero_tolerance': -1}},
        {'spectral': {'quantizer_bits': 24}},
        {'spectral': {'spectrum_range': [2.0, 0.0]}},
        {'spectral': {'eigensolver': 'power'}},
        {'spectral': {'max_sweeps': 0}},
        {'spectral': {'segment_bits': [35, 40]}},
        {'spectral': {'segment_bits': [35, 42, 45]}},
        {'rings': {'max_ring_size': 2}},
        {'logging': {'level': 'LOUD'}},
    ])
    def test_invalid_values(self, override):
        with pytest.raises(ConfigurationError):
            HashKeyConfigValidator.validate(override)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError):
            HashKeyConfigValidator.validate(['spectral'])

    def test_key_defining_change_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="spectral_hk.utils.config_utils"):
            HashKeyConfigValidator.validate({'spectral': {'round_off': 0.001}})
        assert "spectral.round_off=0.001 differs from the default" in caplog.text


class TestConfigLoader:

    def test_repository_default_config(self):
        config = ConfigLoader.load_config(REPO_ROOT / "config" / "default_config.yaml")
        assert config == DEFAULT_CONFIG

    def test_yaml_round_trip(self, tmp_path):
        config = HashKeyConfigValidator.validate({'rings': {'max_ring_size': 8}})
        path = tmp_path / "run.yaml"
        ConfigLoader.save_config(config, path)
        assert ConfigLoader.load_config(path) == config

    def test_json_round_trip(self, tmp_path):
        config = HashKeyConfigValidator.validate({'spectral': {'eigensolver': 'scipy'}})
        path = tmp_path / "nested" / "run.json"
        ConfigLoader.save_config(config, path)
        assert ConfigLoader.load_config(path)['spectral']['eigensolver'] == 'scipy'

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("[spectral]\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader.load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load_config(tmp_path / "absent.yaml")

    def test_invalid_file_contents(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("spectral:\n  eigensolver: power\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader.load_config(path)

    def test_named_config(self, monkeypatch):
        monkeypatch.chdir(REPO_ROOT)
        assert load_hashkey_config('default') == DEFAULT_CONFIG

    def test_no_name_gives_defaults(self):
        assert load_hashkey_config() == DEFAULT_CONFIG
