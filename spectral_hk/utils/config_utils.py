"""
Configuration utilities for spectral hash key computation.

This module provides tools for loading, validating, and saving the
configuration of a hashing run. Settings that change the produced keys
are validated strictly and reported when they differ from the defaults.
"""

import yaml
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration validation errors."""
    pass


DEFAULT_CONFIG: Dict[str, Any] = {
    'spectral': {
        'max_vertices': 200,
        'round_off': 0.0005,
        'zero_tolerance': 1e-8,
        'quantizer_bits': 32,
        'spectrum_range': [0.0, 2.0],
        'eigensolver': 'jacobi',
        'max_sweeps': 500,
        'segment_bits': [35, 40, 45],
    },
    'rings': {
        'max_ring_size': None,
    },
    'logging': {
        'level': 'INFO',
        'log_dir': None,
    },
}

# Settings that feed the key itself; changing them breaks comparability
KEY_DEFINING = ('round_off', 'zero_tolerance', 'quantizer_bits', 'spectrum_range', 'segment_bits')


class HashKeyConfigValidator:
    """Validator for hash key configurations."""

    VALID_EIGENSOLVERS = ['jacobi', 'scipy']
    VALID_SEGMENT_BITS = [15, 20, 25, 30, 35, 40, 45, 50, 55, 60]
    VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    @classmethod
    def validate(cls, config: Optional[Dict]) -> Dict:
        """
        Validate a configuration and fill in defaults.

        Args:
            config: Configuration dictionary (may be partial or None)

        Returns:
            Complete validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(config).__name__}")

        merged = ConfigLoader.deep_merge(DEFAULT_CONFIG, config)
        cls._validate_spectral(merged['spectral'])
        cls._validate_rings(merged['rings'])
        cls._validate_logging(merged['logging'])

        for key in KEY_DEFINING:
            if merged['spectral'][key] != DEFAULT_CONFIG['spectral'][key]:
                logger.warning(f"spectral.{key}={merged['spectral'][key]} differs from the default; "
                               f"keys will not match those computed with default settings")
        return merged

    @classmethod
    def _validate_spectral(cls, spectral: Dict):
        max_vertices = spectral['max_vertices']
        if not isinstance(max_vertices, int) or max_vertices < 1:
            raise ConfigurationError("spectral.max_vertices must be a positive integer")

        round_off = spectral['round_off']
        if not isinstance(round_off, (int, float)) or not (0.0 < round_off < 0.1):
            raise ConfigurationError("spectral.round_off must be between 0 and 0.1")

        zero_tolerance = spectral['zero_tolerance']
        if not isinstance(zero_tolerance, (int, float)) or zero_tolerance < 0:
            raise ConfigurationError("spectral.zero_tolerance must be a non-negative number")

        bits = spectral['quantizer_bits']
        if not isinstance(bits, int) or bits < 1 or bits > 64 or bits & (bits - 1):
            raise ConfigurationError("spectral.quantizer_bits must be a power of two no larger than 64")

        spectrum_range = spectral['spectrum_range']
        if (not isinstance(spectrum_range, (list, tuple)) or len(spectrum_range) != 2
                or spectrum_range[0] >= spectrum_range[1]):
            raise ConfigurationError("spectral.spectrum_range must be [low, high] with low < high")

        if spectral['eigensolver'] not in cls.VALID_EIGENSOLVERS:
            raise ConfigurationError(f"Invalid eigensolver '{spectral['eigensolver']}'. "
                                     f"Valid options: {cls.VALID_EIGENSOLVERS}")

        max_sweeps = spectral['max_sweeps']
        if not isinstance(max_sweeps, int) or max_sweeps < 1:
            raise ConfigurationError("spectral.max_sweeps must be a positive integer")

        segment_bits = spectral['segment_bits']
        if not isinstance(segment_bits, (list, tuple)) or len(segment_bits) != 3:
            raise ConfigurationError("spectral.segment_bits must list three widths")
        for width in segment_bits:
            if width not in cls.VALID_SEGMENT_BITS:
                raise ConfigurationError(f"Invalid segment width {width}. "
                                         f"Valid options: {cls.VALID_SEGMENT_BITS}")

    @classmethod
    def _validate_rings(cls, rings: Dict):
        max_ring_size = rings['max_ring_size']
        if max_ring_size is not None and (not isinstance(max_ring_size, int) or max_ring_size < 3):
            raise ConfigurationError("rings.max_ring_size must be null or an integer >= 3")

    @classmethod
    def _validate_logging(cls, logging_config: Dict):
        level = str(logging_config['level']).upper()
        if level not in cls.VALID_LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level '{logging_config['level']}'. "
                                     f"Valid options: {cls.VALID_LOG_LEVELS}")


class ConfigLoader:
    """Configuration loader with validation and defaults."""

    DEFAULT_CONFIG_PATHS = [
        'config/',
        '.'
    ]

    @classmethod
    def load_config(cls, config_path: Union[str, Path], validate: bool = True) -> Dict:
        """
        Load configuration from file.

        Args:
            config_path: Path to configuration file
            validate: Whether to validate the configuration

        Returns:
            Loaded (and, if requested, validated) configuration
        """
        config_path = Path(config_path)

        if not config_path.exists():
            # Try to find config in default paths
            for default_path in cls.DEFAULT_CONFIG_PATHS:
                full_path = Path(default_path) / config_path.name
                if full_path.exists():
                    config_path = full_path
                    break
            else:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    config = yaml.safe_load(f) or {}
            elif config_path.suffix.lower() == '.json':
                with open(config_path, 'r') as f:
                    config = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {config_path.suffix}")

            if validate:
                config = HashKeyConfigValidator.validate(config)

            logger.info(f"Loaded configuration from {config_path}")
            return config

        except Exception as e:
            logger.error(f"Failed to load configuration from {config_path}: {e}")
            raise

    @classmethod
    def deep_merge(cls, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries."""
        result = deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls.deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result

    @classmethod
    def save_config(cls, config: Dict, output_path: Union[str, Path]):
        """
        Save configuration to file.

        Args:
            config: Configuration dictionary
            output_path: Output file path
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            if output_path.suffix.lower() in ['.yaml', '.yml']:
                with open(output_path, 'w') as f:
                    yaml.dump(config, f, default_flow_style=False, indent=2)
            elif output_path.suffix.lower() == '.json':
                with open(output_path, 'w') as f:
                    json.dump(config, f, indent=2)
            else:
                raise ConfigurationError(f"Unsupported output format: {output_path.suffix}")

            logger.info(f"Saved configuration to {output_path}")

        except Exception as e:
            logger.error(f"Failed to save configuration to {output_path}: {e}")
            raise


def load_hashkey_config(config_name_or_path: Optional[str] = None) -> Dict:
    """
    Convenience function to load a hash key configuration.

    Args:
        config_name_or_path: Configuration name (e.g. 'default') or path; None gives the defaults

    Returns:
        Validated configuration
    """
    if config_name_or_path is None:
        return HashKeyConfigValidator.validate({})

    if not config_name_or_path.endswith(('.yaml', '.yml', '.json')):
        for pattern in [f"{config_name_or_path}_config.yaml", f"{config_name_or_path}.yaml"]:
            try:
                return ConfigLoader.load_config(pattern)
            except FileNotFoundError:
                continue
        config_name_or_path = f"{config_name_or_path}.yaml"

    return ConfigLoader.load_config(config_name_or_path)
