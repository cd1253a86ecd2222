"""
Configuration management for the PCA engine.

This module provides functionality for managing configuration,
including loading from environment variables, files and default values.
"""

import os
import json
import logging
import threading
from typing import Dict, Optional, Any
from copy import deepcopy
import yaml

from pcaengine.exceptions import ValidationError
from pcaengine.math.pca import MIN_ITERS

# Set up logging
logger = logging.getLogger(__name__)

DEGENERATE_POLICIES = ('raise', 'clamp')


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float.

    Args:
        value: Value to convert

    Returns:
        Float value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def _env_or(name: str, current: Any, convert) -> Any:
    """Read an environment variable through a converter, keeping the current value on failure."""
    if name not in os.environ:
        return current

    converted = convert(os.environ[name])
    if converted is None:
        logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
        return current
    return converted


class Config:
    """
    Configuration manager for the PCA engine.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        # Load configuration
        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            # Start with default configuration
            config = self._get_defaults()

            # Apply environment variables
            config = self._apply_env_vars(config)

            # Apply overrides
            if overrides:
                config = self._apply_overrides(config, overrides)

            # Apply inferred values
            config = self._apply_inferred_values(config)

            # Store configuration
            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Solver and preprocessing
            'pca': {
                'iters': MIN_ITERS,             # power iterations per component
                'epsilon': 1e-10,               # guard for near-zero norms
                'tol': None,                    # early-exit tolerance (disabled)
                'seed': None,                   # random start seed
                'normalize': True,              # scale features to unit variance
                'degenerate-policy': 'raise',   # zero-variance feature handling
                'variance-threshold': 0.95      # for get_optimal_components
            },

            # Server
            'server': {
                'port': 8080,
                'host': 'localhost'
            },

            # Logging
            'logging': {
                'level': 'warn'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        # Make a copy
        config = deepcopy(config)

        pca = config['pca']
        pca['iters'] = _env_or('PCA_ITERS', pca['iters'], to_int)
        pca['epsilon'] = _env_or('PCA_EPSILON', pca['epsilon'], to_float)
        pca['tol'] = _env_or('PCA_TOL', pca['tol'], to_float)
        pca['seed'] = _env_or('PCA_SEED', pca['seed'], to_int)
        pca['normalize'] = _env_or('PCA_NORMALIZE', pca['normalize'], to_bool)
        pca['degenerate-policy'] = os.environ.get('PCA_DEGENERATE_POLICY', pca['degenerate-policy'])
        pca['variance-threshold'] = _env_or('PCA_VARIANCE_THRESHOLD', pca['variance-threshold'], to_float)

        # Server
        config['server']['port'] = _env_or('PORT', config['server']['port'], to_int)
        config['server']['host'] = os.environ.get('HOST', config['server']['host'])

        # Logging
        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        # Make a copy
        config = deepcopy(config)

        # Helper function for deep update
        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        # Apply overrides
        return deep_update(config, overrides)

    def _apply_inferred_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply inferred configuration values.

        The iteration count is raised to the solver floor and the
        degenerate policy is normalized and checked.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        # Make a copy
        config = deepcopy(config)

        pca = config['pca']
        if pca['iters'] is None or pca['iters'] < MIN_ITERS:
            logger.warning(f"pca.iters={pca['iters']} is below the floor, using {MIN_ITERS}")
            pca['iters'] = MIN_ITERS

        policy = str(pca['degenerate-policy']).lower().strip()
        if policy not in DEGENERATE_POLICIES:
            raise ValidationError(f"Unknown degenerate policy: {pca['degenerate-policy']}")
        pca['degenerate-policy'] = policy

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        # Split path into components
        components = path.split('.')

        # Start with full configuration
        value = self._config

        # Traverse path
        for component in components:
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config

            for component in components[:-1]:
                if component not in config:
                    config[component] = {}

                config = config[component]

            config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration
        """
        if not self._initialized:
            self.load_config()

        # Determine file format from extension
        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from
        """
        self.load_config(load_config_file(filepath))


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Read configuration overrides from a JSON or YAML file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance so the next call reloads from scratch."""
        with cls._lock:
            cls._instance = None
