"""
Configuration management for the Quantum Gate Emulator.

This module provides tools for loading, validating, and managing configuration
settings for the Quantum Gate Emulator. It supports JSON and YAML files and
validates every value before it is merged over the defaults.
"""

import os
import json
import logging
import copy
from typing import Dict, Any, Optional, List

import yaml

from ..constants import BACKENDS, DISPATCH_ORDERS, PRECISIONS, DEFAULT_OUTPUT_DECIMALS
from ..backend_configs import BACKEND_CONFIGS
from .error_handler import ConfigurationError

logger = logging.getLogger("QuantumGateEmulator.ConfigManager")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigManager:
    """
    Configuration management for the Quantum Gate Emulator.

    This class handles loading, validating, and providing access to configuration
    settings. Values are addressed with dotted key paths such as
    ``performance.lanes``.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (None for default values)
        """
        self.defaults = {
            "backend": "auto",
            "group_size": None,
            "precision": "double",
            "validate_inputs": True,
            "device": {
                "id": 0
            },
            "output": {
                "decimals": DEFAULT_OUTPUT_DECIMALS
            },
            "logging": {
                "level": "INFO",
                "file": None
            },
            "performance": {
                "lanes": None,
                "dispatch_order": "sequential",
                "memory_limit_mb": None,
                "seed": None
            }
        }

        self.config = copy.deepcopy(self.defaults)

        # Set of keys that have been modified from defaults
        self.modified_keys = set()

        if config_path:
            self.load_config(config_path)

        logger.debug("ConfigManager initialized")

    def load_config(self, config_path: str) -> None:
        """
        Load configuration from file.

        Args:
            config_path: Path to a .json, .yaml or .yml file

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        _, ext = os.path.splitext(config_path)
        ext = ext.lower()

        try:
            with open(config_path, 'r') as f:
                if ext == '.json':
                    user_config = json.load(f)
                elif ext in ['.yaml', '.yml']:
                    user_config = yaml.safe_load(f) or {}
                else:
                    raise ConfigurationError(f"Unsupported configuration format: {ext}")
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Error reading configuration {config_path}: {e}") from e

        self.load_from_dict(user_config)
        logger.info(f"Configuration loaded from {config_path}")

    def load_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """
        Validate a configuration dictionary and merge it over the current values.

        Raises:
            ConfigurationError: If validation fails
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(config_dict).__name__}")

        validation_errors = self.validate_config(config_dict)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            raise ConfigurationError("; ".join(validation_errors))

        self._merge_config(config_dict)

    def _merge_config(self, user_config: Dict[str, Any], path: str = "",
                      target: Optional[Dict[str, Any]] = None) -> None:
        """
        Deep-merge user configuration, tracking modified keys.

        Args:
            user_config: User configuration dictionary
            path: Current key path for tracking (internal use)
            target: Dictionary being merged into (internal use)
        """
        if target is None:
            target = self.config

        for key, value in user_config.items():
            current_path = f"{path}.{key}" if path else key

            if isinstance(value, dict) and isinstance(target.get(key), dict):
                self._merge_config(value, current_path, target[key])
            else:
                target[key] = value
                self.modified_keys.add(current_path)

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        unknown = set(config) - set(self.defaults)
        for key in sorted(unknown):
            errors.append(f"Unknown configuration key: {key}")

        for section in ("device", "output", "logging", "performance"):
            if section in config and not isinstance(config[section], dict):
                errors.append(f"Invalid {section}: must be a mapping")
                return errors

        if "backend" in config and config["backend"] not in BACKENDS:
            errors.append(f"Invalid backend: {config['backend']}. Valid options: {', '.join(BACKENDS)}")

        if "precision" in config and config["precision"] not in PRECISIONS:
            errors.append(f"Invalid precision: {config['precision']}. "
                          f"Valid options: {', '.join(PRECISIONS)}")

        if config.get("group_size") is not None:
            group_size = config["group_size"]
            max_group = max(c["max_group_size"] for c in BACKEND_CONFIGS.values())
            if not _is_positive_int(group_size) or group_size > max_group:
                errors.append(f"Invalid group_size: {group_size}. "
                              f"Must be a positive integer no larger than {max_group}")

        if "validate_inputs" in config and not isinstance(config["validate_inputs"], bool):
            errors.append(f"Invalid validate_inputs: {config['validate_inputs']}. Must be a boolean")

        if "device" in config:
            device_id = config["device"].get("id", 0)
            if not isinstance(device_id, int) or isinstance(device_id, bool) or device_id < 0:
                errors.append(f"Invalid device.id: {device_id}. Must be a non-negative integer")

        if "output" in config:
            decimals = config["output"].get("decimals", DEFAULT_OUTPUT_DECIMALS)
            if not isinstance(decimals, int) or isinstance(decimals, bool) or not 0 <= decimals <= 17:
                errors.append(f"Invalid output.decimals: {decimals}. Must be an integer between 0 and 17")

        if "logging" in config:
            log_config = config["logging"]
            if "level" in log_config and log_config["level"] not in LOG_LEVELS:
                errors.append(f"Invalid logging.level: {log_config['level']}. "
                              f"Valid options: {', '.join(LOG_LEVELS)}")

        if "performance" in config:
            perf_config = config["performance"]

            lanes = perf_config.get("lanes")
            if lanes is not None and not _is_positive_int(lanes):
                errors.append(f"Invalid performance.lanes: {lanes}. Must be a positive integer")

            order = perf_config.get("dispatch_order")
            if order is not None and order not in DISPATCH_ORDERS:
                errors.append(f"Invalid performance.dispatch_order: {order}. "
                              f"Valid options: {', '.join(DISPATCH_ORDERS)}")

            limit = perf_config.get("memory_limit_mb")
            if limit is not None and not _is_positive_int(limit):
                errors.append(f"Invalid performance.memory_limit_mb: {limit}. Must be a positive integer")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'output.decimals')
            default: Default value if key not found

        Returns:
            Configuration value or default if not found
        """
        value = self.config
        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key path, validating it first.

        Args:
            key: Configuration key path (e.g., 'performance.lanes')
            value: Value to set

        Raises:
            ConfigurationError: If the value is invalid
        """
        keys = key.split('.')
        update = value
        for k in reversed(keys):
            update = {k: update}
        self.load_from_dict(update)

        logger.debug(f"Configuration updated: {key} = {value}")

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset configuration to defaults.

        Args:
            key: Key path to reset (None for all)
        """
        if key is None:
            self.config = copy.deepcopy(self.defaults)
            self.modified_keys.clear()
            return

        keys = key.split('.')
        default_value = self.defaults
        for k in keys:
            default_value = default_value[k]

        config = self.config
        for k in keys[:-1]:
            config = config[k]
        config[keys[-1]] = copy.deepcopy(default_value)
        self.modified_keys.discard(key)

    def save_config(self, config_path: str, format: str = 'json') -> None:
        """
        Save current configuration to file.

        Args:
            config_path: Path to output file
            format: Output format ('json' or 'yaml')
        """
        directory = os.path.dirname(config_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        if format.lower() == 'json':
            with open(config_path, 'w') as f:
                json.dump(self.config, f, indent=2)
        elif format.lower() in ['yaml', 'yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(self.config, f, default_flow_style=False)
        else:
            raise ConfigurationError(f"Unsupported configuration format: {format}")

        logger.info(f"Configuration saved to {config_path}")

    def as_dict(self) -> Dict[str, Any]:
        """Get full configuration as dictionary."""
        return copy.deepcopy(self.config)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
