"""
Configuration Loader for the Density Maps

This module provides a centralized way to load and access configuration
settings from the config.yaml file.

Usage:
    from ops import Config

    config = Config()
    profile = config.get_metric_profile('farmer_density')
    num_classes = config.get_num_classes()
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # type: ignore[import-untyped]
from loguru import logger

from analysis.classification import BUILTIN_PROFILES, MetricProfile, required_ramp_length
from analysis.palettes import DEFAULT_NUM_CLASSES
from analysis.styles import ZERO_STYLE


class Config:
    """Configuration manager for the density maps."""

    # Default values that can be overridden in config
    DEFAULTS: Dict[str, Any] = {
        "classification": {
            "num_classes": DEFAULT_NUM_CLASSES,
            "zero_label": "0",
        },
        "metrics": {},
        "visualization": {
            "zero_style": dict(ZERO_STYLE),
        },
        "system": {
            "output_crs": "EPSG:4326",
            "label_precision": 2,
        },
    }

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to config file. If None, looks for:
                        1. Environment variable CHOROPLETH_CONFIG_PATH
                        2. config.yaml in current directory
                        3. ops/config.yaml next to this module
        """
        if config_file is None:
            env_config = os.environ.get("CHOROPLETH_CONFIG_PATH")
            packaged = Path(__file__).parent / "config.yaml"
            if env_config and Path(env_config).exists():
                config_file = env_config
                logger.debug(f"Using config from environment: {config_file}")
            elif Path("config.yaml").exists():
                config_file = "config.yaml"
            elif packaged.exists():
                config_file = packaged
                logger.debug("Using packaged ops/config.yaml")
            else:
                raise FileNotFoundError(
                    "No config.yaml found. Check current directory or set CHOROPLETH_CONFIG_PATH"
                )

        self.config_path = Path(config_file).resolve()
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        logger.debug(f"Loading config from: {self.config_path}")

        with open(self.config_path, "r") as f:
            self.data = yaml.safe_load(f) or {}

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation with intelligent defaults.

        Args:
            key_path: Dot-separated path to the configuration value
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key_path.split(".")

        # Try to get from config first
        value: Any = self.data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                value = None
                break

        # If not found in config, try defaults
        if value is None:
            value = self.DEFAULTS
            for key in keys:
                if isinstance(value, dict) and key in value:
                    value = value[key]
                else:
                    return default

        return value

    def get_num_classes(self) -> int:
        """Number of non-zero classes per layer."""
        num_classes = self.get("classification.num_classes")
        if not isinstance(num_classes, int) or isinstance(num_classes, bool) or num_classes < 1:
            raise ValueError(f"classification.num_classes must be a positive integer: {num_classes}")
        return num_classes

    def get_label_precision(self) -> int:
        return int(self.get("system.label_precision"))

    def get_zero_style(self) -> Dict[str, Any]:
        """Hollow style for zero-value regions, configured values over defaults."""
        return {**ZERO_STYLE, **(self.get("visualization.zero_style") or {})}

    def list_metrics(self) -> Dict[str, MetricProfile]:
        """All metric profiles: built-ins plus any defined only in config."""
        names = list(BUILTIN_PROFILES) + [
            name for name in (self.get("metrics") or {}) if name not in BUILTIN_PROFILES
        ]
        return {name: self.get_metric_profile(name) for name in names}

    def get_metric_profile(self, name: str) -> MetricProfile:
        """
        Build the profile for a metric, configured values over built-ins.

        Args:
            name: Metric name, e.g. 'farmer_density'

        Returns:
            MetricProfile for the metric
        """
        overrides = (self.get("metrics") or {}).get(name) or {}
        base = BUILTIN_PROFILES.get(name)

        if base is None and not overrides:
            raise ValueError(f"Unknown metric: {name}")

        def pick(key: str, fallback: Any) -> Any:
            return overrides.get(key, fallback)

        property_key = pick("property", base.property_key if base else None)
        ramp = pick("ramp", base.ramp if base else None)
        fallback_breaks = pick("fallback_breaks", base.fallback_breaks if base else None)

        missing = [
            key
            for key, value in [
                ("property", property_key),
                ("ramp", ramp),
                ("fallback_breaks", fallback_breaks),
            ]
            if not value
        ]
        if missing:
            raise ValueError(f"Metric '{name}' is missing settings: {missing}")

        needed = required_ramp_length(self.get_num_classes())
        if len(ramp) < needed:
            raise ValueError(
                f"Metric '{name}' ramp has {len(ramp)} colors, need at least {needed}"
            )

        return MetricProfile(
            name=name,
            title=pick("title", base.title if base else name.replace("_", " ").title()),
            property_key=property_key,
            ramp=tuple(ramp),
            fallback_breaks=tuple(fallback_breaks),
            unit=pick("unit", base.unit if base else ""),
        )

    def print_config_summary(self) -> None:
        """Print a summary of the current configuration."""
        logger.debug("📋 Configuration Summary")
        logger.debug("=" * 50)
        logger.debug(f"Project: {self.get('project_name', 'Unknown')}")
        logger.debug(f"Config file: {self.config_path}")
        logger.debug(f"Classes per layer: {self.get_num_classes()}")
        for name, profile in self.list_metrics().items():
            logger.debug(f"  🎨 {name}: {profile.property_key} ({len(profile.ramp)} colors)")


# Convenience function for easy importing
def load_config(config_file: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration from file.

    Args:
        config_file: Path to configuration file

    Returns:
        Config instance
    """
    return Config(config_file)
