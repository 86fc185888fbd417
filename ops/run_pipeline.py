#!/usr/bin/env python3
"""
Density Map Classification Pipeline with Click CLI

Classifies regional survey data (farmer counts, crop area) into natural-breaks
classes and writes choropleth-ready GeoJSON, with the ability to override
configuration values from the command line.

Usage:
    python -m ops.run_pipeline [OPTIONS] COMMAND [ARGS]

    # Style a state-level layer by farmer density:
    python -m ops.run_pipeline classify data/states.geojson --metric farmer_density

    # Inspect the breaks for LGA crop area without writing anything:
    python -m ops.run_pipeline breaks data/lgas.json --metric commodity_density

    # Override config values:
    python -m ops.run_pipeline --config classification.num_classes=4 classify data/states.geojson

    # Verbose logging:
    python -m ops.run_pipeline --verbose classify data/states.geojson
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import yaml
from loguru import logger

from analysis.classification import format_break_value, required_ramp_length
from analysis.map_density import classify_layer, export_styled_geojson
from analysis.styles import build_legend
from ops.config_loader import Config
from processing.data_utils import load_feature_collection

SCRIPT_DIR = Path(__file__).parent


class ConfigContext:
    """Click context object for config management."""

    def __init__(self, base_config_path: Optional[Path] = None):
        self.overrides: Dict[str, Any] = {}
        self.base_config_path = base_config_path or SCRIPT_DIR / "config.yaml"
        self.temp_config_path: Optional[Path] = None

    def add_override(self, key: str, value: Any):
        """Add config override using dot notation."""
        keys = key.split(".")
        current = self.overrides
        for k in keys[:-1]:
            if k not in current:
                current[k] = {}
            current = current[k]
        current[keys[-1]] = value
        logger.debug(f"Added override: {key} = {value}")

    def get_config(self) -> Config:
        """Get config with overrides applied."""
        if not self.overrides:
            return Config(self.base_config_path)

        with open(self.base_config_path) as f:
            config_data = yaml.safe_load(f) or {}

        self._apply_nested_override(config_data, self.overrides)

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(config_data, f)
            self.temp_config_path = Path(f.name)

        return Config(self.temp_config_path)

    def cleanup(self):
        """Clean up temporary config file."""
        if self.temp_config_path and self.temp_config_path.exists():
            self.temp_config_path.unlink()
            logger.debug(f"Cleaned up temporary config: {self.temp_config_path}")

    def _apply_nested_override(self, base_dict: Dict, override_dict: Dict):
        """Apply nested overrides."""
        for key, value in override_dict.items():
            if isinstance(value, dict) and key in base_dict and isinstance(base_dict[key], dict):
                self._apply_nested_override(base_dict[key], value)
            else:
                base_dict[key] = value


# Custom Click types for better validation
class ConfigOverride(click.ParamType):
    """Custom parameter type for config overrides."""

    name = "config_override"

    def convert(self, value, param, ctx) -> Tuple[str, Any]:
        if "=" not in value:
            self.fail(f"Invalid format: {value}. Use KEY=VALUE", param, ctx)

        key, val = value.split("=", 1)

        # Auto-parse value type
        if val.lower() in ("true", "false"):
            parsed_val: Any = val.lower() == "true"
        elif val.isdigit():
            parsed_val = int(val)
        elif "." in val and val.replace(".", "", 1).isdigit():
            parsed_val = float(val)
        else:
            parsed_val = val

        return key, parsed_val


@click.group()
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Base config.yaml (defaults to ops/config.yaml)",
)
@click.option(
    "--config",
    "config_overrides",
    multiple=True,
    type=ConfigOverride(),
    help="Set config values using dot notation (e.g., classification.num_classes=4)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable DEBUG level logging")
@click.option(
    "--trace", is_flag=True, help="Enable TRACE level logging for deep debugging (maximum detail)"
)
@click.option("--log-file", type=str, help="Also log to specified file")
@click.pass_context
def cli(ctx, **kwargs):
    """
    Natural-breaks classification for farmer and commodity density maps.

    \b
    Examples:
      python -m ops.run_pipeline metrics                                   # List metrics
      python -m ops.run_pipeline breaks states.geojson -m farmer_density   # Show breaks
      python -m ops.run_pipeline classify lgas.json -m commodity_density   # Write styled GeoJSON
    """
    setup_logging(verbose=kwargs.get("verbose", False), enable_trace=kwargs.get("trace", False))

    if kwargs.get("log_file"):
        log_file = kwargs["log_file"]
        log_level = (
            "TRACE" if kwargs.get("trace") else ("DEBUG" if kwargs.get("verbose") else "INFO")
        )
        logger.add(
            log_file,
            level=log_level,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )
        logger.info(f"📄 Also logging to file: {log_file}")

    config_ctx = ConfigContext(kwargs.get("config_file"))
    ctx.call_on_close(config_ctx.cleanup)

    if not config_ctx.base_config_path.exists():
        logger.critical(f"Base configuration file not found: {config_ctx.base_config_path}")
        ctx.exit(1)

    for key, value in kwargs["config_overrides"]:
        config_ctx.add_override(key, value)

    try:
        config = config_ctx.get_config()
        config.print_config_summary()
    except Exception as e:
        handle_critical_error(e, "Configuration error")
        logger.info("💡 Make sure config.yaml exists and is valid")
        ctx.exit(1)

    ctx.obj = config


def _resolve_profile(ctx, config: Config, metric: str):
    try:
        return config.get_metric_profile(metric)
    except ValueError as e:
        logger.critical(f"❌ {e}")
        logger.info(f"💡 Available metrics: {', '.join(config.list_metrics())}")
        ctx.exit(1)


def _load_and_classify(ctx, input_path: Path, metric: str, classes: Optional[int]):
    config: Config = ctx.obj
    profile = _resolve_profile(ctx, config, metric)

    if classes is not None and len(profile.ramp) < required_ramp_length(classes):
        logger.critical(
            f"❌ {metric} ramp has {len(profile.ramp)} colors, too few for {classes} classes"
        )
        ctx.exit(1)

    try:
        gdf = load_feature_collection(input_path)
    except Exception as e:
        handle_critical_error(e, f"Could not load {input_path}")
        ctx.exit(1)

    classification = classify_layer(gdf, profile, config, num_classes=classes)
    return gdf, classification


@cli.command()
@click.pass_context
def metrics(ctx):
    """List the configured density metrics."""
    config: Config = ctx.obj
    for name, profile in config.list_metrics().items():
        click.echo(f"{name}\t{profile.property_key}\t{profile.title}")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-m", "--metric", default="farmer_density", show_default=True)
@click.option("-k", "--classes", type=click.IntRange(min=1), help="Override class count")
@click.pass_context
def breaks(ctx, input_path, metric, classes):
    """Print the natural breaks and legend labels for a layer."""
    config: Config = ctx.obj
    _, classification = _load_and_classify(ctx, input_path, metric, classes)

    precision = config.get_label_precision()
    shown = ", ".join(format_break_value(b, precision) for b in classification.breaks)
    click.echo(f"breaks: {shown}")
    for label in classification.labels:
        click.echo(f"  {label}")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-m", "--metric", default="farmer_density", show_default=True)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output GeoJSON (defaults to <input>_<metric>.geojson)",
)
@click.option("-k", "--classes", type=click.IntRange(min=1), help="Override class count")
@click.pass_context
def classify(ctx, input_path, metric, output, classes):
    """Classify a layer and write styled GeoJSON with its legend."""
    config: Config = ctx.obj
    gdf, classification = _load_and_classify(ctx, input_path, metric, classes)

    output_path = output or input_path.with_name(f"{input_path.stem}_{metric}.geojson")
    if not export_styled_geojson(gdf, classification, output_path, config):
        ctx.exit(1)

    legend = build_legend(classification, zero_label=config.get("classification.zero_label"))
    click.echo(legend.title)
    for row in legend.rows:
        swatch = "hollow" if row.hollow else row.color
        click.echo(f"  {swatch:<12} {row.label}")
    click.echo(f"Wrote {output_path}")


def setup_logging(verbose: bool = False, enable_trace: bool = False) -> None:
    """
    Configure loguru logging with appropriate levels.

    Args:
        verbose: If True, set log level to DEBUG
        enable_trace: If True, enable TRACE level logging for deep debugging
    """
    # Remove default logger
    logger.remove()

    if enable_trace:
        log_level = "TRACE"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    elif verbose:
        log_level = "DEBUG"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    else:
        log_level = "INFO"
        log_format = (
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=log_format,
        level=log_level,
        colorize=True,
        backtrace=enable_trace,
        diagnose=enable_trace,
    )

    os.environ["LOGURU_LEVEL"] = log_level

    if verbose:
        logger.debug("🔧 Verbose logging enabled (DEBUG level)")
    if enable_trace:
        logger.trace("🔍 Trace logging enabled - maximum detail mode")


def handle_critical_error(error: Exception, context: str = "") -> None:
    """
    Handle critical errors with optional trace logging.

    Args:
        error: The exception that occurred
        context: Additional context about where the error occurred
    """
    enable_trace = os.environ.get("LOGURU_LEVEL", "INFO") == "TRACE"

    if enable_trace:
        logger.trace(f"Error context: {context}")
        logger.trace(f"Error type: {type(error).__name__}")
        import traceback

        logger.trace("Full traceback:")
        logger.trace(traceback.format_exc())

    logger.critical(f"💥 {context}")
    logger.critical(f"Exception: {type(error).__name__}: {error}")

    if not enable_trace:
        logger.info("💡 For detailed debugging, run with --trace flag")


if __name__ == "__main__":
    cli()
