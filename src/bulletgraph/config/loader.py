"""Configuration loader with YAML and environment variable support.

Reads ~/.config/bulletgraph/config.yaml when it exists and applies
BULLETGRAPH_* environment variable overrides.

Environment variables:
- BULLETGRAPH_INDENT_SIZE: Override parser.indent_size
- BULLETGRAPH_WRAP_WIDTH: Override render.wrap_width
- BULLETGRAPH_SPLINES: Override render.splines
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from bulletgraph.models.config import Config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    A missing default file is not an error: every setting has a default.
    A path given explicitly must exist.

    Args:
        config_path: Path to config file. If None, uses ~/.config/bulletgraph/config.yaml

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If config file is invalid
    """
    if config_path is None:
        config_path = Path.home() / ".config" / "bulletgraph" / "config.yaml"
    elif not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_path.exists():
        with config_path.open() as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {config_path} must be a mapping")
    else:
        data = {}

    data = _apply_env_overrides(data)

    return Config(**data)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data.

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    if "parser" not in data:
        data["parser"] = {}
    if "render" not in data:
        data["render"] = {}

    if env_indent := os.getenv("BULLETGRAPH_INDENT_SIZE"):
        try:
            data["parser"]["indent_size"] = int(env_indent)
        except ValueError:
            pass  # Invalid value, ignore

    if env_wrap := os.getenv("BULLETGRAPH_WRAP_WIDTH"):
        try:
            data["render"]["wrap_width"] = int(env_wrap)
        except ValueError:
            pass  # Invalid value, ignore

    if env_splines := os.getenv("BULLETGRAPH_SPLINES"):
        data["render"]["splines"] = env_splines

    return data
