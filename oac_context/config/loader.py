"""Configuration loading for the context installer.

This module handles loading installer configuration from an optional YAML
file and environment variables.

Contract:
- Inputs: Config file path, environment variables, explicit overrides
- Outputs: InstallerSettings objects
- Side Effects: None (a missing config file is not created)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .settings import InstallerSettings

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "oac-context.yaml"

DEFAULT_CONFIG = """# oac-context configuration
# Environment variables (OAC_*) take precedence over values in this file.

# Content repository: owner/name on GitHub, a clone URL, or a local path
repository: "darrenhinde/OpenAgentsControl"
branch: "main"

# Profile used when neither --profile nor --component is given
# Options: essential, standard, extended, specialized, all
default_profile: "essential"

# Read the registry from a local file instead of the network
# registry_file: "./registry.json"

# Global scope root (context lands in <global_root>/context)
# global_root: "~/.claude"
"""


def get_config_path(project_root: Path | None = None) -> Path:
    """Get path to the project config file.

    Args:
        project_root: Project directory (default: current directory)

    Returns:
        Path to oac-context.yaml in the project root

    Example:
        >>> assert get_config_path(Path("/tmp")).name == "oac-context.yaml"
    """
    return (project_root or Path.cwd()) / CONFIG_FILENAME


def create_default_config(project_root: Path | None = None) -> Path:
    """Create a commented config file if it doesn't exist.

    Args:
        project_root: Project directory (default: current directory)

    Returns:
        Path to the config file
    """
    config_path = get_config_path(project_root)

    if config_path.exists():
        logger.debug(f"Config file already exists: {config_path}")
        return config_path

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Created default config: {config_path}")
    return config_path


def read_yaml_config(config_path: Path) -> dict[str, Any]:
    """Read YAML settings, returning an empty mapping when unusable.

    Args:
        config_path: YAML file to read

    Returns:
        Mapping of setting name to value
    """
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}")
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.info("Using default settings and environment variables")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config at {config_path}: expected a mapping, got {type(data).__name__}")
        return {}

    logger.debug(f"Loaded config from {config_path}")
    return data


def load_config(config_path: Path | None = None, **overrides: Any) -> InstallerSettings:
    """Load installer configuration from YAML, environment and overrides.

    Precedence: defaults < YAML < environment (OAC_*) < explicit overrides.
    Overrides whose value is None are ignored.

    Args:
        config_path: Optional config file (default: oac-context.yaml in cwd)
        **overrides: Explicit values, typically from CLI options

    Returns:
        Validated installer settings

    Example:
        >>> settings = load_config(branch="dev")
        >>> assert settings.branch == "dev"
    """
    if config_path is None:
        config_path = get_config_path()

    yaml_settings = read_yaml_config(config_path)

    # Only pass YAML values that don't have corresponding env vars
    filtered: dict[str, Any] = {}
    for key, value in yaml_settings.items():
        env_key = f"OAC_{key.upper()}"
        if env_key not in os.environ:
            filtered[key] = value

    filtered.update({key: value for key, value in overrides.items() if value is not None})

    settings = InstallerSettings(**filtered)

    logger.debug(
        f"Installer configuration loaded: repository={settings.repository}, branch={settings.branch}, "
        f"project_root={settings.project_root}"
    )

    return settings
