#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("bpindex")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']

# Names reserved for the project itself and for examples
RESTRICTED_NAMESPACES = [
    "example",
    "examples",
    "sample",
    "samples",
    "official",
    "buildpack",
    "buildpacks",
    "buildpacksio",
    "buildpackio",
    "buildpacks-io",
    "buildpack-io",
    "buildpacks.io",
    "buildpack.io",
    "pack",
    "cnb",
    "cnbs",
    "cncf",
    "cncf-cnb",
    "cncf-cnbs",
]


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. BPINDEX_CONFIG environment variable
    2. ~/.bpindex/ directory
    """
    # Check for environment variable override
    if 'BPINDEX_CONFIG' in os.environ:
        path = Path(os.environ['BPINDEX_CONFIG'])
        if path.exists():
            return path

    bpindex_dir = Path.home() / '.bpindex'
    for filename in CONFIG_FILENAMES:
        path = bpindex_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path
    return bpindex_dir / 'config.json'


def read_config_file(config_path):
    """Read a TOML, YAML or JSON config file into a dict."""
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                return tomllib.load(f)
        if suffix in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        # Default to JSON format
        with open(config_path, 'r') as f:
            return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e


def load_config():
    """Load configuration from file, defaults and environment."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        file_config = read_config_file(config_path)
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded config from {config_path}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def get_default_config():
    """Get default configuration."""
    return {
        "registry": {
            "owner": "buildpacks",
            "repo": "registry-index",
            "version_tag": "v1",
            "local_path": "",
            "restricted_namespaces": list(RESTRICTED_NAMESPACES)
        },
        "github": {
            "token": "",
            "api_url": "https://api.github.com",
            "timeout_seconds": 30,
            "committer_name": "",
            "committer_email": "cncf-buildpacks-maintainers@lists.cncf.io",
            "rate_limit": {
                "max_retries": 3,
                "max_delay_seconds": 60
            }
        },
        "labels": {
            "accepted": "succeeded",
            "rejected": "failure"
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def configure_logging(config, verbose=False):
    """Apply the logging section of the config to the bpindex logger."""
    settings = config.get("logging", {})
    level_name = "DEBUG" if verbose else str(settings.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {level_name}")

    logger.setLevel(level)
    fmt = settings.get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: BPINDEX_SECTION_SUBSECTION_KEY
    For example: BPINDEX_REGISTRY_VERSION_TAG=v2
    """
    env_prefix = "BPINDEX_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
