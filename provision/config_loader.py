# provision/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the application.

Handles loading settings from Pydantic model defaults, environment variables,
the YAML configuration file and command-line arguments, applying this order
of precedence (later wins):
1. Pydantic Model Defaults
2. Environment Variables (WPS_ prefix, via Pydantic's BaseSettings)
3. YAML Configuration File
4. Command-Line Arguments

The YAML file may also carry a ``site:`` section with site parameter presets
(db_name, domain, ...). Those are not part of AppSettings; they are handed
to the parameter resolver by collect_site_presets().
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from provision.config_models import AppSettings
from provision.exceptions import InputError

module_logger = logging.getLogger(__name__)

SITE_SECTION = "site"

# CLI options that preset site parameters, keyed by argparse dest.
SITE_PARAMETER_OPTIONS = (
    "db_name",
    "db_user",
    "db_password",
    "domain",
    "email",
    "php_version",
    "web_root",
)


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates a dictionary `source` with values from another dictionary
    `overrides`. Nested dictionaries are merged; None values in `overrides` never
    replace an existing value.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def read_yaml_config(
    config_file_path: Optional[str],
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Read the YAML configuration file.

    A missing file is not an error; an unreadable or malformed one is.

    Raises:
        InputError: If the file cannot be read or is not a YAML mapping.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if not config_file_path:
        return {}

    yaml_config_path = Path(config_file_path)
    if not yaml_config_path.is_file():
        logger_to_use.info(
            f"Configuration file '{yaml_config_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}

    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InputError(
            f"Could not parse YAML config file '{yaml_config_path}': {e}"
        ) from e
    except OSError as e:
        raise InputError(
            f"Could not read config file '{yaml_config_path}': {e}"
        ) from e

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        raise InputError(
            f"Config file '{yaml_config_path}' does not contain a YAML mapping."
        )
    logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
    return yaml_data


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    yaml_data: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Build AppSettings from defaults, environment, YAML data and CLI flags.

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        yaml_data: Contents of the YAML configuration file.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        InputError: If the merged configuration does not validate.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        settings_after_env_and_defaults = AppSettings()
    except ValidationError as e:
        raise InputError(f"Configuration error in environment: {e}") from e
    current_values_dict = settings_after_env_and_defaults.model_dump(
        exclude_defaults=False
    )

    if yaml_data:
        yaml_settings = {
            key: value for key, value in yaml_data.items() if key != SITE_SECTION
        }
        current_values_dict = _deep_update(current_values_dict, yaml_settings)

    if cli_args:
        mapped_cli_values: Dict[str, Any] = {}
        if getattr(cli_args, "log_file", None):
            mapped_cli_values.setdefault("paths", {})["log_file"] = cli_args.log_file
        if getattr(cli_args, "log_prefix", None):
            mapped_cli_values["log_prefix"] = cli_args.log_prefix
        if getattr(cli_args, "no_tls", False):
            mapped_cli_values.setdefault("certbot", {})["enabled"] = False
        if getattr(cli_args, "no_firewall", False):
            mapped_cli_values.setdefault("firewall", {})["enabled"] = False
        current_values_dict = _deep_update(current_values_dict, mapped_cli_values)

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise InputError(f"Configuration error: {e}") from e

    logger_to_use.debug("Successfully loaded and validated application settings")
    return final_settings


def collect_site_presets(
    cli_args: Optional[argparse.Namespace] = None,
    yaml_data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Optional[str]]:
    """
    Merge site parameter presets: the YAML ``site:`` section, overridden by
    command-line options.

    Raises:
        InputError: If the ``site:`` section is not a mapping.
    """
    presets: Dict[str, Optional[str]] = {}

    site_section = (yaml_data or {}).get(SITE_SECTION) or {}
    if not isinstance(site_section, dict):
        raise InputError(f"The '{SITE_SECTION}' section must be a mapping.")
    for key, value in site_section.items():
        presets[str(key)] = None if value is None else str(value)

    if cli_args:
        for option in SITE_PARAMETER_OPTIONS:
            value = getattr(cli_args, option, None)
            if value is not None:
                presets[option] = str(value)
    return presets
