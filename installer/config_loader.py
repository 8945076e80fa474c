# installer/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the provisioner.

Handles loading settings from Pydantic model defaults, environment variables,
YAML files, and command-line arguments, applying this order of precedence:
1. Pydantic Model Defaults
2. Environment Variables (read by BaseSettings for every section)
3. YAML Configuration File, then per-section files in config_files/
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)

CONFIG_DIR = "config_files"

SECTIONS = [
    "admin_user",
    "php",
    "nginx",
    "mysql",
    "memcached",
    "ioncube",
    "phpmyadmin",
    "ufw",
    "fail2ban",
    "logrotate",
    "certbot",
    "domain",
    "laravel",
]

# argparse dest -> (section or None for top level, field)
CLI_FIELD_MAP: Dict[str, Tuple[Optional[str], str]] = {
    "log_prefix": (None, "log_prefix"),
    "log_file": (None, "log_file"),
    "server_fqdn": (None, "server_fqdn"),
    "credentials_file": (None, "credentials_file"),
    "admin_user": ("admin_user", "name"),
    "php_version": ("php", "version"),
    "certbot_email": ("certbot", "email"),
    "project_domain": ("laravel", "domain"),
    "db_prefix": ("laravel", "db_prefix"),
    "email": ("laravel", "letsencrypt_email"),
    "laravel_php_version": ("laravel", "php_version"),
    "node_major": ("laravel", "node_major"),
}


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively update `source` with values from `overrides`.

    Nested dictionaries are merged key by key. A None override never replaces
    an existing value, so unset YAML keys keep the defaults.
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


def _read_yaml_dict(
    path: Path, logger_to_use: logging.Logger
) -> Dict[str, Any]:
    """Read a YAML mapping from `path`. Missing or non-mapping files yield {}."""
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{path}': {e}. Ignoring it."
        )
        return {}
    except IOError as e:
        logger_to_use.warning(
            f"Could not read config file '{path}': {e}. Ignoring it."
        )
        return {}

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{path}' does not contain a YAML dictionary. Ignoring it."
        )
        return {}
    return yaml_data


def _cli_overrides(cli_args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for cli_key, cli_value in vars(cli_args).items():
        if cli_value is None or cli_key not in CLI_FIELD_MAP:
            continue
        section, field = CLI_FIELD_MAP[cli_key]
        if section is None:
            overrides[field] = cli_value
        else:
            overrides.setdefault(section, {})[field] = cli_value
    return overrides


def load_service_config(
    section: str,
    config_dir: Path,
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Load the per-section YAML file `config_files/<section>.yaml`.

    Returns an empty dictionary when the file does not exist.
    """
    logger_to_use = current_logger if current_logger else module_logger
    section_path = config_dir / f"{section}.yaml"
    section_config = _read_yaml_dict(section_path, logger_to_use)
    if section_config:
        logger_to_use.info(
            f"Loaded configuration for {section} from {section_path}"
        )
    return section_config


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: str = "config.yaml",
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads provisioner settings with the following precedence:
    1. Pydantic model defaults.
    2. Environment variables (VDS_*, VDS_MYSQL_*, VDS_LARAVEL_* ...).
    3. The main YAML file, then config_files/<section>.yaml next to it.
    4. Command-line arguments (highest precedence).

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to the YAML configuration file, relative to
            the working directory unless absolute.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: If the merged configuration fails validation.
    """
    logger_to_use = current_logger if current_logger else module_logger

    # Defaults < environment variables, both handled by BaseSettings here.
    current_values_dict = AppSettings().model_dump(exclude_defaults=False)

    yaml_config_path = Path(config_file_path)
    if not yaml_config_path.is_absolute():
        yaml_config_path = Path.cwd() / yaml_config_path

    yaml_data = _read_yaml_dict(yaml_config_path, logger_to_use)
    if yaml_data:
        current_values_dict = _deep_update(current_values_dict, yaml_data)
        logger_to_use.info(
            f"Loaded main configuration from {yaml_config_path}"
        )
    else:
        logger_to_use.debug(
            f"No configuration read from '{yaml_config_path}'. Using defaults and environment variables."
        )

    config_dir = yaml_config_path.parent / CONFIG_DIR
    for section in SECTIONS:
        section_config = load_service_config(
            section, config_dir, logger_to_use
        )
        if section_config:
            current_values_dict = _deep_update(
                current_values_dict, {section: section_config}
            )

    if cli_args:
        current_values_dict = _deep_update(
            current_values_dict, _cli_overrides(cli_args)
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    logger_to_use.debug("Successfully loaded and validated provisioner settings")
    return final_settings
