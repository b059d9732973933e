# provision/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles the informational Command Line Interface (CLI) modes:
``--view-config`` and ``--list-steps``.
"""

import datetime
import logging
import os
from typing import Dict, Mapping, Optional, Sequence

from common.command_utils import get_symbols, log_message
from provision import config as static_config
from provision.config_models import AppSettings
from provision.parameter_resolver import PARAMETER_DEFINITIONS
from provision.pipeline import Pipeline, PreconditionPolicy

module_logger = logging.getLogger(__name__)

MASKED = "********"


def _site_parameter_lines(
    presets: Mapping[str, Optional[str]], environ: Mapping[str, str]
) -> str:
    lines = ""
    for definition in PARAMETER_DEFINITIONS:
        if definition.secret:
            display = (
                f"[FROM {definition.env_var}]"
                if environ.get(definition.env_var)
                else "[PROMPTED AT RUN TIME]"
            )
            lines += f"    {definition.name + ':':<28} {display}\n"
            continue

        if presets.get(definition.name):
            value, source = presets[definition.name], "CLI/YAML"
        elif environ.get(definition.env_var):
            value, source = environ[definition.env_var], definition.env_var
        else:
            value, source = definition.default, "default"

        if definition.name == "db_password":
            value = (
                f"{MASKED} (DEFAULT - Insecure! Override via {definition.env_var}, YAML, or CLI)"
                if value == definition.default
                else MASKED
            )
        lines += f"    {definition.name + ':':<28} {value}  [{source}]\n"
    return lines


def view_configuration(
    app_config: AppSettings,
    presets: Optional[Mapping[str, Optional[str]]] = None,
    environ: Optional[Mapping[str, str]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Displays the current effective configuration: runtime settings and the
    site parameters as they would be resolved without prompting. Passwords
    are always masked.

    Parameters:
        app_config (AppSettings): Application's configuration object.
        presets: Site parameter presets from CLI options and the YAML file.
        environ: Environment to inspect. Defaults to os.environ.
        current_logger (Optional[logging.Logger]): A logger instance to use for
            logging output. If not provided, the module's default logger is used.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_config.symbols
    environ = os.environ if environ is None else environ
    paths = app_config.paths

    config_text = f"{symbols.get('info', 'ℹ️')} Current effective configuration values:\n\n"
    config_text += "  Site Parameters (CLI > YAML site: > ENV > Defaults):\n"
    config_text += _site_parameter_lines(presets or {}, environ)
    config_text += "\n  Paths (paths.*):\n"
    config_text += f"    Sites available:             {paths.sites_available}\n"
    config_text += f"    Sites enabled:               {paths.sites_enabled}\n"
    config_text += f"    PHP-FPM socket dir:          {paths.php_fpm_socket_dir}\n"
    config_text += f"    os-release file:             {paths.os_release_file}\n"
    config_text += f"    Audit log:                   {paths.log_file}\n"
    config_text += f"    Download dir:                {paths.download_dir}\n\n"
    config_text += "  WordPress (wordpress.*):\n"
    config_text += f"    Download URL:                {app_config.wordpress.download_url}\n"
    config_text += f"    Verify checksum:             {app_config.wordpress.verify_checksum}\n"
    config_text += f"    Salt API URL:                {app_config.wordpress.salt_api_url}\n"
    config_text += f"    Web user/group:              {app_config.wordpress.web_user}:{app_config.wordpress.web_group}\n\n"
    config_text += f"  TLS via Certbot:               {app_config.certbot.enabled}\n"
    config_text += f"  Firewall (UFW):                {app_config.firewall.enabled} {app_config.firewall.rules}\n"
    config_text += f"  Script Version (static):       {static_config.SCRIPT_VERSION}\n"
    config_text += f"  Timestamp (current view):      {datetime.datetime.now().strftime('%Y-%m-%d-%H%M%S')}\n\n"
    config_text += "Settings are loaded with precedence: CLI > YAML File > Environment Variables (WPS_*) > Model Defaults."

    log_message(
        "Displaying current configuration:", "info", logger_to_use, app_config
    )
    log_message(f"\n{config_text}\n", "info", logger_to_use, app_config)


def format_step_list(pipelines: Sequence[Pipeline]) -> str:
    lines = []
    for pipeline in pipelines:
        lines.append(f"{pipeline.name}:")
        for index, step in enumerate(pipeline.steps, start=1):
            optional = (
                " (optional)"
                if step.on_precondition_failure is PreconditionPolicy.SKIP
                else ""
            )
            lines.append(f"  {index:2d}. {step.name}{optional} - {step.description}")
    return "\n".join(lines)


def list_steps(
    pipelines: Sequence[Pipeline],
    app_settings: Optional[AppSettings] = None,
) -> Dict[str, list]:
    """Print the ordered step list and return it keyed by pipeline name."""
    symbols = get_symbols(app_settings)
    print(f"{symbols.get('info', 'ℹ️')} Steps, in execution order:")
    print(format_step_list(pipelines))
    return {pipeline.name: pipeline.step_names() for pipeline in pipelines}
