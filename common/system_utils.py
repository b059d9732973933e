# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions.

This module includes helpers for privilege checks, reading os-release and
driving systemd units through a CommandExecutor.
"""

import logging
import os
import shlex
from pathlib import Path
from typing import Dict, Optional

from common.command_utils import CommandExecutor, get_symbols, log_message
from provision.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def is_running_as_root() -> bool:
    return os.geteuid() == 0


def read_os_release(os_release_path: Path) -> Dict[str, str]:
    """
    Parse an os-release file into a dictionary.

    Values are unquoted with shell rules. Blank lines, comments and lines
    without ``=`` are ignored.

    Raises:
        OSError: If the file cannot be read.
    """
    fields: Dict[str, str] = {}
    content = Path(os_release_path).read_text(encoding="utf-8")
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw_value = line.partition("=")
        try:
            parts = shlex.split(raw_value)
        except ValueError:
            parts = [raw_value.strip("\"'")]
        fields[key.strip()] = parts[0] if parts else ""
    return fields


def systemd_reload(
    executor: CommandExecutor,
    service_name: str,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    executor.run("systemctl", ["reload", service_name])
    log_message(
        f"{symbols.get('success', '✅')} Reloaded {service_name}.",
        "info",
        logger_to_use,
        app_settings,
    )


def systemd_enable_and_start(
    executor: CommandExecutor,
    unit_name: str,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    executor.run("systemctl", ["enable", unit_name])
    executor.run("systemctl", ["start", unit_name])
    log_message(
        f"{symbols.get('success', '✅')} Enabled and started {unit_name}.",
        "info",
        logger_to_use,
        app_settings,
    )


def systemd_unit_active(
    executor: CommandExecutor, unit_name: str
) -> bool:
    """True if ``systemctl is-active`` reports ``unit_name`` as active."""
    result = executor.run("systemctl", ["is-active", unit_name], check=False)
    return result.exit_code == 0 and result.output.strip() == "active"
