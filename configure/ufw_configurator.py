# configure/ufw_configurator.py
# -*- coding: utf-8 -*-
"""
Handles configuration of UFW (Uncomplicated Firewall) rules and activation.

The firewall step is optional: it is skipped when ufw is not installed or
the firewall is disabled in settings.
"""
import logging
from typing import Optional

from common.command_utils import CommandExecutor, get_symbols, log_message
from provision.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def firewall_available(
    executor: CommandExecutor,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    logger_to_use = current_logger if current_logger else module_logger
    if not app_settings.firewall.enabled:
        log_message(
            "Firewall configuration is disabled in settings.",
            "info",
            logger_to_use,
            app_settings,
        )
        return False
    if not executor.exists("ufw"):
        log_message(
            "UFW not found. Skipping firewall configuration.",
            "info",
            logger_to_use,
            app_settings,
        )
        return False
    return True


def configure_firewall(
    executor: CommandExecutor,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Allow the configured application profiles and enable UFW."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_message(
        f"{symbols.get('step', '➡️')} Configuring UFW firewall...",
        "info",
        logger_to_use,
        app_settings,
    )
    for rule in app_settings.firewall.rules:
        log_message(
            f"{symbols.get('info', 'ℹ️')} Allowing '{rule}' via UFW...",
            "info",
            logger_to_use,
            app_settings,
        )
        executor.run("ufw", ["allow", rule])

    executor.run("ufw", ["--force", "enable"])
    log_message(
        f"{symbols.get('success', '✅')} UFW firewall configured.",
        "success",
        logger_to_use,
        app_settings,
    )
