# installer/certbot_installer.py
# -*- coding: utf-8 -*-
"""
This module handles the installation of Certbot and its Nginx plugin.
"""

import logging
from typing import Optional

from common.debian.apt_manager import AptManager
from provision import config as static_config
from provision.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def install_certbot(
    apt: AptManager,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Installs Certbot and the Nginx plugin using the system's package manager.

    Args:
        apt (AptManager): Package manager bound to the run's executor.
        app_settings (AppSettings): The application settings object.
        current_logger (Optional[logging.Logger]): A logger instance for logging messages.
    """
    logger_to_use = current_logger or module_logger
    symbols = app_settings.symbols

    logger_to_use.info(f"{symbols.get('gear', '⚙️')} Installing Certbot and Nginx plugin...")
    apt.install(list(static_config.CERTBOT_PACKAGES))
    logger_to_use.info(
        f"{symbols.get('success', '✅')} Certbot and plugins installed successfully."
    )
