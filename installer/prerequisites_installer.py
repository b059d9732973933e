# installer/prerequisites_installer.py
# -*- coding: utf-8 -*-
"""
Installs the base packages of the stack: Nginx, MariaDB and common tools.
"""

import logging
from typing import Optional

from common.command_utils import get_symbols, log_message
from common.debian.apt_manager import AptManager
from provision import config as static_config
from provision.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def install_dependencies(
    apt: AptManager,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_message(
        f"{symbols.get('package', '📦')} Installing necessary packages: "
        f"{', '.join(static_config.BASE_PACKAGES)}",
        "info",
        logger_to_use,
        app_settings,
    )
    apt.install(list(static_config.BASE_PACKAGES), update_first=True)
    log_message(
        f"{symbols.get('success', '✅')} Necessary packages installed.",
        "success",
        logger_to_use,
        app_settings,
    )
