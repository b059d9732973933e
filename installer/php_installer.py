# installer/php_installer.py
# -*- coding: utf-8 -*-
"""
Installs PHP-FPM and the extensions WordPress needs.

Debian hosts get PHP from Sury's repository (deb822 source with a dedicated
keyring); Ubuntu hosts use the ondrej PPA.
"""

import logging
from pathlib import Path
from typing import List, Optional

from common.command_utils import get_symbols, log_message
from common.debian.apt_manager import AptManager
from provision import config as static_config
from provision.config_models import AppSettings
from provision.os_variants import OsVariant, PhpSource

module_logger = logging.getLogger(__name__)


def php_packages(php_version: str) -> List[str]:
    return [f"php{php_version}-{module}" for module in static_config.PHP_MODULES]


def php_fpm_socket_path(app_settings: AppSettings, php_version: str) -> Path:
    return app_settings.paths.php_fpm_socket_dir / f"php{php_version}-fpm.sock"


def add_php_repository(
    apt: AptManager,
    variant: OsVariant,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger

    if variant.php_source is PhpSource.SURY:
        log_message(
            f"Adding Sury PHP repository for {variant.label}...",
            "info",
            logger_to_use,
            app_settings,
        )
        apt.install(list(static_config.SURY_PREREQ_PACKAGES))
        apt.add_gpg_key_from_url(
            static_config.SURY_KEY_URL, static_config.SURY_KEYRING_PATH
        )
        apt.add_repository(
            static_config.SURY_REPO_NAME,
            {
                "Types": "deb",
                "URIs": static_config.SURY_REPO_URI,
                "Suites": variant.codename,
                "Components": "main",
                "Signed-By": static_config.SURY_KEYRING_PATH,
            },
        )
    else:
        log_message(
            f"Adding {static_config.ONDREJ_PPA} for {variant.label}...",
            "info",
            logger_to_use,
            app_settings,
        )
        apt.install(list(static_config.PPA_PREREQ_PACKAGES))
        apt.add_ppa(static_config.ONDREJ_PPA)


def install_php(
    apt: AptManager,
    variant: OsVariant,
    php_version: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_message(
        f"{symbols.get('package', '📦')} Installing PHP {php_version}...",
        "info",
        logger_to_use,
        app_settings,
    )
    add_php_repository(apt, variant, app_settings, logger_to_use)
    apt.install(php_packages(php_version))
    log_message(
        f"{symbols.get('success', '✅')} PHP {php_version} installed successfully.",
        "success",
        logger_to_use,
        app_settings,
    )
