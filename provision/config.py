# provision/config.py
# -*- coding: utf-8 -*-
"""
Centralized static constants for the WordPress provisioning pipeline.

This module defines truly static values: package lists for apt installation,
exit codes, audit log banners and fixed project paths.

Runtime configuration (paths, URLs, feature toggles) lives in
'provision/config_models.py' and is loaded by 'provision/config_loader.py'.
Operator-facing site parameters are resolved by
'provision/parameter_resolver.py'.
"""

from pathlib import Path

SCRIPT_VERSION: str = "1.2.0"

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

# --- Exit codes ---
EXIT_SUCCESS: int = 0
EXIT_UNSUPPORTED_OS: int = 2
EXIT_INSUFFICIENT_PRIVILEGE: int = 3
EXIT_STEP_FAILURE: int = 4
EXIT_CONFIGURATION_ERROR: int = 5
EXIT_INTERRUPTED: int = 130

# --- Audit log banners ---
START_BANNER: str = (
    "==================== Starting WordPress Installation ===================="
)
SUCCESS_BANNER: str = (
    "==================== WordPress Installation Completed Successfully "
    "===================="
)
FAILURE_BANNER_TEMPLATE: str = (
    "==================== WordPress Installation Failed (step: {step}) "
    "===================="
)

# --- Package lists (for apt installation) ---
BASE_PACKAGES: list[str] = [
    "nginx",
    "mariadb-server",
    "curl",
    "wget",
    "unzip",
    "git",
]

# Needed before a third-party PHP repository can be added.
SURY_PREREQ_PACKAGES: list[str] = [
    "apt-transport-https",
    "lsb-release",
    "ca-certificates",
    "curl",
]
PPA_PREREQ_PACKAGES: list[str] = [
    "software-properties-common",
    "ca-certificates",
]

# Installed as php<version>-<module>.
PHP_MODULES: list[str] = [
    "fpm",
    "mysql",
    "cli",
    "curl",
    "gd",
    "mbstring",
    "xml",
    "xmlrpc",
    "zip",
]

CERTBOT_PACKAGES: list[str] = [
    "certbot",
    "python3-certbot-nginx",
]

# --- PHP repositories ---
SURY_KEY_URL: str = "https://packages.sury.org/php/apt.gpg"
SURY_KEYRING_PATH: str = "/usr/share/keyrings/deb.sury.org-php.gpg"
SURY_REPO_URI: str = "https://packages.sury.org/php/"
SURY_REPO_NAME: str = "php-sury"
ONDREJ_PPA: str = "ppa:ondrej/php"

# --- WordPress ---
# Names of the key/salt constants that wp-config-sample.php ships with
# placeholder values for.
WP_SECRET_KEY_NAMES: list[str] = [
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
]
WP_CONFIG_SAMPLE_NAME: str = "wp-config-sample.php"
WP_CONFIG_NAME: str = "wp-config.php"
# Presence of this file in the web root means WordPress is already deployed.
WP_INSTALLED_MARKER: str = "wp-settings.php"
