# provision/pipeline_definitions.py
# -*- coding: utf-8 -*-
"""
The two pipelines of a provisioning run, in their fixed order.

``preflight`` verifies the host (root privileges, supported OS) before any
parameter is resolved or anything is changed. ``provision`` installs and
configures the stack using the resolved, immutable SiteParameters.
"""

import logging
from typing import Any, Dict, Optional

from common.command_utils import CommandExecutor, get_symbols, log_message
from common.debian.apt_manager import AptManager
from common.system_utils import is_running_as_root
from configure.certbot_configurator import (
    certbot_domain_precondition,
    run_certbot_nginx,
    setup_ssl_renewal,
)
from configure.mariadb_configurator import (
    MariaDBClient,
    secure_mariadb,
    setup_database,
)
from configure.nginx_configurator import configure_nginx
from configure.ufw_configurator import configure_firewall, firewall_available
from configure.wp_config_configurator import configure_wp_config, fetch_salts
from installer.certbot_installer import install_certbot
from installer.php_installer import install_php
from installer.prerequisites_installer import install_dependencies
from installer.wordpress_installer import (
    finalize_installation,
    install_wordpress,
    set_permissions,
)
from provision.config import EXIT_INSUFFICIENT_PRIVILEGE, EXIT_UNSUPPORTED_OS
from provision.config_models import AppSettings, SiteParameters
from provision.os_variants import (
    SUPPORTED_VARIANTS,
    OsVariant,
    describe_host,
    detect_os_variant,
)
from provision.pipeline import Pipeline, PreconditionPolicy, Step

module_logger = logging.getLogger(__name__)

PREFLIGHT_PIPELINE_NAME = "preflight"
PROVISION_PIPELINE_NAME = "provision"


def build_preflight_pipeline(
    app_settings: AppSettings,
    host_facts: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> Pipeline:
    """
    Build the preflight pipeline.

    ``host_facts`` is filled in as the checks run; after a successful run it
    holds the detected OsVariant under ``"os_variant"``.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    def has_root_privileges() -> bool:
        if is_running_as_root():
            return True
        log_message(
            f"{symbols.get('error', '❌')} This script must be run as root. "
            "Use sudo or switch to the root user.",
            "error",
            logger_to_use,
            app_settings,
        )
        return False

    def report_privileges() -> None:
        log_message("Running with root privileges.", "info", logger_to_use, app_settings)

    def os_supported() -> bool:
        variant = detect_os_variant(app_settings.paths.os_release_file)
        if variant is None:
            supported = ", ".join(v.label for v in SUPPORTED_VARIANTS)
            log_message(
                f"{symbols.get('error', '❌')} Unsupported operating system: "
                f"{describe_host(app_settings.paths.os_release_file)}. "
                f"Supported: {supported}.",
                "error",
                logger_to_use,
                app_settings,
            )
            return False
        host_facts["os_variant"] = variant
        return True

    def report_os() -> None:
        log_message(
            f"Detected {host_facts['os_variant'].label}.",
            "info",
            logger_to_use,
            app_settings,
        )

    return Pipeline(
        PREFLIGHT_PIPELINE_NAME,
        [
            Step(
                name="check_privileges",
                description="Verify the installer runs as root",
                precondition=has_root_privileges,
                action=report_privileges,
                failure_exit_code=EXIT_INSUFFICIENT_PRIVILEGE,
            ),
            Step(
                name="check_operating_system",
                description="Verify the host runs a supported Debian or Ubuntu release",
                precondition=os_supported,
                action=report_os,
                failure_exit_code=EXIT_UNSUPPORTED_OS,
            ),
        ],
    )


def build_provision_pipeline(
    params: SiteParameters,
    variant: OsVariant,
    executor: CommandExecutor,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Pipeline:
    """
    Build the provisioning pipeline for one site.

    The TLS steps are left out entirely when Certbot is disabled in settings.
    """
    logger_to_use = current_logger if current_logger else module_logger
    apt = AptManager(executor, app_settings, logger=logger_to_use)
    mariadb = MariaDBClient(
        executor,
        app_settings,
        params.mariadb_root_password.get_secret_value(),
        logger_to_use,
    )
    tls_enabled = app_settings.certbot.enabled

    def install_ssl() -> None:
        install_certbot(apt, app_settings, logger_to_use)
        run_certbot_nginx(executor, params, app_settings, logger_to_use)

    steps = [
        Step(
            name="install_dependencies",
            description="Install Nginx, MariaDB and base tools",
            action=lambda: install_dependencies(apt, app_settings, logger_to_use),
        ),
        Step(
            name="install_php",
            description=f"Install PHP {params.php_version} with FPM and WordPress extensions",
            action=lambda: install_php(apt, variant, params.php_version, app_settings, logger_to_use),
        ),
        Step(
            name="configure_firewall",
            description="Allow web and SSH traffic through UFW and enable it",
            precondition=lambda: firewall_available(executor, app_settings, logger_to_use),
            action=lambda: configure_firewall(executor, app_settings, logger_to_use),
            on_precondition_failure=PreconditionPolicy.SKIP,
        ),
        Step(
            name="secure_mariadb",
            description="Set the MariaDB root password and remove insecure defaults",
            action=lambda: secure_mariadb(mariadb, app_settings, logger_to_use),
        ),
        Step(
            name="setup_database",
            description=f"Create database '{params.db_name}' and user '{params.db_user}'",
            action=lambda: setup_database(mariadb, params, app_settings, logger_to_use),
        ),
        Step(
            name="install_wordpress",
            description=f"Download and deploy WordPress into {params.web_root}",
            action=lambda: install_wordpress(params, app_settings, logger_to_use),
        ),
        Step(
            name="set_permissions",
            description=f"Set ownership and permissions under {params.web_root}",
            action=lambda: set_permissions(executor, params.web_root, app_settings, logger_to_use),
        ),
        Step(
            name="configure_wp_config",
            description="Write wp-config.php with database credentials and fresh salts",
            action=lambda: configure_wp_config(
                executor, params, app_settings, fetch_salts, logger_to_use
            ),
        ),
        Step(
            name="configure_nginx",
            description=f"Configure the Nginx virtual host for {params.domain}",
            action=lambda: configure_nginx(executor, params, app_settings, logger_to_use),
        ),
    ]

    if tls_enabled:
        steps.append(
            Step(
                name="install_ssl",
                description=f"Obtain a Let's Encrypt certificate for {params.domain}",
                precondition=lambda: certbot_domain_precondition(params, app_settings, logger_to_use),
                action=install_ssl,
            )
        )

    steps.append(
        Step(
            name="finalize_installation",
            description="Create the uploads directory and report the site URL",
            action=lambda: finalize_installation(
                executor, params, app_settings, tls_enabled, logger_to_use
            ),
        )
    )

    if tls_enabled:
        steps.append(
            Step(
                name="setup_ssl_renewal",
                description="Make sure the Certbot renewal timer is active",
                action=lambda: setup_ssl_renewal(executor, app_settings, logger_to_use),
            )
        )

    return Pipeline(PROVISION_PIPELINE_NAME, steps)
