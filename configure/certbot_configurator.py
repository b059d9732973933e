# configure/certbot_configurator.py
# -*- coding: utf-8 -*-
"""
Handles configuration of SSL certificates using Certbot with the Nginx plugin,
and the systemd timer that renews them.
"""
import ipaddress
import logging
from typing import List, Optional

from common.command_utils import CommandExecutor, get_symbols, log_message
from common.system_utils import systemd_enable_and_start, systemd_unit_active
from provision.config_models import AppSettings, SiteParameters
from provision.exceptions import CommandError

module_logger = logging.getLogger(__name__)


def is_public_fqdn(domain: str) -> bool:
    """
    True for a dotted host name that is neither an IP address nor localhost.
    Certbot cannot obtain certificates for anything else.
    """
    domain = domain.strip().lower().rstrip(".")
    try:
        ipaddress.ip_address(domain)
        return False
    except ValueError:
        pass
    if domain == "localhost" or domain.endswith(".localhost"):
        return False
    return "." in domain


def certbot_domain_precondition(
    params: SiteParameters,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    logger_to_use = current_logger if current_logger else module_logger
    if is_public_fqdn(params.domain):
        return True
    symbols = get_symbols(app_settings)
    log_message(
        f"{symbols.get('warning', '⚠️')} '{params.domain}' is an IP address, localhost, "
        "or not a Fully Qualified Domain Name (FQDN). Certbot requires a public "
        "FQDN; rerun with --no-tls to provision without a certificate.",
        "warning",
        logger_to_use,
        app_settings,
    )
    return False


def certbot_arguments(params: SiteParameters, app_settings: AppSettings) -> List[str]:
    certbot = app_settings.certbot
    args = ["--nginx", "--non-interactive", "--agree-tos"]
    if certbot.redirect:
        args.append("--redirect")
    if certbot.use_hsts:
        args.append("--hsts")
    args += ["-m", params.email, "-d", params.domain]
    if certbot.include_www:
        args += ["-d", params.www_domain]
    return args


def run_certbot_nginx(
    executor: CommandExecutor,
    params: SiteParameters,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Runs Certbot to obtain and install an SSL certificate for the site and
    lets it rewrite the Nginx vhost for HTTPS.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_message(
        f"{symbols.get('lock', '🔒')} Obtaining SSL certificate for {params.domain}...",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        executor.run("certbot", certbot_arguments(params, app_settings))
    except CommandError as e:
        log_message(
            f"{symbols.get('error', '❌')} Certbot command FAILED. Please check "
            "Certbot logs (usually in /var/log/letsencrypt/) for detailed "
            "error messages.",
            "error",
            logger_to_use,
            app_settings,
        )
        raise RuntimeError(
            f"Certbot failed to obtain SSL certificate for {params.domain}: {e}"
        ) from e

    log_message(
        f"{symbols.get('success', '✅')} SSL certificate obtained and configured.",
        "success",
        logger_to_use,
        app_settings,
    )


def setup_ssl_renewal(
    executor: CommandExecutor,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    timer = app_settings.certbot.renewal_timer

    log_message(
        "Setting up automatic SSL certificate renewal...",
        "info",
        logger_to_use,
        app_settings,
    )
    if systemd_unit_active(executor, timer):
        log_message(
            f"{symbols.get('info', 'ℹ️')} Certbot renewal timer is active.",
            "info",
            logger_to_use,
            app_settings,
        )
        return

    systemd_enable_and_start(executor, timer, app_settings, logger_to_use)
    log_message(
        f"{symbols.get('success', '✅')} Certbot renewal timer enabled.",
        "success",
        logger_to_use,
        app_settings,
    )
