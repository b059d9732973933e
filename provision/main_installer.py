# provision/main_installer.py
# -*- coding: utf-8 -*-
"""
Main entry point for the WordPress provisioning run.

Handles argument parsing, configuration loading and logging setup, then runs
the preflight pipeline, resolves the site parameters and runs the
provisioning pipeline. The run ends with a single outcome banner in the
audit log and a process exit code.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from common.command_utils import CommandExecutor, log_message
from common.core_utils import (
    SecretRedactingFilter,
    setup_logging,
    teardown_logging,
)
from configure.mariadb_configurator import quote_sql_string
from provision import config
from provision.cli_handler import list_steps, view_configuration
from provision.config_loader import (
    collect_site_presets,
    load_app_settings,
    read_yaml_config,
)
from provision.config_models import (
    DB_NAME_DEFAULT,
    DB_PASSWORD_DEFAULT,
    DB_USER_DEFAULT,
    DOMAIN_DEFAULT,
    EMAIL_DEFAULT,
    LOG_FILE_DEFAULT,
    PHP_VERSION_DEFAULT,
    WEB_ROOT_DEFAULT,
    AppSettings,
    SiteParameters,
)
from provision.exceptions import InputError
from provision.os_variants import SUPPORTED_VARIANTS, detect_os_variant
from provision.parameter_resolver import PARAMETERS_BY_NAME, ParameterResolver
from provision.pipeline import PipelineRunner, RunState
from provision.pipeline_definitions import (
    build_preflight_pipeline,
    build_provision_pipeline,
)

logger = logging.getLogger(__name__)

RESOLVE_PARAMETERS_STEP = "resolve_parameters"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wp-provision",
        description=(
            "Install WordPress with Nginx, PHP-FPM, MariaDB and a Let's Encrypt "
            "certificate on a fresh Debian or Ubuntu host."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--view-config", action="store_true", help="View current configuration settings and exit.")
    parser.add_argument("--list-steps", action="store_true", help="Print the ordered step list and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output, including command output.")
    parser.add_argument("--non-interactive", action="store_true",
                        help="Never prompt; use defaults for unset parameters. MYSQL_ROOT_PASSWORD must be set.")
    parser.add_argument("--config-file", default="config.yaml", help="YAML configuration file.")
    parser.add_argument("--log-file", default=None,
                        help=f"Append-only audit log (default from settings: {LOG_FILE_DEFAULT}).")
    parser.add_argument("--log-prefix", default=None, help="Prefix for console log lines.")

    site_group = parser.add_argument_group(
        "Site Parameters",
        "Unset parameters fall back to the YAML 'site:' section, then environment "
        "variables, then an interactive prompt showing the default.",
    )
    site_group.add_argument("--db-name", default=None, help=f"Database name (env DB_NAME, default {DB_NAME_DEFAULT}).")
    site_group.add_argument("--db-user", default=None, help=f"Database user (env DB_USER, default {DB_USER_DEFAULT}).")
    site_group.add_argument("--db-password", default=None,
                            help=f"Database user password (env DB_PASSWORD, default {DB_PASSWORD_DEFAULT}, insecure).")
    site_group.add_argument("--domain", default=None, help=f"Site domain (env DOMAIN, default {DOMAIN_DEFAULT}).")
    site_group.add_argument("--email", default=None,
                            help=f"Email for certificate notices (env EMAIL, default {EMAIL_DEFAULT}).")
    site_group.add_argument("--php-version", default=None,
                            help=f"PHP version to install (env PHP_VERSION, default {PHP_VERSION_DEFAULT}).")
    site_group.add_argument("--web-root", default=None, help=f"WordPress directory (env WP_DIR, default {WEB_ROOT_DEFAULT}).")

    feature_group = parser.add_argument_group("Optional Features")
    feature_group.add_argument("--no-tls", action="store_true", help="Skip the Certbot certificate and renewal steps.")
    feature_group.add_argument("--no-firewall", action="store_true", help="Skip UFW configuration.")
    return parser


def _preview_parameters(presets: Dict[str, Optional[str]]) -> SiteParameters:
    """Site parameters from presets only, for informational output."""
    values = {
        name: value
        for name, value in presets.items()
        if value and name in PARAMETERS_BY_NAME and not PARAMETERS_BY_NAME[name].secret
    }
    try:
        return SiteParameters(**values)
    except ValidationError as e:
        raise InputError(f"Invalid site parameters: {e}") from e


def _finish(
    app_settings: AppSettings, failed_step: Optional[str], exit_code: int
) -> int:
    if failed_step is None:
        log_message(config.SUCCESS_BANNER, "info", logger, app_settings)
    else:
        log_message(
            config.FAILURE_BANNER_TEMPLATE.format(step=failed_step),
            "error",
            logger,
            app_settings,
        )
    return exit_code


def run_installation(
    parsed_args: argparse.Namespace,
    app_settings: AppSettings,
    presets: Dict[str, Optional[str]],
    redaction_filter: SecretRedactingFilter,
    executor: Optional[CommandExecutor] = None,
) -> int:
    symbols = app_settings.symbols
    log_message(config.START_BANNER, "info", logger, app_settings)
    log_message(
        f"{symbols.get('sparkles', '✨')} WordPress provisioning (Script Version: {config.SCRIPT_VERSION})",
        "debug",
        logger,
        app_settings,
    )

    runner = PipelineRunner(app_settings, logger)
    host_facts: Dict[str, Any] = {}
    stage = "preflight"
    try:
        preflight_run = runner.run(build_preflight_pipeline(app_settings, host_facts, logger))
        if not preflight_run.succeeded:
            return _finish(app_settings, preflight_run.failed_step, preflight_run.exit_code)

        stage = RESOLVE_PARAMETERS_STEP
        try:
            resolver = ParameterResolver(
                app_settings,
                presets=presets,
                interactive=not parsed_args.non_interactive,
                current_logger=logger,
            )
            params = resolver.resolve_all()
        except InputError as e:
            log_message(
                f"{symbols.get('error', '❌')} Parameter resolution failed: {e}",
                "error",
                logger,
                app_settings,
            )
            return _finish(app_settings, RESOLVE_PARAMETERS_STEP, config.EXIT_CONFIGURATION_ERROR)

        for secret in (params.mariadb_root_password.get_secret_value(), params.db_password):
            redaction_filter.register(secret)
            # mysql error lines echo the escaped literal.
            redaction_filter.register(quote_sql_string(secret)[1:-1])

        stage = "provision"
        pipeline = build_provision_pipeline(
            params,
            host_facts["os_variant"],
            executor or CommandExecutor(app_settings, logger),
            app_settings,
            logger,
        )
        provision_run = runner.run(pipeline)
        if not provision_run.succeeded:
            return _finish(app_settings, provision_run.failed_step, provision_run.exit_code)
    except KeyboardInterrupt:
        interrupted_run = runner.last_run
        if interrupted_run is not None and interrupted_run.state is RunState.FAILED:
            stage = interrupted_run.failed_step
        log_message(
            f"{symbols.get('warning', '⚠️')} Interrupted by operator.",
            "error",
            logger,
            app_settings,
        )
        return _finish(app_settings, stage, config.EXIT_INTERRUPTED)

    return _finish(app_settings, None, config.EXIT_SUCCESS)


def main(args: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    try:
        parsed_args = parser.parse_args(args)
    except SystemExit as e:
        return config.EXIT_SUCCESS if not e.code else config.EXIT_CONFIGURATION_ERROR

    log_level = logging.DEBUG if parsed_args.verbose else logging.INFO
    try:
        yaml_data = read_yaml_config(parsed_args.config_file)
        app_settings = load_app_settings(parsed_args, yaml_data)
        presets = collect_site_presets(parsed_args, yaml_data)
    except InputError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return config.EXIT_CONFIGURATION_ERROR

    if parsed_args.view_config or parsed_args.list_steps:
        setup_logging(log_level, log_prefix=app_settings.log_prefix, symbols=app_settings.symbols)
        try:
            if parsed_args.view_config:
                view_configuration(app_settings, presets, current_logger=logger)
            if parsed_args.list_steps:
                params = _preview_parameters(presets)
                variant = detect_os_variant(app_settings.paths.os_release_file) or SUPPORTED_VARIANTS[0]
                list_steps(
                    [
                        build_preflight_pipeline(app_settings, {}, logger),
                        build_provision_pipeline(
                            params, variant, CommandExecutor(app_settings, logger), app_settings, logger
                        ),
                    ],
                    app_settings,
                )
        except InputError as e:
            log_message(f"Configuration error: {e}", "error", logger, app_settings)
            return config.EXIT_CONFIGURATION_ERROR
        finally:
            teardown_logging()
        return config.EXIT_SUCCESS

    redaction_filter = SecretRedactingFilter()
    try:
        setup_logging(
            log_level,
            log_file=str(app_settings.paths.log_file),
            log_prefix=app_settings.log_prefix,
            symbols=app_settings.symbols,
            redaction_filter=redaction_filter,
        )
    except OSError as e:
        print(
            f"Failed to create log file at {app_settings.paths.log_file}: {e}",
            file=sys.stderr,
        )
        return config.EXIT_CONFIGURATION_ERROR

    try:
        return run_installation(parsed_args, app_settings, presets, redaction_filter)
    finally:
        teardown_logging()


if __name__ == "__main__":
    sys.exit(main())
