# configure/wp_config_configurator.py
# -*- coding: utf-8 -*-
"""
Generates wp-config.php from the wp-config-sample.php shipped with WordPress.

Database credentials replace the sample's literal placeholders, and the
eight placeholder key/salt defines are replaced by fresh values from the
WordPress secret-key service. The salts are fetched before anything is
written: if the fetch fails no wp-config.php is produced.
"""

import logging
import re
from typing import Callable, Optional

import requests

from common.command_utils import CommandExecutor, get_symbols, log_message
from common.file_utils import backup_file, write_text_file
from provision import config as static_config
from provision.config_models import AppSettings, SiteParameters
from provision.exceptions import InputError, PreconditionError
from provision.templates import LiteralTokenTemplate

module_logger = logging.getLogger(__name__)

WP_CONFIG_MODE = 0o640

DB_NAME_TOKEN = "database_name_here"
DB_USER_TOKEN = "username_here"
DB_PASSWORD_TOKEN = "password_here"

_KEY_NAMES_PATTERN = "|".join(static_config.WP_SECRET_KEY_NAMES)
# One placeholder define line per key, e.g.
#   define( 'AUTH_KEY',         'put your unique phrase here' );
_KEY_DEFINE_LINE_RE = re.compile(
    rf"^[ \t]*define\(\s*'({_KEY_NAMES_PATTERN})'\s*,.*$\n?", re.MULTILINE
)
_STOP_EDITING_RE = re.compile(r"^.*That's all, stop editing.*$", re.MULTILINE)
_REQUIRE_SETTINGS_RE = re.compile(
    r"^\s*require_once\s+ABSPATH\s*\.\s*'wp-settings\.php'.*$", re.MULTILINE
)


def _php_single_quoted(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def validate_salts(salts: str) -> str:
    """Return ``salts`` stripped, or raise InputError if any key is missing."""
    salts = (salts or "").strip()
    if not salts:
        raise InputError("Failed to retrieve salt keys: empty response")
    missing = [
        name
        for name in static_config.WP_SECRET_KEY_NAMES
        if not re.search(rf"define\(\s*'{name}'\s*,\s*'[^']+'\s*\)", salts)
    ]
    if missing:
        raise InputError(
            f"Failed to retrieve salt keys: response lacks {', '.join(missing)}"
        )
    return salts


def fetch_salts(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """Fetch a fresh block of key/salt defines from the WordPress API."""
    logger_to_use = current_logger if current_logger else module_logger
    url = app_settings.wordpress.salt_api_url
    log_message(
        f"{app_settings.symbols.get('lock', '🔒')} Fetching authentication keys and salts...",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        response = requests.get(url, timeout=app_settings.wordpress.http_timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as req_err:
        raise InputError(f"Failed to retrieve salt keys from {url}: {req_err}") from req_err
    return validate_salts(response.text)


def render_wp_config(sample_text: str, params: SiteParameters, salts: str) -> str:
    template = LiteralTokenTemplate(
        static_config.WP_CONFIG_NAME,
        sample_text,
        (DB_NAME_TOKEN, DB_USER_TOKEN, DB_PASSWORD_TOKEN),
    )
    text = template.render(
        {
            DB_NAME_TOKEN: params.db_name,
            DB_USER_TOKEN: params.db_user,
            DB_PASSWORD_TOKEN: _php_single_quoted(params.db_password),
        }
    )
    text = _KEY_DEFINE_LINE_RE.sub("", text)

    salts_block = validate_salts(salts) + "\n\n"
    anchor = _STOP_EDITING_RE.search(text) or _REQUIRE_SETTINGS_RE.search(text)
    if anchor:
        return text[: anchor.start()] + salts_block + text[anchor.start():]
    if not text.endswith("\n"):
        text += "\n"
    return text + salts_block


def configure_wp_config(
    executor: CommandExecutor,
    params: SiteParameters,
    app_settings: AppSettings,
    salt_fetcher: Callable[..., str] = fetch_salts,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    sample_path = params.web_root / static_config.WP_CONFIG_SAMPLE_NAME
    config_path = params.web_root / static_config.WP_CONFIG_NAME

    log_message(
        f"{symbols.get('step', '➡️')} Configuring {config_path}...",
        "info",
        logger_to_use,
        app_settings,
    )
    if not sample_path.is_file():
        raise PreconditionError(
            f"{sample_path} not found; WordPress is not deployed in {params.web_root}"
        )
    sample_text = sample_path.read_text(encoding="utf-8")
    salts = salt_fetcher(app_settings, logger_to_use)
    content = render_wp_config(sample_text, params, salts)

    backup_file(config_path, app_settings, logger_to_use)
    write_text_file(
        config_path,
        content,
        app_settings,
        mode=WP_CONFIG_MODE,
        current_logger=logger_to_use,
    )
    owner = f"{app_settings.wordpress.web_user}:{app_settings.wordpress.web_group}"
    executor.run("chown", [owner, str(config_path)])

    log_message(
        f"{symbols.get('success', '✅')} {static_config.WP_CONFIG_NAME} configured with database credentials and salts.",
        "success",
        logger_to_use,
        app_settings,
    )
