# tests/conftest.py
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from pydantic import SecretStr

from common.command_utils import CommandResult
from provision.config_models import AppSettings, PathSettings, SiteParameters
from provision.exceptions import CommandError

ROOT_PASSWORD = "R00t-S3cret!"

SALTS_RESPONSE = "\n".join(
    f"define('{name}', '{name.lower()}-generated-value');"
    for name in (
        "AUTH_KEY",
        "SECURE_AUTH_KEY",
        "LOGGED_IN_KEY",
        "NONCE_KEY",
        "AUTH_SALT",
        "SECURE_AUTH_SALT",
        "LOGGED_IN_SALT",
        "NONCE_SALT",
    )
)

WP_CONFIG_SAMPLE = """<?php
/** The name of the database for WordPress */
define( 'DB_NAME', 'database_name_here' );

/** Database username */
define( 'DB_USER', 'username_here' );

/** Database password */
define( 'DB_PASSWORD', 'password_here' );

/** Database hostname */
define( 'DB_HOST', 'localhost' );

define( 'AUTH_KEY',         'put your unique phrase here' );
define( 'SECURE_AUTH_KEY',  'put your unique phrase here' );
define( 'LOGGED_IN_KEY',    'put your unique phrase here' );
define( 'NONCE_KEY',        'put your unique phrase here' );
define( 'AUTH_SALT',        'put your unique phrase here' );
define( 'SECURE_AUTH_SALT', 'put your unique phrase here' );
define( 'LOGGED_IN_SALT',   'put your unique phrase here' );
define( 'NONCE_SALT',       'put your unique phrase here' );

$table_prefix = 'wp_';

define( 'WP_DEBUG', false );

/* That's all, stop editing! Happy publishing. */

/** Absolute path to the WordPress directory. */
if ( ! defined( 'ABSPATH' ) ) {
	define( 'ABSPATH', __DIR__ . '/' );
}

/** Sets up WordPress vars and included files. */
require_once ABSPATH . 'wp-settings.php';
"""


class FakeExecutor:
    """
    Records every command instead of running it.

    ``responses`` maps a command name to a CommandResult, or to a callable
    taking ``(command, args, cmd_input, env)`` and returning one. Commands
    without a response succeed with empty output. ``missing`` lists
    commands that exists() reports as absent.
    """

    def __init__(self, responses=None, missing: Sequence[str] = ()):
        self.responses: Dict[str, object] = dict(responses or {})
        self.missing = set(missing)
        self.calls: List[Tuple[str, List[str], Optional[str], Optional[Dict[str, str]]]] = []

    def run(self, command, args=(), cmd_input=None, env=None, check=True):
        args = list(args)
        self.calls.append((command, args, cmd_input, dict(env) if env else None))
        response = self.responses.get(command, CommandResult(0, ""))
        result = response(command, args, cmd_input, env) if callable(response) else response
        if check and result.exit_code != 0:
            raise CommandError([command, *args], result.exit_code, result.output)
        return result

    def exists(self, command_name):
        return command_name not in self.missing

    def commands(self) -> List[List[str]]:
        return [[command, *args] for command, args, _, _ in self.calls]

    def calls_for(self, command):
        return [call for call in self.calls if call[0] == command]


@pytest.fixture
def fake_executor():
    """A FakeExecutor where every command succeeds."""
    return FakeExecutor()


@pytest.fixture
def app_settings(tmp_path: Path):
    """AppSettings with every host path redirected into tmp_path."""
    return AppSettings(
        paths=PathSettings(
            sites_available=tmp_path / "nginx" / "sites-available",
            sites_enabled=tmp_path / "nginx" / "sites-enabled",
            php_fpm_socket_dir=Path("/var/run/php"),
            os_release_file=tmp_path / "os-release",
            log_file=tmp_path / "log" / "wordpress_install.log",
            download_dir=tmp_path / "downloads",
            apt_sources_dir=tmp_path / "apt" / "sources.list.d",
        )
    )


@pytest.fixture
def site_params(tmp_path: Path):
    """Resolved site parameters with the web root under tmp_path."""
    return SiteParameters(
        db_name="blog_db",
        db_user="blog_user",
        db_password="Db-Pa55word",
        domain="example.org",
        email="ops@example.org",
        php_version="8.2",
        web_root=tmp_path / "www",
        mariadb_root_password=SecretStr(ROOT_PASSWORD),
    )


@pytest.fixture
def salt_stub():
    """A salt fetcher returning a complete set of key/salt defines."""

    def fetch(app_settings=None, current_logger=None):
        return SALTS_RESPONSE

    return fetch


@pytest.fixture
def executor_factory():
    """The FakeExecutor class, for tests that need custom responses."""
    return FakeExecutor


@pytest.fixture
def root_password():
    return ROOT_PASSWORD


@pytest.fixture
def wp_config_sample():
    return WP_CONFIG_SAMPLE


@pytest.fixture
def salts_response():
    return SALTS_RESPONSE
