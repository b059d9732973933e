# configure/mariadb_configurator.py
# -*- coding: utf-8 -*-
"""
Secures MariaDB and creates the WordPress database and user.

Statements are fed to the ``mysql`` client on stdin. The root password is
only ever passed through the client's ``MYSQL_PWD`` environment variable or
inside SQL on stdin; it never appears on a command line.
"""

import logging
from typing import Dict, List, Optional

from common.command_utils import CommandExecutor, get_symbols, log_message
from provision.config_models import AppSettings, SiteParameters
from provision.exceptions import CommandError

module_logger = logging.getLogger(__name__)

LOCAL_ROOT_HOSTS = ("localhost", "127.0.0.1", "::1")
PROBE_SQL = "SELECT 1;"


def quote_sql_string(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def quote_sql_identifier(value: str) -> str:
    return "`" + value.replace("`", "``") + "`"


class MariaDBClient:
    """
    Runs SQL as the MariaDB root user.

    On a fresh Debian/Ubuntu install root authenticates through the unix
    socket without a password; once secured it needs the root password. The
    method is detected on first use.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        app_settings: AppSettings,
        root_password: str,
        current_logger: Optional[logging.Logger] = None,
    ):
        self.executor = executor
        self.app_settings = app_settings
        self.root_password = root_password
        self.logger = current_logger if current_logger else module_logger
        self._env: Optional[Dict[str, str]] = None
        self.uses_socket_auth: Optional[bool] = None

    @property
    def _base_args(self) -> List[str]:
        return ["--user=root", "--batch", "--skip-column-names"]

    def _probe(self, env: Optional[Dict[str, str]]) -> bool:
        result = self.executor.run(
            self.app_settings.mariadb.client_command,
            self._base_args,
            cmd_input=PROBE_SQL,
            env=env,
            check=False,
        )
        return result.exit_code == 0

    def connect(self) -> None:
        if self.uses_socket_auth is not None:
            return
        if self._probe(None):
            self.uses_socket_auth = True
            self._env = None
            log_message(
                "MariaDB root is reachable through unix socket authentication.",
                "info",
                self.logger,
                self.app_settings,
            )
            return
        password_env = {"MYSQL_PWD": self.root_password}
        if self._probe(password_env):
            self.uses_socket_auth = False
            self._env = password_env
            log_message(
                "MariaDB root is reachable with the supplied root password.",
                "info",
                self.logger,
                self.app_settings,
            )
            return
        raise RuntimeError(
            "Cannot connect to MariaDB as root: neither unix socket "
            "authentication nor the supplied root password was accepted"
        )

    def execute(self, sql: str) -> str:
        self.connect()
        result = self.executor.run(
            self.app_settings.mariadb.client_command,
            self._base_args,
            cmd_input=sql,
            env=self._env,
        )
        return result.output

    def use_password(self) -> None:
        """Switch to password authentication after root's password was set."""
        self.uses_socket_auth = False
        self._env = {"MYSQL_PWD": self.root_password}


def secure_mariadb(
    client: MariaDBClient,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Non-interactive equivalent of mysql_secure_installation: set the root
    password, drop anonymous and remote root accounts, drop the test
    database and reload privileges.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_message(
        f"{symbols.get('lock', '🔒')} Securing MariaDB...",
        "info",
        logger_to_use,
        app_settings,
    )
    client.execute(
        "ALTER USER 'root'@'localhost' IDENTIFIED BY "
        f"{quote_sql_string(client.root_password)};\n"
        "FLUSH PRIVILEGES;\n"
    )
    client.use_password()

    remote_roots = ", ".join(quote_sql_string(host) for host in LOCAL_ROOT_HOSTS)
    accounts_output = client.execute(
        "SELECT CONCAT(QUOTE(User), '@', QUOTE(Host)) FROM mysql.user "
        f"WHERE User = '' OR (User = 'root' AND Host NOT IN ({remote_roots}));\n"
    )
    accounts = [line.strip() for line in accounts_output.splitlines() if line.strip()]
    statements = [f"DROP USER IF EXISTS {account};" for account in accounts]
    statements += [
        "DROP DATABASE IF EXISTS test;",
        "DELETE FROM mysql.db WHERE Db = 'test' OR Db = 'test\\\\_%';",
        "FLUSH PRIVILEGES;",
    ]
    client.execute("\n".join(statements) + "\n")

    log_message(
        f"{symbols.get('success', '✅')} MariaDB secured "
        f"({len(accounts)} anonymous or remote root accounts removed).",
        "success",
        logger_to_use,
        app_settings,
    )


def build_database_sql(params: SiteParameters, app_settings: AppSettings) -> str:
    db = quote_sql_identifier(params.db_name)
    account = f"{quote_sql_string(params.db_user)}@'localhost'"
    password = quote_sql_string(params.db_password)
    mariadb = app_settings.mariadb
    return (
        f"CREATE DATABASE IF NOT EXISTS {db} DEFAULT CHARACTER SET "
        f"{mariadb.charset} COLLATE {mariadb.collation};\n"
        f"CREATE USER IF NOT EXISTS {account} IDENTIFIED BY {password};\n"
        f"ALTER USER {account} IDENTIFIED BY {password};\n"
        f"GRANT ALL PRIVILEGES ON {db}.* TO {account};\n"
        "FLUSH PRIVILEGES;\n"
    )


def setup_database(
    client: MariaDBClient,
    params: SiteParameters,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    log_message(
        f"{symbols.get('step', '➡️')} Setting up MariaDB database '{params.db_name}' "
        f"and user '{params.db_user}'...",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        client.execute(build_database_sql(params, app_settings))
    except CommandError as e:
        raise RuntimeError(
            f"Failed to create database '{params.db_name}' or user "
            f"'{params.db_user}': {e}"
        ) from e
    log_message(
        f"{symbols.get('success', '✅')} Database and user for WordPress created.",
        "success",
        logger_to_use,
        app_settings,
    )
