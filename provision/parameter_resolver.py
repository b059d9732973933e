# provision/parameter_resolver.py
# -*- coding: utf-8 -*-
"""
Resolves the operator-facing site parameters exactly once.

For every parameter the first available source wins:

1. an explicit preset (command line option, then the ``site:`` section of
   the YAML config file; merged by the caller);
2. the parameter's environment variable;
3. an interactive prompt showing the default (empty input or EOF selects the
   default). In non-interactive mode the default is taken without prompting.

The MariaDB root password is a secret: it is never taken from presets, is
prompted with echo suppressed and has no default. If it cannot be obtained
the resolver raises InputError.
"""

import getpass
import logging
import os
from typing import Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from pydantic import SecretStr, ValidationError

from common.command_utils import get_symbols, log_message
from provision.config_models import (
    DB_NAME_DEFAULT,
    DB_PASSWORD_DEFAULT,
    DB_USER_DEFAULT,
    DOMAIN_DEFAULT,
    EMAIL_DEFAULT,
    PHP_VERSION_DEFAULT,
    WEB_ROOT_DEFAULT,
    AppSettings,
    SiteParameters,
)
from provision.exceptions import InputError

module_logger = logging.getLogger(__name__)


class ParameterDefinition(NamedTuple):
    name: str
    env_var: str
    prompt: str
    default: Optional[str]
    secret: bool = False


PARAMETER_DEFINITIONS: Tuple[ParameterDefinition, ...] = (
    ParameterDefinition("db_name", "DB_NAME", "Enter WordPress database name", DB_NAME_DEFAULT),
    ParameterDefinition("db_user", "DB_USER", "Enter WordPress database user", DB_USER_DEFAULT),
    ParameterDefinition("db_password", "DB_PASSWORD", "Enter WordPress database password", DB_PASSWORD_DEFAULT),
    ParameterDefinition("domain", "DOMAIN", "Enter your domain name", DOMAIN_DEFAULT),
    ParameterDefinition("email", "EMAIL", "Enter your email for SSL notifications", EMAIL_DEFAULT),
    ParameterDefinition("php_version", "PHP_VERSION", "Enter the PHP version to install", PHP_VERSION_DEFAULT),
    ParameterDefinition("web_root", "WP_DIR", "Enter the WordPress web root", WEB_ROOT_DEFAULT),
    ParameterDefinition("mariadb_root_password", "MYSQL_ROOT_PASSWORD", "Enter MariaDB root password", None, secret=True),
)
PARAMETERS_BY_NAME: Dict[str, ParameterDefinition] = {
    definition.name: definition for definition in PARAMETER_DEFINITIONS
}


class ParameterResolver:
    def __init__(
        self,
        app_settings: Optional[AppSettings] = None,
        presets: Optional[Mapping[str, Optional[str]]] = None,
        environ: Optional[Mapping[str, str]] = None,
        interactive: bool = True,
        input_func: Callable[[str], str] = input,
        secret_input_func: Callable[[str], str] = getpass.getpass,
        current_logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.environ = os.environ if environ is None else environ
        self.interactive = interactive
        self.input_func = input_func
        self.secret_input_func = secret_input_func
        self.logger = current_logger if current_logger else module_logger
        self._cache: Dict[str, str] = {}
        self._presets: Dict[str, str] = {}

        symbols = get_symbols(app_settings)
        for name, value in (presets or {}).items():
            if name not in PARAMETERS_BY_NAME:
                raise InputError(f"Unknown site parameter '{name}'")
            if value is None or str(value) == "":
                continue
            if PARAMETERS_BY_NAME[name].secret:
                log_message(
                    f"{symbols.get('warning', '⚠️')} Ignoring '{name}' from "
                    f"configuration; set {PARAMETERS_BY_NAME[name].env_var} "
                    "or enter it at the prompt instead.",
                    "warning",
                    self.logger,
                    self.app_settings,
                )
                continue
            self._presets[name] = str(value)

    def resolve(self, name: str) -> str:
        """Return the value of one parameter, prompting at most once."""
        if name in self._cache:
            return self._cache[name]
        try:
            definition = PARAMETERS_BY_NAME[name]
        except KeyError:
            raise InputError(f"Unknown site parameter '{name}'") from None

        value = self._presets.get(name)
        if value is None:
            value = self.environ.get(definition.env_var) or None
        if value is None:
            value = (
                self._prompt_secret(definition)
                if definition.secret
                else self._prompt_with_default(definition)
            )

        self._cache[name] = value
        return value

    def resolve_all(self) -> SiteParameters:
        values = {definition.name: self.resolve(definition.name) for definition in PARAMETER_DEFINITIONS}
        values["mariadb_root_password"] = SecretStr(
            values["mariadb_root_password"]
        )
        try:
            params = SiteParameters(**values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise InputError(f"Invalid site parameters: {problems}") from None

        if params.uses_insecure_db_password:
            symbols = get_symbols(self.app_settings)
            log_message(
                f"{symbols.get('warning', '⚠️')} The WordPress database password "
                "is the insecure default. Set DB_PASSWORD or --db-password.",
                "warning",
                self.logger,
                self.app_settings,
            )
        return params

    def _prompt_with_default(self, definition: ParameterDefinition) -> str:
        if not self.interactive:
            return definition.default
        try:
            entered = self.input_func(f"{definition.prompt} [{definition.default}]: ").strip()
        except EOFError:
            symbols = get_symbols(self.app_settings)
            log_message(
                f"{symbols.get('warning', '!')} No user input (EOF), using default for '{definition.name}'",
                "warning",
                self.logger,
                self.app_settings,
            )
            return definition.default
        return entered or definition.default

    def _prompt_secret(self, definition: ParameterDefinition) -> str:
        if not self.interactive:
            raise InputError(
                f"{definition.env_var} is not set and prompting is disabled"
            )
        try:
            entered = self.secret_input_func(f"{definition.prompt}: ")
        except EOFError:
            raise InputError(
                f"No input available for {definition.name} and {definition.env_var} is not set"
            ) from None
        if not entered:
            raise InputError(f"{definition.name} must not be empty")
        return entered
