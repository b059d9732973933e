# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing external commands and logging their output.

Steps never call subprocess directly: they receive a CommandExecutor, which
turns a non-zero exit status into a CommandError and can be replaced by a
recording fake in tests.
"""

import logging
import os
import shutil
import subprocess
from typing import Dict, List, NamedTuple, Optional, Sequence

from provision.config_models import SYMBOLS_DEFAULT, AppSettings
from provision.exceptions import CommandError

module_logger = logging.getLogger(__name__)

# Exit status reported when the executable itself cannot be found.
COMMAND_NOT_FOUND_EXIT_CODE = 127


def get_symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    return (
        app_settings.symbols
        if app_settings and app_settings.symbols
        else SYMBOLS_DEFAULT
    )


def log_message(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Log a message at a named level.

    Args:
        message (str): The log message to be recorded.
        level (str): One of "debug", "info", "success", "warning", "error"
            or "critical". "success" is logged at INFO. Unknown values fall
            back to INFO.
        current_logger (Optional[logging.Logger]): Logger to use. Defaults to
            the module logger.
        app_settings (Optional[AppSettings]): Accepted for call-site symmetry
            with the other helpers in this module.
        exc_info (bool): Attach the active exception's traceback.
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def run_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Execute a command, capturing stdout and stderr as one text stream.

    The command line is logged before execution. Standard input and the
    environment are never logged. Captured output is logged at DEBUG level.

    Args:
        command (List[str]): argv of the command to run. No shell is used.
        app_settings (Optional[AppSettings]): Settings providing log symbols.
        check (bool): Raise CalledProcessError on a non-zero exit status.
        cmd_input (Optional[str]): Text passed to the command's stdin.
        current_logger (Optional[logging.Logger]): Logger to use.
        cwd (Optional[str]): Working directory for the command.
        env (Optional[Dict[str, str]]): Full environment for the command.
            Defaults to the inherited environment.

    Returns:
        subprocess.CompletedProcess: The result. ``stdout`` holds the
        combined output and ``stderr`` is None.

    Raises:
        subprocess.CalledProcessError: Non-zero exit with ``check=True``.
        FileNotFoundError: The executable is not on PATH.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    command_to_log_str = subprocess.list2cmdline(command)

    log_message(
        f"{symbols.get('gear', '⚙️')} Executing: {command_to_log_str}"
        f"{f' (in {cwd})' if cwd else ''}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command,
            check=check,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            input=cmd_input,
            cwd=cwd,
            env=env,
        )
        if result.stdout and result.stdout.strip():
            log_message(
                f"   output: {result.stdout.strip()}",
                "debug",
                effective_logger,
                app_settings,
            )
        return result
    except subprocess.CalledProcessError as e:
        log_message(
            f"{symbols.get('error', '❌')} Command `{command_to_log_str}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        if e.stdout and e.stdout.strip():
            log_message(
                f"   output: {e.stdout.strip()}",
                "error",
                effective_logger,
                app_settings,
            )
        raise
    except FileNotFoundError as e:
        log_message(
            f"{symbols.get('error', '❌')} Command not found: {e.filename}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise


def command_exists(command_name: str) -> bool:
    """Check if a command exists in the system's PATH."""
    return shutil.which(command_name) is not None


class CommandResult(NamedTuple):
    exit_code: int
    output: str


class CommandExecutor:
    """
    Runs external tools on behalf of provisioning steps.

    ``env`` passed to :meth:`run` is merged over the current process
    environment, so callers only supply the variables they add.
    """

    def __init__(
        self,
        app_settings: Optional[AppSettings] = None,
        current_logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app_settings = app_settings
        self.logger = current_logger if current_logger else module_logger

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cmd_input: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
    ) -> CommandResult:
        argv = [command, *args]
        full_env = {**os.environ, **env} if env else None
        try:
            completed = run_command(
                argv,
                self.app_settings,
                check=False,
                cmd_input=cmd_input,
                current_logger=self.logger,
                env=full_env,
            )
        except FileNotFoundError as e:
            if check:
                raise CommandError(
                    argv,
                    COMMAND_NOT_FOUND_EXIT_CODE,
                    f"command not found: {command}",
                ) from e
            return CommandResult(
                COMMAND_NOT_FOUND_EXIT_CODE, f"command not found: {command}"
            )

        result = CommandResult(completed.returncode, completed.stdout or "")
        if check and result.exit_code != 0:
            symbols = get_symbols(self.app_settings)
            log_message(
                f"{symbols.get('error', '❌')} Command `{subprocess.list2cmdline(argv)}` "
                f"failed (rc {result.exit_code}).",
                "error",
                self.logger,
                self.app_settings,
            )
            raise CommandError(argv, result.exit_code, result.output)
        return result

    def exists(self, command_name: str) -> bool:
        return command_exists(command_name)
