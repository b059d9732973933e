# common/core_utils.py
# -*- coding: utf-8 -*-
"""
Logging setup for the provisioning run.

Two destinations are configured:
- the console, formatted with level symbols (SymbolFormatter);
- the append-only audit log, one ``<timestamp> : <message>`` line per record
  (AuditFormatter).

A SecretRedactingFilter is attached to both so that registered secret values
never reach either destination.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional, Pattern

from provision.config_models import SYMBOLS_DEFAULT

module_logger = logging.getLogger(__name__)

AUDIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
AUDIT_LOG_FORMAT = "%(asctime)s : %(level_tag)s%(message)s"
SIMPLE_LOG_FORMAT_WITH_PREFIX_PLACEHOLDER = (
    "{log_prefix}%(asctime)s - %(levelname)s - %(symbol)s %(message)s"
)
SIMPLE_LOG_FORMAT_NO_PREFIX = (
    "%(asctime)s - %(levelname)s - %(symbol)s %(message)s"
)
REDACTED = "********"

# Handlers installed by setup_logging, removed again by teardown_logging.
_installed_handlers: List[logging.Handler] = []


class SymbolFormatter(logging.Formatter):
    """
    A custom formatter that adds symbols to log messages based on the log level.
    """

    def __init__(
        self, fmt=None, datefmt=None, style="%", validate=True, symbols=None
    ):
        super().__init__(fmt, datefmt, style, validate)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record):
        if record.levelno == logging.DEBUG:
            record.symbol = self.symbols.get("debug", "🐛")
        elif record.levelno == logging.INFO:
            record.symbol = self.symbols.get("info", "ℹ️")
        elif record.levelno == logging.WARNING:
            record.symbol = self.symbols.get("warning", "⚠️")
        elif record.levelno == logging.ERROR:
            record.symbol = self.symbols.get("error", "❌")
        elif record.levelno == logging.CRITICAL:
            record.symbol = self.symbols.get("critical", "🔥")
        else:
            record.symbol = ""

        return super().format(record)


class AuditFormatter(logging.Formatter):
    """
    Formats records as audit log lines.

    WARNING records get a ``WARNING: `` tag before the message; ERROR and
    CRITICAL records get ``ERROR: ``.
    """

    def __init__(self):
        super().__init__(fmt=AUDIT_LOG_FORMAT, datefmt=AUDIT_DATE_FORMAT)

    def format(self, record):
        if record.levelno >= logging.ERROR:
            record.level_tag = "ERROR: "
        elif record.levelno >= logging.WARNING:
            record.level_tag = "WARNING: "
        else:
            record.level_tag = ""
        return super().format(record)


class SecretRedactingFilter(logging.Filter):
    """
    Replaces every registered secret value in a record with a mask.

    A secret is only masked where it stands alone: an edge that is a word
    character must not touch another word character, so a password such as
    ``wordpress`` leaves ``wordpress_db`` intact.
    """

    def __init__(self, name: str = ""):
        super().__init__(name)
        self._secrets: List[str] = []
        self._pattern: Optional[Pattern[str]] = None

    def register(self, secret: Optional[str]) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)
            # Longest first so a secret containing another is fully masked.
            self._secrets.sort(key=len, reverse=True)
            self._pattern = re.compile(
                "|".join(self._secret_pattern(s) for s in self._secrets)
            )

    @staticmethod
    def _secret_pattern(secret: str) -> str:
        prefix = r"(?<!\w)" if re.match(r"\w", secret[0]) else ""
        suffix = r"(?!\w)" if re.match(r"\w", secret[-1]) else ""
        return prefix + re.escape(secret) + suffix

    def redact(self, text: str) -> str:
        if self._pattern is None:
            return text
        return self._pattern.sub(REDACTED, text)

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            message = record.getMessage()
            redacted = self.redact(message)
            if redacted != message:
                record.msg = redacted
                record.args = None
        return True


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    log_prefix: Optional[str] = None,
    symbols: Optional[Dict[str, str]] = None,
    redaction_filter: Optional[SecretRedactingFilter] = None,
) -> None:
    """
    Configures logging for a provisioning run.

    Parameters:
    log_level: int
        Level for the root logger and the console handler. The audit log
        always records INFO and above, plus DEBUG when log_level is DEBUG.
    log_file: Optional[str]
        Path of the audit log. Opened once in append mode; parent
        directories are created.
    log_to_console: bool
        Whether to log to the console (stdout).
    log_prefix: Optional[str]
        Optional prefix for console lines.
    symbols: Optional[Dict[str, str]]
        Level symbols for the console formatter.
    redaction_filter: Optional[SecretRedactingFilter]
        Filter attached to every handler.

    Raises:
    OSError
        If the audit log cannot be opened for appending.
    """
    teardown_logging()

    handlers: List[logging.Handler] = []
    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            log_file_path, mode="a", encoding="utf-8"
        )
        file_handler.setFormatter(AuditFormatter())
        handlers.append(file_handler)

    if log_to_console:
        actual_prefix = (
            (log_prefix.strip() + " ")
            if log_prefix and log_prefix.strip()
            else ""
        )
        if actual_prefix:
            final_format_str = (
                SIMPLE_LOG_FORMAT_WITH_PREFIX_PLACEHOLDER.format(
                    log_prefix=actual_prefix
                )
            )
        else:
            final_format_str = SIMPLE_LOG_FORMAT_NO_PREFIX
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            SymbolFormatter(
                fmt=final_format_str,
                datefmt=AUDIT_DATE_FORMAT,
                symbols=symbols,
            )
        )
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in handlers:
        if redaction_filter is not None:
            handler.addFilter(redaction_filter)
        root_logger.addHandler(handler)
        _installed_handlers.append(handler)

    module_logger.debug(
        f"Logging configured. Level: {logging.getLevelName(log_level)}. "
        f"Audit log: {log_file or 'disabled'}"
    )


def teardown_logging() -> None:
    """Detach and close the handlers installed by setup_logging."""
    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()
