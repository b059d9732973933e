# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: atomic writes, timestamped backups and
directory cleanup.
"""

import datetime
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from common.command_utils import get_symbols, log_message
from provision.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def write_text_file(
    file_path: Path,
    content: str,
    app_settings: Optional[AppSettings],
    mode: int = 0o644,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Atomically replace ``file_path`` with ``content``.

    The content is written to a temporary file in the same directory, given
    ``mode`` and then renamed over the target, so readers never observe a
    partially written file. Parent directories are created.

    Raises:
        OSError: If the file cannot be written or renamed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=str(file_path.parent), prefix=f".{file_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, file_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    log_message(
        f"Wrote {file_path} (mode {mode:o})",
        "debug",
        logger_to_use,
        app_settings,
    )


def backup_file(
    file_path: Path,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[Path]:
    """
    Copy a file to ``<file_path>.bak.<timestamp>``.

    Parameters:
        file_path (Path): The file to back up.
        app_settings (Optional[AppSettings]): Settings providing log symbols.
        current_logger (Optional[logging.Logger]): Logger to use.

    Returns:
        Optional[Path]: The backup path, or None when ``file_path`` is not an
        existing regular file and no backup was needed.

    Raises:
        OSError: If the copy fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    file_path = Path(file_path)

    if not file_path.is_file():
        log_message(
            f"{symbols.get('info', 'ℹ️')} File {file_path} does not exist or is not a regular file. No backup needed.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return None

    timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = file_path.with_name(f"{file_path.name}.bak.{timestamp}")
    shutil.copy2(file_path, backup_path)
    log_message(
        f"{symbols.get('success', '✅')} Backed up {file_path} to {backup_path}",
        "info",
        logger_to_use,
        app_settings,
    )
    return backup_path


def cleanup_directory_contents(
    directory_path: Path,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Remove every entry inside ``directory_path``, keeping the directory
    itself. A missing directory is created.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    directory_path = Path(directory_path)

    if directory_path.exists() and not directory_path.is_dir():
        raise NotADirectoryError(
            f"Path {directory_path} exists but is not a directory."
        )
    directory_path.mkdir(parents=True, exist_ok=True)

    removed = 0
    for entry in directory_path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1

    log_message(
        f"{symbols.get('info', 'ℹ️')} Cleared {removed} entries from {directory_path}",
        "info",
        logger_to_use,
        app_settings,
    )
