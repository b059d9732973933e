# installer/wordpress_installer.py
# -*- coding: utf-8 -*-
"""
Downloads WordPress, deploys it into the web root and sets file ownership
and permissions.

An existing deployment (``wp-settings.php`` present in the web root) is never
overwritten; the copy is skipped so the site's content survives a re-run.
"""

import hashlib
import logging
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional

import requests

from common.command_utils import CommandExecutor, get_symbols, log_message
from common.file_utils import cleanup_directory_contents
from provision import config as static_config
from provision.config_models import AppSettings, SiteParameters

module_logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 8192


def wordpress_already_deployed(web_root: Path) -> bool:
    return (Path(web_root) / static_config.WP_INSTALLED_MARKER).is_file()


def download_file(
    url: str,
    download_to_path: Path,
    timeout: int,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Stream ``url`` to ``download_to_path``.

    Raises:
        RuntimeError: On any HTTP, connection or timeout error.
        OSError: If the file cannot be written.
    """
    logger_to_use = current_logger if current_logger else module_logger
    logger_to_use.info(f"Downloading {url} ...")
    response: Optional[requests.Response] = None
    try:
        response = requests.get(url, stream=True, timeout=timeout)
        response.raise_for_status()
        with open(download_to_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
    except requests.exceptions.HTTPError as http_err:
        status_code = response.status_code if response is not None else "Unknown"
        raise RuntimeError(
            f"HTTP error downloading {url}: {http_err} (status {status_code})"
        ) from http_err
    except requests.exceptions.ConnectionError as conn_err:
        raise RuntimeError(f"Connection error downloading {url}: {conn_err}") from conn_err
    except requests.exceptions.Timeout as timeout_err:
        raise RuntimeError(f"Timed out downloading {url}: {timeout_err}") from timeout_err
    except requests.exceptions.RequestException as req_err:
        raise RuntimeError(f"Failed to download {url}: {req_err}") from req_err
    logger_to_use.info(f"Downloaded {url} to {download_to_path}")


def fetch_expected_sha1(url: str, timeout: int) -> str:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as req_err:
        raise RuntimeError(f"Failed to fetch checksum from {url}: {req_err}") from req_err
    digest = response.text.strip().split()[0].lower() if response.text.strip() else ""
    if len(digest) != 40:
        raise RuntimeError(f"Checksum from {url} is not a SHA-1 digest")
    return digest


def sha1_of_file(file_path: Path) -> str:
    hasher = hashlib.sha1()
    with open(file_path, "rb") as f:
        for block in iter(lambda: f.read(65536), b""):
            hasher.update(block)
    return hasher.hexdigest()


def extract_wordpress_archive(archive_path: Path, extract_to_dir: Path) -> Path:
    """
    Extract the release tarball and return the path of its ``wordpress``
    directory.
    """
    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            tar.extractall(extract_to_dir, filter="data")
    except tarfile.TarError as e:
        raise RuntimeError(f"Failed to extract {archive_path}: {e}") from e

    source_dir = extract_to_dir / "wordpress"
    if not (source_dir / static_config.WP_INSTALLED_MARKER).is_file():
        raise RuntimeError(
            f"Archive {archive_path} does not contain a WordPress release"
        )
    return source_dir


def install_wordpress(
    params: SiteParameters,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    wp_settings = app_settings.wordpress
    web_root = params.web_root

    if wordpress_already_deployed(web_root):
        log_message(
            f"{symbols.get('info', 'ℹ️')} WordPress is already present in {web_root}; "
            "keeping the existing files.",
            "info",
            logger_to_use,
            app_settings,
        )
        return

    download_dir = app_settings.paths.download_dir
    download_dir.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(
        prefix="wordpress-", dir=str(download_dir)
    ) as work_dir_name:
        work_dir = Path(work_dir_name)
        archive_path = work_dir / "latest.tar.gz"
        download_file(
            wp_settings.download_url,
            archive_path,
            wp_settings.http_timeout,
            logger_to_use,
        )

        if wp_settings.verify_checksum:
            expected = fetch_expected_sha1(
                wp_settings.checksum_url, wp_settings.http_timeout
            )
            actual = sha1_of_file(archive_path)
            if actual != expected:
                raise RuntimeError(
                    f"Checksum mismatch for {wp_settings.download_url}: "
                    f"expected {expected}, got {actual}"
                )
            log_message(
                f"{symbols.get('lock', '🔒')} Archive checksum verified.",
                "info",
                logger_to_use,
                app_settings,
            )

        source_dir = extract_wordpress_archive(archive_path, work_dir)
        log_message(
            "WordPress downloaded and extracted.",
            "info",
            logger_to_use,
            app_settings,
        )

        cleanup_directory_contents(web_root, app_settings, logger_to_use)
        shutil.copytree(source_dir, web_root, symlinks=True, dirs_exist_ok=True)

    log_message(
        f"{symbols.get('success', '✅')} WordPress files copied to {web_root}.",
        "success",
        logger_to_use,
        app_settings,
    )


def set_permissions(
    executor: CommandExecutor,
    web_root: Path,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Owner www-data for everything, 755 for directories, 644 for files."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    owner = f"{app_settings.wordpress.web_user}:{app_settings.wordpress.web_group}"

    executor.run("chown", ["-R", owner, str(web_root)])
    executor.run(
        "find", [str(web_root), "-type", "d", "-exec", "chmod", "755", "{}", "+"]
    )
    executor.run(
        "find", [str(web_root), "-type", "f", "-exec", "chmod", "644", "{}", "+"]
    )
    log_message(
        f"{symbols.get('success', '✅')} File permissions set under {web_root}.",
        "success",
        logger_to_use,
        app_settings,
    )


def finalize_installation(
    executor: CommandExecutor,
    params: SiteParameters,
    app_settings: AppSettings,
    tls_enabled: bool,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    uploads_dir = params.web_root / "wp-content" / "uploads"
    owner = f"{app_settings.wordpress.web_user}:{app_settings.wordpress.web_group}"

    uploads_dir.mkdir(parents=True, exist_ok=True)
    executor.run("chown", ["-R", owner, str(uploads_dir)])
    executor.run("chmod", ["-R", "755", str(uploads_dir)])

    scheme = "https" if tls_enabled else "http"
    log_message(
        f"{symbols.get('sparkles', '✨')} WordPress installation is complete!",
        "success",
        logger_to_use,
        app_settings,
    )
    log_message(
        f"You can access your website at {scheme}://{params.domain}/",
        "info",
        logger_to_use,
        app_settings,
    )
