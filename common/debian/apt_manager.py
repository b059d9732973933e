# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from common.command_utils import CommandExecutor
from common.file_utils import write_text_file
from provision.config_models import AppSettings

APT_ENV: Dict[str, str] = {"DEBIAN_FRONTEND": "noninteractive"}


class AptManager:
    """
    A centralized manager for Debian apt packages using command-line tools.

    Third-party repositories are added as deb822 ``.sources`` files with a
    ``Signed-By`` keyring. Every operation raises CommandError (or OSError)
    on failure.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.executor = executor
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)

    def update(self) -> None:
        """Updates the list of available packages using 'apt-get update'."""
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        self.executor.run("apt-get", ["update", "-yq"], env=APT_ENV)
        self.logger.info("Apt package lists updated successfully.")

    def is_installed(self, package_name: str) -> bool:
        result = self.executor.run(
            "dpkg-query",
            ["-W", "-f=${db:Status-Status}", package_name],
            check=False,
        )
        return result.exit_code == 0 and result.output.strip() == "installed"

    def install(
        self,
        packages: Union[List[str], str],
        update_first: bool = False,
    ) -> None:
        """
        Installs one or more packages using 'apt-get install'.

        Packages that dpkg already reports as installed are left alone.

        Args:
            packages: A single package name or a list of package names.
            update_first: Whether to update the package lists before installing.
        """
        if not isinstance(packages, list):
            packages = [packages]

        if update_first:
            self.update()

        packages_to_install = []
        for pkg_name in packages:
            if self.is_installed(pkg_name):
                self.logger.info(
                    f"Package '{pkg_name}' is already installed. Skipping."
                )
            else:
                packages_to_install.append(pkg_name)

        if not packages_to_install:
            self.logger.info("All requested packages are already installed.")
            return

        self.logger.info(
            f"Committing installation for: {', '.join(packages_to_install)}"
        )
        self.executor.run(
            "apt-get", ["install", "-yq", *packages_to_install], env=APT_ENV
        )
        self.logger.info("Packages installed successfully.")

    def add_repository(
        self,
        repo_name: str,
        repo_details: Dict[str, str],
        update_after: bool = True,
    ) -> Path:
        """
        Adds a new apt repository by creating a deb822-style .sources file.

        Args:
            repo_name: The name for the repository file.
            repo_details: The deb822 fields, written in insertion order.
            update_after: Whether to update package lists after adding.

        Returns:
            The path of the written .sources file.
        """
        self.logger.info(
            f"Adding repository '{repo_name}' using deb822 format..."
        )
        repo_file_path = (
            self.app_settings.paths.apt_sources_dir / f"{repo_name}.sources"
        )
        deb822_content = "".join(
            f"{key}: {value}\n" for key, value in repo_details.items()
        )
        write_text_file(
            repo_file_path,
            deb822_content,
            self.app_settings,
            mode=0o644,
            current_logger=self.logger,
        )
        self.logger.info(
            f"Successfully created repository file: {repo_file_path}"
        )

        if update_after:
            self.update()
        return repo_file_path

    def add_ppa(self, ppa: str, update_after: bool = True) -> None:
        self.logger.info(f"Adding PPA '{ppa}'...")
        self.executor.run(
            "add-apt-repository", ["-y", ppa], env=APT_ENV
        )
        if update_after:
            self.update()

    def add_gpg_key_from_url(self, key_url: str, keyring_path: str) -> None:
        """
        Downloads a GPG keyring from a URL and saves it world-readable.

        Args:
            key_url: The URL of the GPG key.
            keyring_path: The path to save the keyring file.
        """
        self.logger.info(f"Adding GPG key from {key_url} to {keyring_path}")
        keyring_dir = str(Path(keyring_path).parent)
        self.executor.run("install", ["-m", "0755", "-d", keyring_dir])
        self.executor.run("curl", ["-fsSL", key_url, "-o", keyring_path])
        self.executor.run("chmod", ["a+r", keyring_path])
        self.logger.info("GPG key added and permissions set.")
