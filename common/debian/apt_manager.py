# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from typing import List, Optional, Union

from common.command_utils import (
    command_exists,
    run_command,
    run_elevated_command,
)
from installer.config import DEBIAN_NONINTERACTIVE_ENV
from installer.config_models import AppSettings


class AptManager:
    """
    A centralized manager for Debian/Ubuntu apt packages.

    Every apt-get call runs non-interactively. Methods return True/False and
    log failures, unless `raise_error` asks for the exception.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def _apt_get(self, args: List[str], app_settings: AppSettings) -> None:
        run_elevated_command(
            ["apt-get"] + args,
            app_settings,
            current_logger=self.logger,
            env=DEBIAN_NONINTERACTIVE_ENV,
        )

    def update(
        self,
        app_settings: AppSettings,
        raise_error: bool = False,
        fix_missing: bool = False,
    ) -> bool:
        """Refresh package lists with 'apt-get update'."""
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        args = ["update", "-yq"]
        if fix_missing:
            args.append("--fix-missing")
        try:
            self._apt_get(args, app_settings)
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            if raise_error:
                raise
            return False

    def upgrade(
        self, app_settings: AppSettings, dist_upgrade: bool = False
    ) -> bool:
        """
        Run 'apt-get upgrade' (or dist-upgrade), retrying once with
        --fix-missing when the first attempt fails.
        """
        verb = "dist-upgrade" if dist_upgrade else "upgrade"
        try:
            self._apt_get([verb, "-yq"], app_settings)
            return True
        except subprocess.CalledProcessError:
            self.logger.warning(f"'apt-get {verb}' failed, retrying with --fix-missing")
        try:
            self._apt_get([verb, "-yq", "--fix-missing"], app_settings)
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"'apt-get {verb}' failed: {e}")
            return False

    def is_installed(
        self, package_name: str, app_settings: AppSettings
    ) -> bool:
        """Probe a package with dpkg-query's db:Status-Status field."""
        result = run_command(
            ["dpkg-query", "-W", "-f=${db:Status-Status}", package_name],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
        )
        return result.returncode == 0 and result.stdout.strip() == "installed"

    def missing_packages(
        self, packages: List[str], app_settings: AppSettings
    ) -> List[str]:
        return [
            pkg for pkg in packages if not self.is_installed(pkg, app_settings)
        ]

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = True,
        force: bool = False,
    ) -> bool:
        """
        Install the packages that are not already installed.

        A failed install is retried once with --fix-missing.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The provisioner settings.
            update_first: Run 'apt-get update' before installing.
            force: Pass every package to apt-get, upgrading installed ones
                to the candidate version.

        Returns:
            True if every package is installed afterwards, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]

        packages_to_install = (
            list(packages) if force else self.missing_packages(packages, app_settings)
        )
        if not packages_to_install:
            self.logger.info(
                f"Already installed: {', '.join(packages)}. Skipping."
            )
            return True

        if update_first and not self.update(app_settings):
            return False

        self.logger.info(
            f"Installing packages: {', '.join(packages_to_install)}"
        )
        try:
            self._apt_get(["install", "-yq"] + packages_to_install, app_settings)
            return True
        except subprocess.CalledProcessError:
            self.logger.warning(
                "Package installation failed, retrying with --fix-missing"
            )
        try:
            self._apt_get(
                ["install", "-yq", "--fix-missing"] + packages_to_install,
                app_settings,
            )
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to install packages: {e}")
            return False

    def add_ppa(
        self, ppa: str, app_settings: AppSettings, update_after: bool = True
    ) -> bool:
        """Add a Launchpad PPA with add-apt-repository."""
        self.logger.info(f"Adding repository {ppa}...")
        try:
            run_elevated_command(
                ["add-apt-repository", "-y", ppa],
                app_settings,
                current_logger=self.logger,
                env=DEBIAN_NONINTERACTIVE_ENV,
            )
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to add repository '{ppa}': {e}")
            return False
        if update_after:
            return self.update(app_settings)
        return True

    def purge(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
    ) -> bool:
        """Purge packages with 'apt-get purge'."""
        if not isinstance(packages, list):
            packages = [packages]
        self.logger.info(f"Purging packages: {', '.join(packages)}")
        try:
            self._apt_get(["purge", "-yq"] + packages, app_settings)
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to purge packages: {e}")
            return False

    def autoremove(
        self,
        app_settings: AppSettings,
        purge: bool = False,
    ) -> bool:
        """Remove automatically installed packages that are no longer needed."""
        self.logger.info("Running autoremove to clean up unused packages...")
        args = ["autoremove", "-yq"]
        if purge:
            args.append("--purge")
        try:
            self._apt_get(args, app_settings)
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to autoremove packages: {e}")
            return False
