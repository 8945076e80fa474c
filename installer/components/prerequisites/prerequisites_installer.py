# installer/components/prerequisites/prerequisites_installer.py
# -*- coding: utf-8 -*-
"""
Installer for the essential tools every later step relies on
(curl, git, certbot, ufw, gnupg2, software-properties-common, ...).
"""

import logging
from typing import List, Optional

from common.command_utils import check_package_installed
from common.debian.apt_manager import AptManager
from installer.base_component import BaseComponent
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="prerequisites",
    metadata={
        "dependencies": [],
        "description": "Installs the essential system packages.",
    },
)
class PrerequisitesInstaller(BaseComponent):
    """
    Installer for the essential package list from settings.

    Only missing packages are passed to apt-get. Uninstall is a no-op:
    these tools are shared with the rest of the system.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.apt_manager = AptManager(logger=self.logger)

    @property
    def core_packages(self) -> List[str]:
        return self.app_settings.essential_packages

    def install(self) -> bool:
        self.logger.info("Installing essential packages...")
        if not self.apt_manager.install(
            self.core_packages, self.app_settings, update_first=False
        ):
            self.logger.error("Failed to install essential packages.")
            return False
        self.logger.info("Essential packages installed.")
        return True

    def configure(self) -> bool:
        self.logger.info("Configuration for prerequisites is not required.")
        return True

    def uninstall(self) -> bool:
        self.logger.warning(
            "Essential packages are shared with the system and are not removed."
        )
        return True

    def unconfigure(self) -> bool:
        return True

    def is_installed(self) -> bool:
        for package in self.core_packages:
            if not check_package_installed(
                package, self.app_settings, self.logger
            ):
                self.logger.info(
                    f"Essential package '{package}' is not installed."
                )
                return False
        return True

    def is_configured(self) -> bool:
        return self.is_installed()
