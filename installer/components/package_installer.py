"""
Shared apt-backed installer used by the per-component installer classes.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from common.command_utils import check_package_installed, log_server
from common.debian.apt_manager import AptManager
from installer.config_models import AppSettings


class PackageInstaller(ABC):
    """
    Installs, purges and probes a fixed list of apt packages.

    It does not act as a registered component; the configurator that owns
    it delegates install/uninstall/is_installed here.
    """

    display_name: str = "packages"

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.apt_manager = AptManager(logger=self.logger)

    @property
    @abstractmethod
    def packages(self) -> List[str]:
        """Apt packages this installer manages."""

    def install(self) -> bool:
        symbols = self.app_settings.symbols
        log_server(
            f"{symbols.get('package', '📦')} Installing {self.display_name}: {', '.join(self.packages)}",
            "info",
            self.logger,
            self.app_settings,
        )
        if not self.apt_manager.install(self.packages, self.app_settings):
            log_server(
                f"{symbols.get('error', '❌')} Failed to install {self.display_name}.",
                "error",
                self.logger,
                self.app_settings,
            )
            return False
        log_server(
            f"{symbols.get('success', '✅')} {self.display_name} installed.",
            "success",
            self.logger,
            self.app_settings,
        )
        return True

    def uninstall(self) -> bool:
        symbols = self.app_settings.symbols
        log_server(
            f"{symbols.get('info', 'ℹ️')} Purging {self.display_name}...",
            "info",
            self.logger,
            self.app_settings,
        )
        if not self.apt_manager.purge(self.packages, self.app_settings):
            return False
        return self.apt_manager.autoremove(self.app_settings, purge=True)

    def is_installed(self) -> bool:
        return all(
            check_package_installed(pkg, self.app_settings, self.logger)
            for pkg in self.packages
        )
