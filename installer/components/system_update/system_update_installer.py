# installer/components/system_update/system_update_installer.py
# -*- coding: utf-8 -*-
"""
Brings the base image up to date before anything else is installed.
"""

import logging
from typing import Optional

from common.command_utils import log_server
from common.debian.apt_manager import AptManager
from installer.base_component import BaseComponent
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="system_update",
    metadata={
        "dependencies": [],
        "description": "apt update, upgrade, dist-upgrade and autoremove.",
    },
)
class SystemUpdateInstaller(BaseComponent):
    """
    Runs the apt update/upgrade cycle.

    update and upgrade are required; dist-upgrade and autoremove failures are
    only logged. There is nothing to configure and nothing to undo, so the
    probes always report False and every run repeats the cycle.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.apt_manager = AptManager(logger=self.logger)

    def install(self) -> bool:
        symbols = self.symbols
        log_server(
            f"{symbols.get('step', '➡️')} Updating system packages...",
            "info",
            self.logger,
            self.app_settings,
        )
        if not self.apt_manager.update(self.app_settings, fix_missing=True):
            return False
        if not self.apt_manager.upgrade(self.app_settings):
            return False
        if not self.apt_manager.upgrade(self.app_settings, dist_upgrade=True):
            log_server(
                f"{symbols.get('warning', '!')} dist-upgrade failed, continuing.",
                "warning",
                self.logger,
                self.app_settings,
            )
        if not self.apt_manager.autoremove(self.app_settings):
            log_server(
                f"{symbols.get('warning', '!')} autoremove failed, continuing.",
                "warning",
                self.logger,
                self.app_settings,
            )
        return True

    def configure(self) -> bool:
        return True

    def uninstall(self) -> bool:
        return True

    def unconfigure(self) -> bool:
        return True

    def is_installed(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return False

    def rollback_installation(self) -> bool:
        self.logger.info("Package upgrades cannot be rolled back, skipping.")
        return True
