"""
Memcached configurator module.
"""

import logging
from typing import Optional

from common.command_utils import run_elevated_command
from common.system_utils import manage_service, service_is_active
from installer.base_component import BaseComponent
from installer.components.memcached.memcached_installer import MemcachedInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="memcached",
    metadata={
        "dependencies": [],
        "description": "Memcached object cache",
    },
)
class MemcachedConfigurator(BaseComponent):
    """Keeps the memcached service enabled and running."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = MemcachedInstaller(app_settings, self.logger)
        self.service_name = app_settings.memcached.service_name

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def configure(self) -> bool:
        try:
            manage_service(
                self.service_name, ("enable", "restart"), self.app_settings, self.logger
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring memcached: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        try:
            run_elevated_command(
                ["systemctl", "disable", "--now", self.service_name],
                self.app_settings,
                current_logger=self.logger,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error stopping memcached: {str(e)}")
            return False

    def is_configured(self) -> bool:
        return service_is_active(self.service_name, self.app_settings, self.logger)
