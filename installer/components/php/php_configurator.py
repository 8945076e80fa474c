"""
PHP-FPM configurator module.
"""

import logging
from typing import Optional

from common.command_utils import log_server, run_elevated_command
from common.system_utils import (
    get_php_version,
    manage_service,
    service_is_active,
)
from installer.base_component import BaseComponent
from installer.components.php.php_installer import PhpInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="php",
    metadata={
        "dependencies": ["prerequisites"],
        "description": "PHP CLI, PHP-FPM and the common extensions",
    },
)
class PhpConfigurator(BaseComponent):
    """Installs PHP and keeps the matching php<version>-fpm service running."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = PhpInstaller(app_settings, self.logger)

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def fpm_service_name(self) -> str:
        return f"php{get_php_version(self.app_settings, self.logger)}-fpm"

    def configure(self) -> bool:
        try:
            service = self.fpm_service_name()
            manage_service(
                service, ("enable", "restart"), self.app_settings, self.logger
            )
            log_server(
                f"{self.symbols.get('success', '✅')} {service} enabled and running.",
                "success",
                self.logger,
                self.app_settings,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring PHP-FPM: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        try:
            run_elevated_command(
                ["systemctl", "disable", "--now", self.fpm_service_name()],
                self.app_settings,
                current_logger=self.logger,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error stopping PHP-FPM: {str(e)}")
            return False

    def is_configured(self) -> bool:
        try:
            return service_is_active(
                self.fpm_service_name(), self.app_settings, self.logger
            )
        except Exception as e:
            self.logger.debug(f"PHP version not detectable yet: {e}")
            return False
