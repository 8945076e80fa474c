"""
phpMyAdmin component.
"""

import logging
from typing import Optional

from installer.base_component import BaseComponent
from installer.components.phpmyadmin.phpmyadmin_installer import PhpMyAdminInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="phpmyadmin",
    metadata={
        "dependencies": ["php"],
        "description": "phpMyAdmin served from /myadmin behind basic auth",
    },
)
class PhpMyAdminConfigurator(BaseComponent):
    """Access control lives in nginx's proxy.conf; nothing to configure here."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = PhpMyAdminInstaller(app_settings, self.logger)

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def configure(self) -> bool:
        return True

    def unconfigure(self) -> bool:
        return True

    def is_configured(self) -> bool:
        return self.installer.is_installed()
