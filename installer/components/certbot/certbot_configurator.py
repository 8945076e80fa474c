"""
Certbot component.

Certificates are requested per domain by the add-domain and install-project
actions, so the component only guarantees the packages are present.
"""

import logging
from typing import Optional

from installer.base_component import BaseComponent
from installer.components.certbot.certbot_installer import CertbotInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="certbot",
    metadata={
        "dependencies": ["nginx"],
        "description": "Certbot with the nginx plugin",
    },
)
class CertbotConfigurator(BaseComponent):
    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = CertbotInstaller(app_settings, self.logger)

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
