"""
UFW (Uncomplicated Firewall) configurator module.
"""

import logging
from typing import Optional

from common.command_utils import log_server, run_elevated_command
from installer.base_component import BaseComponent
from installer.components.ufw.ufw_installer import UfwInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="ufw",
    metadata={
        "dependencies": ["prerequisites"],
        "description": "UFW (Uncomplicated Firewall) configuration",
    },
)
class UfwConfigurator(BaseComponent):
    """
    Configurator for UFW (Uncomplicated Firewall).

    Opens the configured application profiles and enables the firewall.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = UfwInstaller(app_settings, self.logger)

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def configure(self) -> bool:
        try:
            for rule in self.app_settings.ufw.allow_rules:
                # Profiles such as "Nginx Full" contain spaces; keep them one argument.
                run_elevated_command(
                    ["ufw", "allow", rule],
                    self.app_settings,
                    current_logger=self.logger,
                )
            run_elevated_command(
                ["ufw", "--force", "enable"],
                self.app_settings,
                current_logger=self.logger,
            )
            log_server(
                f"{self.symbols.get('lock', '🔒')} Firewall enabled.",
                "success",
                self.logger,
                self.app_settings,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring UFW: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        try:
            run_elevated_command(
                ["ufw", "--force", "reset"],
                self.app_settings,
                current_logger=self.logger,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error unconfiguring UFW: {str(e)}")
            return False

    def is_configured(self) -> bool:
        try:
            result = run_elevated_command(
                ["ufw", "status"],
                self.app_settings,
                capture_output=True,
                check=False,
                current_logger=self.logger,
            )
            return "Status: active" in (result.stdout or "")
        except Exception as e:
            self.logger.error(f"Error checking UFW configuration: {str(e)}")
            return False
