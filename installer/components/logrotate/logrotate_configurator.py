"""
Logrotate configurator module.
"""

import logging
from typing import Optional

from common.file_utils import remove_path, write_file
from common.system_utils import path_exists
from installer.base_component import BaseComponent
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


def render_logrotate(app_settings: AppSettings) -> str:
    return app_settings.logrotate.template.format(
        log_globs=" ".join(app_settings.admin_user.log_globs),
        rotate=app_settings.logrotate.rotate,
        admin_user=app_settings.admin_user.name,
    )


@ComponentRegistry.register(
    name="logrotate",
    metadata={
        "dependencies": ["admin_user"],
        "description": "Daily rotation of the admin user's nginx logs",
    },
)
class LogrotateConfigurator(BaseComponent):
    """logrotate ships with Ubuntu, so install is a no-op."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.config_path = app_settings.logrotate.config_path

    def install(self) -> bool:
        return True

    def uninstall(self) -> bool:
        return True

    def is_installed(self) -> bool:
        return True

    def configure(self) -> bool:
        try:
            write_file(
                self.config_path,
                render_logrotate(self.app_settings),
                self.app_settings,
                self.logger,
                mode="644",
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring logrotate: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        return remove_path(self.config_path, self.app_settings, self.logger)

    def is_configured(self) -> bool:
        return path_exists(self.config_path, self.app_settings, self.logger, "-f")
