"""
ionCube configurator module.
"""

import logging
from typing import List, Optional

from common.command_utils import log_server, run_elevated_command
from common.file_utils import remove_path, write_file
from common.system_utils import (
    get_php_extension_dir,
    get_php_version,
    manage_service,
    path_exists,
)
from installer.base_component import BaseComponent
from installer.components.ioncube.ioncube_installer import IoncubeInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="ioncube",
    metadata={
        "dependencies": ["php"],
        "description": "ionCube PHP loader for FPM and CLI",
    },
)
class IoncubeConfigurator(BaseComponent):
    """
    Activates the ionCube loader matching the installed PHP version.

    Falls back to the configured loader version when no exact match ships.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = IoncubeInstaller(app_settings, self.logger)
        self.settings = app_settings.ioncube

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def _ini_paths(self, php_version: str) -> List[str]:
        conf_dir = self.app_settings.php.conf_dir_template.format(version=php_version)
        return [
            f"{conf_dir}/{sapi}/conf.d/{self.settings.ini_filename}"
            for sapi in ("fpm", "cli")
        ]

    def select_loader(self, php_version: str) -> str:
        loader = self.installer.loader_path(php_version)
        if path_exists(loader, self.app_settings, self.logger, "-f"):
            return loader
        log_server(
            f"{self.symbols.get('warning', '!')} ionCube loader for PHP {php_version} not found, "
            f"falling back to {self.settings.fallback_version}",
            "warning",
            self.logger,
            self.app_settings,
        )
        return self.installer.loader_path(self.settings.fallback_version)

    def configure(self) -> bool:
        try:
            php_version = get_php_version(self.app_settings, self.logger)
            ext_dir = get_php_extension_dir(self.app_settings, self.logger)
            loader = self.select_loader(php_version)
            loader_name = loader.rsplit("/", 1)[-1]

            run_elevated_command(
                ["cp", loader, ext_dir],
                self.app_settings,
                current_logger=self.logger,
            )
            for ini_path in self._ini_paths(php_version):
                write_file(
                    ini_path,
                    f"zend_extension={ext_dir}/{loader_name}\n",
                    self.app_settings,
                    self.logger,
                )
            manage_service(
                f"php{php_version}-fpm",
                ("enable", "restart"),
                self.app_settings,
                self.logger,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring ionCube: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        try:
            php_version = get_php_version(self.app_settings, self.logger)
            for ini_path in self._ini_paths(php_version):
                remove_path(ini_path, self.app_settings, self.logger)
            manage_service(
                f"php{php_version}-fpm", ("restart",), self.app_settings, self.logger
            )
            return True
        except Exception as e:
            self.logger.error(f"Error removing ionCube configuration: {str(e)}")
            return False

    def is_configured(self) -> bool:
        try:
            php_version = get_php_version(self.app_settings, self.logger)
        except Exception as e:
            self.logger.debug(f"PHP version not detectable yet: {e}")
            return False
        return all(
            path_exists(path, self.app_settings, self.logger, "-f")
            for path in self._ini_paths(php_version)
        )
