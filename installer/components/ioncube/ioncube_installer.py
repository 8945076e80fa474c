"""
ionCube loader installer module.

The loaders ship as a tarball of .so files, one per PHP version; they are
unpacked into a fixed directory and activated later by the configurator.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from common.command_utils import log_server, run_elevated_command
from common.file_utils import ensure_directory, remove_path
from common.network_utils import download_file
from common.system_utils import path_exists
from installer.config_models import AppSettings


class IoncubeInstaller:
    """
    Downloads and unpacks the ionCube loaders.

    It does not act as a registered component.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.settings = app_settings.ioncube

    def loader_path(self, php_version: str) -> str:
        return f"{self.settings.install_dir}/ioncube_loader_lin_{php_version}.so"

    def install(self) -> bool:
        symbols = self.app_settings.symbols
        log_server(
            f"{symbols.get('package', '📦')} Installing ionCube Loader...",
            "info",
            self.logger,
            self.app_settings,
        )
        with tempfile.TemporaryDirectory() as tmp_dir:
            archive = Path(tmp_dir) / "ioncube.tar.gz"
            if not download_file(
                self.settings.download_url, archive, self.app_settings, self.logger
            ):
                return False
            try:
                ensure_directory(
                    self.settings.install_dir, self.app_settings, self.logger
                )
                run_elevated_command(
                    [
                        "tar", "-xzf", str(archive),
                        "-C", self.settings.install_dir,
                        "--strip-components=1",
                    ],
                    self.app_settings,
                    current_logger=self.logger,
                )
            except Exception as e:
                self.logger.error(f"Error unpacking ionCube loaders: {str(e)}")
                return False
        return True

    def uninstall(self) -> bool:
        return remove_path(self.settings.install_dir, self.app_settings, self.logger)

    def is_installed(self) -> bool:
        return path_exists(
            self.loader_path(self.settings.fallback_version),
            self.app_settings,
            self.logger,
            "-f",
        )
