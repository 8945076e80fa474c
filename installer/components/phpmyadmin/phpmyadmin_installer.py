"""
phpMyAdmin installer module.

The latest all-languages release is unpacked into the web root under a
fixed directory name, which proxy.conf exposes as /myadmin.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from common.command_utils import log_server, run_command, run_elevated_command
from common.file_utils import ensure_directory, remove_path
from common.network_utils import download_file
from common.system_utils import path_exists
from installer.config_models import AppSettings


class PhpMyAdminInstaller:
    """
    Downloads phpMyAdmin and moves it into place.

    It does not act as a registered component.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.settings = app_settings.phpmyadmin

    def install(self) -> bool:
        symbols = self.app_settings.symbols
        log_server(
            f"{symbols.get('package', '📦')} Installing phpMyAdmin...",
            "info",
            self.logger,
            self.app_settings,
        )
        with tempfile.TemporaryDirectory() as tmp_dir:
            archive = Path(tmp_dir) / "phpmyadmin.tar.gz"
            if not download_file(
                self.settings.download_url, archive, self.app_settings, self.logger
            ):
                return False
            try:
                run_command(
                    ["tar", "-xzf", str(archive), "-C", tmp_dir],
                    self.app_settings,
                    current_logger=self.logger,
                )
                unpacked = sorted(
                    p for p in Path(tmp_dir).glob("phpMyAdmin*") if p.is_dir()
                )
                if not unpacked:
                    raise RuntimeError("Archive did not contain a phpMyAdmin* directory.")
                ensure_directory(self.settings.web_root, self.app_settings, self.logger)
                # mv would nest the new release inside an existing directory.
                if self.is_installed() and not remove_path(
                    self.settings.target_dir, self.app_settings, self.logger
                ):
                    raise RuntimeError(f"Could not replace {self.settings.target_dir}.")
                run_elevated_command(
                    ["mv", str(unpacked[0]), self.settings.target_dir],
                    self.app_settings,
                    current_logger=self.logger,
                )
                run_elevated_command(
                    [
                        "chown", "-R",
                        f"{self.settings.owner}:{self.settings.owner}",
                        self.settings.target_dir,
                    ],
                    self.app_settings,
                    current_logger=self.logger,
                )
            except Exception as e:
                self.logger.error(f"Error installing phpMyAdmin: {str(e)}")
                return False
        log_server(
            f"{symbols.get('success', '✅')} phpMyAdmin installed in {self.settings.target_dir}.",
            "success",
            self.logger,
            self.app_settings,
        )
        return True

    def uninstall(self) -> bool:
        return remove_path(self.settings.target_dir, self.app_settings, self.logger)

    def is_installed(self) -> bool:
        return path_exists(self.settings.target_dir, self.app_settings, self.logger, "-d")
