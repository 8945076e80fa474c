"""
Admin user configurator module.

Creates the administrative login (vdsadmin by default) with SSH access,
passwordless sudo and the home directory layout the web stack writes into.
"""

import logging
from typing import Optional

from common.command_utils import log_server, run_elevated_command
from common.file_utils import (
    append_line_if_missing,
    ensure_directory,
    remove_path,
    write_file,
)
from common.system_utils import path_exists, user_exists
from installer.base_component import BaseComponent
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


@ComponentRegistry.register(
    name="admin_user",
    metadata={
        "dependencies": [],
        "description": "Administrative user, SSH keys, sudoers and home layout",
    },
)
class AdminUserConfigurator(BaseComponent):
    """
    Configurator for the admin user.

    There is no package to install; everything happens in configure().
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.user = app_settings.admin_user

    @property
    def owner(self) -> str:
        return f"{self.user.name}:{self.user.name}"

    def install(self) -> bool:
        return True

    def uninstall(self) -> bool:
        return True

    def is_installed(self) -> bool:
        return user_exists(self.user.name, self.app_settings, self.logger)

    def configure(self) -> bool:
        try:
            self._ensure_user()
            self._setup_ssh()
            self._grant_sudo()
            self._create_directories()
            append_line_if_missing(
                f"{self.user.home_dir}/.bashrc",
                self.user.shell_alias,
                self.app_settings,
                self.logger,
            )
            if self.user.remove_default_user:
                self._remove_default_user()
            log_server(
                f"{self.symbols.get('success', '✅')} Admin user '{self.user.name}' configured.",
                "success",
                self.logger,
                self.app_settings,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring admin user: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        """Revoke passwordless sudo. The account and its home are kept."""
        return remove_path(self.user.sudoers_file, self.app_settings, self.logger)

    def is_configured(self) -> bool:
        return user_exists(
            self.user.name, self.app_settings, self.logger
        ) and path_exists(
            self.user.sudoers_file, self.app_settings, self.logger, "-f"
        )

    def _ensure_user(self) -> None:
        if user_exists(self.user.name, self.app_settings, self.logger):
            self.logger.info(f"User '{self.user.name}' already exists.")
            return
        self.logger.info(f"Creating user '{self.user.name}'...")
        run_elevated_command(
            ["useradd", "-m", "-s", self.user.shell, self.user.name],
            self.app_settings,
            current_logger=self.logger,
        )

    def _setup_ssh(self) -> None:
        ssh_dir = f"{self.user.home_dir}/.ssh"
        authorized_keys = f"{ssh_dir}/authorized_keys"
        ensure_directory(ssh_dir, self.app_settings, self.logger, mode="700")

        if path_exists(
            self.user.source_authorized_keys, self.app_settings, self.logger, "-f"
        ):
            run_elevated_command(
                ["cp", self.user.source_authorized_keys, authorized_keys],
                self.app_settings,
                current_logger=self.logger,
            )
        elif not path_exists(authorized_keys, self.app_settings, self.logger, "-s"):
            private_key = f"{ssh_dir}/id_rsa"
            if not path_exists(private_key, self.app_settings, self.logger, "-f"):
                run_elevated_command(
                    [
                        "ssh-keygen", "-t", "rsa", "-b", str(self.user.ssh_key_bits),
                        "-N", "", "-f", private_key,
                    ],
                    self.app_settings,
                    current_logger=self.logger,
                )
            run_elevated_command(
                ["cp", f"{private_key}.pub", authorized_keys],
                self.app_settings,
                current_logger=self.logger,
            )

        run_elevated_command(
            ["chmod", "600", authorized_keys],
            self.app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["chown", "-R", self.owner, ssh_dir],
            self.app_settings,
            current_logger=self.logger,
        )

    def _grant_sudo(self) -> None:
        for group in self.user.extra_groups:
            run_elevated_command(
                ["usermod", "-aG", group, self.user.name],
                self.app_settings,
                current_logger=self.logger,
            )
        if self.user.sudoers_nopasswd:
            write_file(
                self.user.sudoers_file,
                f"{self.user.name} ALL=(ALL) NOPASSWD: ALL\n",
                self.app_settings,
                self.logger,
                mode="440",
            )

    def _create_directories(self) -> None:
        for relative in self.user.directories:
            ensure_directory(
                f"{self.user.home_dir}/{relative}",
                self.app_settings,
                self.logger,
            )
        top_level = [
            f"{self.user.home_dir}/{d}"
            for d in sorted({d.split("/")[0] for d in self.user.directories})
        ]
        # The .htpasswd in the home is group-owned by nginx, so no chown -R of the home itself.
        run_elevated_command(
            ["chown", "-R", self.owner] + top_level,
            self.app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["chmod", self.user.home_mode, self.user.home_dir],
            self.app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["chmod", "755"] + top_level,
            self.app_settings,
            current_logger=self.logger,
        )

    def _remove_default_user(self) -> None:
        if not user_exists(self.user.default_user, self.app_settings, self.logger):
            return
        log_server(
            f"{self.symbols.get('warning', '!')} Removing default user '{self.user.default_user}'.",
            "warning",
            self.logger,
            self.app_settings,
        )
        run_elevated_command(
            ["deluser", "--remove-home", self.user.default_user],
            self.app_settings,
            current_logger=self.logger,
        )
