"""
Fail2ban configurator module.

Adds an nginx-404 filter and a jail file covering sshd and the admin user's
nginx logs.
"""

import logging
from typing import Optional

from common.command_utils import log_server, run_elevated_command
from common.file_utils import remove_path, write_file
from common.system_utils import manage_service, path_exists, service_is_active
from installer.base_component import BaseComponent
from installer.components.fail2ban.fail2ban_installer import Fail2banInstaller
from installer.config import SCRIPT_VERSION
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


def render_jail(app_settings: AppSettings) -> str:
    settings = app_settings.fail2ban
    # fail2ban splits logpath on newlines; continuation lines must be indented.
    logpath = "\n          ".join(
        settings.nginx_logpaths + app_settings.admin_user.log_globs
    )
    return settings.jail_template.format(
        script_version=SCRIPT_VERSION,
        sshd_maxretry=settings.sshd_maxretry,
        bantime=settings.bantime,
        findtime=settings.findtime,
        logpath=logpath,
        nginx_404_maxretry=settings.nginx_404_maxretry,
    )


@ComponentRegistry.register(
    name="fail2ban",
    metadata={
        "dependencies": ["admin_user"],
        "description": "fail2ban jails for sshd and nginx 404 floods",
    },
)
class Fail2banConfigurator(BaseComponent):
    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = Fail2banInstaller(app_settings, self.logger)
        self.settings = app_settings.fail2ban

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def configure(self) -> bool:
        try:
            write_file(
                self.settings.filter_path,
                self.settings.filter_template,
                self.app_settings,
                self.logger,
            )
            write_file(
                self.settings.jail_path,
                render_jail(self.app_settings),
                self.app_settings,
                self.logger,
            )
            # The server exits on a jail without log files while restart still succeeds.
            run_elevated_command(
                ["fail2ban-client", "-t"],
                self.app_settings,
                current_logger=self.logger,
            )
            manage_service("fail2ban", ("enable", "restart"), self.app_settings, self.logger)
            log_server(
                f"{self.symbols.get('lock', '🔒')} fail2ban jails active.",
                "success",
                self.logger,
                self.app_settings,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring fail2ban: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        try:
            remove_path(self.settings.jail_path, self.app_settings, self.logger)
            remove_path(self.settings.filter_path, self.app_settings, self.logger)
            manage_service("fail2ban", ("restart",), self.app_settings, self.logger)
            return True
        except Exception as e:
            self.logger.error(f"Error unconfiguring fail2ban: {str(e)}")
            return False

    def is_configured(self) -> bool:
        return (
            path_exists(self.settings.filter_path, self.app_settings, self.logger, "-f")
            and path_exists(self.settings.jail_path, self.app_settings, self.logger, "-f")
            and service_is_active("fail2ban", self.app_settings, self.logger)
        )
