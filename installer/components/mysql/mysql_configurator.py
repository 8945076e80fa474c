"""
MySQL configurator module.

Secures the root account with a generated password (recorded in the
credentials file) and opens the listener on the configured bind address.
"""

import logging
from typing import Optional

from common.command_utils import log_server, run_command, run_elevated_command
from common.credentials import append_credential, generate_password, read_credential
from common.system_utils import manage_service, service_is_active
from installer.base_component import BaseComponent
from installer.components.mysql.mysql_installer import MysqlInstaller
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


def sql_quote(value: str) -> str:
    """Quote a value as a MySQL single-quoted string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def root_password_sql(password: str) -> str:
    return (
        "ALTER USER 'root'@'localhost' IDENTIFIED WITH mysql_native_password "
        f"BY {sql_quote(password)};\nFLUSH PRIVILEGES;\n"
    )


ROOT_PLUGIN_QUERY = "SELECT plugin FROM mysql.user WHERE user = 'root' AND host = 'localhost';"


@ComponentRegistry.register(
    name="mysql",
    metadata={
        "dependencies": ["admin_user"],
        "description": "MySQL server with a generated root password",
    },
)
class MysqlConfigurator(BaseComponent):
    """
    Configurator for MySQL.

    The root password is generated once and recorded before it is applied.
    Later runs log in with the recorded password; when that fails (an
    earlier ALTER USER never went through) the recorded password is applied
    again over the socket instead of generating a new one.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = MysqlInstaller(app_settings, self.logger)
        self.settings = app_settings.mysql

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def configure(self) -> bool:
        try:
            manage_service(
                self.settings.service_name, ("restart",), self.app_settings, self.logger
            )
            self._secure_root()
            self._set_bind_address(self.settings.bind_address)
            manage_service(
                self.settings.service_name, ("enable", "restart"), self.app_settings, self.logger
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring MySQL: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        """Bind MySQL back to localhost. The root password is kept."""
        try:
            self._set_bind_address("127.0.0.1")
            manage_service(
                self.settings.service_name, ("restart",), self.app_settings, self.logger
            )
            return True
        except Exception as e:
            self.logger.error(f"Error unconfiguring MySQL: {str(e)}")
            return False

    def is_configured(self) -> bool:
        try:
            password = read_credential(
                self.settings.credential_label, self.app_settings, self.logger
            )
            return (
                password is not None
                and service_is_active(
                    self.settings.service_name, self.app_settings, self.logger
                )
                and self.root_password_active(password)
            )
        except Exception as e:
            self.logger.error(f"Error checking MySQL configuration: {str(e)}")
            return False

    def root_password_active(self, password: str) -> bool:
        """True when root logs in with `password` and no longer uses auth_socket."""
        result = run_command(
            ["mysql", "-u", "root", "-N", "-B", "-e", ROOT_PLUGIN_QUERY],
            self.app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
            env={"MYSQL_PWD": password},
            log_output=False,
        )
        return result.returncode == 0 and (result.stdout or "").strip() == "mysql_native_password"

    def _secure_root(self) -> None:
        password = read_credential(
            self.settings.credential_label, self.app_settings, self.logger
        )
        if password:
            if self.root_password_active(password):
                log_server(
                    f"{self.symbols.get('info', 'ℹ️')} MySQL root password already set, skipping.",
                    "info",
                    self.logger,
                    self.app_settings,
                )
                return
            log_server(
                f"{self.symbols.get('warning', '⚠️')} Recorded MySQL root password is not active, applying it again.",
                "warning",
                self.logger,
                self.app_settings,
            )
        else:
            log_server(
                f"{self.symbols.get('lock', '🔒')} Securing MySQL root user...",
                "info",
                self.logger,
                self.app_settings,
            )
            password = generate_password(
                self.settings.root_password_length, self.settings.root_password_alphabet
            )
            append_credential(
                self.settings.credential_label, password, self.app_settings, self.logger
            )
        # SQL goes through stdin so the password stays out of the command log.
        run_elevated_command(
            ["mysql"],
            self.app_settings,
            cmd_input=root_password_sql(password),
            current_logger=self.logger,
        )

    def _set_bind_address(self, address: str) -> None:
        run_elevated_command(
            [
                "sed", "-i",
                f"s/^bind-address.*/bind-address = {address}/",
                self.settings.mysqld_cnf_path,
            ],
            self.app_settings,
            current_logger=self.logger,
        )
