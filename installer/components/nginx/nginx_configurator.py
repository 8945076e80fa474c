"""
Nginx configurator module.

Writes the shared include files every vhost relies on (proxy.conf,
proxy_laravel.conf, the Cloudflare real IP list and the vhosts include),
protects /myadmin with basic auth and keeps the service running.
"""

import logging
import subprocess
from typing import Iterable, List, Optional

from common.command_utils import log_server, run_elevated_command
from common.credentials import append_credential, generate_password, read_credential
from common.file_utils import ensure_directory, remove_path, write_file
from common.network_utils import fetch_text
from common.system_utils import (
    get_php_version,
    manage_service,
    path_exists,
    service_is_active,
)
from installer.base_component import BaseComponent
from installer.components.nginx.nginx_installer import NginxInstaller
from installer.config import SCRIPT_VERSION
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry

HTPASSWD_CREDENTIAL_LABEL = "Nginx htaccess"


def htpasswd_path(app_settings: AppSettings) -> str:
    return f"{app_settings.admin_user.home_dir}/.htpasswd"


def php_fpm_socket(app_settings: AppSettings, php_version: str) -> str:
    return app_settings.php.fpm_socket_template.format(version=php_version)


def render_proxy_conf(app_settings: AppSettings, php_version: str) -> str:
    return app_settings.nginx.proxy_conf_template.format(
        script_version=SCRIPT_VERSION,
        php_fpm_socket=php_fpm_socket(app_settings, php_version),
        certs_dir=app_settings.admin_user.certs_dir,
        htpasswd_file=htpasswd_path(app_settings),
        phpmyadmin_web_root=app_settings.phpmyadmin.web_root,
    )


def render_vhost(
    app_settings: AppSettings, domain: str, web_root: str, proxy_conf: str
) -> str:
    return app_settings.nginx.vhost_template.format(
        domain=domain,
        web_root=web_root,
        log_root=app_settings.admin_user.logs_dir,
        proxy_conf=proxy_conf,
    )


def _ip_ranges(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def render_cloudflare_conf(ipv4: Iterable[str], ipv6: Iterable[str]) -> str:
    lines = ["#Cloudflare - IPv4", ""]
    lines += [f"set_real_ip_from {cidr};" for cidr in ipv4]
    lines += ["", "# - IPv6", ""]
    lines += [f"set_real_ip_from {cidr};" for cidr in ipv6]
    lines += ["", "real_ip_header CF-Connecting-IP;", ""]
    return "\n".join(lines)


def check_nginx_configuration(
    app_settings: AppSettings, logger: Optional[logging.Logger] = None
) -> None:
    """Run `nginx -t`. CalledProcessError propagates."""
    try:
        run_elevated_command(
            ["nginx", "-t"],
            app_settings,
            capture_output=True,
            current_logger=logger,
        )
    except subprocess.CalledProcessError:
        (logger or logging.getLogger(__name__)).error(
            "Nginx configuration test failed. Check logs."
        )
        raise


@ComponentRegistry.register(
    name="nginx",
    metadata={
        "dependencies": ["php", "admin_user"],
        "description": "Nginx web server and shared include files",
    },
)
class NginxConfigurator(BaseComponent):
    """
    Configurator for Nginx.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.installer = NginxInstaller(app_settings, self.logger)
        self.settings = app_settings.nginx

    def install(self) -> bool:
        return self.installer.install()

    def uninstall(self) -> bool:
        return self.installer.uninstall()

    def is_installed(self) -> bool:
        return self.installer.is_installed()

    def configure(self) -> bool:
        try:
            php_version = get_php_version(self.app_settings, self.logger)
            self._write_proxy_includes(php_version)
            if self.settings.enable_cloudflare:
                self._write_cloudflare_conf()
            self._write_vhosts_include()
            self._ensure_htpasswd()
            check_nginx_configuration(self.app_settings, self.logger)
            manage_service(
                "nginx", ("enable", "restart"), self.app_settings, self.logger
            )
            log_server(
                f"{self.symbols.get('success', '✅')} Nginx configured.",
                "success",
                self.logger,
                self.app_settings,
            )
            return True
        except Exception as e:
            self.logger.error(f"Error configuring Nginx: {str(e)}")
            return False

    def unconfigure(self) -> bool:
        """Remove the shared include files. Existing vhosts are left alone."""
        paths = [
            self.settings.proxy_laravel_conf_path,
            self.settings.proxy_conf_path,
            self.settings.cloudflare_conf_path,
            self.settings.vhosts_include_path,
        ]
        success = all(
            remove_path(path, self.app_settings, self.logger) for path in paths
        )
        if success:
            try:
                manage_service("nginx", ("reload",), self.app_settings, self.logger)
            except subprocess.CalledProcessError as e:
                self.logger.error(f"Error reloading Nginx: {str(e)}")
                return False
        return success

    def is_configured(self) -> bool:
        return (
            path_exists(self.settings.proxy_conf_path, self.app_settings, self.logger, "-f")
            and path_exists(htpasswd_path(self.app_settings), self.app_settings, self.logger, "-f")
            and path_exists(self.settings.vhosts_include_path, self.app_settings, self.logger, "-f")
            and service_is_active("nginx", self.app_settings, self.logger)
        )

    def _write_proxy_includes(self, php_version: str) -> None:
        write_file(
            self.settings.proxy_conf_path,
            render_proxy_conf(self.app_settings, php_version),
            self.app_settings,
            self.logger,
        )
        write_file(
            self.settings.proxy_laravel_conf_path,
            self.settings.proxy_laravel_conf_template.format(
                script_version=SCRIPT_VERSION,
                proxy_conf_path=self.settings.proxy_conf_path,
            ),
            self.app_settings,
            self.logger,
        )

    def _write_cloudflare_conf(self) -> None:
        ipv4 = _ip_ranges(
            fetch_text(self.settings.cloudflare_ipv4_url, self.app_settings, self.logger)
        )
        ipv6 = _ip_ranges(
            fetch_text(self.settings.cloudflare_ipv6_url, self.app_settings, self.logger)
        )
        write_file(
            self.settings.cloudflare_conf_path,
            render_cloudflare_conf(ipv4, ipv6),
            self.app_settings,
            self.logger,
        )

    def _write_vhosts_include(self) -> None:
        ensure_directory(self.settings.vhost_dir, self.app_settings, self.logger)
        write_file(
            self.settings.vhosts_include_path,
            self.settings.vhosts_include_template.format(
                script_version=SCRIPT_VERSION,
                vhost_dir=self.settings.vhost_dir,
            ),
            self.app_settings,
            self.logger,
        )

    def _ensure_htpasswd(self) -> None:
        htpasswd_file = htpasswd_path(self.app_settings)
        if path_exists(htpasswd_file, self.app_settings, self.logger, "-f") and read_credential(
            HTPASSWD_CREDENTIAL_LABEL, self.app_settings, self.logger
        ):
            self.logger.info(f"{htpasswd_file} already exists, keeping it.")
            return

        user = self.settings.htpasswd_user
        password = generate_password(self.settings.htpasswd_password_length)
        append_credential(
            HTPASSWD_CREDENTIAL_LABEL,
            f"{user} {password}",
            self.app_settings,
            self.logger,
        )
        # -i reads the password from stdin so it never shows up in the log.
        run_elevated_command(
            ["htpasswd", "-ic", htpasswd_file, user],
            self.app_settings,
            cmd_input=password + "\n",
            capture_output=True,
            current_logger=self.logger,
        )
        admin = self.app_settings.admin_user.name
        # nginx workers read the file, so the group is the worker group.
        run_elevated_command(
            ["chmod", "640", htpasswd_file],
            self.app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["chown", f"{admin}:{self.settings.worker_group}", htpasswd_file],
            self.app_settings,
            current_logger=self.logger,
        )
