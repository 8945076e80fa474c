# actions/domain_actions.py
# -*- coding: utf-8 -*-
"""
Adds an nginx virtual host for a domain and secures it with Let's Encrypt.

The vhost is proven to work twice: a freshly generated sentinel file must be
served over plain HTTP before certbot runs, and again over HTTPS afterwards.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional

from actions.errors import DomainValidationError, PrerequisiteError
from common.command_utils import get_symbols, log_server, run_elevated_command
from common.file_utils import ensure_directory, write_file
from common.network_utils import is_valid_domain, probe_url
from common.system_utils import get_fqdn, manage_service, path_exists
from installer.components.nginx.nginx_configurator import (
    check_nginx_configuration,
    render_vhost,
)
from installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

PROJECT_TYPES = ("default", "laravel")


@dataclass
class AddDomainResult:
    domain: str
    web_root: str
    vhost_path: str
    sentinel: str


def make_sentinel() -> str:
    """Return `test-<unix time>-<random>`."""
    return f"test-{int(time.time())}-{secrets.randbelow(32768)}"


def certbot_email(app_settings: AppSettings, current_logger: Optional[logging.Logger] = None) -> str:
    if app_settings.certbot.email:
        return app_settings.certbot.email
    return f"webmaster@{get_fqdn(app_settings, current_logger)}"


def _verify_sentinel(
    url: str,
    sentinel: str,
    app_settings: AppSettings,
    logger: logging.Logger,
    verify: bool = True,
) -> None:
    time.sleep(app_settings.domain.settle_seconds)
    body = probe_url(
        url,
        timeout=app_settings.domain.probe_timeout,
        verify=verify,
        current_logger=logger,
    )
    if body != sentinel:
        log_server(
            f"{get_symbols(app_settings).get('error', '❌')} Validation failed for {url}",
            "error",
            logger,
            app_settings,
        )
        raise DomainValidationError(url, sentinel, body)
    log_server(
        f"{get_symbols(app_settings).get('success', '✅')} {url} serves the sentinel.",
        "success",
        logger,
        app_settings,
    )


def add_domain(
    domain: str,
    project_type: str = "default",
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AddDomainResult:
    """
    Create the vhost for `domain`, validate it over HTTP, request a
    certificate and validate it again over HTTPS.

    Args:
        domain: Fully qualified domain name, e.g. "example.com".
        project_type: "default" or "laravel". Laravel sites are served from
            `<www>/<domain>/public` and include proxy_laravel.conf.
        app_settings: Provisioner settings.
        current_logger: Logger to use.

    Raises:
        ValueError: Invalid domain or project type.
        DomainValidationError: The sentinel was not served back.
        PrerequisiteError: The certbot binary is missing.
        subprocess.CalledProcessError: nginx -t, reload or certbot failed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if app_settings is None:
        app_settings = AppSettings()
    symbols = get_symbols(app_settings)

    if not is_valid_domain(domain):
        raise ValueError(f"Invalid domain name: '{domain}'")
    if project_type not in PROJECT_TYPES:
        raise ValueError(
            f"Unknown project type '{project_type}', expected one of {', '.join(PROJECT_TYPES)}"
        )

    admin = app_settings.admin_user
    nginx = app_settings.nginx
    owner = f"{admin.name}:{admin.name}"

    log_server(
        f"{symbols.get('globe', '🌐')} Setting up virtual host for {domain}",
        "info",
        logger_to_use,
        app_settings,
    )

    site_root = f"{admin.www_dir}/{domain}"
    for directory in (site_root, f"{admin.logs_dir}/{domain}", f"{admin.logs_dir}/errors"):
        ensure_directory(directory, app_settings, logger_to_use, owner=owner)

    web_root = site_root
    proxy_conf = nginx.proxy_conf_path
    if project_type == "laravel":
        web_root = f"{site_root}/public"
        ensure_directory(web_root, app_settings, logger_to_use, owner=owner)
        proxy_conf = nginx.proxy_laravel_conf_path

    vhost_path = f"{nginx.vhost_dir}/{domain}.conf"
    write_file(
        vhost_path,
        render_vhost(app_settings, domain, web_root, proxy_conf),
        app_settings,
        logger_to_use,
    )

    log_server("Testing nginx configuration", "info", logger_to_use, app_settings)
    check_nginx_configuration(app_settings, logger_to_use)
    manage_service("nginx", ("reload",), app_settings, logger_to_use)

    sentinel = make_sentinel()
    write_file(
        f"{web_root}/{app_settings.domain.sentinel_filename}",
        sentinel + "\n",
        app_settings,
        logger_to_use,
        owner=owner,
    )
    sentinel_path = f"/{app_settings.domain.sentinel_filename}"

    _verify_sentinel(f"http://{domain}{sentinel_path}", sentinel, app_settings, logger_to_use)

    certbot = app_settings.certbot.binary
    if not path_exists(certbot, app_settings, logger_to_use, "-x"):
        log_server(
            f"{symbols.get('error', '❌')} Certbot not installed at {certbot}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise PrerequisiteError(f"Certbot binary not found or not executable: {certbot}")

    log_server(
        f"{symbols.get('lock', '🔒')} Requesting certificate for {domain}",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        [
            certbot, "--nginx", "-d", domain,
            "--non-interactive", "--agree-tos",
            "-m", certbot_email(app_settings, logger_to_use),
        ],
        app_settings,
        current_logger=logger_to_use,
    )
    manage_service("nginx", ("reload",), app_settings, logger_to_use)

    _verify_sentinel(
        f"https://{domain}{sentinel_path}",
        sentinel,
        app_settings,
        logger_to_use,
        verify=False,
    )

    log_server(
        f"{symbols.get('sparkles', '✨')} Virtual host and SSL setup completed for {domain}",
        "success",
        logger_to_use,
        app_settings,
    )
    return AddDomainResult(
        domain=domain, web_root=web_root, vhost_path=vhost_path, sentinel=sentinel
    )
