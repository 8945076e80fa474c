# actions/laravel_actions.py
# -*- coding: utf-8 -*-
"""
Bootstraps a Laravel project on a provisioned server.

The flow mirrors a manual deployment: prerequisites (PHP from the ondrej
PPA, composer, Node.js), a dedicated MySQL database and user, the project
itself with its .env, an nginx site with a Let's Encrypt certificate,
Horizon under supervisor and the scheduler cron entry.
"""

import getpass
import logging
import os
import re
import secrets
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from actions.domain_actions import certbot_email
from actions.errors import PrerequisiteError
from common.command_utils import (
    command_exists,
    get_symbols,
    log_server,
    run_command,
    run_elevated_command,
)
from common.credentials import append_credential, read_credential
from common.debian.apt_manager import AptManager
from common.file_utils import (
    backup_file,
    ensure_directory,
    read_file,
    remove_path,
    write_file,
)
from common.network_utils import download_file, fetch_text, is_valid_domain
from common.system_utils import manage_service, path_exists, service_is_active
from installer.components.mysql.mysql_configurator import sql_quote
from installer.components.nginx.nginx_configurator import (
    check_nginx_configuration,
    php_fpm_socket,
)
from installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

DB_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
ENV_KEY_PATTERN = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=")


@dataclass
class LaravelProject:
    """Names and paths derived from the domain and LaravelSettings."""

    domain: str
    db_prefix: str
    project_user: str
    web_server_group: str
    project_path: str
    php_version: str
    email: str
    include_www_alias: bool = True

    @property
    def public_path(self) -> str:
        return f"{self.project_path}/public"

    @property
    def db_name(self) -> str:
        return f"db_{self.db_prefix}"

    @property
    def db_user(self) -> str:
        return f"dbuser_{self.db_prefix}"

    @property
    def owner(self) -> str:
        return f"{self.project_user}:{self.web_server_group}"

    @property
    def server_names(self) -> List[str]:
        names = [self.domain]
        if self.include_www_alias:
            names.append(f"www.{self.domain}")
        return names

    @property
    def horizon_program(self) -> str:
        return f"horizon-{self.db_prefix}"


@dataclass
class InstallProjectResult:
    domain: str
    project_path: str
    db_name: str
    db_user: str
    nginx_conf_path: str
    certificate_requested: bool
    horizon_started: bool


def default_db_prefix(domain: str) -> str:
    """First label of the domain with anything outside [A-Za-z0-9_] replaced."""
    return re.sub(r"[^A-Za-z0-9_]", "_", domain.split(".")[0])


def project_log_file(app_settings: AppSettings, domain: str) -> str:
    return f"{app_settings.admin_user.home_dir}/laravel_init_{domain}.log"


def resolve_project(
    app_settings: AppSettings,
    domain: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> LaravelProject:
    """
    Build the LaravelProject for `domain` (or the configured domain).

    Raises:
        ValueError: No domain, an invalid domain, or an unsafe db prefix.
    """
    settings = app_settings.laravel
    domain = domain or settings.domain
    if not domain or not is_valid_domain(domain):
        raise ValueError(f"A valid project domain is required, got '{domain}'")

    db_prefix = settings.db_prefix or default_db_prefix(domain)
    if not DB_PREFIX_PATTERN.match(db_prefix):
        raise ValueError(
            f"Database prefix '{db_prefix}' may only contain letters, digits and '_'"
        )

    admin = app_settings.admin_user
    return LaravelProject(
        domain=domain,
        db_prefix=db_prefix,
        project_user=settings.project_user or admin.name,
        web_server_group=settings.web_server_group or admin.name,
        project_path=f"{admin.www_dir}/{domain}",
        php_version=settings.php_version,
        email=settings.letsencrypt_email or certbot_email(app_settings, current_logger),
        include_www_alias=settings.include_www_alias,
    )


# --- Pure helpers ---


def database_sql(db_name: str, db_user: str, password: str) -> str:
    """
    SQL creating the database and its user, granting all privileges on it.

    The ALTER USER keeps an existing user's password in sync with the one
    written to .env.
    """
    account = f"{sql_quote(db_user)}@'localhost'"
    return (
        f"CREATE DATABASE IF NOT EXISTS `{db_name}` "
        "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;\n"
        f"CREATE USER IF NOT EXISTS {account} IDENTIFIED BY {sql_quote(password)};\n"
        f"ALTER USER {account} IDENTIFIED BY {sql_quote(password)};\n"
        f"GRANT ALL PRIVILEGES ON `{db_name}`.* TO {account};\n"
        "FLUSH PRIVILEGES;\n"
    )


def format_env_value(value: str) -> str:
    if value == "" or re.search(r"[\s#\"']", value) or value.startswith("${"):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return value


def set_env_values(content: str, values: Dict[str, str]) -> str:
    """
    Replace `KEY=...` lines for every key in `values`, appending missing keys.

    Other lines, comments and ordering are preserved.
    """
    remaining = dict(values)
    lines = content.splitlines()
    for index, line in enumerate(lines):
        match = ENV_KEY_PATTERN.match(line)
        if match and match.group(1) in values:
            key = match.group(1)
            lines[index] = f"{key}={format_env_value(values[key])}"
            remaining.pop(key, None)
    for key, value in remaining.items():
        lines.append(f"{key}={format_env_value(value)}")
    return "\n".join(lines) + "\n"


def env_needs_app_key(content: str) -> bool:
    """True when APP_KEY is missing or empty."""
    for line in content.splitlines():
        if line.startswith("APP_KEY="):
            return line[len("APP_KEY="):].strip().strip('"\'') == ""
    return True


def build_env_values(
    app_settings: AppSettings, project: LaravelProject, db_password: str
) -> Dict[str, str]:
    settings = app_settings.laravel
    values = {
        "APP_NAME": settings.app_name,
        "APP_ENV": settings.app_env,
        "APP_DEBUG": "true" if settings.app_debug else "false",
        "APP_URL": f"https://{project.domain}",
        "DB_CONNECTION": "mysql",
        "DB_HOST": "127.0.0.1",
        "DB_PORT": "3306",
        "DB_DATABASE": project.db_name,
        "DB_USERNAME": project.db_user,
        "DB_PASSWORD": db_password,
        "QUEUE_CONNECTION": "redis",
        "SESSION_DRIVER": "redis",
        "CACHE_DRIVER": "redis",
        "CACHE_STORE": "redis",
        "MAIL_MAILER": "smtp",
        "MAIL_HOST": "mailpit",
        "MAIL_PORT": "1025",
        "MAIL_USERNAME": "null",
        "MAIL_PASSWORD": "null",
        "MAIL_ENCRYPTION": "null",
        "MAIL_FROM_ADDRESS": f"noreply@{project.domain}",
        "MAIL_FROM_NAME": "${APP_NAME}",
    }
    values.update(settings.extra_env)
    return values


def scheduler_command(project: LaravelProject, php_binary: str) -> str:
    return f"cd {project.project_path} && {php_binary} artisan schedule:run >> /dev/null 2>&1"


def add_cron_entry(existing: str, command: str, schedule: str = "* * * * *") -> Optional[str]:
    """
    Return the crontab with `schedule command` appended, or None when a line
    already runs `command`.
    """
    if any(command in line for line in existing.splitlines()):
        return None
    content = existing
    if content and not content.endswith("\n"):
        content += "\n"
    return content + f"{schedule} {command}\n"


def is_placeholder_dir(path: Path) -> bool:
    """
    True for an empty directory, or one whose only content is the
    public/test.txt sentinel left behind by add-domain.
    """
    if not path.is_dir():
        return False
    entries = [p.relative_to(path).as_posix() for p in path.rglob("*")]
    return not entries or sorted(entries) == ["public", "public/test.txt"]


def render_nginx_site(
    app_settings: AppSettings, project: LaravelProject, with_tls: bool = True
) -> str:
    settings = app_settings.laravel
    template = settings.nginx_site_template if with_tls else settings.nginx_bootstrap_template
    return template.format(
        domain=project.domain,
        server_names=" ".join(project.server_names),
        project_path=project.project_path,
        log_root=app_settings.admin_user.logs_dir,
        php_fpm_socket=php_fpm_socket(app_settings, project.php_version),
    )


def render_horizon_program(
    app_settings: AppSettings, project: LaravelProject, php_binary: str
) -> str:
    return app_settings.laravel.horizon_template.format(
        program_name=project.horizon_program,
        php_binary=php_binary,
        project_path=project.project_path,
        project_user=project.project_user,
    )


# --- Steps ---


def _run_as_project_user(
    command: List[str],
    project: LaravelProject,
    app_settings: AppSettings,
    logger: logging.Logger,
    cwd: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run composer, npm and artisan as the project owner, not as root."""
    if os.geteuid() == 0 and project.project_user != "root":
        command = ["sudo", "-u", project.project_user, "-H"] + command
    return run_command(command, app_settings, current_logger=logger, cwd=cwd)


def _ensure_command(
    command_name: str,
    packages: List[str],
    apt_manager: AptManager,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> None:
    if command_exists(command_name):
        logger.info(f"{command_name} is already installed.")
        return
    logger.info(f"{command_name} could not be found. Installing {' '.join(packages)}...")
    apt_manager.install(packages, app_settings, update_first=False)
    if not command_exists(command_name):
        raise PrerequisiteError(
            f"Failed to install {' '.join(packages)}; '{command_name}' is still missing."
        )


def _ensure_service(service: str, app_settings: AppSettings, logger: logging.Logger) -> None:
    if not service_is_active(service, app_settings, logger):
        logger.info(f"{service} is not running. Starting it...")
        manage_service(service, ("start", "enable"), app_settings, logger)
        if not service_is_active(service, app_settings, logger):
            raise PrerequisiteError(f"Failed to start {service}. Check its configuration.")
    logger.info(f"{service} is running.")


def _ppa_configured(ppa: str, app_settings: AppSettings, logger: logging.Logger) -> bool:
    result = run_command(
        ["grep", "-rqs", ppa.split(":", 1)[-1], "/etc/apt/sources.list", "/etc/apt/sources.list.d"],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=logger,
    )
    return result.returncode == 0


def _ensure_php(
    project: LaravelProject,
    apt_manager: AptManager,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> str:
    """Install PHP `project.php_version` from the PPA when needed; return the CLI path."""
    settings = app_settings.laravel
    version = project.php_version
    binary = shutil.which(f"php{version}")
    if binary is None:
        logger.info(f"PHP {version} not found. Installing PHP {version}...")
        apt_manager.install(["software-properties-common"], app_settings, update_first=False)
        if not _ppa_configured(settings.php_ppa, app_settings, logger):
            if not apt_manager.add_ppa(settings.php_ppa, app_settings):
                raise PrerequisiteError(f"Could not add {settings.php_ppa}")
        packages = [f"php{version}"] + [f"php{version}-{ext}" for ext in settings.php_extensions]
        if not apt_manager.install(packages, app_settings):
            raise PrerequisiteError(f"Failed to install PHP {version} and its extensions.")
        binary = shutil.which(f"php{version}")
    else:
        logger.info(f"PHP {version} is already installed.")
    binary = binary or shutil.which("php")
    if binary is None:
        raise PrerequisiteError(f"No PHP CLI found after installing PHP {version}.")
    return binary


def _ensure_composer(php_binary: str, app_settings: AppSettings, logger: logging.Logger) -> str:
    settings = app_settings.laravel
    if command_exists("composer"):
        logger.info("Composer is already installed.")
        try:
            run_elevated_command(
                ["composer", "self-update", "--stable"], app_settings, current_logger=logger
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            log_server(
                f"{get_symbols(app_settings).get('warning', '!')} Composer self-update failed, continuing: {e}",
                "warning",
                logger,
                app_settings,
            )
        return shutil.which("composer") or "composer"

    logger.info("Composer not found. Installing Composer...")
    install_dir, filename = os.path.split(settings.composer_binary)
    with tempfile.TemporaryDirectory() as tmp_dir:
        setup_script = Path(tmp_dir) / "composer-setup.php"
        if not download_file(settings.composer_installer_url, setup_script, app_settings, logger):
            raise PrerequisiteError("Could not download the composer installer.")
        run_elevated_command(
            [php_binary, str(setup_script), f"--install-dir={install_dir}", f"--filename={filename}"],
            app_settings,
            current_logger=logger,
        )
    return settings.composer_binary


def _node_major(app_settings: AppSettings, logger: logging.Logger) -> Optional[str]:
    if not command_exists("node"):
        return None
    result = run_command(
        ["node", "-v"], app_settings, check=False, capture_output=True, current_logger=logger
    )
    if result.returncode != 0:
        return None
    # v22.3.0
    return result.stdout.strip().lstrip("v").split(".")[0] or None


def _ensure_node(apt_manager: AptManager, app_settings: AppSettings, logger: logging.Logger) -> None:
    major = app_settings.laravel.node_major
    current = _node_major(app_settings, logger)
    if current == major:
        logger.info(f"Node.js v{major}.x is already installed.")
        return
    logger.info(f"Node.js v{major}.x not found (found '{current}'). Installing from NodeSource...")
    setup_script = fetch_text(
        app_settings.laravel.nodesource_setup_url_template.format(node_major=major),
        app_settings,
        logger,
    )
    run_elevated_command(["bash", "-"], app_settings, cmd_input=setup_script, current_logger=logger)
    if not apt_manager.install(["nodejs"], app_settings, update_first=False, force=True):
        raise PrerequisiteError(f"Failed to install Node.js v{major}.x")


def ensure_prerequisites(
    project: LaravelProject,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> Dict[str, str]:
    """
    Make sure every tool the bootstrap needs is present.

    Returns:
        {"php": <php cli path>, "composer": <composer path>}
    """
    apt_manager = AptManager(logger=logger)
    apt_manager.update(app_settings, raise_error=True)

    for command_name, package in app_settings.laravel.required_commands.items():
        _ensure_command(command_name, [package], apt_manager, app_settings, logger)
    for service in ("nginx", app_settings.mysql.service_name):
        _ensure_service(service, app_settings, logger)

    php_binary = _ensure_php(project, apt_manager, app_settings, logger)
    composer = _ensure_composer(php_binary, app_settings, logger)
    _ensure_node(apt_manager, app_settings, logger)
    _ensure_command("npm", ["npm"], apt_manager, app_settings, logger)
    _ensure_command("certbot", app_settings.certbot.packages, apt_manager, app_settings, logger)
    return {"php": php_binary, "composer": composer}


def _root_password(app_settings: AppSettings, logger: logging.Logger) -> str:
    password = read_credential(app_settings.mysql.credential_label, app_settings, logger)
    if password:
        return password
    logger.warning("Could not retrieve the MySQL root password from the credentials file.")
    password = getpass.getpass("Please enter MySQL root password manually: ")
    if not password:
        raise PrerequisiteError("MySQL root password not provided.")
    return password


def setup_database(
    project: LaravelProject,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> str:
    """Create the database and user; return the user's password."""
    symbols = get_symbols(app_settings)
    root_password = _root_password(app_settings, logger)

    label = f"MySQL {project.db_user}"
    db_password = read_credential(label, app_settings, logger)
    is_new_password = db_password is None
    if is_new_password:
        db_password = secrets.token_hex(app_settings.laravel.db_password_hex_bytes)

    log_server(
        f"{symbols.get('step', '➡️')} Creating database {project.db_name} and user {project.db_user}...",
        "info",
        logger,
        app_settings,
    )
    # Passwords travel via MYSQL_PWD and stdin, never on the logged command line.
    run_command(
        ["mysql", "-u", "root"],
        app_settings,
        cmd_input=database_sql(project.db_name, project.db_user, db_password),
        current_logger=logger,
        env={"MYSQL_PWD": root_password},
    )
    if is_new_password:
        append_credential(label, db_password, app_settings, logger)
    return db_password


def create_project(
    project: LaravelProject,
    composer: str,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> None:
    project_dir = Path(project.project_path)
    if path_exists(f"{project.project_path}/artisan", app_settings, logger, "-f"):
        logger.info(f"Laravel project already exists at {project.project_path}.")
        return

    www_dir = str(project_dir.parent)
    ensure_directory(www_dir, app_settings, logger)
    if project_dir.exists():
        if is_placeholder_dir(project_dir):
            logger.info(f"Removing placeholder directory {project_dir} before creating the project.")
            remove_path(str(project_dir), app_settings, logger)
        else:
            log_server(
                f"{get_symbols(app_settings).get('warning', '!')} Project directory {project_dir} exists and is not empty. Continuing.",
                "warning",
                logger,
                app_settings,
            )

    logger.info(f"Creating Laravel project in {project.project_path}...")
    _run_as_project_user(
        [composer, "create-project", "--prefer-dist", "laravel/laravel", project.domain],
        project,
        app_settings,
        logger,
        cwd=www_dir,
    )


def configure_env(
    project: LaravelProject,
    php_binary: str,
    db_password: str,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> None:
    env_path = f"{project.project_path}/.env"
    created = False
    if not path_exists(env_path, app_settings, logger, "-f"):
        _run_as_project_user(
            ["cp", ".env.example", ".env"], project, app_settings, logger, cwd=project.project_path
        )
        created = True
        logger.info(".env file created.")

    content = read_file(env_path, app_settings, logger, log_output=False) or ""
    if created or env_needs_app_key(content):
        logger.info("Generating APP_KEY...")
        _run_as_project_user(
            [php_binary, "artisan", "key:generate"], project, app_settings, logger, cwd=project.project_path
        )
        content = read_file(env_path, app_settings, logger, log_output=False) or ""

    write_file(
        env_path,
        set_env_values(content, build_env_values(app_settings, project, db_password)),
        app_settings,
        logger,
        owner=project.owner,
    )
    logger.info(".env file configured.")


def build_project(
    project: LaravelProject,
    composer: str,
    php_binary: str,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> None:
    path = project.project_path
    for command in (
        [composer, "install", "--optimize-autoloader", "--no-dev", "--prefer-dist"],
        ["npm", "install"],
        ["npm", "run", "build"],
    ):
        _run_as_project_user(command, project, app_settings, logger, cwd=path)

    run_elevated_command(["chown", "-R", project.owner, path], app_settings, current_logger=logger)
    for writable in ("storage", "bootstrap/cache"):
        run_elevated_command(
            ["chmod", "-R", "ug+w,o-w", f"{path}/{writable}"], app_settings, current_logger=logger
        )

    artisan_commands = [["storage:link"], ["migrate", "--force"]]
    if app_settings.laravel.run_seeders:
        artisan_commands.append(["db:seed", "--force"])
    artisan_commands += [["config:cache"], ["route:cache"], ["view:cache"], ["event:cache"]]
    for args in artisan_commands:
        _run_as_project_user([php_binary, "artisan"] + args, project, app_settings, logger, cwd=path)


def _certificate_exists(project: LaravelProject, app_settings: AppSettings, logger: logging.Logger) -> bool:
    return path_exists(
        f"{app_settings.certbot.live_dir}/{project.domain}/fullchain.pem",
        app_settings,
        logger,
        "-f",
    )


def write_nginx_site(
    project: LaravelProject,
    app_settings: AppSettings,
    logger: logging.Logger,
    with_tls: bool,
) -> str:
    nginx = app_settings.nginx
    conf_path = f"{nginx.sites_available_dir}/{project.domain}.conf"
    enabled_path = f"{nginx.sites_enabled_dir}/{project.domain}.conf"

    backup_file(conf_path, app_settings, logger)
    write_file(conf_path, render_nginx_site(app_settings, project, with_tls), app_settings, logger)
    ensure_directory(
        f"{app_settings.admin_user.logs_dir}/errors", app_settings, logger, owner=project.owner
    )
    if not path_exists(enabled_path, app_settings, logger, "-L"):
        run_elevated_command(["ln", "-s", conf_path, enabled_path], app_settings, current_logger=logger)

    check_nginx_configuration(app_settings, logger)
    manage_service("nginx", ("reload",), app_settings, logger)
    logger.info("Nginx configuration updated and reloaded.")
    return conf_path


def ensure_certificate(
    project: LaravelProject,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> bool:
    """Request a certificate when none exists, else dry-run a renewal. True if requested."""
    certbot = app_settings.certbot.binary
    if _certificate_exists(project, app_settings, logger):
        logger.info(f"SSL certificate already exists for {project.domain}. Testing renewal...")
        run_elevated_command([certbot, "renew", "--dry-run"], app_settings, current_logger=logger)
        return False

    log_server(
        f"{get_symbols(app_settings).get('lock', '🔒')} Requesting certificate for {', '.join(project.server_names)}",
        "info",
        logger,
        app_settings,
    )
    command = [certbot, "--nginx"]
    for name in project.server_names:
        command += ["-d", name]
    command += ["--non-interactive", "--agree-tos", "-m", project.email, "--redirect"]
    run_elevated_command(command, app_settings, current_logger=logger)
    return True


def configure_horizon(
    project: LaravelProject,
    php_binary: str,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> bool:
    """Write the supervisor program and start it. Returns False if the start failed."""
    conf_path = f"{app_settings.laravel.supervisor_conf_dir}/{project.horizon_program}.conf"
    write_file(conf_path, render_horizon_program(app_settings, project, php_binary), app_settings, logger)
    run_elevated_command(["supervisorctl", "reread"], app_settings, current_logger=logger)
    run_elevated_command(["supervisorctl", "update"], app_settings, current_logger=logger)
    try:
        run_elevated_command(
            ["supervisorctl", "start", f"{project.horizon_program}:*"],
            app_settings,
            capture_output=True,
            current_logger=logger,
        )
        return True
    except subprocess.CalledProcessError as e:
        log_server(
            f"{get_symbols(app_settings).get('warning', '!')} Failed to start {project.horizon_program} or already running: {e}",
            "warning",
            logger,
            app_settings,
        )
        return False


def configure_scheduler(
    project: LaravelProject,
    php_binary: str,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> bool:
    """Add the schedule:run cron entry. Returns False when it was already present."""
    listing = run_elevated_command(
        ["crontab", "-u", project.project_user, "-l"],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=logger,
    )
    existing = listing.stdout if listing.returncode == 0 else ""
    updated = add_cron_entry(existing, scheduler_command(project, php_binary))
    if updated is None:
        logger.info(f"Cron job for Laravel Scheduler already exists for user {project.project_user}.")
        return False
    run_elevated_command(
        ["crontab", "-u", project.project_user, "-"],
        app_settings,
        cmd_input=updated,
        current_logger=logger,
    )
    logger.info(f"Cron job for Laravel Scheduler added for user {project.project_user}.")
    return True


def _log_next_steps(project: LaravelProject, app_settings: AppSettings, logger: logging.Logger) -> None:
    admin_prefix = app_settings.laravel.extra_env.get("ADMIN_PREFIX", "admin")
    for line in (
        f"--- Laravel Project Initialization Complete for {project.domain} ---",
        "IMPORTANT NEXT STEPS:",
        f"1. Review {project.project_path}/.env, especially the MAIL_* settings and API keys.",
        f"2. The database password of '{project.db_user}' is in .env and {app_settings.credentials_path}.",
        f"3. Visit your site: https://{project.domain}",
        f"4. Horizon dashboard (if enabled in routes): https://{project.domain}/{admin_prefix}/horizon",
        "5. Logs:",
        f"   - Bootstrap log: {project_log_file(app_settings, project.domain)}",
        f"   - Laravel log: {project.project_path}/storage/logs/laravel.log",
        f"   - Nginx error log: {app_settings.admin_user.logs_dir}/errors/{project.domain}.error.log",
        f"   - Horizon log: {project.project_path}/storage/logs/horizon.log",
    ):
        logger.info(line)


def install_project(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    domain: Optional[str] = None,
) -> InstallProjectResult:
    """
    Bootstrap the Laravel project for `domain` (default: laravel.domain).

    Raises:
        ValueError: Missing or invalid domain / db prefix.
        PrerequisiteError: A tool, service or the MySQL root password is missing.
        subprocess.CalledProcessError: Any other step failed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    project = resolve_project(app_settings, domain, logger_to_use)

    log_server(
        f"{symbols.get('rocket', '🚀')} Starting Laravel project initialization for {project.domain}",
        "info",
        logger_to_use,
        app_settings,
    )

    logger_to_use.info("--- Step 1: Checking and Installing Prerequisites ---")
    tools = ensure_prerequisites(project, app_settings, logger_to_use)
    php_binary, composer = tools["php"], tools["composer"]

    logger_to_use.info("--- Step 2: Setting up MySQL Database and User ---")
    db_password = setup_database(project, app_settings, logger_to_use)

    logger_to_use.info("--- Step 3: Setting up Laravel Project ---")
    create_project(project, composer, app_settings, logger_to_use)

    logger_to_use.info("--- Step 4: Configuring .env file ---")
    configure_env(project, php_binary, db_password, app_settings, logger_to_use)

    logger_to_use.info("--- Step 5: Dependencies, permissions and artisan setup ---")
    build_project(project, composer, php_binary, app_settings, logger_to_use)

    logger_to_use.info("--- Step 6: Nginx site and SSL certificate ---")
    has_certificate = _certificate_exists(project, app_settings, logger_to_use)
    # The TLS site references the certificate files, so serve plain HTTP until they exist.
    conf_path = write_nginx_site(project, app_settings, logger_to_use, with_tls=has_certificate)
    requested = ensure_certificate(project, app_settings, logger_to_use)
    if not has_certificate:
        write_nginx_site(project, app_settings, logger_to_use, with_tls=True)

    horizon_started = False
    if app_settings.laravel.enable_horizon:
        logger_to_use.info("--- Step 7: Setting up Supervisor for Horizon ---")
        horizon_started = configure_horizon(project, php_binary, app_settings, logger_to_use)

    if app_settings.laravel.enable_scheduler:
        logger_to_use.info("--- Step 8: Setting up Cron Job for Laravel Scheduler ---")
        configure_scheduler(project, php_binary, app_settings, logger_to_use)

    _log_next_steps(project, app_settings, logger_to_use)
    return InstallProjectResult(
        domain=project.domain,
        project_path=project.project_path,
        db_name=project.db_name,
        db_user=project.db_user,
        nginx_conf_path=conf_path,
        certificate_requested=requested,
        horizon_started=horizon_started,
    )
