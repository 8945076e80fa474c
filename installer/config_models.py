# installer/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for provisioner configuration.

This module defines the structured settings for every component, including
defaults, type annotations, and descriptions. Paths, package lists, URLs and
file templates are all fields so they can be overridden from the environment,
a YAML file, or the command line.
"""

from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from installer.config import SYMBOLS_DEFAULT

# --- Default Static Values (can be overridden by config file/env/cli) ---
LOG_PREFIX_DEFAULT: str = "[VDS-SETUP]"
LOG_FILE_DEFAULT: str = "/var/log/postinstall.log"
ADMIN_USER_DEFAULT: str = "vdsadmin"

ALNUM_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

ESSENTIAL_PACKAGES_DEFAULT: List[str] = [
    "mc", "joe", "rpl", "net-tools", "curl", "jc", "whois", "wget", "rsync",
    "certbot", "git", "gnupg2", "software-properties-common", "ufw",
]

PHP_MODULES_DEFAULT: List[str] = [
    "fpm", "common", "mysql", "zip", "mbstring", "curl", "xml", "opcache",
    "ssh2", "memcache", "memcached",
]

PROXY_CONF_TEMPLATE_DEFAULT: str = """\
# proxy.conf written by vds-provisioner V{script_version}
location ~ \\.php$ {{
    include snippets/fastcgi-php.conf;
    fastcgi_pass unix:{php_fpm_socket};
}}

location ~ /.well-known/acme-challenge/ {{
    root {certs_dir};
    allow all;
}}

location ^~ /myadmin {{
    auth_basic "Restricted";
    auth_basic_user_file {htpasswd_file};
    root {phpmyadmin_web_root};
    index index.php index.html;

    location ~ \\.php$ {{
        include snippets/fastcgi-php.conf;
        fastcgi_pass unix:{php_fpm_socket};
    }}
}}

error_page 404 /404.html;
"""

PROXY_LARAVEL_CONF_TEMPLATE_DEFAULT: str = """\
# proxy_laravel.conf written by vds-provisioner V{script_version}
include {proxy_conf_path};

location / {{
    try_files $uri $uri/ /index.php?$query_string;
}}
"""

VHOSTS_INCLUDE_TEMPLATE_DEFAULT: str = """\
# vhosts.conf written by vds-provisioner V{script_version}
include {vhost_dir}/*.conf;
"""

VHOST_TEMPLATE_DEFAULT: str = """\
server {{
    listen 80;
    server_name {domain};

    root {web_root};
    index index.php index.html index.htm;

    access_log {log_root}/{domain}/access.log;
    error_log {log_root}/errors/{domain}.error.log;

    include {proxy_conf};
}}
"""

FAIL2BAN_FILTER_TEMPLATE_DEFAULT: str = """\
[Definition]
failregex = ^<HOST> -.*"(GET|POST).*(404)"
ignoreregex =
"""

FAIL2BAN_JAIL_TEMPLATE_DEFAULT: str = """\
# jail.d/custom.conf written by vds-provisioner V{script_version}
[sshd]
enabled = true
maxretry = {sshd_maxretry}
bantime = {bantime}
findtime = {findtime}

[nginx-404]
enabled = true
port = http,https
filter = nginx-404
logpath = {logpath}
maxretry = {nginx_404_maxretry}
"""

LOGROTATE_TEMPLATE_DEFAULT: str = """\
{log_globs} {{
    daily
    rotate {rotate}
    compress
    missingok
    notifempty
    create 640 {admin_user} adm
    sharedscripts
    postrotate
        systemctl reload nginx >/dev/null 2>&1 || true
    endscript
}}
"""

LARAVEL_NGINX_SITE_TEMPLATE_DEFAULT: str = """\
server {{
    listen 80;
    listen [::]:80;
    server_name {server_names};
    return 301 https://$host$request_uri;
}}

server {{
    listen 443 ssl http2;
    listen [::]:443 ssl http2;
    server_name {server_names};

    root {project_path}/public;
    index index.php index.html index.htm;

    ssl_certificate /etc/letsencrypt/live/{domain}/fullchain.pem;
    ssl_certificate_key /etc/letsencrypt/live/{domain}/privkey.pem;
    include /etc/letsencrypt/options-ssl-nginx.conf;
    ssl_dhparam /etc/letsencrypt/ssl-dhparams.pem;

    add_header X-Frame-Options "SAMEORIGIN";
    add_header X-Content-Type-Options "nosniff";

    charset utf-8;
    client_max_body_size 64M;

    access_log {log_root}/{domain}.access.log;
    error_log {log_root}/errors/{domain}.error.log;

    location / {{
        try_files $uri $uri/ /index.php?$query_string;
    }}

    location = /favicon.ico {{ access_log off; log_not_found off; }}
    location = /robots.txt  {{ access_log off; log_not_found off; }}

    error_page 404 /index.php;

    location ~ \\.php$ {{
        fastcgi_pass unix:{php_fpm_socket};
        fastcgi_param SCRIPT_FILENAME $realpath_root$fastcgi_script_name;
        include fastcgi_params;
        fastcgi_hide_header X-Powered-By;
    }}

    location ~ /\\.(?!well-known).* {{
        deny all;
    }}
}}
"""

LARAVEL_NGINX_BOOTSTRAP_TEMPLATE_DEFAULT: str = """\
server {{
    listen 80;
    listen [::]:80;
    server_name {server_names};

    root {project_path}/public;
    index index.php index.html index.htm;

    access_log {log_root}/{domain}.access.log;
    error_log {log_root}/errors/{domain}.error.log;

    location / {{
        try_files $uri $uri/ /index.php?$query_string;
    }}

    location ~ \\.php$ {{
        fastcgi_pass unix:{php_fpm_socket};
        fastcgi_param SCRIPT_FILENAME $realpath_root$fastcgi_script_name;
        include fastcgi_params;
    }}
}}
"""

HORIZON_SUPERVISOR_TEMPLATE_DEFAULT: str = """\
[program:{program_name}]
process_name=%(program_name)s_%(process_num)02d
command={php_binary} {project_path}/artisan horizon
autostart=true
autorestart=true
user={project_user}
numprocs=1
redirect_stderr=true
stdout_logfile={project_path}/storage/logs/horizon.log
stderr_logfile={project_path}/storage/logs/horizon-error.log
stopwaitsecs=3600
stopsignal=QUIT
"""


class AdminUserSettings(BaseSettings):
    """Administrative system user and its home directory layout."""
    model_config = SettingsConfigDict(env_prefix='VDS_ADMIN_', extra='ignore')

    name: str = Field(default=ADMIN_USER_DEFAULT, description="Login name of the admin user.")
    shell: str = Field(default="/bin/bash", description="Login shell for the admin user.")
    extra_groups: List[str] = Field(default_factory=lambda: ["sudo"],
                                    description="Supplementary groups the admin user joins.")
    sudoers_nopasswd: bool = Field(default=True, description="Write a NOPASSWD sudoers drop-in.")
    source_authorized_keys: str = Field(default="/home/ubuntu/.ssh/authorized_keys",
                                        description="authorized_keys copied to the admin user when present.")
    ssh_key_bits: int = Field(default=4096, description="RSA key size when a key has to be generated.")
    directories: List[str] = Field(default_factory=lambda: ["www", "logs/errors", "certs", "github_keys"],
                                   description="Directories created under the admin home.")
    home_mode: str = Field(default="711", description="Mode of the home directory; nginx must traverse it.")
    shell_alias: str = Field(default="alias s='sudo su'", description="Line appended once to ~/.bashrc.")
    remove_default_user: bool = Field(default=False,
                                      description="Delete the cloud image default user after provisioning.")
    default_user: str = Field(default="ubuntu", description="Cloud image default user.")
    credentials_filename: str = Field(default=".all_settings",
                                      description="Credentials file name inside the admin home.")

    @property
    def home_dir(self) -> str:
        return f"/home/{self.name}"

    @property
    def www_dir(self) -> str:
        return f"{self.home_dir}/www"

    @property
    def logs_dir(self) -> str:
        return f"{self.home_dir}/logs"

    @property
    def certs_dir(self) -> str:
        return f"{self.home_dir}/certs"

    @property
    def sudoers_file(self) -> str:
        return f"/etc/sudoers.d/{self.name}"

    @property
    def log_globs(self) -> List[str]:
        """Top-level logs, per-domain access logs and the errors directory."""
        return [f"{self.logs_dir}/*.log", f"{self.logs_dir}/*/*.log"]


class PhpSettings(BaseSettings):
    """PHP-FPM settings. The version is detected after php-cli is installed unless pinned."""
    model_config = SettingsConfigDict(env_prefix='VDS_PHP_', extra='ignore')

    version: Optional[str] = Field(default=None, description="Pinned PHP MAJOR.MINOR, detected when unset.")
    base_package: str = Field(default="php-cli", description="Package installed first to detect the version.")
    modules: List[str] = Field(default_factory=lambda: list(PHP_MODULES_DEFAULT),
                               description="Suffixes installed as php-<module>.")
    fpm_socket_template: str = Field(default="/run/php/php{version}-fpm.sock",
                                     description="PHP-FPM unix socket path.")
    conf_dir_template: str = Field(default="/etc/php/{version}", description="PHP configuration root.")


class NginxSettings(BaseSettings):
    """Nginx packages, shared include files and vhost layout."""
    model_config = SettingsConfigDict(env_prefix='VDS_NGINX_', extra='ignore')

    packages: List[str] = Field(default_factory=lambda: ["nginx-full", "apache2-utils"],
                                description="Packages providing nginx and htpasswd.")
    config_dir: str = Field(default="/etc/nginx", description="Nginx configuration root.")
    vhost_dir: str = Field(default="/etc/nginx/vhosts", description="Directory holding one file per domain.")
    proxy_conf_path: str = Field(default="/etc/nginx/proxy.conf")
    proxy_laravel_conf_path: str = Field(default="/etc/nginx/proxy_laravel.conf")
    cloudflare_conf_path: str = Field(default="/etc/nginx/conf.d/cloudflare.conf")
    vhosts_include_path: str = Field(default="/etc/nginx/conf.d/vhosts.conf")
    sites_available_dir: str = Field(default="/etc/nginx/sites-available")
    sites_enabled_dir: str = Field(default="/etc/nginx/sites-enabled")
    enable_cloudflare: bool = Field(default=True, description="Write the Cloudflare real IP include.")
    cloudflare_ipv4_url: str = Field(default="https://www.cloudflare.com/ips-v4")
    cloudflare_ipv6_url: str = Field(default="https://www.cloudflare.com/ips-v6")
    htpasswd_user: str = Field(default="admin", description="Basic auth user protecting /myadmin.")
    htpasswd_password_length: int = Field(default=12)
    worker_group: str = Field(default="www-data", description="Group nginx workers run as.")
    proxy_conf_template: str = Field(
        default=PROXY_CONF_TEMPLATE_DEFAULT,
        description="Supports {php_fpm_socket}, {certs_dir}, {htpasswd_file}, {phpmyadmin_web_root}, {script_version}."
    )
    proxy_laravel_conf_template: str = Field(default=PROXY_LARAVEL_CONF_TEMPLATE_DEFAULT)
    vhosts_include_template: str = Field(default=VHOSTS_INCLUDE_TEMPLATE_DEFAULT)
    vhost_template: str = Field(
        default=VHOST_TEMPLATE_DEFAULT,
        description="Supports {domain}, {web_root}, {log_root}, {proxy_conf}."
    )


class MysqlSettings(BaseSettings):
    """MySQL server settings."""
    model_config = SettingsConfigDict(env_prefix='VDS_MYSQL_', extra='ignore')

    packages: List[str] = Field(default_factory=lambda: ["mysql-server", "mysql-client"])
    service_name: str = Field(default="mysql")
    mysqld_cnf_path: str = Field(default="/etc/mysql/mysql.conf.d/mysqld.cnf")
    bind_address: str = Field(default="0.0.0.0", description="Value written to bind-address.")
    root_password_length: int = Field(default=12)
    root_password_alphabet: str = Field(default=ALNUM_ALPHABET + "!")
    credential_label: str = Field(default="MySQL pass", description="Credentials label of the root password.")


class MemcachedSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='VDS_MEMCACHED_', extra='ignore')

    package: str = Field(default="memcached")
    service_name: str = Field(default="memcached")


class IoncubeSettings(BaseSettings):
    """ionCube loader download and activation."""
    model_config = SettingsConfigDict(env_prefix='VDS_IONCUBE_', extra='ignore')

    download_url: str = Field(
        default="https://downloads.ioncube.com/loader_downloads/ioncube_loaders_lin_x86-64.tar.gz")
    install_dir: str = Field(default="/opt/ioncube")
    fallback_version: str = Field(default="8.1", description="Loader used when none matches the PHP version.")
    ini_filename: str = Field(default="00-ioncube.ini")


class PhpMyAdminSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='VDS_PHPMYADMIN_', extra='ignore')

    download_url: str = Field(
        default="https://files.phpmyadmin.net/phpMyAdmin/latest/phpMyAdmin-latest-all-languages.tar.gz")
    web_root: str = Field(default="/var/www/html", description="Directory the archive is extracted into.")
    target_dir_name: str = Field(default="myadmin", description="Final directory name under web_root.")
    owner: str = Field(default="www-data")

    @property
    def target_dir(self) -> str:
        return f"{self.web_root}/{self.target_dir_name}"


class UfwSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='VDS_UFW_', extra='ignore')

    allow_rules: List[str] = Field(default_factory=lambda: ["OpenSSH", "Nginx Full"],
                                   description="Each entry is passed to 'ufw allow' as one argument.")


class Fail2banSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='VDS_FAIL2BAN_', extra='ignore')

    filter_path: str = Field(default="/etc/fail2ban/filter.d/nginx-404.conf")
    jail_path: str = Field(default="/etc/fail2ban/jail.d/custom.conf")
    sshd_maxretry: int = Field(default=5)
    bantime: int = Field(default=600)
    findtime: int = Field(default=600)
    nginx_404_maxretry: int = Field(default=10)
    nginx_logpaths: List[str] = Field(
        default_factory=lambda: ["/var/log/nginx/access.log"],
        description="Watched next to the per-domain logs; exists as soon as nginx is installed.",
    )
    filter_template: str = Field(default=FAIL2BAN_FILTER_TEMPLATE_DEFAULT)
    jail_template: str = Field(
        default=FAIL2BAN_JAIL_TEMPLATE_DEFAULT,
        description="Supports {sshd_maxretry}, {bantime}, {findtime}, {logpath}, {nginx_404_maxretry}."
    )


class LogrotateSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='VDS_LOGROTATE_', extra='ignore')

    config_path: str = Field(default="/etc/logrotate.d/vdsadmin")
    rotate: int = Field(default=14)
    template: str = Field(default=LOGROTATE_TEMPLATE_DEFAULT)


class CertbotSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='VDS_CERTBOT_', extra='ignore')

    packages: List[str] = Field(default_factory=lambda: ["certbot", "python3-certbot-nginx"])
    binary: str = Field(default="/usr/bin/certbot")
    email: Optional[str] = Field(default=None, description="Registration email, webmaster@<fqdn> when unset.")
    live_dir: str = Field(default="/etc/letsencrypt/live")


class DomainSettings(BaseSettings):
    """Settings for adding a vhost and proving it serves traffic."""
    model_config = SettingsConfigDict(env_prefix='VDS_DOMAIN_', extra='ignore')

    probe_timeout: float = Field(default=10.0, description="HTTP probe timeout in seconds.")
    settle_seconds: float = Field(default=2.0, description="Pause after an nginx reload before probing.")
    sentinel_filename: str = Field(default="test.txt")
    log_file: str = Field(default="/var/log/adddomain.log")


class LaravelSettings(BaseSettings):
    """Laravel project bootstrap settings."""
    model_config = SettingsConfigDict(env_prefix='VDS_LARAVEL_', extra='ignore')

    domain: Optional[str] = Field(default=None, description="Project domain, also the directory name.")
    db_prefix: Optional[str] = Field(default=None, description="Suffix of db_<prefix>, first domain label when unset.")
    project_user: Optional[str] = Field(default=None, description="Owner of the project, admin user when unset.")
    web_server_group: Optional[str] = Field(default=None, description="Group of the project, admin user when unset.")
    php_version: str = Field(default="8.1")
    node_major: str = Field(default="22")
    letsencrypt_email: Optional[str] = Field(default=None)
    include_www_alias: bool = Field(default=True, description="Also serve and certify www.<domain>.")
    app_name: str = Field(default="Laravel")
    app_env: str = Field(default="production")
    app_debug: bool = Field(default=False)
    db_password_hex_bytes: int = Field(default=16, description="Random bytes of the database user password.")
    extra_env: Dict[str, str] = Field(default_factory=lambda: {"ADMIN_PREFIX": "admin"},
                                      description="Additional .env keys written verbatim.")
    php_extensions: List[str] = Field(default_factory=lambda: [
        "fpm", "mysql", "mbstring", "xml", "dom", "curl", "tokenizer", "fileinfo",
        "bcmath", "ctype", "gd", "zip", "intl", "redis",
    ])
    required_commands: Dict[str, str] = Field(default_factory=lambda: {
        "git": "git", "curl": "curl", "wget": "wget", "unzip": "unzip",
        "nginx": "nginx", "mysql": "mysql-client", "supervisorctl": "supervisor",
    }, description="Command name mapped to the package providing it.")
    php_ppa: str = Field(default="ppa:ondrej/php")
    composer_installer_url: str = Field(default="https://getcomposer.org/installer")
    composer_binary: str = Field(default="/usr/local/bin/composer")
    nodesource_setup_url_template: str = Field(default="https://deb.nodesource.com/setup_{node_major}.x")
    supervisor_conf_dir: str = Field(default="/etc/supervisor/conf.d")
    run_seeders: bool = Field(default=True)
    enable_horizon: bool = Field(default=True)
    enable_scheduler: bool = Field(default=True)
    nginx_site_template: str = Field(
        default=LARAVEL_NGINX_SITE_TEMPLATE_DEFAULT,
        description="Supports {domain}, {server_names}, {project_path}, {log_root}, {php_fpm_socket}."
    )
    nginx_bootstrap_template: str = Field(
        default=LARAVEL_NGINX_BOOTSTRAP_TEMPLATE_DEFAULT,
        description="Plain HTTP site served until the first certificate exists."
    )
    horizon_template: str = Field(default=HORIZON_SUPERVISOR_TEMPLATE_DEFAULT)


class AppSettings(BaseSettings):
    """Main provisioner settings."""
    model_config = SettingsConfigDict(env_prefix='VDS_', extra='ignore')

    log_prefix: str = Field(default=LOG_PREFIX_DEFAULT,
                            description="Prefix for log messages from the provisioner.")
    log_file: str = Field(default=LOG_FILE_DEFAULT, description="Log file of the base provisioning run.")
    credentials_file: Optional[str] = Field(default=None,
                                            description="Credentials file, <admin home>/.all_settings when unset.")
    server_fqdn: Optional[str] = Field(default=None, description="Overrides 'hostname -f'.")
    essential_packages: List[str] = Field(default_factory=lambda: list(ESSENTIAL_PACKAGES_DEFAULT))

    admin_user: AdminUserSettings = Field(default_factory=AdminUserSettings)
    php: PhpSettings = Field(default_factory=PhpSettings)
    nginx: NginxSettings = Field(default_factory=NginxSettings)
    mysql: MysqlSettings = Field(default_factory=MysqlSettings)
    memcached: MemcachedSettings = Field(default_factory=MemcachedSettings)
    ioncube: IoncubeSettings = Field(default_factory=IoncubeSettings)
    phpmyadmin: PhpMyAdminSettings = Field(default_factory=PhpMyAdminSettings)
    ufw: UfwSettings = Field(default_factory=UfwSettings)
    fail2ban: Fail2banSettings = Field(default_factory=Fail2banSettings)
    logrotate: LogrotateSettings = Field(default_factory=LogrotateSettings)
    certbot: CertbotSettings = Field(default_factory=CertbotSettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)
    laravel: LaravelSettings = Field(default_factory=LaravelSettings)

    symbols: Dict[str, str] = Field(default_factory=lambda: dict(SYMBOLS_DEFAULT))

    @property
    def credentials_path(self) -> str:
        if self.credentials_file:
            return self.credentials_file
        return f"{self.admin_user.home_dir}/{self.admin_user.credentials_filename}"
