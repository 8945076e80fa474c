# tests/actions/test_laravel_actions.py
"""Tests for the Laravel project bootstrap."""

import subprocess
from unittest.mock import MagicMock, call

import pytest

from actions import laravel_actions
from actions.errors import PrerequisiteError
from actions.laravel_actions import (
    LaravelProject,
    add_cron_entry,
    build_env_values,
    configure_horizon,
    configure_scheduler,
    configure_env,
    create_project,
    database_sql,
    default_db_prefix,
    ensure_certificate,
    env_needs_app_key,
    format_env_value,
    install_project,
    is_placeholder_dir,
    render_nginx_site,
    resolve_project,
    scheduler_command,
    set_env_values,
    setup_database,
)
from installer.config_models import AppSettings

MODULE = "actions.laravel_actions"


@pytest.fixture
def project():
    return LaravelProject(
        domain="shop.example.com",
        db_prefix="shop",
        project_user="vdsadmin",
        web_server_group="vdsadmin",
        project_path="/home/vdsadmin/www/shop.example.com",
        php_version="8.1",
        email="ops@example.com",
    )


class TestResolveProject:
    def test_defaults_from_domain(self, app_settings):
        project = resolve_project(app_settings, "my-shop.example.com")

        assert project.db_prefix == "my_shop"
        assert project.db_name == "db_my_shop"
        assert project.db_user == "dbuser_my_shop"
        assert project.owner == "vdsadmin:vdsadmin"
        assert project.project_path == "/home/vdsadmin/www/my-shop.example.com"
        assert project.server_names == ["my-shop.example.com", "www.my-shop.example.com"]
        assert project.email == "webmaster@vds.example.net"
        assert project.horizon_program == "horizon-my_shop"

    def test_settings_override_defaults(self):
        settings = AppSettings(
            laravel={
                "domain": "app.example.org",
                "db_prefix": "app1",
                "project_user": "deploy",
                "web_server_group": "www-data",
                "letsencrypt_email": "le@example.org",
                "include_www_alias": False,
            }
        )

        project = resolve_project(settings)

        assert project.domain == "app.example.org"
        assert project.db_name == "db_app1"
        assert project.owner == "deploy:www-data"
        assert project.email == "le@example.org"
        assert project.server_names == ["app.example.org"]

    @pytest.mark.parametrize("domain", [None, "", "not_a_domain", "bad..example.com"])
    def test_requires_valid_domain(self, app_settings, domain):
        with pytest.raises(ValueError):
            resolve_project(app_settings, domain)

    def test_rejects_unsafe_prefix(self):
        settings = AppSettings(server_fqdn="h.example.net", laravel={"db_prefix": "x`; DROP"})
        with pytest.raises(ValueError):
            resolve_project(settings, "shop.example.com")


def test_default_db_prefix():
    assert default_db_prefix("shop.example.com") == "shop"
    assert default_db_prefix("my-shop.example.com") == "my_shop"


def test_database_sql():
    sql = database_sql("db_shop", "dbuser_shop", "abc'def")

    assert sql.splitlines() == [
        "CREATE DATABASE IF NOT EXISTS `db_shop` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;",
        "CREATE USER IF NOT EXISTS 'dbuser_shop'@'localhost' IDENTIFIED BY 'abc\\'def';",
        "ALTER USER 'dbuser_shop'@'localhost' IDENTIFIED BY 'abc\\'def';",
        "GRANT ALL PRIVILEGES ON `db_shop`.* TO 'dbuser_shop'@'localhost';",
        "FLUSH PRIVILEGES;",
    ]


class TestEnvFile:
    def test_format_env_value(self):
        assert format_env_value("redis") == "redis"
        assert format_env_value("") == '""'
        assert format_env_value("My App") == '"My App"'
        assert format_env_value("${APP_NAME}") == '"${APP_NAME}"'
        assert format_env_value('say "hi"') == '"say \\"hi\\""'

    def test_set_env_values_replaces_and_appends(self):
        content = "# Laravel\nAPP_NAME=Laravel\nDB_HOST=mysql\n\nDB_PASSWORD=\n"

        updated = set_env_values(
            content, {"DB_HOST": "127.0.0.1", "DB_PASSWORD": "f00", "CACHE_STORE": "redis"}
        )

        assert updated == (
            "# Laravel\nAPP_NAME=Laravel\nDB_HOST=127.0.0.1\n\nDB_PASSWORD=f00\nCACHE_STORE=redis\n"
        )

    def test_set_env_values_keeps_commented_keys(self):
        updated = set_env_values("# DB_HOST=old\n", {"DB_HOST": "127.0.0.1"})
        assert updated == "# DB_HOST=old\nDB_HOST=127.0.0.1\n"

    @pytest.mark.parametrize(
        "content, expected",
        [
            ("APP_KEY=\n", True),
            ('APP_KEY=""\n', True),
            ("APP_NAME=x\n", True),
            ("APP_KEY=base64:abc=\n", False),
        ],
    )
    def test_env_needs_app_key(self, content, expected):
        assert env_needs_app_key(content) is expected

    def test_configure_env_creates_env_and_key(self, mocker, app_settings, project):
        mocker.patch(f"{MODULE}.path_exists", return_value=False)
        mocker.patch(
            f"{MODULE}.read_file", side_effect=["APP_KEY=\n", "APP_KEY=base64:new=\n"]
        )
        mock_write = mocker.patch(f"{MODULE}.write_file")
        mock_run_as = mocker.patch(f"{MODULE}._run_as_project_user")

        configure_env(project, "/usr/bin/php8.1", "f00", app_settings, MagicMock())

        assert [c.args[0] for c in mock_run_as.call_args_list] == [
            ["cp", ".env.example", ".env"],
            ["/usr/bin/php8.1", "artisan", "key:generate"],
        ]
        written = mock_write.call_args.args[1]
        assert "APP_KEY=base64:new=\n" in written
        assert "DB_PASSWORD=f00\n" in written
        assert mock_write.call_args.kwargs["owner"] == "vdsadmin:vdsadmin"

    def test_configure_env_keeps_existing_key(self, mocker, app_settings, project):
        # A newer .env.example (e.g. after git pull) must not rotate the key.
        mocker.patch(f"{MODULE}.path_exists", return_value=True)
        mocker.patch(f"{MODULE}.read_file", return_value="APP_KEY=base64:keep=\n")
        mock_write = mocker.patch(f"{MODULE}.write_file")
        mock_run_as = mocker.patch(f"{MODULE}._run_as_project_user")

        configure_env(project, "/usr/bin/php8.1", "f00", app_settings, MagicMock())

        mock_run_as.assert_not_called()
        assert "APP_KEY=base64:keep=\n" in mock_write.call_args.args[1]

    def test_build_env_values(self, app_settings, project):
        values = build_env_values(app_settings, project, "f00")

        assert values["APP_URL"] == "https://shop.example.com"
        assert values["APP_DEBUG"] == "false"
        assert values["DB_DATABASE"] == "db_shop"
        assert values["DB_USERNAME"] == "dbuser_shop"
        assert values["DB_PASSWORD"] == "f00"
        assert values["QUEUE_CONNECTION"] == "redis"
        assert values["MAIL_FROM_ADDRESS"] == "noreply@shop.example.com"
        assert values["ADMIN_PREFIX"] == "admin"


class TestScheduler:
    def test_add_cron_entry(self, project):
        command = scheduler_command(project, "/usr/bin/php8.1")
        assert command == (
            "cd /home/vdsadmin/www/shop.example.com && /usr/bin/php8.1 artisan "
            "schedule:run >> /dev/null 2>&1"
        )

        first = add_cron_entry("MAILTO=ops\n0 3 * * * backup", command)
        assert first == f"MAILTO=ops\n0 3 * * * backup\n* * * * * {command}\n"
        assert add_cron_entry(first, command) is None

    def test_configure_scheduler_installs_crontab(self, mocker, app_settings, project, completed):
        mock_run = mocker.patch(
            f"{MODULE}.run_elevated_command",
            side_effect=[completed(returncode=1, stderr="no crontab for vdsadmin"), completed()],
        )

        assert configure_scheduler(project, "/usr/bin/php8.1", app_settings, MagicMock()) is True

        install_call = mock_run.call_args_list[1]
        assert install_call.args[0] == ["crontab", "-u", "vdsadmin", "-"]
        assert install_call.kwargs["cmd_input"].startswith("* * * * * cd /home/vdsadmin/www/")

    def test_configure_scheduler_is_idempotent(self, mocker, app_settings, project, completed):
        existing = f"* * * * * {scheduler_command(project, 'php')}\n"
        mock_run = mocker.patch(
            f"{MODULE}.run_elevated_command", return_value=completed(stdout=existing)
        )

        assert configure_scheduler(project, "php", app_settings, MagicMock()) is False
        mock_run.assert_called_once()


def test_is_placeholder_dir(tmp_path):
    assert is_placeholder_dir(tmp_path / "missing") is False
    assert is_placeholder_dir(tmp_path) is True

    (tmp_path / "public").mkdir()
    (tmp_path / "public" / "test.txt").write_text("test-1-2\n")
    assert is_placeholder_dir(tmp_path) is True

    (tmp_path / "artisan").write_text("")
    assert is_placeholder_dir(tmp_path) is False


def test_render_nginx_site(app_settings, project):
    bootstrap = render_nginx_site(app_settings, project, with_tls=False)
    site = render_nginx_site(app_settings, project)

    assert "server_name shop.example.com www.shop.example.com;" in bootstrap
    assert "ssl_certificate" not in bootstrap
    assert "root /home/vdsadmin/www/shop.example.com/public;" in bootstrap
    assert "ssl_certificate /etc/letsencrypt/live/shop.example.com/fullchain.pem;" in site
    assert "fastcgi_pass unix:/run/php/php8.1-fpm.sock;" in site


class TestDatabase:
    def test_new_user_password_is_recorded(self, mocker, app_settings, project):
        mocker.patch(f"{MODULE}.read_credential", side_effect=["rootpw", None])
        mocker.patch(f"{MODULE}.secrets.token_hex", return_value="a1b2")
        mock_run = mocker.patch(f"{MODULE}.run_command")
        mock_append = mocker.patch(f"{MODULE}.append_credential")

        assert setup_database(project, app_settings, MagicMock()) == "a1b2"

        args, kwargs = mock_run.call_args
        assert args[0] == ["mysql", "-u", "root"]
        assert kwargs["env"] == {"MYSQL_PWD": "rootpw"}
        assert "IDENTIFIED BY 'a1b2'" in kwargs["cmd_input"]
        assert mock_append.call_args.args[:2] == ("MySQL dbuser_shop", "a1b2")

    def test_existing_password_is_reused(self, mocker, app_settings, project):
        mocker.patch(f"{MODULE}.read_credential", side_effect=["rootpw", "keepme"])
        mocker.patch(f"{MODULE}.run_command")
        mock_append = mocker.patch(f"{MODULE}.append_credential")

        assert setup_database(project, app_settings, MagicMock()) == "keepme"
        mock_append.assert_not_called()

    def test_prompts_for_missing_root_password(self, mocker, app_settings, project):
        mocker.patch(f"{MODULE}.read_credential", return_value=None)
        mocker.patch(f"{MODULE}.getpass.getpass", return_value="")

        with pytest.raises(PrerequisiteError):
            setup_database(project, app_settings, MagicMock())


def test_run_as_project_user_drops_root(mocker, app_settings, project):
    mocker.patch(f"{MODULE}.os.geteuid", return_value=0)
    mock_run = mocker.patch(f"{MODULE}.run_command")

    laravel_actions._run_as_project_user(
        ["npm", "install"], project, app_settings, MagicMock(), cwd=project.project_path
    )

    assert mock_run.call_args.args[0] == ["sudo", "-u", "vdsadmin", "-H", "npm", "install"]
    assert mock_run.call_args.kwargs["cwd"] == project.project_path


def test_create_project_replaces_placeholder(mocker, app_settings, tmp_path):
    project_dir = tmp_path / "www" / "shop.example.com"
    (project_dir / "public").mkdir(parents=True)
    (project_dir / "public" / "test.txt").write_text("test-1-2\n")
    project = LaravelProject(
        domain="shop.example.com", db_prefix="shop", project_user="vdsadmin",
        web_server_group="vdsadmin", project_path=str(project_dir),
        php_version="8.1", email="ops@example.com",
    )
    mocker.patch(f"{MODULE}.path_exists", return_value=False)
    mocker.patch(f"{MODULE}.ensure_directory")
    mock_remove = mocker.patch(f"{MODULE}.remove_path")
    mock_run_as = mocker.patch(f"{MODULE}._run_as_project_user")

    create_project(project, "composer", app_settings, MagicMock())

    mock_remove.assert_called_once()
    assert mock_remove.call_args.args[0] == str(project_dir)
    assert mock_run_as.call_args.args[0] == [
        "composer", "create-project", "--prefer-dist", "laravel/laravel", "shop.example.com",
    ]
    assert mock_run_as.call_args.kwargs["cwd"] == str(tmp_path / "www")


def test_create_project_skips_existing(mocker, app_settings, project):
    mocker.patch(f"{MODULE}.path_exists", return_value=True)
    mock_run_as = mocker.patch(f"{MODULE}._run_as_project_user")

    create_project(project, "composer", app_settings, MagicMock())
    mock_run_as.assert_not_called()


class TestCertificate:
    def test_existing_certificate_dry_runs_renewal(self, mocker, app_settings, project):
        mocker.patch(f"{MODULE}.path_exists", return_value=True)
        mock_run = mocker.patch(f"{MODULE}.run_elevated_command")

        assert ensure_certificate(project, app_settings, MagicMock()) is False
        assert mock_run.call_args.args[0] == ["/usr/bin/certbot", "renew", "--dry-run"]

    def test_requests_certificate_for_all_names(self, mocker, app_settings, project):
        mocker.patch(f"{MODULE}.path_exists", return_value=False)
        mock_run = mocker.patch(f"{MODULE}.run_elevated_command")

        assert ensure_certificate(project, app_settings, MagicMock()) is True
        assert mock_run.call_args.args[0] == [
            "/usr/bin/certbot", "--nginx",
            "-d", "shop.example.com", "-d", "www.shop.example.com",
            "--non-interactive", "--agree-tos", "-m", "ops@example.com", "--redirect",
        ]


def test_horizon_start_failure_is_a_warning(mocker, app_settings, project):
    mock_write = mocker.patch(f"{MODULE}.write_file")
    mocker.patch(
        f"{MODULE}.run_elevated_command",
        side_effect=[MagicMock(), MagicMock(), subprocess.CalledProcessError(7, ["supervisorctl"])],
    )

    assert configure_horizon(project, "/usr/bin/php8.1", app_settings, MagicMock()) is False
    assert mock_write.call_args.args[0] == "/etc/supervisor/conf.d/horizon-shop.conf"
    assert "command=/usr/bin/php8.1 /home/vdsadmin/www/shop.example.com/artisan horizon" in (
        mock_write.call_args.args[1]
    )


def test_ensure_service_start_failure(mocker, app_settings):
    mocker.patch(f"{MODULE}.service_is_active", return_value=False)
    mocker.patch(f"{MODULE}.manage_service")

    with pytest.raises(PrerequisiteError):
        laravel_actions._ensure_service("mysql", app_settings, MagicMock())


class TestInstallProject:
    @pytest.fixture
    def steps(self, mocker):
        return {
            "prereqs": mocker.patch(
                f"{MODULE}.ensure_prerequisites",
                return_value={"php": "/usr/bin/php8.1", "composer": "/usr/local/bin/composer"},
            ),
            "database": mocker.patch(f"{MODULE}.setup_database", return_value="pw"),
            "create": mocker.patch(f"{MODULE}.create_project"),
            "env": mocker.patch(f"{MODULE}.configure_env"),
            "build": mocker.patch(f"{MODULE}.build_project"),
            "cert_exists": mocker.patch(f"{MODULE}._certificate_exists", return_value=False),
            "site": mocker.patch(
                f"{MODULE}.write_nginx_site",
                return_value="/etc/nginx/sites-available/shop.example.com.conf",
            ),
            "certificate": mocker.patch(f"{MODULE}.ensure_certificate", return_value=True),
            "horizon": mocker.patch(f"{MODULE}.configure_horizon", return_value=True),
            "scheduler": mocker.patch(f"{MODULE}.configure_scheduler", return_value=True),
        }

    def test_first_run_serves_http_until_certificate_exists(self, app_settings, steps):
        logger = MagicMock()

        result = install_project(app_settings, logger, domain="shop.example.com")

        project = steps["site"].call_args.args[0]
        assert steps["site"].call_args_list == [
            call(project, app_settings, logger, with_tls=False),
            call(project, app_settings, logger, with_tls=True),
        ]
        steps["env"].assert_called_once_with(project, "/usr/bin/php8.1", "pw", app_settings, logger)
        assert result.db_name == "db_shop"
        assert result.certificate_requested is True
        assert result.horizon_started is True

    def test_rerun_with_certificate_writes_tls_site_once(self, app_settings, steps):
        steps["cert_exists"].return_value = True
        steps["certificate"].return_value = False

        result = install_project(app_settings, MagicMock(), domain="shop.example.com")

        assert steps["site"].call_count == 1
        assert steps["site"].call_args.kwargs == {"with_tls": True}
        assert result.certificate_requested is False

    def test_optional_steps_can_be_disabled(self, steps):
        settings = AppSettings(
            server_fqdn="vds.example.net",
            laravel={"enable_horizon": False, "enable_scheduler": False},
        )

        result = install_project(settings, MagicMock(), domain="shop.example.com")

        steps["horizon"].assert_not_called()
        steps["scheduler"].assert_not_called()
        assert result.horizon_started is False

    def test_invalid_domain_touches_nothing(self, app_settings, steps):
        with pytest.raises(ValueError):
            install_project(app_settings, MagicMock(), domain="nope")
        steps["prereqs"].assert_not_called()
