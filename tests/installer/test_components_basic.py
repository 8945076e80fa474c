# tests/installer/test_components_basic.py
"""Tests for the small package/service components."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from installer.components.certbot.certbot_configurator import CertbotConfigurator
from installer.components.fail2ban.fail2ban_configurator import (
    Fail2banConfigurator,
    render_jail,
)
from installer.components.logrotate.logrotate_configurator import (
    LogrotateConfigurator,
    render_logrotate,
)
from installer.components.memcached.memcached_configurator import MemcachedConfigurator
from installer.components.package_installer import PackageInstaller
from installer.components.php.php_configurator import PhpConfigurator
from installer.components.phpmyadmin.phpmyadmin_configurator import (
    PhpMyAdminConfigurator,
)
from installer.components.prerequisites.prerequisites_installer import (
    PrerequisitesInstaller,
)
from installer.components.system_update.system_update_installer import (
    SystemUpdateInstaller,
)
from installer.components.ufw.ufw_configurator import UfwConfigurator


class TestPackageInstaller:
    def test_requires_a_package_list(self, app_settings):
        with pytest.raises(TypeError):
            PackageInstaller(app_settings, MagicMock())

    def test_subclass_probes_its_packages(self, mocker, app_settings):
        class ExampleInstaller(PackageInstaller):
            @property
            def packages(self):
                return ["redis-server", "redis-tools"]

        mock_check = mocker.patch(
            "installer.components.package_installer.check_package_installed",
            return_value=True,
        )

        assert ExampleInstaller(app_settings, MagicMock()).is_installed() is True
        assert [c.args[0] for c in mock_check.call_args_list] == ["redis-server", "redis-tools"]


class TestSystemUpdate:
    def test_runs_full_cycle(self, mocker, app_settings):
        component = SystemUpdateInstaller(app_settings, MagicMock())
        apt = mocker.patch.object(component, "apt_manager")
        apt.update.return_value = True
        apt.upgrade.return_value = True
        apt.autoremove.return_value = True

        assert component.install() is True
        apt.update.assert_called_once_with(app_settings, fix_missing=True)
        assert apt.upgrade.call_count == 2
        assert apt.upgrade.call_args.kwargs == {"dist_upgrade": True}

    def test_dist_upgrade_failure_is_not_fatal(self, mocker, app_settings):
        component = SystemUpdateInstaller(app_settings, MagicMock())
        apt = mocker.patch.object(component, "apt_manager")
        apt.update.return_value = True
        apt.upgrade.side_effect = [True, False]
        apt.autoremove.return_value = False

        assert component.install() is True

    def test_update_failure_stops(self, mocker, app_settings):
        component = SystemUpdateInstaller(app_settings, MagicMock())
        apt = mocker.patch.object(component, "apt_manager")
        apt.update.return_value = False

        assert component.install() is False
        apt.upgrade.assert_not_called()

    def test_always_reruns(self, app_settings):
        component = SystemUpdateInstaller(app_settings, MagicMock())
        assert component.is_installed() is False
        assert component.rollback_installation() is True


class TestPrerequisites:
    def test_installs_essential_packages(self, mocker, app_settings):
        component = PrerequisitesInstaller(app_settings, MagicMock())
        install = mocker.patch.object(component.apt_manager, "install", return_value=True)

        assert component.install() is True
        packages = install.call_args.args[0]
        assert "certbot" in packages and "ufw" in packages

    def test_is_installed_checks_every_package(self, mocker, app_settings):
        mocker.patch(
            "installer.components.prerequisites.prerequisites_installer.check_package_installed",
            side_effect=lambda pkg, *_: pkg != "jc",
        )
        component = PrerequisitesInstaller(app_settings, MagicMock())

        assert component.is_installed() is False


class TestPhp:
    def test_installs_cli_before_modules(self, mocker, app_settings):
        component = PhpConfigurator(app_settings, MagicMock())
        install = mocker.patch.object(
            component.installer.apt_manager, "install", return_value=True
        )

        assert component.install() is True
        first, second = install.call_args_list
        assert first.args[0] == "php-cli"
        assert second.args[0][:3] == ["php-cli", "php-fpm", "php-common"]

    def test_configure_enables_versioned_fpm(self, mocker, app_settings):
        mocker.patch(
            "installer.components.php.php_configurator.get_php_version", return_value="8.1"
        )
        mock_service = mocker.patch(
            "installer.components.php.php_configurator.manage_service"
        )
        component = PhpConfigurator(app_settings, MagicMock())

        assert component.configure() is True
        assert mock_service.call_args.args[:2] == ("php8.1-fpm", ("enable", "restart"))

    def test_is_configured_before_php_exists(self, mocker, app_settings):
        mocker.patch(
            "installer.components.php.php_configurator.get_php_version",
            side_effect=FileNotFoundError("php"),
        )
        assert PhpConfigurator(app_settings, MagicMock()).is_configured() is False


class TestMemcached:
    def test_configure_and_unconfigure(self, mocker, app_settings):
        module = "installer.components.memcached.memcached_configurator"
        mock_service = mocker.patch(f"{module}.manage_service")
        mock_run = mocker.patch(f"{module}.run_elevated_command")
        component = MemcachedConfigurator(app_settings, MagicMock())

        assert component.configure() is True
        assert component.unconfigure() is True
        assert mock_service.call_args.args[:2] == ("memcached", ("enable", "restart"))
        assert mock_run.call_args.args[0] == ["systemctl", "disable", "--now", "memcached"]

    def test_installs_package(self, mocker, app_settings):
        component = MemcachedConfigurator(app_settings, MagicMock())
        install = mocker.patch.object(
            component.installer.apt_manager, "install", return_value=True
        )

        assert component.install() is True
        assert install.call_args.args[0] == ["memcached"]


class TestUfw:
    MODULE = "installer.components.ufw.ufw_configurator"

    def test_profiles_stay_single_arguments(self, mocker, app_settings):
        mock_run = mocker.patch(f"{self.MODULE}.run_elevated_command")
        component = UfwConfigurator(app_settings, MagicMock())

        assert component.configure() is True
        assert [c.args[0] for c in mock_run.call_args_list] == [
            ["ufw", "allow", "OpenSSH"],
            ["ufw", "allow", "Nginx Full"],
            ["ufw", "--force", "enable"],
        ]

    @pytest.mark.parametrize(
        "stdout, expected",
        [("Status: active\n\nTo Action From", True), ("Status: inactive\n", False)],
    )
    def test_is_configured(self, mocker, app_settings, completed, stdout, expected):
        mocker.patch(f"{self.MODULE}.run_elevated_command", return_value=completed(stdout=stdout))
        assert UfwConfigurator(app_settings, MagicMock()).is_configured() is expected


class TestCertbot:
    def test_installs_nginx_plugin(self, mocker, app_settings):
        component = CertbotConfigurator(app_settings, MagicMock())
        install = mocker.patch.object(
            component.installer.apt_manager, "install", return_value=True
        )

        assert component.install() is True
        assert install.call_args.args[0] == ["certbot", "python3-certbot-nginx"]
        assert component.configure() is True

    def test_depends_on_nginx(self):
        assert CertbotConfigurator.metadata["dependencies"] == ["nginx"]


class TestPhpMyAdmin:
    INSTALLER = "installer.components.phpmyadmin.phpmyadmin_installer"

    def test_install_moves_release_into_place(self, mocker, app_settings):
        mocker.patch(f"{self.INSTALLER}.download_file", return_value=True)
        mocker.patch(f"{self.INSTALLER}.ensure_directory")
        mocker.patch(f"{self.INSTALLER}.path_exists", return_value=False)

        def fake_tar(cmd, *args, **kwargs):
            (Path(cmd[-1]) / "phpMyAdmin-5.2.1-all-languages").mkdir()
            return MagicMock()

        mocker.patch(f"{self.INSTALLER}.run_command", side_effect=fake_tar)
        mock_elevated = mocker.patch(f"{self.INSTALLER}.run_elevated_command")
        component = PhpMyAdminConfigurator(app_settings, MagicMock())

        assert component.install() is True
        mv_cmd, chown_cmd = [c.args[0] for c in mock_elevated.call_args_list]
        assert mv_cmd[0] == "mv"
        assert mv_cmd[1].endswith("phpMyAdmin-5.2.1-all-languages")
        assert mv_cmd[2] == "/var/www/html/myadmin"
        assert chown_cmd == ["chown", "-R", "www-data:www-data", "/var/www/html/myadmin"]

    def test_forced_install_replaces_existing_release(self, mocker, app_settings):
        mocker.patch(f"{self.INSTALLER}.download_file", return_value=True)
        mocker.patch(f"{self.INSTALLER}.ensure_directory")
        mocker.patch(f"{self.INSTALLER}.path_exists", return_value=True)
        mock_remove = mocker.patch(f"{self.INSTALLER}.remove_path", return_value=True)

        def fake_tar(cmd, *args, **kwargs):
            (Path(cmd[-1]) / "phpMyAdmin-5.2.1-all-languages").mkdir()
            return MagicMock()

        mocker.patch(f"{self.INSTALLER}.run_command", side_effect=fake_tar)
        mock_elevated = mocker.patch(f"{self.INSTALLER}.run_elevated_command")
        component = PhpMyAdminConfigurator(app_settings, MagicMock())

        assert component.install() is True
        mock_remove.assert_called_once_with("/var/www/html/myadmin", app_settings, component.logger)
        assert mock_elevated.call_args_list[0].args[0][0] == "mv"

    def test_install_stops_when_old_release_cannot_be_removed(self, mocker, app_settings):
        mocker.patch(f"{self.INSTALLER}.download_file", return_value=True)
        mocker.patch(f"{self.INSTALLER}.ensure_directory")
        mocker.patch(f"{self.INSTALLER}.path_exists", return_value=True)
        mocker.patch(f"{self.INSTALLER}.remove_path", return_value=False)

        def fake_tar(cmd, *args, **kwargs):
            (Path(cmd[-1]) / "phpMyAdmin-5.2.1-all-languages").mkdir()
            return MagicMock()

        mocker.patch(f"{self.INSTALLER}.run_command", side_effect=fake_tar)
        mock_elevated = mocker.patch(f"{self.INSTALLER}.run_elevated_command")
        component = PhpMyAdminConfigurator(app_settings, MagicMock())

        assert component.install() is False
        mock_elevated.assert_not_called()

    def test_install_empty_archive_fails(self, mocker, app_settings):
        mocker.patch(f"{self.INSTALLER}.download_file", return_value=True)
        mocker.patch(f"{self.INSTALLER}.run_command")
        mock_elevated = mocker.patch(f"{self.INSTALLER}.run_elevated_command")
        component = PhpMyAdminConfigurator(app_settings, MagicMock())

        assert component.install() is False
        mock_elevated.assert_not_called()


class TestFail2ban:
    def test_render_jail_indents_logpaths(self, app_settings):
        jail = render_jail(app_settings)

        assert "maxretry = 5" in jail
        assert (
            "logpath = /var/log/nginx/access.log\n"
            "          /home/vdsadmin/logs/*.log\n"
            "          /home/vdsadmin/logs/*/*.log\n"
        ) in jail
        assert "[nginx-404]" in jail

    def test_configure_writes_filter_and_jail(self, mocker, app_settings):
        module = "installer.components.fail2ban.fail2ban_configurator"
        mock_write = mocker.patch(f"{module}.write_file")
        mock_check = mocker.patch(f"{module}.run_elevated_command")
        mock_service = mocker.patch(f"{module}.manage_service")
        component = Fail2banConfigurator(app_settings, MagicMock())

        assert component.configure() is True
        assert mock_check.call_args.args[0] == ["fail2ban-client", "-t"]
        assert [c.args[0] for c in mock_write.call_args_list] == [
            "/etc/fail2ban/filter.d/nginx-404.conf",
            "/etc/fail2ban/jail.d/custom.conf",
        ]
        assert mock_service.call_args.args[:2] == ("fail2ban", ("enable", "restart"))

    def test_configure_fails_when_config_test_fails(self, mocker, app_settings):
        module = "installer.components.fail2ban.fail2ban_configurator"
        mocker.patch(f"{module}.write_file")
        mocker.patch(
            f"{module}.run_elevated_command",
            side_effect=subprocess.CalledProcessError(255, ["fail2ban-client", "-t"]),
        )
        mock_service = mocker.patch(f"{module}.manage_service")
        component = Fail2banConfigurator(app_settings, MagicMock())

        assert component.configure() is False
        mock_service.assert_not_called()


class TestLogrotate:
    def test_render_logrotate(self, app_settings):
        conf = render_logrotate(app_settings)

        assert conf.startswith("/home/vdsadmin/logs/*.log /home/vdsadmin/logs/*/*.log {")
        assert "rotate 14" in conf
        assert "create 640 vdsadmin adm" in conf

    def test_configure_writes_world_readable_file(self, mocker, app_settings):
        mock_write = mocker.patch(
            "installer.components.logrotate.logrotate_configurator.write_file"
        )
        component = LogrotateConfigurator(app_settings, MagicMock())

        assert component.configure() is True
        assert mock_write.call_args.args[0] == "/etc/logrotate.d/vdsadmin"
        assert mock_write.call_args.kwargs["mode"] == "644"
