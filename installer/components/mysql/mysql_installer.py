"""
MySQL installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class MysqlInstaller(PackageInstaller):
    """Installs mysql-server and mysql-client."""

    display_name = "MySQL"

    @property
    def packages(self) -> List[str]:
        return self.app_settings.mysql.packages
