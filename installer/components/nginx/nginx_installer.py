"""
Nginx installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class NginxInstaller(PackageInstaller):
    """
    Installer for nginx-full plus apache2-utils, which provides htpasswd.

    It does not act as a registered component.
    """

    display_name = "Nginx"

    @property
    def packages(self) -> List[str]:
        return self.app_settings.nginx.packages
