"""
Certbot installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class CertbotInstaller(PackageInstaller):
    """Installs certbot and its nginx plugin."""

    display_name = "Certbot"

    @property
    def packages(self) -> List[str]:
        return self.app_settings.certbot.packages
