"""
UFW (Uncomplicated Firewall) installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class UfwInstaller(PackageInstaller):
    display_name = "UFW"

    @property
    def packages(self) -> List[str]:
        return ["ufw"]
