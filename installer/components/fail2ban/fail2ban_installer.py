"""
Fail2ban installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class Fail2banInstaller(PackageInstaller):
    display_name = "fail2ban"

    @property
    def packages(self) -> List[str]:
        return ["fail2ban"]
