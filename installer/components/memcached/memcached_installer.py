"""
Memcached installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class MemcachedInstaller(PackageInstaller):
    display_name = "Memcached"

    @property
    def packages(self) -> List[str]:
        return [self.app_settings.memcached.package]
