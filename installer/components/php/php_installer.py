"""
PHP installer module.
"""

from typing import List

from installer.components.package_installer import PackageInstaller


class PhpInstaller(PackageInstaller):
    """
    Installs php-cli first, then the php-<module> packages.

    The unversioned metapackages follow whatever PHP the distribution ships,
    which is why the version is detected afterwards instead of configured.
    """

    display_name = "PHP"

    @property
    def base_package(self) -> str:
        return self.app_settings.php.base_package

    @property
    def module_packages(self) -> List[str]:
        return [f"php-{module}" for module in self.app_settings.php.modules]

    @property
    def packages(self) -> List[str]:
        return [self.base_package] + self.module_packages

    def install(self) -> bool:
        if not self.apt_manager.install(
            self.base_package, self.app_settings, update_first=False
        ):
            self.logger.error(f"Failed to install {self.base_package}.")
            return False
        return super().install()
