"""
Orchestrator for the provisioning components.

Resolves dependencies, runs components in order, stops at the first failure
and rolls back what the current run changed.
"""

import logging
from typing import Dict, List, Optional, Type

from common.system_utils import get_php_version, reload_service_quietly
from installer.base_component import BaseComponent
from installer.config import FINALIZE_RELOAD_SERVICES
from installer.config_models import AppSettings
from installer.registry import ComponentRegistry


class ComponentOrchestrator:
    """Runs registered components against the host."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def get_available_components(self) -> Dict[str, Type[BaseComponent]]:
        return ComponentRegistry.get_all_components()

    def resolve_dependencies(self, component_names: List[str]) -> List[str]:
        return ComponentRegistry.resolve_dependencies(component_names)

    def _instantiate(
        self, component_names: List[str]
    ) -> Dict[str, BaseComponent]:
        return {
            name: ComponentRegistry.get_component(name)(
                self.app_settings, self.logger
            )
            for name in component_names
        }

    def install(
        self, component_names: List[str], force: bool = False
    ) -> bool:
        """
        Install the components and their dependencies.

        Components whose probe reports them installed are skipped unless
        `force` is set. Only components that were not installed before this
        run are rolled back when a later one fails.
        """
        try:
            resolved_names = self.resolve_dependencies(component_names)
        except (KeyError, ValueError) as e:
            self.logger.error(f"Cannot resolve components: {e}")
            return False

        self.logger.info(
            f"Installing components in order: {', '.join(resolved_names)}"
        )
        components = self._instantiate(resolved_names)
        installed_components: List[str] = []

        for name in resolved_names:
            component = components[name]
            self.logger.info(f"Installing component: {name}")
            try:
                was_installed = component.is_installed()
                if was_installed and not force:
                    self.logger.info(
                        f"Component {name} is already installed, skipping"
                    )
                    continue
                success = component.install()
            except Exception as e:
                self.logger.error(
                    f"Error installing component {name}: {e}", exc_info=True
                )
                success = False

            if not success:
                self.logger.error(f"Failed to install component: {name}")
                self._rollback_installations(components, installed_components)
                return False

            if not was_installed:
                installed_components.append(name)
            self.logger.info(f"Successfully installed component: {name}")

        self.logger.info("All components installed successfully")
        return True

    def configure(
        self, component_names: List[str], force: bool = False
    ) -> bool:
        """
        Configure the components and their dependencies.

        Components whose probe reports them configured are skipped unless
        `force` is set.
        """
        try:
            resolved_names = self.resolve_dependencies(component_names)
        except (KeyError, ValueError) as e:
            self.logger.error(f"Cannot resolve components: {e}")
            return False

        self.logger.info(
            f"Configuring components in order: {', '.join(resolved_names)}"
        )
        components = self._instantiate(resolved_names)
        configured_components: List[str] = []

        for name in resolved_names:
            component = components[name]
            self.logger.info(f"Configuring component: {name}")
            try:
                if not force and component.is_configured():
                    self.logger.info(
                        f"Component {name} is already configured, skipping"
                    )
                    continue
                success = component.configure()
            except Exception as e:
                self.logger.error(
                    f"Error configuring component {name}: {e}", exc_info=True
                )
                success = False

            if not success:
                self.logger.error(f"Failed to configure component: {name}")
                self._rollback_configurations(
                    components, configured_components
                )
                return False

            configured_components.append(name)
            self.logger.info(f"Successfully configured component: {name}")

        self.logger.info("All components configured successfully")
        return True

    def _run_reverse(self, component_names: List[str], action: str) -> bool:
        try:
            resolved_names = self.resolve_dependencies(component_names)
        except (KeyError, ValueError) as e:
            self.logger.error(f"Cannot resolve components: {e}")
            return False
        resolved_names.reverse()

        self.logger.info(
            f"Running {action} in order: {', '.join(resolved_names)}"
        )
        components = self._instantiate(resolved_names)
        for name in resolved_names:
            try:
                success = getattr(components[name], action)()
            except Exception as e:
                self.logger.error(
                    f"Error during {action} of component {name}: {e}",
                    exc_info=True,
                )
                success = False
            if not success:
                self.logger.error(f"Failed to {action} component: {name}")
                return False
            self.logger.info(f"Successfully ran {action} for component: {name}")
        return True

    def uninstall(self, component_names: List[str]) -> bool:
        """Uninstall components, dependents first."""
        return self._run_reverse(component_names, "uninstall")

    def unconfigure(self, component_names: List[str]) -> bool:
        """Unconfigure components, dependents first."""
        return self._run_reverse(component_names, "unconfigure")

    def _rollback_installations(
        self,
        components: Dict[str, BaseComponent],
        installed_components: List[str],
    ) -> None:
        for name in reversed(installed_components):
            self.logger.info(f"Rolling back installation of component: {name}")
            try:
                if not components[name].rollback_installation():
                    self.logger.error(
                        f"Failed to roll back installation of component: {name}"
                    )
            except Exception as e:
                self.logger.error(
                    f"Error during rollback of component {name}: {e}"
                )

    def _rollback_configurations(
        self,
        components: Dict[str, BaseComponent],
        configured_components: List[str],
    ) -> None:
        for name in reversed(configured_components):
            self.logger.info(f"Rolling back configuration of component: {name}")
            try:
                if not components[name].rollback_configuration():
                    self.logger.error(
                        f"Failed to roll back configuration of component: {name}"
                    )
            except Exception as e:
                self.logger.error(
                    f"Error during rollback of component {name}: {e}"
                )

    def check_status(
        self, component_names: List[str]
    ) -> Dict[str, Dict[str, bool]]:
        """Probe each component. A probe that raises counts as False."""
        components = self._instantiate(component_names)
        status: Dict[str, Dict[str, bool]] = {}
        for name in component_names:
            entry = {"installed": False, "configured": False}
            try:
                entry["installed"] = components[name].is_installed()
                entry["configured"] = components[name].is_configured()
            except Exception as e:
                self.logger.warning(f"Could not probe component {name}: {e}")
            status[name] = entry
        return status

    def finalize(self) -> None:
        """Reload nginx, PHP-FPM and MySQL. Failures are logged as warnings."""
        symbols = self.app_settings.symbols
        self.logger.info(f"{symbols.get('step', '➡️')} Finalizing setup...")
        try:
            php_version = get_php_version(self.app_settings, self.logger)
        except Exception as e:
            self.logger.warning(f"Could not detect PHP version for reload: {e}")
            php_version = None

        for template in FINALIZE_RELOAD_SERVICES:
            if "{php_version}" in template and not php_version:
                continue
            service = template.format(php_version=php_version)
            reload_service_quietly(service, self.app_settings, self.logger)
