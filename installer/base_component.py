"""
Base component class for all provisioning components.

A component is one idempotent provisioning unit (a package plus the files and
services it owns). Each one probes the host before acting so a re-run only
repairs what is missing.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from installer.config_models import AppSettings


class BaseComponent(ABC):
    """
    Base class for all provisioning components.

    Subclasses implement install/configure and their inverses, plus the two
    probes used by the orchestrator to skip work that is already done.
    """

    # Overridden per class by ComponentRegistry.register(name, metadata=...)
    metadata: Dict[str, Any] = {
        "dependencies": [],
        "description": "",
    }

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def symbols(self) -> Dict[str, str]:
        return self.app_settings.symbols

    @abstractmethod
    def install(self) -> bool:
        """Install the component's packages. Returns True on success."""

    @abstractmethod
    def configure(self) -> bool:
        """Write configuration and start services. Returns True on success."""

    @abstractmethod
    def uninstall(self) -> bool:
        """Remove the component's packages. Returns True on success."""

    @abstractmethod
    def unconfigure(self) -> bool:
        """Remove configuration written by configure(). Returns True on success."""

    @abstractmethod
    def is_installed(self) -> bool:
        """Probe whether the packages are present."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Probe whether configure() has already taken effect."""

    def rollback_installation(self) -> bool:
        """
        Undo install() after a later component failed.

        Defaults to uninstall(). Components whose packages should survive a
        failed run override this.
        """
        self.logger.info(
            f"Rolling back installation of {self.__class__.__name__}"
        )
        return self.uninstall()

    def rollback_configuration(self) -> bool:
        """Undo configure() after a later component failed. Defaults to unconfigure()."""
        self.logger.info(
            f"Rolling back configuration of {self.__class__.__name__}"
        )
        return self.unconfigure()

    def get_dependencies(self) -> List[str]:
        return list(self.metadata.get("dependencies", []))

    def get_description(self) -> str:
        return str(self.metadata.get("description", ""))
