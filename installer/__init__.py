"""
Component installer framework.

This package provides the registry, base class and orchestrator used to
install and configure the components of a provisioned VDS.
"""

from installer.base_component import BaseComponent
from installer.registry import ComponentRegistry

__all__ = ["BaseComponent", "ComponentRegistry"]
