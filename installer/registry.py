"""
Registry for provisioning components.

Components register themselves with the ComponentRegistry.register decorator
when their configurator module is imported.
"""

from typing import Any, Dict, List, Optional, Type

from installer.base_component import BaseComponent


class ComponentRegistry:
    """Class-level mapping of component name to component class."""

    _registry: Dict[str, Type["BaseComponent"]] = {}

    @classmethod
    def register(cls, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Decorator for registering component classes.

        Args:
            name: The name of the component.
            metadata: Optional metadata such as "dependencies" (list of
                component names) and "description".

        Raises:
            ValueError: If the name is already registered.
        """

        def decorator(
            component_class: Type["BaseComponent"],
        ) -> Type["BaseComponent"]:
            if name in cls._registry:
                raise ValueError(
                    f"Component with name '{name}' already registered"
                )
            if metadata:
                component_class.metadata = metadata
            cls._registry[name] = component_class
            return component_class

        return decorator

    @classmethod
    def get_component(cls, name: str) -> Type["BaseComponent"]:
        """
        Get a component class by name.

        Raises:
            KeyError: If no component with the given name is registered.
        """
        if name not in cls._registry:
            raise KeyError(f"No component registered with name '{name}'")
        return cls._registry[name]

    @classmethod
    def get_all_components(cls) -> Dict[str, Type["BaseComponent"]]:
        return cls._registry.copy()

    @classmethod
    def get_component_dependencies(cls, name: str) -> List[str]:
        """Declared dependencies of a component, in declaration order."""
        component_class = cls.get_component(name)
        metadata = getattr(component_class, "metadata", {})
        return list(metadata.get("dependencies", []))

    @classmethod
    def resolve_dependencies(cls, components: List[str]) -> List[str]:
        """
        Order components so every dependency precedes its dependents.

        The requested order is kept wherever dependencies allow, and
        dependencies that were not requested are pulled in.

        Raises:
            KeyError: If a component or dependency is not registered.
            ValueError: If there is a circular dependency.
        """
        result: List[str] = []
        visited = set()
        temp_visited = set()

        def visit(component: str):
            if component in temp_visited:
                raise ValueError(
                    f"Circular dependency detected involving '{component}'"
                )
            if component in visited:
                return

            temp_visited.add(component)
            for dependency in cls.get_component_dependencies(component):
                visit(dependency)
            temp_visited.remove(component)

            visited.add(component)
            result.append(component)

        for component in components:
            visit(component)

        return result
