"""
Dependency container for collaborators the engine hands to its agents.

The engine never builds a tool registry or model client itself; whoever
assembles the pipeline registers them here (or passes them directly).
"""

from typing import Any

from .settings import Settings, get_settings


class Container:
    """Holds settings plus named collaborators, created eagerly or lazily."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._factories: dict[str, Any] = {}
        self._singletons: dict[str, Any] = {}

    def register_factory(self, name: str, factory: Any) -> None:
        """Register a ``factory(container)`` called on first ``get``."""
        self._factories[name] = factory

    def register_singleton(self, name: str, instance: Any) -> None:
        self._singletons[name] = instance

    def get(self, name: str, default: Any = None) -> Any:
        """Get a collaborator by name, building it from its factory if needed."""
        if name in self._singletons:
            return self._singletons[name]

        if name in self._factories:
            instance = self._factories.pop(name)(self)
            self._singletons[name] = instance
            return instance

        return default

    def names(self) -> list[str]:
        return sorted({*self._singletons, *self._factories})

    def dependencies(self) -> dict[str, Any]:
        """Every registered collaborator, keyed by name, as agents receive them."""
        return {name: self.get(name) for name in self.names()}
