"""
Framework Registry
==================

Maps framework ids to adapter factories. Adapters are instantiated lazily on
first ``get()`` and cached per registry; re-registering a name drops the
cached instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from core.errors import FrameworkNotFoundError

from .nextjs import NextJsAdapter
from .nuxt import NuxtAdapter
from .react_router import ReactRouterAdapter
from .remix import RemixAdapter
from .sveltekit import SvelteKitAdapter
from .types import FrameworkAdapter, FrameworkType

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[], FrameworkAdapter]


class FrameworkRegistry:
    """Lookup table of framework adapters."""

    def __init__(self) -> None:
        self._factories: dict[str, AdapterFactory] = {}
        self._instances: dict[str, FrameworkAdapter] = {}

    def register(self, name: str, factory: AdapterFactory) -> None:
        if name in self._factories:
            logger.debug(f"Replacing adapter factory for '{name}'")
        self._factories[name] = factory
        self._instances.pop(name, None)

    def get(self, name: str) -> FrameworkAdapter:
        """
        Get the adapter registered under ``name``.

        Raises:
            FrameworkNotFoundError: If nothing is registered under ``name``.
        """
        if name not in self._factories:
            raise FrameworkNotFoundError(name, self.registered_frameworks())
        if name not in self._instances:
            self._instances[name] = self._factories[name]()
        return self._instances[name]

    def get_all(self) -> list[FrameworkAdapter]:
        """One adapter per registered name, in registration order."""
        return [self.get(name) for name in self._factories]

    def has(self, name: str) -> bool:
        return name in self._factories

    def registered_frameworks(self) -> list[str]:
        return list(self._factories)

    def clear_instances(self) -> None:
        self._instances.clear()


def build_default_registry() -> FrameworkRegistry:
    """Registry with every built-in adapter."""
    registry = FrameworkRegistry()
    registry.register(FrameworkType.SVELTEKIT.value, SvelteKitAdapter)
    registry.register(FrameworkType.NEXTJS_APP.value, lambda: NextJsAdapter("app"))
    registry.register(FrameworkType.NEXTJS_PAGES.value, lambda: NextJsAdapter("pages"))
    registry.register(FrameworkType.NEXTJS.value, lambda: NextJsAdapter("hybrid"))
    registry.register(FrameworkType.NUXT.value, NuxtAdapter)
    registry.register(FrameworkType.REMIX.value, RemixAdapter)
    registry.register(FrameworkType.REACT_ROUTER.value, ReactRouterAdapter)
    return registry
