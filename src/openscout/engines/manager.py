"""Engine Manager — Registers engine drivers and hands out engine instances.

The manager maps driver names to factories and lazily creates one engine
per driver from the active settings. Models that do not bind an engine of
their own are searched with the manager's default driver
(``search.driver`` setting).
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from openscout.config.settings import Settings, get_settings
from openscout.engines.base.engine import SearchEngine
from openscout.engines.collection.engine import CollectionEngine
from openscout.engines.database.engine import DatabaseEngine
from openscout.engines.meilisearch.engine import MeiliSearchEngine
from openscout.engines.null.engine import NullEngine

logger = logging.getLogger(__name__)

EngineFactory = Callable[[Settings], SearchEngine]


class EngineNotFoundError(Exception):
    """Raised when a requested engine driver is not registered."""


class EngineManager:
    """Registry of engine drivers and their instances.

    Example:
        >>> manager = EngineManager()
        >>> manager.register("custom", lambda settings: CustomEngine())
        >>> engine = manager.engine("custom")
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings
        self._factories: dict[str, EngineFactory] = {}
        self._instances: dict[str, SearchEngine] = {}

        self.register("collection", lambda settings: CollectionEngine())
        self.register("database", lambda settings: DatabaseEngine())
        self.register("null", lambda settings: NullEngine())
        self.register("meilisearch", lambda settings: MeiliSearchEngine.from_settings(settings.meilisearch))

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def register(self, name: str, factory: EngineFactory) -> None:
        """Register an engine driver.

        Args:
            name: Unique driver name.
            factory: Builds the engine from the active settings.
        """
        if name in self._factories:
            logger.debug("Overwriting existing engine registration: %s", name)
            self._instances.pop(name, None)
        self._factories[name] = factory

    def engine(self, name: str | None = None) -> SearchEngine:
        """Get the engine for a driver, creating it on first use.

        Args:
            name: Driver name. Defaults to the configured driver.

        Raises:
            EngineNotFoundError: If no driver is registered under this name.
        """
        name = name or self.get_default_driver()
        if name not in self._instances:
            if name not in self._factories:
                raise EngineNotFoundError(
                    f"No engine registered with name '{name}'. "
                    f"Available engines: {list(self._factories.keys())}"
                )
            self._instances[name] = self._factories[name](self.settings)
            logger.info("Initialized engine: %s", name)
        return self._instances[name]

    def get_default_driver(self) -> str:
        return self.settings.search.driver

    def forget_engines(self) -> None:
        """Drop all created engines; the next lookup builds fresh ones."""
        for name, engine in self._instances.items():
            close = getattr(engine, "close", None)
            if close is not None:
                close()
                logger.info("Closed engine: %s", name)
        self._instances.clear()

    @property
    def registered_engines(self) -> list[str]:
        return list(self._factories.keys())

    @property
    def active_engines(self) -> list[str]:
        return list(self._instances.keys())


# Global manager instance (created lazily, replaced by set_engine_manager)
_manager: EngineManager | None = None


def get_engine_manager() -> EngineManager:
    """Get the global engine manager, creating it on first use."""
    global _manager
    if _manager is None:
        _manager = EngineManager()
    return _manager


def set_engine_manager(manager: EngineManager | None) -> None:
    """Replace the global engine manager (``None`` resets it)."""
    global _manager
    _manager = manager
