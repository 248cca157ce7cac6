import logging
from typing import Type

from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class DatabaseMixin:
    """Mixin for plugins that define database models.

    Models registered in ``__init__`` are handed to the database manager and
    their tables are created when the plugin loads.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._plugin_models: list[Type[DeclarativeBase]] = []

    def register_model(self, model_class: Type[DeclarativeBase]) -> None:
        """Register a model class with this plugin.

        Args:
            model_class: SQLAlchemy model class that inherits from Base
        """
        if not issubclass(model_class, DeclarativeBase):
            raise ValueError(f"Model {model_class.__name__} must inherit from DeclarativeBase")

        if not hasattr(model_class, "__tablename__"):
            raise ValueError(f"Model {model_class.__name__} must define __tablename__")

        self._plugin_models.append(model_class)
        logger.debug(f"Registered model {model_class.__name__} for plugin {getattr(self, 'name', 'unknown')}")

    def register_models(self, *model_classes: Type[DeclarativeBase]) -> None:
        for model_class in model_classes:
            self.register_model(model_class)

    def get_models(self) -> list[Type[DeclarativeBase]]:
        return self._plugin_models.copy()

    async def on_load(self) -> None:
        plugin_name = getattr(self, "name", "unknown")
        for model_class in self._plugin_models:
            self.bot.db.register_plugin_model(model_class, plugin_name)
        await self.bot.db.create_plugin_tables(plugin_name)

        await super().on_load()

    async def on_unload(self) -> None:
        plugin_name = getattr(self, "name", "unknown")
        for model_class in self._plugin_models:
            self.bot.db.unregister_plugin_model(model_class, plugin_name)

        await super().on_unload()
