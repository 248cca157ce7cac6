import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Any

from ..plugins.base import BasePlugin

logger = logging.getLogger(__name__)


class PluginMetadata:
    def __init__(
        self,
        name: str,
        version: str = "1.0.0",
        author: str = "Unknown",
        description: str = "",
        dependencies: list[str] | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self.author = author
        self.description = description
        self.dependencies = dependencies or []


class PluginLoader:
    def __init__(self, bot: Any) -> None:
        self.bot = bot
        self.plugins: dict[str, BasePlugin] = {}
        self.plugin_metadata: dict[str, PluginMetadata] = {}
        self.plugin_directories: list[Path] = []

    def add_plugin_directory(self, directory: str) -> None:
        path = Path(directory)
        if path.exists() and path.is_dir():
            self.plugin_directories.append(path)
            logger.info(f"Added plugin directory: {path}")
        else:
            logger.warning(f"Plugin directory does not exist: {path}")

    def discover_plugins(self) -> list[str]:
        discovered = []

        for directory in self.plugin_directories:
            for plugin_path in directory.iterdir():
                if plugin_path.is_dir() and not plugin_path.name.startswith("_"):
                    init_file = plugin_path / "__init__.py"
                    if init_file.exists():
                        discovered.append(plugin_path.name)

        logger.info(f"Discovered plugins: {discovered}")
        return discovered

    def _load_plugin_module(self, plugin_name: str) -> Any:
        for directory in self.plugin_directories:
            plugin_path = directory / plugin_name
            if plugin_path.exists():
                spec = importlib.util.spec_from_file_location(
                    f"plugins.{plugin_name}",
                    plugin_path / "__init__.py",
                    submodule_search_locations=[str(plugin_path)],
                )
                if spec and spec.loader:
                    module = importlib.util.module_from_spec(spec)
                    sys.modules[f"plugins.{plugin_name}"] = module
                    spec.loader.exec_module(module)
                    return module

        raise ImportError(f"Plugin {plugin_name} not found")

    def _extract_plugin_class(self, module: Any) -> type[BasePlugin]:
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, BasePlugin) and obj is not BasePlugin and module.__name__ in obj.__module__:
                return obj

        raise ValueError(f"No plugin class found in module {module.__name__}")

    def _extract_metadata(self, module: Any) -> PluginMetadata:
        if hasattr(module, "PLUGIN_METADATA"):
            meta_dict = module.PLUGIN_METADATA
            return PluginMetadata(
                name=meta_dict.get("name", "Unknown"),
                version=meta_dict.get("version", "1.0.0"),
                author=meta_dict.get("author", "Unknown"),
                description=meta_dict.get("description", ""),
                dependencies=meta_dict.get("dependencies", []),
            )
        return PluginMetadata(name=module.__name__)

    async def load_plugin(self, plugin_name: str) -> bool:
        # Check if plugin is already loaded
        if plugin_name in self.plugins:
            logger.info(f"Plugin {plugin_name} is already loaded")
            return True

        try:
            module = self._load_plugin_module(plugin_name)
            metadata = self._extract_metadata(module)

            for dep in metadata.dependencies:
                if dep not in self.plugins:
                    logger.error(f"Plugin {plugin_name} requires {dep} which is not loaded")
                    return False

            plugin_instance = self._extract_plugin_class(module)(self.bot)
        except Exception as e:
            logger.error(f"Failed to load plugin {plugin_name}: {e}")
            return False

        try:
            await plugin_instance.on_load()
        except Exception as e:
            logger.error(f"Failed to load plugin {plugin_name}: {e}")
            await self._rollback(plugin_name, plugin_instance)
            return False

        self.plugins[plugin_name] = plugin_instance
        self.plugin_metadata[plugin_name] = metadata

        logger.info(f"Successfully loaded plugin: {plugin_name} v{metadata.version}")
        return True

    async def _rollback(self, plugin_name: str, plugin: BasePlugin) -> None:
        """Undo whatever a failed ``on_load`` managed to register."""
        try:
            await plugin.on_unload()
        except Exception as e:
            logger.error(f"Rollback of plugin {plugin_name} failed: {e}")
        sys.modules.pop(f"plugins.{plugin_name}", None)

    async def unload_plugin(self, plugin_name: str) -> bool:
        if plugin_name not in self.plugins:
            logger.warning(f"Plugin {plugin_name} is not loaded")
            return False

        plugin = self.plugins.pop(plugin_name)
        self.plugin_metadata.pop(plugin_name, None)

        # Remove from sys.modules to allow reloading
        sys.modules.pop(f"plugins.{plugin_name}", None)

        try:
            await plugin.on_unload()
        except Exception as e:
            logger.error(f"Failed to unload plugin {plugin_name}: {e}")
            return False

        logger.info(f"Successfully unloaded plugin: {plugin_name}")
        return True

    async def reload_plugin(self, plugin_name: str) -> bool:
        if await self.unload_plugin(plugin_name):
            return await self.load_plugin(plugin_name)
        return False

    async def load_all_plugins(self, enabled_plugins: list[str]) -> None:
        for plugin_name in enabled_plugins:
            await self.load_plugin(plugin_name)

    def get_plugin(self, plugin_name: str) -> BasePlugin | None:
        return self.plugins.get(plugin_name)

    def get_loaded_plugins(self) -> list[str]:
        return list(self.plugins.keys())
