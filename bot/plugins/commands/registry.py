"""Command registration system."""

import logging
from typing import Any

import hikari
import lightbulb

from .argument_types import CommandArgument
from .parsers import ArgumentParserFactory

logger = logging.getLogger(__name__)


class OptionDescriptorFactory:
    """Factory for creating lightbulb option descriptors."""

    option_mapping = {
        hikari.OptionType.STRING: lightbulb.string,
        hikari.OptionType.INTEGER: lightbulb.integer,
    }

    @classmethod
    def create(cls, arg_def: CommandArgument) -> Any:
        """Create the appropriate lightbulb option descriptor for an argument."""
        kwargs = {}
        if not arg_def.required:
            kwargs["default"] = arg_def.default if arg_def.default is not None else hikari.UNDEFINED

        # Boolean doesn't support choices or ranges
        if arg_def.arg_type == hikari.OptionType.BOOLEAN:
            return lightbulb.boolean(arg_def.name, arg_def.description, **kwargs)

        if arg_def.choices is not None:
            kwargs["choices"] = [cls._choice(choice) for choice in arg_def.choices]

        if arg_def.arg_type == hikari.OptionType.INTEGER:
            if arg_def.min_value is not None:
                kwargs["min_value"] = arg_def.min_value
            if arg_def.max_value is not None:
                kwargs["max_value"] = arg_def.max_value

        descriptor_func = cls.option_mapping.get(arg_def.arg_type, lightbulb.string)
        return descriptor_func(arg_def.name, arg_def.description, **kwargs)

    @staticmethod
    def _choice(choice: Any) -> lightbulb.Choice:
        # Lightbulb reads its own Choice type; hikari choices are converted
        if isinstance(choice, lightbulb.Choice):
            return choice
        return lightbulb.Choice(choice.name, choice.value)


class CommandRegistry:
    """Handles command registration for plugins."""

    def __init__(self, plugin: Any):
        self.plugin = plugin
        self.bot = plugin.bot
        self.logger = logging.getLogger(f"registry.{plugin.name}")
        self._commands: list[Any] = []

    async def register_commands(self) -> None:
        """Register all commands found in the plugin."""
        await self._register_slash_commands()
        await self._register_prefix_commands()

    async def unregister_commands(self) -> None:
        """Unregister all commands."""
        for command in self._commands[:]:
            if hasattr(command, "_unified_command"):
                # Lightbulb commands are cleaned up on the next command sync
                self.logger.debug(f"Lightbulb command {command._unified_command['name']} left for the next sync")

            if hasattr(command, "_prefix_command"):
                self.bot.message_handler.remove_command(command._prefix_command["name"])
                self.logger.debug(f"Removed prefix command: {command._prefix_command['name']}")

        self._commands.clear()

    def _iter_commands(self, marker: str) -> list[tuple[str, Any]]:
        found = []
        for attr_name in dir(self.plugin):
            attr = getattr(self.plugin, attr_name)
            if isinstance(getattr(attr, marker, None), dict):
                found.append((attr_name, attr))
        return found

    async def _register_slash_commands(self) -> None:
        """Register slash commands with lightbulb."""
        for attr_name, attr in self._iter_commands("_unified_command"):
            cmd_meta = attr._unified_command

            # Skip if this is prefix-only
            if cmd_meta.get("prefix_only", False):
                continue

            try:
                cmd_class = self._build_slash_command(attr, cmd_meta)
                self.bot.command_client.register(cmd_class)
            except Exception as e:
                self.logger.error(f"Failed to register slash command {attr_name}: {e}")
                raise

            self._commands.append(attr)
            self.logger.info(f"Registered slash command: {cmd_meta['name']} from plugin {self.plugin.name}")

    def _build_slash_command(self, callback: Any, cmd_meta: dict[str, Any]) -> type[lightbulb.SlashCommand]:
        command_args: list[CommandArgument] = cmd_meta.get("arguments", [])
        cmd_class_name = f"{cmd_meta['name'].title().replace('-', '').replace('_', '')}Command"

        async def invoke_wrapper(cmd_instance, ctx: lightbulb.Context):
            # Option values live on the command instance
            kwargs = {arg_def.name: getattr(cmd_instance, arg_def.name, arg_def.default) for arg_def in command_args}
            return await callback(ctx, **kwargs)

        class_attrs = {
            "invoke": lightbulb.invoke(invoke_wrapper),
            **cmd_meta.get("lightbulb_kwargs", {}),
        }
        for arg_def in command_args:
            class_attrs[arg_def.name] = OptionDescriptorFactory.create(arg_def)

        return type(
            cmd_class_name,
            (lightbulb.SlashCommand,),
            class_attrs,
            name=cmd_meta["name"],
            description=cmd_meta["description"],
        )

    async def _register_prefix_commands(self) -> None:
        """Register prefix commands with the message handler."""
        from ...core.message_handler import PrefixCommand

        for attr_name, attr in self._iter_commands("_prefix_command"):
            prefix_meta = attr._prefix_command
            command_args = prefix_meta.get("arguments", [])

            try:
                prefix_cmd = PrefixCommand(
                    name=prefix_meta["name"],
                    callback=self._create_prefix_wrapper(attr, command_args),
                    description=prefix_meta.get("description", ""),
                    aliases=prefix_meta.get("aliases", []),
                    plugin_name=self.plugin.name,
                    arguments=command_args,
                )
                self.bot.message_handler.add_command(prefix_cmd)
            except Exception as e:
                self.logger.error(f"Failed to register prefix command {attr_name}: {e}")
                raise

            if attr not in self._commands:  # Avoid duplicates
                self._commands.append(attr)
            self.logger.info(f"Registered prefix command: {prefix_meta['name']} from plugin {self.plugin.name}")

    def _create_prefix_wrapper(self, callback: Any, args: list[CommandArgument]):
        """Create a wrapper function for prefix command argument parsing."""

        async def prefix_wrapper(ctx):
            parsed_args = ArgumentParserFactory.parse_arguments(ctx.args, args) if args else {}
            return await callback(ctx, **parsed_args)

        return prefix_wrapper
