"""Argument parsers using strategy pattern."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import hikari

from .argument_types import CommandArgument

logger = logging.getLogger(__name__)


class ArgumentParser(ABC):
    """Base class for argument parsers."""

    @abstractmethod
    def parse(self, arg: str, definition: CommandArgument) -> Any:
        """Parse a string argument according to the definition."""


class StringArgumentParser(ArgumentParser):
    def parse(self, arg: str, definition: CommandArgument) -> Any:
        return arg


class IntegerArgumentParser(ArgumentParser):
    def parse(self, arg: str, definition: CommandArgument) -> Any:
        try:
            return int(arg)
        except ValueError:
            return definition.default


class BooleanArgumentParser(ArgumentParser):
    def parse(self, arg: str, definition: CommandArgument) -> Any:
        return arg.lower() in ("true", "1", "yes", "on", "y")


class ArgumentParserFactory:
    """Factory for creating argument parsers."""

    _parsers = {
        hikari.OptionType.STRING: StringArgumentParser(),
        hikari.OptionType.INTEGER: IntegerArgumentParser(),
        hikari.OptionType.BOOLEAN: BooleanArgumentParser(),
    }

    @classmethod
    def get_parser(cls, option_type: hikari.OptionType) -> ArgumentParser:
        """Get the appropriate parser for an option type."""
        return cls._parsers.get(option_type, StringArgumentParser())

    @classmethod
    def parse_arguments(cls, args: list[str], command_args: list[CommandArgument]) -> dict[str, Any]:
        """Parse prefix command arguments based on command definitions.

        The last string argument receives all remaining text, so ``!play never gonna``
        passes ``"never gonna"`` as the query.
        """
        parsed = {}

        for i, arg_def in enumerate(command_args):
            if i >= len(args):
                # Missing argument
                parsed[arg_def.name] = arg_def.default if not arg_def.required else None
                continue

            if arg_def.arg_type == hikari.OptionType.STRING and i == len(command_args) - 1:
                parsed[arg_def.name] = " ".join(args[i:])
            else:
                parser = cls.get_parser(arg_def.arg_type)
                parsed[arg_def.name] = parser.parse(args[i], arg_def)

        return parsed
