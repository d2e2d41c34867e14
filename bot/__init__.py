"""
Command handling for the relay bot.

Exports: parse_command, CommandDispatcher, TypingIndicator, create_dispatcher
"""

from bot.commands import Command, Infer, Help, Health, HELP_TEXT, parse_command
from bot.typing_indicator import SignalHandle, TypingIndicator
from bot.dispatcher import CommandDispatcher, create_dispatcher

__all__ = [
    "Command",
    "Infer",
    "Help",
    "Health",
    "HELP_TEXT",
    "parse_command",
    "SignalHandle",
    "TypingIndicator",
    "CommandDispatcher",
    "create_dispatcher",
]
