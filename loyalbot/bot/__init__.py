"""Telegram chat front end."""

from .commands import OPERATOR_COMMANDS, PUBLIC_COMMANDS, ParsedCommand, help_text, parse_command
from .dispatcher import AccountAdmin, BotDispatcher, BotReply, IncomingMessage
from .runtime import TelegramBot, TelegramBotError, split_message

__all__ = [
    "OPERATOR_COMMANDS",
    "PUBLIC_COMMANDS",
    "AccountAdmin",
    "BotDispatcher",
    "BotReply",
    "IncomingMessage",
    "ParsedCommand",
    "TelegramBot",
    "TelegramBotError",
    "help_text",
    "parse_command",
    "split_message",
]
