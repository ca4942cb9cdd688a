"""Telegram notification module for SAIS Bot."""

from sais_bot.notify.emoji import EmojiCache
from sais_bot.notify.formatters import StatusFormatter
from sais_bot.notify.telegram import TelegramAPIError, TelegramClient

__all__ = ["EmojiCache", "StatusFormatter", "TelegramAPIError", "TelegramClient"]
