"""
Main entry point for SAIS Status Bot.

Coordinates the bot lifecycle:
1. Verify the Telegram token
2. Resolve reply decorations
3. Long-poll Telegram for messages
4. Answer each /sais command with a fresh probe of UP SAIS
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Set

import requests
from pydantic import ValidationError

from sais_bot.commands import Cooldown, SaisCommand
from sais_bot.config import Settings, get_settings, setup_logging
from sais_bot.models import ChatMessage
from sais_bot.notify import EmojiCache, StatusFormatter, TelegramAPIError, TelegramClient
from sais_bot.probe import SaisClient

logger = logging.getLogger(__name__)

COMMAND_NAME = "sais"


class SaisBot:
    """
    Telegram bot answering /sais.

    Polling runs in a worker thread; each command becomes its own asyncio
    task so a slow probe never blocks reading further updates.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        telegram: Optional[TelegramClient] = None,
        client: Optional[SaisClient] = None,
    ):
        """Initialize the bot with all components."""
        self.settings = settings or get_settings()
        self.telegram = telegram or TelegramClient(self.settings.telegram_bot_token)
        self.client = client or SaisClient(self.settings)
        self.emojis = EmojiCache(self.settings.sais_emojis)
        self.command = SaisCommand(
            self.client,
            StatusFormatter(self.emojis, self.settings.reply_utc_offset_hours),
            Cooldown(self.settings.cooldown_rate, self.settings.cooldown_seconds),
        )
        self.allowed_chats: Set[int] = set(self.settings.sais_allowed_chat_ids)

        self._offset: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()

    def is_sais_command(self, message: ChatMessage) -> bool:
        """Check if a message invokes /sais, addressed to this bot or to no bot in particular."""
        if message.command != COMMAND_NAME:
            return False
        target = message.command_target
        return target is None or target == (self.telegram.username or "").lower()

    def is_allowed(self, message: ChatMessage) -> bool:
        """Check the chat allowlist. An empty allowlist allows every chat."""
        return not self.allowed_chats or message.chat_id in self.allowed_chats

    async def start(self) -> bool:
        """
        Verify the token and load decorations.

        Returns:
            bool: True if the bot is ready to poll
        """
        if not await asyncio.to_thread(self.telegram.test_connection):
            return False
        await asyncio.to_thread(self.emojis.load, self.telegram)
        return True

    async def poll_once(self) -> int:
        """
        Fetch one batch of updates and dispatch commands.

        Returns:
            int: Number of /sais commands dispatched
        """
        updates = await asyncio.to_thread(
            self.telegram.get_updates, self._offset, self.settings.poll_timeout
        )

        dispatched = 0
        for update in updates:
            self._offset = update["update_id"] + 1

            message = ChatMessage.from_update(update)
            if message is None or not self.is_sais_command(message):
                continue
            if not self.is_allowed(message):
                logger.debug(f"Ignoring /sais from chat {message.chat_id}")
                continue

            task = asyncio.create_task(self.answer(message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            dispatched += 1

        return dispatched

    async def answer(self, message: ChatMessage) -> bool:
        """
        Run /sais for one message and reply to it.

        Returns:
            bool: True if the reply was sent
        """
        logger.info(f"/sais from {message.sender or 'unknown'} in chat {message.chat_id}")
        try:
            reply = await self.command.handle(message.chat_id)
        except Exception as e:
            logger.error(f"/sais failed with error: {e}", exc_info=True)
            reply = self.command.formatter.format_error(datetime.now(timezone.utc))

        return await asyncio.to_thread(
            self.telegram.send_message, message.chat_id, reply, message.message_id
        )

    async def run(self) -> bool:
        """
        Poll until cancelled.

        Returns:
            bool: False if the bot could not start
        """
        logger.info("=" * 50)
        logger.info("Starting SAIS Status Bot")
        logger.info("=" * 50)

        if not await self.start():
            return False

        try:
            while True:
                try:
                    await self.poll_once()
                except (TelegramAPIError, requests.exceptions.RequestException) as e:
                    logger.error(f"Polling failed: {e}")
                    await asyncio.sleep(self.settings.poll_error_delay)
        finally:
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            self.client.close()
            self.telegram.close()


def main() -> int:
    """
    Entry point for the SAIS Status Bot.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    try:
        # Validate configuration early
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Please check your environment variables.", file=sys.stderr)
        return 1

    setup_logging(settings)
    logger.debug(f"Loaded configuration for {settings.sais_login_url}")

    bot = SaisBot(settings)
    try:
        success = asyncio.run(bot.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
