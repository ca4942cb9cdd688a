"""
Telegram Bot API client.

Receives commands and sends replies via Telegram Bot API.
https://core.telegram.org/bots/api
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from sais_bot.config import get_settings

logger = logging.getLogger(__name__)

# Telegram Bot API endpoint
TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/{method}"


class TelegramAPIError(Exception):
    """Raised when the Bot API rejects a call whose result is needed."""
    pass


class TelegramClient:
    """
    Telegram Bot API client.

    Uses Telegram's Bot API to long-poll for incoming messages and to
    reply to them.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Telegram client.

        Args:
            token: Telegram Bot API token (from @BotFather)
            session: Optional HTTP session, a new requests.Session if not provided
        """
        self.token = token or get_settings().telegram_bot_token
        self.session = session or requests.Session()
        self.username: Optional[str] = None

    def _url(self, method: str) -> str:
        return TELEGRAM_API_URL.format(token=self.token, method=method)

    def _call(
        self,
        method: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: float = 30,
    ) -> Any:
        """
        Call a Bot API method and return its result.

        Raises:
            TelegramAPIError: If Telegram answers with ok=false or a non-JSON body
            requests.exceptions.RequestException: On network errors
        """
        response = self.session.post(self._url(method), json=payload or {}, timeout=timeout)

        try:
            data = response.json()
        except ValueError as e:
            raise TelegramAPIError(
                f"{method}: HTTP {response.status_code} with non-JSON body"
            ) from e

        if not data.get("ok"):
            raise TelegramAPIError(
                f"{method}: {data.get('error_code', response.status_code)} - "
                f"{data.get('description')}"
            )
        return data.get("result")

    def get_me(self) -> Dict[str, Any]:
        """Return the bot's own user object and remember its username."""
        me = self._call("getMe", timeout=10)
        self.username = me.get("username")
        return me

    def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> List[dict]:
        """
        Long-poll for new updates.

        Args:
            offset: First update id to return (last seen id + 1)
            timeout: Seconds Telegram may hold the request open

        Returns:
            list: Raw update objects
        """
        payload: Dict[str, Any] = {
            "timeout": timeout,
            "allowed_updates": ["message", "channel_post"],
        }
        if offset is not None:
            payload["offset"] = offset

        # Leave the HTTP timeout some slack over the long-poll timeout
        return self._call("getUpdates", payload, timeout=timeout + 10)

    def get_custom_emoji_stickers(self, emoji_ids: List[str]) -> List[dict]:
        """Look up custom emoji stickers by id."""
        if not emoji_ids:
            return []
        return self._call("getCustomEmojiStickers", {"custom_emoji_ids": emoji_ids})

    def send_message(
        self,
        chat_id: int,
        message: str,
        reply_to: Optional[int] = None,
        parse_mode: str = "HTML",
    ) -> bool:
        """
        Send a text message via Telegram.

        Args:
            chat_id: Chat to send to
            message: The message text to send
            reply_to: Optional message id to reply to
            parse_mode: Message formatting mode (Markdown or HTML)

        Returns:
            bool: True if message was sent successfully
        """
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": message,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True,
        }
        if reply_to is not None:
            payload["reply_parameters"] = {
                "message_id": reply_to,
                "allow_sending_without_reply": True,
            }

        try:
            result = self._call("sendMessage", payload)
            logger.info(f"Telegram message sent successfully: {result.get('message_id', 'unknown')}")
            return True
        except TelegramAPIError as e:
            logger.error(f"Telegram API error: {e}")
            return False
        except requests.exceptions.Timeout:
            logger.error("Telegram API request timed out")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"Telegram API request failed: {e}")
            return False

    def test_connection(self) -> bool:
        """
        Test if the bot token is valid.

        Returns:
            bool: True if connection is valid
        """
        try:
            me = self.get_me()
        except (TelegramAPIError, requests.exceptions.RequestException) as e:
            logger.error(f"Failed to connect to Telegram: {e}")
            return False

        logger.info(f"Connected to Telegram bot: @{me.get('username')}")
        return True

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
