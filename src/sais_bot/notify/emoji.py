"""
Reply decorations keyed by status tag.

Each tag maps to either plain text (usually a unicode emoji) or a Telegram
custom emoji id. Custom emoji are resolved once at startup; afterwards the
cache is read-only.
"""

import html
import logging
from typing import Dict, Mapping, Optional

import requests

from sais_bot.notify.telegram import TelegramAPIError, TelegramClient

logger = logging.getLogger(__name__)

LOGIN_OK = "login_ok"
LOGIN_FAIL = "login_fail"
STATUS_CODE_FAIL = "status_code_fail"
RESPONSE_FAIL = "response_fail"

DEFAULT_EMOJIS: Dict[str, str] = {
    LOGIN_OK: "👌",
    LOGIN_FAIL: "😱",
    STATUS_CODE_FAIL: "💀",
    RESPONSE_FAIL: "📡",
}


class EmojiCache:
    """
    Tag to decoration lookup.

    Values made only of digits are treated as custom emoji ids and rendered
    as <tg-emoji> entities, so replies must be sent with HTML parse mode.
    """

    def __init__(self, configured: Optional[Mapping[str, str]] = None):
        self._rendered: Dict[str, str] = {
            tag: html.escape(value) for tag, value in DEFAULT_EMOJIS.items()
        }
        self._custom_ids: Dict[str, str] = {}
        for tag, value in (configured or {}).items():
            if value.isdigit():
                self._custom_ids[tag] = value
            else:
                self._rendered[tag] = html.escape(value)
        self._loaded = False

    def load(self, telegram: Optional[TelegramClient] = None) -> None:
        """
        Resolve custom emoji ids. Only the first call has any effect.

        Args:
            telegram: Client used to look up custom emoji ids. Without one,
                custom emoji ids fall back to the defaults.
        """
        if self._loaded:
            return

        if self._custom_ids:
            stickers = self._fetch_stickers(telegram, list(self._custom_ids.values()))
            for tag, emoji_id in self._custom_ids.items():
                sticker = stickers.get(emoji_id)
                if sticker is None:
                    logger.warning(f"Custom emoji {emoji_id} for '{tag}' not found, using default")
                    continue
                fallback = html.escape(sticker.get("emoji") or DEFAULT_EMOJIS.get(tag, "?"))
                self._rendered[tag] = f'<tg-emoji emoji-id="{emoji_id}">{fallback}</tg-emoji>'

        self._loaded = True
        logger.info(f"Loaded {len(self._rendered)} reply decoration(s)")

    @staticmethod
    def _fetch_stickers(telegram: Optional[TelegramClient], emoji_ids: list) -> Dict[str, dict]:
        if telegram is None:
            return {}
        try:
            stickers = telegram.get_custom_emoji_stickers(emoji_ids)
        except (TelegramAPIError, requests.exceptions.RequestException) as e:
            logger.error(f"Could not look up custom emoji: {e}")
            return {}
        return {s["custom_emoji_id"]: s for s in stickers if s.get("custom_emoji_id")}

    def get(self, tag: str) -> str:
        """Rendered decoration for a tag, or an empty string if none is known."""
        return self._rendered.get(tag, "")
