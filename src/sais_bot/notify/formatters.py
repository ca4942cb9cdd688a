"""
Message formatters for Telegram replies.

Turns probe results into the one-line status replies the bot sends.
"""

from datetime import datetime, timedelta
from typing import Optional

from dateutil.tz import tzoffset

from sais_bot.models import ProbeOutcome, ProbeResult
from sais_bot.notify.emoji import (
    LOGIN_FAIL,
    LOGIN_OK,
    RESPONSE_FAIL,
    STATUS_CODE_FAIL,
    EmojiCache,
)


class StatusFormatter:
    """
    Formats probe results as chat replies.

    Every reply starts with "As of HH:MM:SS" in a fixed UTC offset
    (UTC+8 unless configured otherwise).
    """

    MESSAGES = {
        ProbeOutcome.SERVICE_UP_LOGIN_SUCCEEDED: ("UP SAIS is up!", LOGIN_OK),
        ProbeOutcome.SERVICE_UP_LOGIN_FAILED: ("UP SAIS is up, but could not log in.", LOGIN_FAIL),
        ProbeOutcome.SERVICE_DOWN: ("UP SAIS is down...", STATUS_CODE_FAIL),
        ProbeOutcome.NETWORK_ERROR: ("could not reach UP SAIS.", RESPONSE_FAIL),
    }

    LOGIN_ERROR_MESSAGE = "UP SAIS is reachable, but the login attempt failed to complete."
    ERROR_MESSAGE = "could not check UP SAIS."

    def __init__(self, emojis: Optional[EmojiCache] = None, utc_offset_hours: int = 8):
        """
        Initialize the formatter.

        Args:
            emojis: Decoration lookup; replies are undecorated without one
            utc_offset_hours: Offset used for the reply timestamp
        """
        self.emojis = emojis or EmojiCache()
        self.tz = tzoffset(None, int(timedelta(hours=utc_offset_hours).total_seconds()))

    def _timestamp(self, when: datetime) -> str:
        return when.astimezone(self.tz).strftime("%H:%M:%S")

    def _line(self, when: datetime, text: str, tag: str) -> str:
        decoration = self.emojis.get(tag)
        line = f"As of {self._timestamp(when)}, {text}"
        return f"{line} {decoration}" if decoration else line

    def format_result(self, result: ProbeResult) -> str:
        """
        Format a probe result.

        Args:
            result: The probe result to format

        Returns:
            str: Reply text
        """
        text, tag = self.MESSAGES[result.outcome]
        return self._line(result.checked_at, text, tag)

    def format_login_error(self, when: datetime) -> str:
        """Format the reply for a login POST that failed in transport."""
        return self._line(when, self.LOGIN_ERROR_MESSAGE, RESPONSE_FAIL)

    def format_error(self, when: datetime) -> str:
        """Format the reply for a check that failed unexpectedly."""
        return self._line(when, self.ERROR_MESSAGE, RESPONSE_FAIL)

    @staticmethod
    def format_cooldown(retry_after: float) -> str:
        """Format the reply for a rate-limited invocation."""
        return f"Slow down! Try again in {max(1, round(retry_after))}s."
