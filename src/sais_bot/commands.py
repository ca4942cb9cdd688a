"""
The /sais command.

Serializes probe cycles on the shared SaisClient and rate-limits callers.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Hashable, Optional, Tuple

from sais_bot.models import ProbeResult
from sais_bot.notify.formatters import StatusFormatter
from sais_bot.probe.sais_client import SaisClient, SaisLoginError

logger = logging.getLogger(__name__)


class Cooldown:
    """
    Fixed-window rate limit.

    Each key may be hit `rate` times per `per` seconds. The window starts
    at the first hit and resets once it has elapsed.
    """

    def __init__(self, rate: int = 1, per: float = 10.0):
        self.rate = rate
        self.per = per
        self._windows: Dict[Hashable, Tuple[float, int]] = {}

    def hit(self, key: Hashable, now: Optional[float] = None) -> float:
        """
        Register one invocation for `key`.

        Returns:
            float: 0.0 if the invocation is allowed, otherwise seconds until
            the current window ends
        """
        now = time.monotonic() if now is None else now
        self._prune(now)
        started, count = self._windows.get(key, (now, 0))

        if count >= self.rate:
            return self.per - (now - started)

        self._windows[key] = (started, count + 1)
        return 0.0

    def _prune(self, now: float) -> None:
        """Forget keys whose window has ended."""
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.per]
        for key in expired:
            del self._windows[key]


class SaisCommand:
    """
    Handles /sais invocations.

    The SaisClient holds single-slot cookie state, so one asyncio.Lock is
    held for the whole probe cycle. Concurrent invocations wait their turn.
    """

    def __init__(
        self,
        client: SaisClient,
        formatter: Optional[StatusFormatter] = None,
        cooldown: Optional[Cooldown] = None,
    ):
        self.client = client
        self.formatter = formatter or StatusFormatter()
        self.cooldown = cooldown
        self._lock = asyncio.Lock()

    async def run_probe(self) -> ProbeResult:
        """
        Run one probe cycle with exclusive access to the client.

        Raises:
            SaisLoginError: If the login POST fails in transport
        """
        async with self._lock:
            return await asyncio.to_thread(self.client.probe)

    async def handle(self, chat_id: Hashable) -> str:
        """
        Handle one invocation from a chat.

        Args:
            chat_id: Chat the command came from (cooldown key)

        Returns:
            str: Reply text
        """
        if self.cooldown is not None:
            retry_after = self.cooldown.hit(chat_id)
            if retry_after > 0:
                logger.info(f"/sais from {chat_id} on cooldown for {retry_after:.1f}s")
                return self.formatter.format_cooldown(retry_after)

        try:
            result = await self.run_probe()
        except SaisLoginError as e:
            logger.error(f"SAIS login attempt failed to complete: {e}", exc_info=True)
            return self.formatter.format_login_error(e.checked_at or datetime.now(timezone.utc))

        logger.info(f"SAIS probe for {chat_id}: {result.outcome.value}")
        return self.formatter.format_result(result)
