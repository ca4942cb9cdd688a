"""
Data models for SAIS Status Bot.

Defines Pydantic models for the probe and the chat side:
- ProbeOutcome
- Credentials
- ProbeResult
- ChatMessage
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProbeOutcome(str, Enum):
    """Classified result of one probe cycle."""
    NETWORK_ERROR = "network_error"
    SERVICE_DOWN = "service_down"
    SERVICE_UP_LOGIN_FAILED = "service_up_login_failed"
    SERVICE_UP_LOGIN_SUCCEEDED = "service_up_login_succeeded"


class LoginFailureReason(str, Enum):
    """Why a login attempt against a live portal was judged a failure."""
    INVALID_CREDENTIALS = "invalid_credentials"
    MARKER_ABSENT = "marker_absent"


class Credentials(BaseModel):
    """
    Login form fields for the probe account.

    Attributes:
        timezone_offset: Browser timezone offset in minutes
        userid: SAIS user ID
        pwd: SAIS password
        request_id: Numeric request id expected by the login form
    """
    model_config = ConfigDict(frozen=True)

    timezone_offset: int
    userid: str
    pwd: str = Field(repr=False)
    request_id: int = Field(ge=0)

    def as_form(self) -> Dict[str, str]:
        """Form body for the login POST, keyed by the portal's field names."""
        return {
            "timezoneOffset": str(self.timezone_offset),
            "userid": self.userid,
            "pwd": self.pwd,
            "request_id": str(self.request_id),
        }


class ProbeResult(BaseModel):
    """
    Result of one probe cycle.

    Attributes:
        outcome: Classified outcome
        checked_at: When the portal answered (or failed to answer) the first request
        status_code: HTTP status of the anonymous fetch, if one was received
        error: Transport error text for NETWORK_ERROR
        failure_reason: Diagnostic detail for SERVICE_UP_LOGIN_FAILED
    """
    outcome: ProbeOutcome
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status_code: Optional[int] = None
    error: Optional[str] = None
    failure_reason: Optional[LoginFailureReason] = None


class ChatMessage(BaseModel):
    """
    Incoming Telegram text message, reduced to what command dispatch needs.

    Attributes:
        update_id: Telegram update id (used as the polling offset)
        message_id: Id of the message within its chat
        chat_id: Chat the message was sent in
        text: Message text
        sender: Username or first name of the sender
    """
    update_id: int
    message_id: int
    chat_id: int
    text: str
    sender: Optional[str] = None

    @classmethod
    def from_update(cls, update: dict) -> Optional["ChatMessage"]:
        """Build from a raw getUpdates entry. Returns None for non-text updates."""
        message = update.get("message") or update.get("channel_post")
        if not message or "text" not in message:
            return None

        sender = message.get("from") or {}
        return cls(
            update_id=update["update_id"],
            message_id=message["message_id"],
            chat_id=message["chat"]["id"],
            text=message["text"],
            sender=sender.get("username") or sender.get("first_name"),
        )

    def _first_token(self) -> str:
        parts = self.text.split(maxsplit=1)
        return parts[0] if parts else ""

    @property
    def command(self) -> Optional[str]:
        """
        Bot command in the message, lower-cased and without the leading slash.

        "/SAIS@UpSaisBot" gives "sais"; plain text gives None.
        """
        token = self._first_token()
        if not token.startswith("/") or len(token) == 1:
            return None
        return token[1:].split("@", 1)[0].lower()

    @property
    def command_target(self) -> Optional[str]:
        """Bot username a command was addressed to ("/sais@name"), if any."""
        token = self._first_token()
        if not token.startswith("/") or "@" not in token:
            return None
        return token.split("@", 1)[1].lower()
