"""
SAIS availability probe.

Checks whether UP SAIS is serving its login page and whether the probe
account can actually log in, using the PeopleSoft login form at
/psp/ps/?cmd=login.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from sais_bot.config import Settings, get_settings
from sais_bot.models import Credentials, LoginFailureReason, ProbeOutcome, ProbeResult

logger = logging.getLogger(__name__)


class SaisLoginError(Exception):
    """Raised when the login POST fails in transport after SAIS answered the GET."""

    def __init__(self, message: str, checked_at: Optional[datetime] = None):
        super().__init__(message)
        self.checked_at = checked_at


class SaisClient:
    """
    Probes UP SAIS with a fresh anonymous session on every cycle.

    One cycle is:
    - GET the login page anonymously to collect session cookies
    - POST the probe account's credentials with those cookies
    - Classify the resulting page

    Not safe for concurrent use: the cookie string is a single slot that
    every cycle overwrites. Callers must serialize calls to probe().
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the SAIS client.

        Args:
            settings: Optional settings instance, will use default if not provided
            session: Optional HTTP session, a new requests.Session if not provided
        """
        self.settings = settings or get_settings()
        self.login_url = self.settings.sais_login_url
        self.credentials: Credentials = self.settings.credentials
        self.timeout = self.settings.sais_request_timeout

        self.session = session or requests.Session()
        self.cookies = ""

    def probe(self) -> ProbeResult:
        """
        Run one probe cycle.

        Returns:
            ProbeResult: Classified outcome of the cycle

        Raises:
            SaisLoginError: If the login POST fails in transport
        """
        self._reset_session()
        logger.info(f"Checking SAIS at '{self.login_url}'")

        try:
            response = self.session.get(self.login_url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not get response from SAIS: {e}")
            return ProbeResult(outcome=ProbeOutcome.NETWORK_ERROR, error=str(e))

        checked_at = datetime.now(timezone.utc)
        self._save_cookies(response)

        if not 200 <= response.status_code < 300:
            logger.warning(f"SAIS login page returned HTTP {response.status_code}")
            return ProbeResult(
                outcome=ProbeOutcome.SERVICE_DOWN,
                checked_at=checked_at,
                status_code=response.status_code,
            )

        body = self._attempt_login(checked_at)
        result = self._classify(body)
        result.checked_at = checked_at
        result.status_code = response.status_code
        return result

    def _reset_session(self) -> None:
        """Drop every cookie from the previous cycle."""
        self.cookies = ""
        self.session.cookies.clear()

    def _save_cookies(self, response: requests.Response) -> None:
        """Append every Set-Cookie header of the response to the cookie string."""
        values = _set_cookie_values(response)
        for cookie in values:
            self.cookies = f"{self.cookies};{cookie}"
        logger.debug(f"Collected {len(values)} cookie(s) from SAIS")

    def _attempt_login(self, checked_at: datetime) -> str:
        """
        POST the login form with the collected cookies.

        Args:
            checked_at: When SAIS answered the GET, carried on SaisLoginError

        Returns:
            str: Body of the login response

        Raises:
            SaisLoginError: On any transport failure
        """
        try:
            response = self.session.post(
                self.login_url,
                data=self.credentials.as_form(),
                headers={
                    "User-Agent": self.settings.sais_user_agent,
                    "Cookie": self.cookies,
                },
                timeout=self.timeout,
            )
            return response.text
        except requests.exceptions.RequestException as e:
            logger.error(f"Could not check login status: {e}")
            raise SaisLoginError(f"Login request failed: {e}", checked_at) from e

    def _classify(self, body: str) -> ProbeResult:
        """
        Classify the page returned by the login POST.

        The success marker is checked first: some error pages carry both markers.
        """
        if self.settings.sais_success_marker in body:
            logger.info("SAIS is up and the probe account logged in")
            return ProbeResult(outcome=ProbeOutcome.SERVICE_UP_LOGIN_SUCCEEDED)

        if self.settings.sais_invalid_marker in body:
            logger.warning("SAIS is up but rejected the probe account's credentials")
            reason = LoginFailureReason.INVALID_CREDENTIALS
        else:
            logger.warning(
                f"SAIS is up but login could not be confirmed "
                f"(page title: {_page_title(body)!r})"
            )
            reason = LoginFailureReason.MARKER_ABSENT

        return ProbeResult(
            outcome=ProbeOutcome.SERVICE_UP_LOGIN_FAILED,
            failure_reason=reason,
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "SaisClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _set_cookie_values(response: requests.Response) -> List[str]:
    """
    Raw Set-Cookie header values in the order they were received.

    requests folds repeated headers into one comma-joined value; the
    urllib3 response keeps them apart.
    """
    return list(response.raw.headers.getlist("Set-Cookie"))


def _page_title(html: str) -> Optional[str]:
    """Title of an HTML page, for log lines."""
    soup = BeautifulSoup(html, "lxml")
    title = soup.find("title")
    return title.get_text(strip=True) if title else None
