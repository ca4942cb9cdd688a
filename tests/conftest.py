import threading
import time
from types import SimpleNamespace

import pytest

from sais_bot.config import Settings


class FakeHeaders:
    def __init__(self, pairs=()):
        self._pairs = list(pairs)

    def getlist(self, name):
        return [v for k, v in self._pairs if k.lower() == name.lower()]


class FakeResponse:
    def __init__(self, status_code=200, text="", headers=()):
        self.status_code = status_code
        self.text = text
        self.raw = SimpleNamespace(headers=FakeHeaders(headers))


class FakeCookieJar:
    def __init__(self, events):
        self._events = events

    def clear(self):
        self._events.append("reset")


class FakeSession:
    """Stands in for requests.Session; replays queued responses or raises queued errors."""

    def __init__(self, get=(), post=(), delay=0.0):
        self._get = list(get)
        self._post = list(post)
        self.delay = delay
        self.events = []
        self.calls = []
        self.cookies = FakeCookieJar(self.events)
        self.closed = False
        self._lock = threading.Lock()

    def _next(self, queue):
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    def get(self, url, **kwargs):
        with self._lock:
            self.events.append("get")
            self.calls.append(("GET", url, kwargs))
        return self._next(self._get)

    def post(self, url, **kwargs):
        with self._lock:
            self.events.append("post")
            self.calls.append(("POST", url, kwargs))
        if self.delay:
            time.sleep(self.delay)
        return self._next(self._post)

    def close(self):
        self.closed = True


def make_settings(**overrides):
    values = {
        "telegram_bot_token": "123:abc",
        "sais_userid": "201812345",
        "sais_password": "hunter2",
        "sais_login_url": "https://sais.example/psp/ps/?cmd=login",
        "sais_success_marker": "LOGIN_OK",
        "sais_invalid_marker": "Your User ID and/or Password are invalid.",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()
