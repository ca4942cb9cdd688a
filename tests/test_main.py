import asyncio
from datetime import datetime, timezone

from conftest import make_settings
from sais_bot import main as main_module
from sais_bot.main import SaisBot
from sais_bot.models import ProbeOutcome, ProbeResult

CHECKED_AT = datetime(2024, 1, 15, 1, 2, 3, tzinfo=timezone.utc)


class FakeTelegram:
    def __init__(self, updates=(), connected=True):
        self.updates = list(updates)
        self.connected = connected
        self.username = "UpSaisBot"
        self.sent = []
        self.offsets = []
        self.closed = False

    def test_connection(self):
        return self.connected

    def get_custom_emoji_stickers(self, emoji_ids):
        return []

    def get_updates(self, offset=None, timeout=30):
        self.offsets.append(offset)
        updates, self.updates = self.updates, []
        return updates

    def send_message(self, chat_id, message, reply_to=None, parse_mode="HTML"):
        self.sent.append((chat_id, message, reply_to))
        return True

    def close(self):
        self.closed = True


class CountingClient:
    def __init__(self):
        self.calls = 0

    def probe(self):
        self.calls += 1
        return ProbeResult(outcome=ProbeOutcome.SERVICE_UP_LOGIN_SUCCEEDED, checked_at=CHECKED_AT)

    def close(self):
        pass


def update(update_id, text, chat_id=100, message_id=None):
    return {
        "update_id": update_id,
        "message": {
            "message_id": message_id or update_id,
            "chat": {"id": chat_id},
            "from": {"username": "juan"},
            "text": text,
        },
    }


def make_bot(updates, **overrides):
    settings = make_settings(sais_emojis={"login_ok": ":pepeOK:"}, **overrides)
    telegram = FakeTelegram(updates)
    client = CountingClient()
    return SaisBot(settings, telegram=telegram, client=client), telegram, client


async def poll_and_wait(bot):
    dispatched = await bot.poll_once()
    await asyncio.gather(*list(bot._tasks))
    return dispatched


def test_sais_command_is_answered_in_reply():
    bot, telegram, client = make_bot([update(1, "/sais", message_id=55)])

    dispatched = asyncio.run(poll_and_wait(bot))

    assert dispatched == 1
    assert client.calls == 1
    assert telegram.sent == [(100, "As of 09:02:03, UP SAIS is up! :pepeOK:", 55)]


def test_other_messages_and_other_bots_are_ignored():
    bot, telegram, client = make_bot(
        [update(1, "hello"), update(2, "/start"), update(3, "/sais@SomeOtherBot"), update(4, "/sais@upsaisbot")]
    )

    dispatched = asyncio.run(poll_and_wait(bot))

    assert dispatched == 1
    assert client.calls == 1


def test_offset_advances_past_seen_updates():
    bot, telegram, _ = make_bot([update(7, "hi"), update(8, "hey")])

    async def poll_twice():
        await bot.poll_once()
        await bot.poll_once()

    asyncio.run(poll_twice())

    assert telegram.offsets == [None, 9]


def test_allowlist_filters_chats():
    bot, telegram, client = make_bot(
        [update(1, "/sais", chat_id=100), update(2, "/sais", chat_id=200)],
        sais_allowed_chat_ids=[200],
    )

    asyncio.run(poll_and_wait(bot))

    assert [s[0] for s in telegram.sent] == [200]


def test_repeated_invocations_hit_cooldown():
    bot, telegram, client = make_bot([update(1, "/sais"), update(2, "/sais")], cooldown_seconds=60)

    asyncio.run(poll_and_wait(bot))

    assert client.calls == 1
    replies = sorted(s[1] for s in telegram.sent)
    assert replies[0].startswith("As of ")
    assert replies[1].startswith("Slow down!")


def test_start_fails_without_telegram_connection():
    bot, telegram, _ = make_bot([])
    telegram.connected = False

    assert asyncio.run(bot.run()) is False


def test_main_reports_configuration_errors(monkeypatch, capsys):
    for name in ("TELEGRAM_BOT_TOKEN", "SAIS_USERID", "SAIS_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir("/")
    main_module.get_settings.cache_clear()

    assert main_module.main() == 1
    assert "Configuration error" in capsys.readouterr().err
    main_module.get_settings.cache_clear()


class FailingClient:
    def probe(self):
        raise ValueError("unexpected page layout")

    def close(self):
        pass


def test_unexpected_errors_are_logged_and_answered(caplog):
    settings = make_settings(sais_emojis={"response_fail": ":sadge:"})
    telegram = FakeTelegram([update(1, "/sais", message_id=12)])
    bot = SaisBot(settings, telegram=telegram, client=FailingClient())

    with caplog.at_level("ERROR", logger="sais_bot"):
        asyncio.run(poll_and_wait(bot))

    assert len(telegram.sent) == 1
    chat_id, reply, reply_to = telegram.sent[0]
    assert (chat_id, reply_to) == (100, 12)
    assert reply.startswith("As of ")
    assert reply.endswith("could not check UP SAIS. :sadge:")
    assert "unexpected page layout" in caplog.text
