import requests

from sais_bot.notify import EmojiCache, TelegramAPIError
from sais_bot.notify.emoji import DEFAULT_EMOJIS


class StickerTelegram:
    def __init__(self, stickers=None, error=None):
        self.stickers = stickers or []
        self.error = error
        self.requested = []

    def get_custom_emoji_stickers(self, emoji_ids):
        self.requested.append(list(emoji_ids))
        if self.error is not None:
            raise self.error
        return self.stickers


def test_defaults_cover_every_tag():
    cache = EmojiCache()

    for tag, value in DEFAULT_EMOJIS.items():
        assert cache.get(tag) == value


def test_unknown_tag_is_empty():
    assert EmojiCache().get("nope") == ""


def test_plain_values_are_escaped():
    cache = EmojiCache({"login_ok": "<ok>"})

    assert cache.get("login_ok") == "&lt;ok&gt;"


def test_custom_emoji_ids_resolve_once():
    telegram = StickerTelegram([{"custom_emoji_id": "5368324170671202286", "emoji": "👍"}])
    cache = EmojiCache({"login_ok": "5368324170671202286", "login_fail": "😱"})

    cache.load(telegram)
    cache.load(telegram)

    assert cache.get("login_ok") == '<tg-emoji emoji-id="5368324170671202286">👍</tg-emoji>'
    assert cache.get("login_fail") == "😱"
    assert telegram.requested == [["5368324170671202286"]]


def test_missing_custom_emoji_falls_back_to_default():
    cache = EmojiCache({"status_code_fail": "111"})

    cache.load(StickerTelegram([]))

    assert cache.get("status_code_fail") == DEFAULT_EMOJIS["status_code_fail"]


def test_lookup_errors_fall_back_to_defaults():
    for error in (TelegramAPIError("400 - bad"), requests.exceptions.ConnectionError("down")):
        cache = EmojiCache({"response_fail": "222"})

        cache.load(StickerTelegram(error=error))

        assert cache.get("response_fail") == DEFAULT_EMOJIS["response_fail"]
