"""Run one SAIS probe cycle outside the bot and show what happened."""

from sais_bot.config import get_settings, setup_logging
from sais_bot.notify import EmojiCache, StatusFormatter
from sais_bot.probe import SaisClient, SaisLoginError

settings = get_settings()
setup_logging(settings)

formatter = StatusFormatter(EmojiCache(settings.sais_emojis), settings.reply_utc_offset_hours)

print(f"Login URL: {settings.sais_login_url}")
print(f"User ID:   '{settings.sais_userid}'")
print()

with SaisClient(settings) as client:
    try:
        result = client.probe()
    except SaisLoginError as e:
        print(f"Login POST failed: {e}")
        print(f"Cookies:   '{client.cookies}'")
        raise SystemExit(1)

    print(f"Outcome:   {result.outcome.value}")
    print(f"Status:    {result.status_code}")
    if result.error:
        print(f"Error:     {result.error}")
    if result.failure_reason:
        print(f"Reason:    {result.failure_reason.value}")
    print(f"Cookies:   '{client.cookies}'")
    print()
    print(formatter.format_result(result))
