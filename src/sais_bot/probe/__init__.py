"""SAIS probe module for SAIS Bot."""

from sais_bot.probe.sais_client import SaisClient, SaisLoginError

__all__ = ["SaisClient", "SaisLoginError"]
