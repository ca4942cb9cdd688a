"""
SAIS Status Bot

On-demand availability checks for the UP SAIS enrollment portal,
answered in Telegram with a timestamped status line.
"""

__version__ = "1.0.0"
