"""Telegram Bot API message source."""
