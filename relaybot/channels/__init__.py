"""Chat platform channels."""

from relaybot.channels.telegram import TelegramSender, should_notify

__all__ = ["TelegramSender", "should_notify"]
