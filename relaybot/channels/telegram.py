"""Telegram delivery of formatted assistant output using python-telegram-bot."""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger
from telegram import Bot, Message
from telegram.constants import ParseMode
from telegram.error import BadRequest, NetworkError, RetryAfter, TelegramError, TimedOut
from telegram.request import HTTPXRequest

from relaybot.config.schema import TelegramConfig
from relaybot.markdown.chunk import chunk_text
from relaybot.markdown.convert import markdown_to_html
from relaybot.markdown.format import has_html_tags
from relaybot.markdown.split import split_html


# Recoverable network error patterns
RECOVERABLE_ERRORS = {
    "Timed out",
    "Connection reset",
    "Connection refused",
    "Connection aborted",
    "Network is unreachable",
    "Host is unreachable",
    "Name or service not known",
    "Temporary failure in name resolution",
    "Connect timeout",
    "Read timeout",
    "Write timeout",
    "Socket timeout",
}

# Markers that make a message worth a notification
URGENT_MARKERS = ("🚨", "⚠️ URGENT", "CRITICAL")
ERROR_WORDS = ("Error", "Exception", "Failed", "Crash", "Critical")


def _is_recoverable_error(err: Exception) -> bool:
    """Check if error is recoverable (network-related) and worth retrying."""
    if isinstance(err, (RetryAfter, TimedOut)):
        return True
    # BadRequest is a NetworkError subclass but never succeeds on retry
    if isinstance(err, NetworkError) and not isinstance(err, BadRequest):
        return True
    err_str = str(err).lower()
    if isinstance(err, TelegramError):
        if any(code in err_str for code in ["429", "500", "502", "503", "504"]):
            return True
    for pattern in RECOVERABLE_ERRORS:
        if pattern.lower() in err_str:
            return True
    return False


def _retry_delay(err: Exception, attempt: int, base_delay: float) -> float:
    if isinstance(err, RetryAfter):
        retry_after = err.retry_after
        # int in older releases, timedelta in newer ones
        if hasattr(retry_after, "total_seconds"):
            return retry_after.total_seconds()
        return float(retry_after)
    return base_delay * (2 ** attempt)


async def _send_with_retry(
    bot: Bot,
    chat_id: int | str,
    text: str,
    max_retries: int = 3,
    base_delay: float = 1.0,
    **kwargs: Any,
) -> Message:
    """Send one message, retrying it in place with exponential backoff."""
    last_error: Exception | None = None
    for attempt in range(max_retries):
        try:
            return await bot.send_message(chat_id=chat_id, text=text, **kwargs)
        except Exception as e:
            last_error = e
            if not _is_recoverable_error(e) or attempt == max_retries - 1:
                raise
            delay = _retry_delay(e, attempt, base_delay)
            logger.warning(f"Telegram send failed (attempt {attempt + 1}/{max_retries}), retrying in {delay}s: {e}")
            await asyncio.sleep(delay)

    raise last_error


def should_notify(text: str, force: bool = False) -> bool:
    """Decide whether a message is sent with a notification.

    Session completions, critical errors, setup messages, urgent markers and
    model changes notify; everything else is delivered silently.
    """
    if force:
        return True
    if "Session" in text and "ended" in text:
        return True
    if "❌" in text and any(word in text for word in ERROR_WORDS):
        return True
    if "Welcome! You are now the bot administrator" in text or "Bot setup complete" in text:
        return True
    if any(marker in text for marker in URGENT_MARKERS):
        return True
    if "Model changed to" in text or "Model set to" in text:
        return True
    return False


class TelegramSender:
    """
    Sends assistant output to Telegram as ordered HTML chunks.

    Long messages are split into balanced chunks and sent one after another.
    A chunk that cannot be delivered is replaced by an error notice and the
    rest of the message still goes out.
    """

    def __init__(self, bot: Bot, config: TelegramConfig | None = None):
        self.bot = bot
        self.config: TelegramConfig = config or TelegramConfig()

    @classmethod
    def from_config(cls, config: TelegramConfig) -> TelegramSender:
        """Build a sender with its own Bot from *config*."""
        if not config.enabled:
            raise ValueError("Telegram channel is disabled")
        if not config.token:
            raise ValueError("Telegram bot token not configured")
        request = HTTPXRequest(proxy=config.proxy) if config.proxy else None
        return cls(Bot(token=config.token, request=request), config)

    async def _send(self, chat_id: int | str, text: str, **kwargs: Any) -> Message:
        kwargs.setdefault("read_timeout", self.config.read_timeout)
        kwargs.setdefault("write_timeout", self.config.write_timeout)
        return await _send_with_retry(
            self.bot,
            chat_id=chat_id,
            text=text,
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            **kwargs,
        )

    def _part_indicator(self, index: int, total: int, html: bool) -> str:
        label = f"[Part {index + 1}/{total}]"
        return f"\n\n<i>{label}</i>" if html else f"\n\n{label}"

    async def send_chunks(
        self,
        chat_id: int | str,
        chunks: list[str],
        **options: Any,
    ) -> Message | None:
        """Send *chunks* in order and return the first sent message.

        Only the first chunk may notify; the others are sent silently.
        """
        total = len(chunks)
        html = str(options.get("parse_mode") or "").upper() == ParseMode.HTML
        first: Message | None = None

        if total > 1:
            logger.info(f"Sending {total} parts to {chat_id}")

        for i, chunk in enumerate(chunks):
            text = chunk
            if total > 1 and self.config.part_indicators:
                text += self._part_indicator(i, total, html)

            chunk_options = dict(options)
            if i > 0:
                chunk_options["disable_notification"] = True

            try:
                message = await self._send(chat_id, text, **chunk_options)
                if i == 0:
                    first = message
            except Exception as e:
                logger.error(f"Failed to send part {i + 1}/{total} ({len(chunk)} chars) to {chat_id}: {e}")
                logger.debug(f"Problematic chunk content:\n{chunk}")
                try:
                    await self.bot.send_message(
                        chat_id=chat_id,
                        text=(
                            "❌ Message Part Error\n\n"
                            f"Failed to send part {i + 1} of {total}.\n"
                            f"Length: {len(chunk)} chars"
                        ),
                        disable_notification=True,
                    )
                except Exception as e2:
                    logger.error(f"Failed to send error notice for part {i + 1}: {e2}")

            if i < total - 1 and self.config.chunk_delay_ms:
                await asyncio.sleep(self.config.chunk_delay_ms / 1000)

        return first

    async def send_long_message(
        self,
        chat_id: int | str,
        html: str,
        **options: Any,
    ) -> Message | None:
        """Split *html* with the configured budget and send the parts."""
        chunks = split_html(html, config=self.config.splitter)
        logger.debug(f"Splitting long message ({len(html)} chars) into {len(chunks)} parts")
        return await self.send_chunks(chat_id, chunks, **options)

    async def send_message(
        self,
        chat_id: int | str,
        text: str | None,
        force_notification: bool = False,
        **options: Any,
    ) -> Message | None:
        """Format and send assistant output, always in HTML parse mode.

        Markdown is converted unless the text already carries HTML. Any
        formatting or delivery failure is reported to the chat as plain text.
        """
        try:
            html = text if has_html_tags(text) else markdown_to_html(text)
            if not html:
                logger.debug(f"Nothing to send to {chat_id}")
                return None

            message_options = {**options, "parse_mode": ParseMode.HTML}
            if "disable_notification" not in options and not should_notify(text, force_notification):
                message_options["disable_notification"] = True

            if len(html) <= self.config.hard_limit:
                return await self._send(chat_id, html, **message_options)
            return await self.send_long_message(chat_id, html, **message_options)
        except Exception as e:
            logger.exception(f"HTML message to {chat_id} failed: {e}")
            return await self._send_fallback(chat_id, text, e)

    async def _send_fallback(
        self,
        chat_id: int | str,
        text: str | None,
        error: Exception,
    ) -> Message | None:
        """Report a formatting failure, then send the raw text unformatted."""
        notice = f"⚠️ Message formatting error ({type(error).__name__}): {error}"
        first: Message | None = None
        try:
            first = await self.bot.send_message(
                chat_id=chat_id,
                text=notice[: self.config.hard_limit],
                disable_notification=True,
            )
            if isinstance(text, str):
                for part in chunk_text(text, self.config.hard_limit):
                    await self.bot.send_message(chat_id=chat_id, text=part, disable_notification=True)
        except Exception as e2:
            logger.error(f"Error sending fallback message to {chat_id}: {e2}")
        return first
