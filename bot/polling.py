"""
Long-polling runner (alternative to the webhook).

Fetches updates with getUpdates and handles every command in its own
task, so a slow /qwen never holds up a /health from another chat.
"""

import asyncio
import logging
from typing import Optional, Set

from pydantic import ValidationError

from transport.telegram.schemas import Conversation, TelegramUpdate
from transport.telegram.transport import TelegramTransportError

from bot.commands import parse_command
from bot.dispatcher import CommandDispatcher

logger = logging.getLogger(__name__)

# Back-off after a failed getUpdates call
ERROR_BACKOFF_S = 5.0


async def handle_update(dispatcher: CommandDispatcher, update: TelegramUpdate) -> None:
    """Parse and dispatch one update. Errors are logged, never raised."""
    msg = update.message
    if msg is None or not msg.text:
        return

    command = parse_command(msg.text, dispatcher.transport.bot_username)
    if command is None:
        logger.debug(f"Message {msg.message_id} is not a command, skipping")
        return

    try:
        await dispatcher.handle(command, Conversation.from_message(msg))
    except Exception as e:
        logger.error(f"Error handling update {update.update_id}: {e}", exc_info=True)


class PollingRunner:
    """Polls Telegram and fans updates out to concurrent tasks."""

    def __init__(self, dispatcher: CommandDispatcher, timeout_s: int = 30):
        self.dispatcher = dispatcher
        self.timeout_s = timeout_s
        self.offset: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()

    def _spawn(self, update: TelegramUpdate) -> None:
        task = asyncio.create_task(handle_update(self.dispatcher, update))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def poll_once(self) -> int:
        """Fetch one batch of updates and spawn a task per update. Returns the batch size."""
        raw_updates = await self.dispatcher.transport.get_updates(self.offset, self.timeout_s)

        for raw in raw_updates:
            self.offset = raw["update_id"] + 1
            try:
                update = TelegramUpdate.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping unparseable update {raw.get('update_id')}: {e}")
                continue
            self._spawn(update)

        return len(raw_updates)

    async def run(self) -> None:
        """Poll until cancelled, then wait for in-flight commands."""
        logger.info("Starting command bot (long polling)...")
        await self.dispatcher.transport.delete_webhook()

        try:
            while True:
                try:
                    await self.poll_once()
                except TelegramTransportError as e:
                    logger.error(f"Polling failed: {e}")
                    await asyncio.sleep(ERROR_BACKOFF_S)
        finally:
            if self._tasks:
                logger.info(f"Waiting for {len(self._tasks)} in-flight command(s)")
                await asyncio.gather(*self._tasks, return_exceptions=True)
