"""
Liveness signaling while a slow request is in flight.

Telegram shows a chat action for roughly five seconds, so a background
task re-sends "typing" every interval until the guarded call resolves.

Usage:
    async with indicator.running(chat_id):
        result = await backend.infer(prompt)

Each handle owns its own cancellation event; nothing is shared between
commands. Stopping sets the event and joins the task, so the task never
outlives the command that started it.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from transport.telegram.transport import TelegramTransport, TelegramTransportError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 5.0


@dataclass
class SignalHandle:
    """Cancellation token plus the task it controls, for one command."""
    chat_id: int
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional["asyncio.Task[None]"] = None
    stopped: bool = False
    signals_sent: int = 0


class TypingIndicator:
    """Starts and stops per-command "typing" loops."""

    def __init__(self, transport: TelegramTransport, interval_s: float = DEFAULT_INTERVAL_S):
        self.transport = transport
        self.interval_s = interval_s

    def start(self, chat_id: int) -> SignalHandle:
        """Spawn the signaling loop. Must be paired with exactly one stop()."""
        handle = SignalHandle(chat_id=chat_id)
        handle.task = asyncio.create_task(self._run(handle), name=f"typing-{chat_id}")
        return handle

    async def stop(self, handle: SignalHandle) -> None:
        """Signal cancellation and wait for the loop to exit."""
        if handle.stopped:
            raise RuntimeError(f"typing indicator for chat {handle.chat_id} already stopped")
        handle.stopped = True
        handle.cancelled.set()
        await handle.task

    @asynccontextmanager
    async def running(self, chat_id: int) -> AsyncIterator[SignalHandle]:
        """Keep the indicator alive for the duration of the block, even on error."""
        handle = self.start(chat_id)
        try:
            yield handle
        finally:
            await self.stop(handle)

    async def _run(self, handle: SignalHandle) -> None:
        while not handle.cancelled.is_set():
            try:
                await asyncio.wait_for(handle.cancelled.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass
            if handle.cancelled.is_set():
                break

            try:
                await self.transport.send_chat_action(handle.chat_id, "typing")
            except TelegramTransportError as e:
                # Ends this loop only; the guarded request carries on.
                logger.error(f"Typing indicator for chat {handle.chat_id} stopped: {e}")
                return
            except Exception as e:
                logger.error(
                    f"Typing indicator for chat {handle.chat_id} crashed: {e}",
                    exc_info=True,
                )
                return
            handle.signals_sent += 1

        logger.debug(
            f"Typing indicator for chat {handle.chat_id} finished "
            f"after {handle.signals_sent} signal(s)"
        )
