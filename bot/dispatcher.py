"""
Command Dispatcher

Routes a parsed command to the inference backend or the health checker
and turns the outcome into exactly one outbound message.

    Help    → static help text
    Health  → health outcome, as a reply
    Infer   → typing indicator around backend.infer(), then reply text
              or a failure-specific message

Reply-send failures propagate as TelegramTransportError; the caller
(webhook or polling task) logs them.
"""

import logging
from typing import Dict, Optional

from config import Config
from inference import HealthChecker, InferenceBackend, LlamaCppBackend, StubInferenceBackend
from inference.types import InferenceErrorType
from transport.telegram.schemas import Conversation
from transport.telegram.transport import TelegramTransport, create_telegram_transport

from bot.commands import Command, Health, Help, Infer, HELP_TEXT
from bot.typing_indicator import TypingIndicator

logger = logging.getLogger(__name__)


ERROR_MESSAGES: Dict[InferenceErrorType, str] = {
    "send_error": "An error occurred while sending the request.",
    "read_error": "An error occurred while reading the response.",
    "parse_error": "An error occurred while parsing the response.",
    "shape_error": "The response did not contain a reply.",
}

# Telegram rejects empty messages
EMPTY_REPLY_MESSAGE = "The model returned an empty reply."


class CommandDispatcher:
    """Handles one command per call; safe to run many calls concurrently."""

    def __init__(
        self,
        transport: TelegramTransport,
        backend: InferenceBackend,
        health_checker: HealthChecker,
        typing_indicator: TypingIndicator,
    ):
        self.transport = transport
        self.backend = backend
        self.health_checker = health_checker
        self.typing_indicator = typing_indicator

    async def handle(self, command: Command, conversation: Conversation) -> None:
        if isinstance(command, Help):
            await self.transport.send_message(conversation.chat_id, HELP_TEXT)

        elif isinstance(command, Health):
            logger.info("Received health check request")
            outcome = await self.health_checker.check_health()
            await self.transport.send_message(
                conversation.chat_id, outcome, reply_to_message_id=conversation.message_id
            )

        elif isinstance(command, Infer):
            await self._handle_infer(command, conversation)

        else:
            raise TypeError(f"Unsupported command: {command!r}")

    async def _handle_infer(self, command: Infer, conversation: Conversation) -> None:
        logger.info(f"Received LLM request: {command.prompt}")

        async with self.typing_indicator.running(conversation.chat_id):
            result = await self.backend.infer(command.prompt)

        if result.ok:
            await self.transport.send_message(
                conversation.chat_id,
                result.text or EMPTY_REPLY_MESSAGE,
                reply_to_message_id=conversation.message_id,
            )
            return

        await self.transport.send_message(conversation.chat_id, ERROR_MESSAGES[result.error_type])


def create_backend() -> InferenceBackend:
    """Select the inference backend from LLM_BACKEND."""
    if Config.LLM_BACKEND == "stub":
        return StubInferenceBackend()
    if Config.LLM_BACKEND == "llama_cpp":
        return LlamaCppBackend(
            base_url=Config.LLM_BASE_URL,
            model=Config.LLM_MODEL,
            api_key=Config.LLM_API_KEY,
            temperature=Config.LLM_TEMPERATURE,
            timeout=Config.LLM_TIMEOUT_S,
        )
    raise ValueError(f"Unknown LLM_BACKEND: {Config.LLM_BACKEND!r}")


def create_dispatcher(transport: Optional[TelegramTransport] = None) -> CommandDispatcher:
    """Factory function wiring the dispatcher from Config."""
    transport = transport or create_telegram_transport()
    return CommandDispatcher(
        transport=transport,
        backend=create_backend(),
        health_checker=HealthChecker(Config.LLM_BASE_URL, timeout=Config.HEALTH_TIMEOUT_S),
        typing_indicator=TypingIndicator(transport, interval_s=Config.TYPING_INTERVAL_S),
    )
