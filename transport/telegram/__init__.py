"""
Telegram Transport Module

Pure I/O layer for Telegram messaging.
Exports: TelegramTransport, TelegramTransportError, TelegramUpdate, Conversation,
create_telegram_transport
"""

from transport.telegram.transport import (
    TelegramTransport,
    TelegramTransportError,
    create_telegram_transport,
)
from transport.telegram.schemas import (
    Conversation,
    TelegramChat,
    TelegramMessage,
    TelegramUpdate,
    TelegramUser,
)

__all__ = [
    "TelegramTransport",
    "TelegramTransportError",
    "create_telegram_transport",
    "Conversation",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
]
