"""
Telegram Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Only the subset of the Bot API update structure the relay reads.
Shared by the webhook receiver and the long-polling runner.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: str  # private, group, supergroup, channel
    title: Optional[str] = None
    username: Optional[str] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    date: int
    chat: TelegramChat
    from_: Optional[TelegramUser] = Field(None, alias="from")
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: Optional[TelegramMessage] = None


class Conversation(BaseModel):
    """Where a reply goes: the chat, and the message being answered."""
    model_config = ConfigDict(frozen=True)

    chat_id: int
    message_id: Optional[int] = None

    @classmethod
    def from_message(cls, message: TelegramMessage) -> "Conversation":
        return cls(chat_id=message.chat.id, message_id=message.message_id)
