"""
Telegram Transport Layer for the relay bot

Pure I/O transport for Telegram messaging.
Handles:
- Bot API calls (sendMessage, sendChatAction, getUpdates, webhooks)
- Token management from .env
No command logic, no routing.
"""

import logging
from typing import Optional, Dict, Any, List

import httpx

from config import Config

logger = logging.getLogger(__name__)

# Telegram max message length, counted in UTF-16 code units
MAX_MESSAGE_LENGTH = 4096
ELLIPSIS = "…"


def utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le", errors="surrogatepass")) // 2


def truncate_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut text so it fits Telegram's limit, ending with an ellipsis when shortened."""
    if utf16_length(text) <= limit:
        return text

    budget = limit - utf16_length(ELLIPSIS)
    units = 0
    for index, char in enumerate(text):
        units += 2 if ord(char) > 0xFFFF else 1
        if units > budget:
            return text[:index] + ELLIPSIS
    return text


class TelegramTransportError(Exception):
    """A Bot API call failed (network error, non-200, or ok=false)."""
    pass


class TelegramTransport:
    """
    Telegram transport layer.

    Pure I/O: one short-lived httpx client per Bot API call.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        bot_username: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize with token from .env unless one is given."""
        self.token = token if token is not None else Config.TELEGRAM_BOT_TOKEN
        self.bot_username = bot_username if bot_username is not None else Config.TELEGRAM_BOT_USERNAME
        self._transport = transport

        if not self.token:
            raise ValueError("TELEGRAM_BOT_TOKEN not set in .env")

        self.api_url = f"https://api.telegram.org/bot{self.token}"

    async def _call(self, method: str, payload: Dict[str, Any], timeout: float = 15.0) -> Any:
        """
        Invoke a Bot API method and return its "result" field.

        Raises:
            TelegramTransportError: on network failure or an API-level error
        """
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(f"{self.api_url}/{method}", json=payload)
        except httpx.HTTPError as e:
            raise TelegramTransportError(f"{method} request failed: {e}") from e

        if response.status_code != 200:
            raise TelegramTransportError(
                f"{method} returned {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TelegramTransportError(f"{method} returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise TelegramTransportError(f"{method} returned {type(data).__name__}, expected an object")

        if not data.get("ok"):
            raise TelegramTransportError(f"{method} failed: {data.get('description')}")

        return data.get("result")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_to_message_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Send a text message, optionally as a reply.

        Args:
            chat_id: Telegram chat ID
            text: Message text to send
            reply_to_message_id: Message to mark as replied-to

        Returns:
            The sent Message object
        """
        text = truncate_message(text)

        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_to_message_id is not None:
            payload["reply_parameters"] = {
                "message_id": reply_to_message_id,
                "allow_sending_without_reply": True,
            }

        result = await self._call("sendMessage", payload)
        logger.info(f"[Telegram] Sent to {chat_id}: {text[:80]}")
        return result

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> None:
        """Show a chat action ("typing", ...) for about five seconds."""
        await self._call("sendChatAction", {"chat_id": chat_id, "action": action})
        logger.debug(f"[Telegram] Chat action '{action}' sent to {chat_id}")

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> List[Dict[str, Any]]:
        """Long-poll for updates. The HTTP timeout outlasts the server-side one."""
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", payload, timeout=timeout + 10)

    async def set_webhook(self, url: str) -> Any:
        return await self._call("setWebhook", {"url": url}, timeout=10)

    async def delete_webhook(self) -> Any:
        return await self._call("deleteWebhook", {}, timeout=10)

    async def get_webhook_info(self) -> Dict[str, Any]:
        return await self._call("getWebhookInfo", {}, timeout=10)


def create_telegram_transport() -> TelegramTransport:
    """Factory function to create Telegram transport."""
    return TelegramTransport()
