"""
Telegram Webhook Handler

Receives Telegram updates via webhook and hands commands to the dispatcher.

Security:
  - Verify Telegram signature (optional, add later if needed)
  - Error recovery (non-blocking failures)

Update Flow:
  webhook → parse_command → background task → dispatcher.handle → send_message

The command runs as a background task so Telegram gets its 200 right
away and concurrent commands do not wait on each other.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException

from config import Config
from bot.commands import Command, parse_command
from bot.dispatcher import CommandDispatcher, create_dispatcher
from transport.telegram.schemas import Conversation, TelegramUpdate
from transport.telegram.transport import TelegramTransportError

# Setup logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/webhook", tags=["webhook"])


# Storage for dispatcher (initialized once)
_dispatcher: Optional[CommandDispatcher] = None


def get_dispatcher() -> CommandDispatcher:
    """Get or create the command dispatcher (singleton)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = create_dispatcher()
    return _dispatcher


async def run_command(
    dispatcher: CommandDispatcher, command: Command, conversation: Conversation
) -> None:
    """Background task body: handle one command, log anything that escapes."""
    try:
        await dispatcher.handle(command, conversation)
    except Exception as e:
        logger.error(
            f"Error handling command for chat {conversation.chat_id}: {e}",
            exc_info=True,
        )


@router.post("/telegram")
async def telegram_webhook(update: TelegramUpdate, background_tasks: BackgroundTasks):
    """
    Receive Telegram webhook updates.

    Expected payload:
    {
        "update_id": 123456789,
        "message": {
            "message_id": 1,
            "date": 1676817600,
            "chat": {"id": -123456789, "type": "private"},
            "from": {"id": 987654321, "first_name": "User"},
            "text": "/qwen Hello bot!"
        }
    }

    Returns:
        {"status": "ok"} always; Telegram retries anything else
    """
    try:
        # Validate we have a message
        if not update.message:
            logger.warning(f"Update {update.update_id} has no message")
            return {"status": "ok"}  # Still return 200 to Telegram

        msg = update.message

        # Only handle text messages
        if not msg.text:
            logger.debug(f"Message {msg.message_id} has no text, skipping")
            return {"status": "ok"}

        dispatcher = get_dispatcher()
        command = parse_command(msg.text, dispatcher.transport.bot_username)
        if command is None:
            logger.debug(f"Message {msg.message_id} is not a command, skipping")
            return {"status": "ok"}

        sender = (msg.from_.username or msg.from_.first_name) if msg.from_ else "unknown"
        logger.info(f"Received {type(command).__name__} command from {sender} in chat {msg.chat.id}")

        background_tasks.add_task(run_command, dispatcher, command, Conversation.from_message(msg))
        return {"status": "ok"}

    except Exception as e:
        logger.error(f"Error processing Telegram update: {str(e)}", exc_info=True)
        # Still return 200 to Telegram to acknowledge receipt
        # (Telegram will retry if we return error)
        return {"status": "ok"}


@router.get("/telegram/health")
async def telegram_health():
    """Health check for Telegram webhook."""
    try:
        get_dispatcher()
        return {
            "status": "ok",
            "bot": Config.TELEGRAM_BOT_USERNAME,
            "token_loaded": bool(Config.TELEGRAM_BOT_TOKEN),
            "llm_backend": Config.LLM_BACKEND,
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/telegram/set-webhook")
async def set_telegram_webhook(webhook_url: str):
    """
    Configure Telegram webhook (admin endpoint).

    Args:
        webhook_url: Full webhook URL (e.g., https://example.com/webhook/telegram)

    Note:
        This is an admin endpoint. In production, secure this with authentication.
    """
    try:
        result = await get_dispatcher().transport.set_webhook(webhook_url)
    except TelegramTransportError as e:
        logger.error(f"Failed to set webhook: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error setting webhook: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"Webhook set successfully: {webhook_url}")
    return {"ok": True, "result": result}


@router.get("/telegram/webhook-info")
async def get_webhook_info():
    """Get current webhook configuration from Telegram."""
    try:
        return await get_dispatcher().transport.get_webhook_info()
    except TelegramTransportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error getting webhook info: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
