"""
Webhook module - FastAPI route handlers.

Includes:
- telegram.py: Bot command handler
"""

from webhook.telegram import router as telegram_router

__all__ = ["telegram_router"]
