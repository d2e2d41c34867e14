"""Transport layers (Telegram)."""
