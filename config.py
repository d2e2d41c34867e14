"""
Configuration management for the Qwen relay bot.

Loads environment variables from .env file and provides typed access to configuration.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the relay bot."""

    # Telegram Bot Configuration
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_BOT_USERNAME = os.getenv("TELEGRAM_BOT_USERNAME", "")
    POLLING_TIMEOUT_S = int(os.getenv("POLLING_TIMEOUT_S", "30"))

    # API Configuration
    AGENT_PORT = int(os.getenv("AGENT_PORT", "8000"))

    # LLM Backend Configuration (llama.cpp server, OpenAI-compatible)
    LLM_BACKEND = os.getenv("LLM_BACKEND", "llama_cpp")
    LLM_BASE_URL = os.getenv("LLM_BASE_URL", "http://192.168.2.56:8080")
    # llama.cpp ignores the model name, it serves whatever it was started with
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-3.5-turbo")
    LLM_API_KEY = os.getenv("LLM_API_KEY", "no-key")
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.4"))
    LLM_TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_S", "120"))
    HEALTH_TIMEOUT_S = float(os.getenv("HEALTH_TIMEOUT_S", "10"))

    # Seconds between "typing" indicators while a request is in flight
    TYPING_INTERVAL_S = float(os.getenv("TYPING_INTERVAL_S", "5"))

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    REQUIRED = ["TELEGRAM_BOT_TOKEN"]

    @classmethod
    def missing(cls) -> list:
        """Names of required settings that are unset."""
        return [key for key in cls.REQUIRED if not getattr(cls, key)]

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is set."""
        missing = cls.missing()

        if missing:
            print(f"⚠️  Missing required environment variables: {', '.join(missing)}")
            print(f"   Please set them in .env file")
            return False

        return True


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  Telegram Bot Token: {'✓ Set' if Config.TELEGRAM_BOT_TOKEN else '✗ Missing'}")
    print(f"  Telegram Bot Username: {Config.TELEGRAM_BOT_USERNAME}")
    print(f"  Agent Port: {Config.AGENT_PORT}")
    print(f"  LLM Backend: {Config.LLM_BACKEND} ({Config.LLM_BASE_URL})")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"\n  Validation: {'✓ PASSED' if Config.validate() else '✗ FAILED'}")
