"""
FastAPI Application Entry Point

Integrates:
  - Telegram webhook handler (/qwen, /help, /health commands)
  - Health checks
  - Middleware for logging & error handling

Run (webhook):  uvicorn main:app --host 0.0.0.0 --port 8000
Run (polling):  python main.py --polling
"""

import argparse
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from webhook.telegram import router as telegram_router
from config import Config

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.
    """
    # Startup
    logger.info("=" * 60)
    logger.info("Qwen relay bot starting up...")
    logger.info(f"Telegram Bot: @{Config.TELEGRAM_BOT_USERNAME}")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info(f"LLM Backend: {Config.LLM_BACKEND} ({Config.LLM_BASE_URL})")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Qwen relay bot shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Qwen Relay Bot",
    description="Telegram command relay for a llama.cpp backend",
    version="1.0.0",
    lifespan=lifespan,
)


# Middleware for logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.debug(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Request error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# Include routers
app.include_router(telegram_router)


# Health check endpoints
@app.get("/health/live")
async def health_live():
    """Live health check (Kubernetes liveness probe)."""
    return {"status": "alive"}


@app.get("/health/ready")
async def health_ready():
    """Readiness health check (Kubernetes readiness probe)."""
    missing = Config.missing()
    if not missing:
        return {"status": "ready"}
    return {"status": "not_ready", "reason": f"Missing configuration: {', '.join(missing)}"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Qwen Relay Bot",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "telegram_webhook": "POST /webhook/telegram",
            "telegram_health": "GET /webhook/telegram/health",
            "set_webhook": "POST /webhook/telegram/set-webhook",
            "webhook_info": "GET /webhook/telegram/webhook-info",
            "health_live": "GET /health/live",
            "health_ready": "GET /health/ready",
        },
    }


def run_polling() -> None:
    """Run the bot with getUpdates long polling instead of a webhook."""
    from bot.dispatcher import create_dispatcher
    from bot.polling import PollingRunner

    runner = PollingRunner(create_dispatcher(), timeout_s=Config.POLLING_TIMEOUT_S)
    try:
        asyncio.run(runner.run())
    except KeyboardInterrupt:
        logger.info("Polling stopped")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Qwen relay bot")
    parser.add_argument(
        "--polling",
        action="store_true",
        help="Use getUpdates long polling instead of serving the webhook",
    )
    args = parser.parse_args()

    if not Config.validate():
        raise SystemExit(1)

    if args.polling:
        run_polling()
    else:
        import uvicorn

        uvicorn.run(
            app,
            host="0.0.0.0",
            port=Config.AGENT_PORT,
        )
