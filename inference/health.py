"""
Backend health check for the llama.cpp server.

Queries GET /health and maps (HTTP status, "status" field) to a
human-readable outcome:

    200 ok                 → everything fine, with slot counts
    200/503 no slot avail. → no slots, with slot counts
    503 loading model      → still loading
    500 error              → model failed to load
    200/503/500 other      → unknown status
    anything else          → unexpected status code

Malformed bodies never raise out of check_health(); they become an
outcome string like every other result.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


SEND_ERROR_MESSAGE = "An error occurred while sending the health check request."
READ_ERROR_MESSAGE = "An error occurred while reading the health check response."
MALFORMED_MESSAGE = "The health check returned a malformed response."


class MalformedHealthResponse(Exception):
    """Health body does not match {status: str, slots_idle?: int, slots_processing?: int}."""
    pass


class HealthStatus(BaseModel):
    """Body of llama.cpp's /health endpoint."""
    status: str
    slots_idle: Optional[int] = None
    slots_processing: Optional[int] = None

    def slots_summary(self) -> str:
        return (
            f"Slots idle: {self.slots_idle or 0}, "
            f"Slots processing: {self.slots_processing or 0}"
        )


def parse_health_body(body: str) -> HealthStatus:
    try:
        return HealthStatus.model_validate_json(body)
    except ValidationError as e:
        raise MalformedHealthResponse(str(e)) from e


def interpret_health(status_code: int, body: str) -> str:
    """
    Map an HTTP status code and raw /health body to an outcome.

    Raises:
        MalformedHealthResponse: for 200/503/500 when the body has the wrong shape
    """
    if status_code not in (200, 503, 500):
        return f"Unexpected status: {status_code}"

    health = parse_health_body(body)

    if status_code == 200:
        if health.status == "ok":
            return f"Everything is working fine. {health.slots_summary()}"
        if health.status == "no slot available":
            return f"No slots are currently available. {health.slots_summary()}"

    elif status_code == 503:
        if health.status == "loading model":
            return "The model is still being loaded. Please wait."
        if health.status == "no slot available":
            return f"No slots are currently available. {health.slots_summary()}"

    elif status_code == 500:
        if health.status == "error":
            return "An error occurred while loading the model."

    return f"Unknown status: {health.status}"


class HealthChecker:
    """Runs the /health query against one backend."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/health"

    async def check_health(self) -> str:
        """Query the backend and return the outcome text. Never raises."""
        logger.info(f"Checking backend health at {self.url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.send(client.build_request("GET", self.url), stream=True)
            except httpx.HTTPError as e:
                logger.error(f"Error sending health check request: {e}")
                return SEND_ERROR_MESSAGE

            try:
                await response.aread()
                body = response.text
            except (httpx.HTTPError, UnicodeDecodeError) as e:
                logger.error(f"Error reading health check response: {e}")
                return READ_ERROR_MESSAGE
            finally:
                await response.aclose()

        logger.info(f"Health check response ({response.status_code}): {body}")

        try:
            outcome = interpret_health(response.status_code, body)
        except MalformedHealthResponse as e:
            logger.error(
                f"Malformed health check response ({response.status_code}): {e}",
                extra={"status_code": response.status_code, "body": body},
            )
            return MALFORMED_MESSAGE

        logger.info(f"Health check outcome: {outcome}")
        return outcome
