import json
import logging
import time
from typing import Any, Optional

import httpx

from .base import InferenceBackend
from .types import DEFAULT_TEMPERATURE, InferenceRequest, InferenceResult

logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """Base class for a failed inference round-trip."""

    error_type = "send_error"


class InferenceSendError(InferenceError):
    """The request never reached the backend (connect, DNS, timeout)."""

    error_type = "send_error"


class InferenceReadError(InferenceError):
    """The backend answered but the body could not be read."""

    error_type = "read_error"


class InferenceParseError(InferenceError):
    """The body is not valid JSON."""

    error_type = "parse_error"


class InferenceShapeError(InferenceError):
    """The JSON has no choices[0].message.content string."""

    error_type = "shape_error"


def extract_content(data: Any) -> str:
    """
    Pull choices[0].message.content out of a chat completion.

    Raises:
        InferenceShapeError: if the path is missing or not a string
    """
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise InferenceShapeError(f"missing choices[0].message.content: {e!r}") from e

    if not isinstance(content, str):
        raise InferenceShapeError(
            f"choices[0].message.content is {type(content).__name__}, expected str"
        )
    return content


class LlamaCppBackend(InferenceBackend):
    """
    llama.cpp server backend (OpenAI-compatible /v1/chat/completions).

    One attempt per call, no retries. Every failure is folded into an
    InferenceResult so callers only ever branch on result.status.
    """

    def __init__(
        self,
        base_url: str,
        model: str = "gpt-3.5-turbo",
        api_key: str = "no-key",
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: Optional[float] = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize llama.cpp backend.

        Args:
            base_url:    Base URL of the llama.cpp server
            model:       Model name sent in the body (ignored by llama.cpp)
            api_key:     Bearer token; llama.cpp accepts any value unless started with --api-key
            temperature: Sampling temperature
            timeout:     Per-request timeout in seconds (None disables it)
            transport:   Optional httpx transport, used by tests
        """
        self.base_url = base_url
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport

    def build_request(self, prompt: str) -> InferenceRequest:
        return InferenceRequest(
            base_url=self.base_url,
            model=self.model,
            prompt=prompt,
            temperature=self.temperature,
        )

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def _round_trip(self, request: InferenceRequest) -> Any:
        """Send, read and decode. Raises an InferenceError subclass per failing stage."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            http_request = client.build_request(
                "POST",
                request.url,
                headers=self._headers(),
                content=json.dumps(request.to_payload()),
            )

            try:
                response = await client.send(http_request, stream=True)
            except httpx.HTTPError as e:
                raise InferenceSendError(str(e) or type(e).__name__) from e

            try:
                await response.aread()
                body = response.text
            except (httpx.HTTPError, UnicodeDecodeError) as e:
                raise InferenceReadError(str(e) or type(e).__name__) from e
            finally:
                await response.aclose()

        logger.debug(f"Backend answered {response.status_code} ({len(body)} bytes)")

        try:
            return json.loads(body)
        except (json.JSONDecodeError, RecursionError) as e:
            raise InferenceParseError(str(e)) from e

    async def infer(self, prompt: str) -> InferenceResult:
        """
        Run one chat completion.

        Flow:
          1. POST {base_url}/v1/chat/completions
          2. Read the body           (failure → read_error)
          3. Decode JSON             (failure → parse_error)
          4. Extract the reply text  (failure → shape_error)
        Connection problems and timeouts before step 2 → send_error.
        """
        request = self.build_request(prompt)
        logger.info(f"Sending request to {request.url}")
        started = time.perf_counter()

        try:
            data = await self._round_trip(request)
            content = extract_content(data)
        except InferenceError as e:
            elapsed = time.perf_counter() - started
            logger.error(
                f"Inference failed ({e.error_type}) after {elapsed:.2f}s: {e}",
                extra={"error_type": e.error_type, "elapsed_s": elapsed},
            )
            return InferenceResult.failure(e.error_type, elapsed_s=elapsed)

        elapsed = time.perf_counter() - started
        response_id = data.get("id") if isinstance(data, dict) else None
        logger.info(
            f"Inference succeeded in {elapsed:.2f}s (response id: {response_id})",
            extra={"response_id": response_id, "elapsed_s": elapsed},
        )
        return InferenceResult.success(content, response_id=response_id, elapsed_s=elapsed)
