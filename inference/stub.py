from typing import get_args

from .base import InferenceBackend
from .types import InferenceErrorType, InferenceResult


class StubInferenceBackend(InferenceBackend):
    """
    Deterministic fake backend for offline runs and tests.

    A prompt of the form "fail:<error_type>" (e.g. "fail:parse_error")
    returns that failure. Anything else is echoed back.
    """

    async def infer(self, prompt: str) -> InferenceResult:
        if prompt.startswith("fail:"):
            error_type = prompt[len("fail:"):].strip()
            if error_type in get_args(InferenceErrorType):
                return InferenceResult.failure(error_type, elapsed_s=0.0)  # type: ignore[arg-type]

        return InferenceResult.success(f"Stubbed reply to: {prompt}", elapsed_s=0.0)
