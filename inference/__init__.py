"""
Backend boundary layer for LLM inference and health.

This package provides a clean abstraction for model invocation,
allowing the dispatcher to remain agnostic of the underlying backend.

Supported backends:
- LlamaCppBackend: llama.cpp server (OpenAI-compatible chat completions)
- StubInferenceBackend: Deterministic fake backend (offline runs and tests)

Example usage:
    from inference import LlamaCppBackend

    backend = LlamaCppBackend(base_url="http://localhost:8080")
    result = await backend.infer("Hello, world!")
"""

from .types import InferenceRequest, InferenceResult, InferenceStatus, InferenceErrorType
from .base import InferenceBackend
from .stub import StubInferenceBackend
from .llama_cpp import LlamaCppBackend
from .health import HealthChecker, HealthStatus, MalformedHealthResponse, interpret_health

__all__ = [
    "InferenceRequest",
    "InferenceResult",
    "InferenceStatus",
    "InferenceErrorType",
    "InferenceBackend",
    "StubInferenceBackend",
    "LlamaCppBackend",
    "HealthChecker",
    "HealthStatus",
    "MalformedHealthResponse",
    "interpret_health",
]
