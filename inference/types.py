from dataclasses import dataclass
from typing import Optional, Dict, Any, Literal

InferenceStatus = Literal["success", "error"]
InferenceErrorType = Literal["send_error", "read_error", "parse_error", "shape_error"]

# Temperature is kept low: the served model is small and any variation hurts.
DEFAULT_TEMPERATURE = 0.4


@dataclass(frozen=True)
class InferenceRequest:
    base_url: str
    model: str                 # accepted by llama.cpp but ignored
    prompt: str
    temperature: float = DEFAULT_TEMPERATURE

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/v1/chat/completions"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": self.prompt}],
            "temperature": self.temperature,
        }


@dataclass
class InferenceResult:
    status: InferenceStatus
    text: Optional[str] = None
    error_type: Optional[InferenceErrorType] = None
    response_id: Optional[str] = None
    elapsed_s: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, text: str, **kwargs) -> "InferenceResult":
        return cls(status="success", text=text, **kwargs)

    @classmethod
    def failure(cls, error_type: InferenceErrorType, **kwargs) -> "InferenceResult":
        return cls(status="error", error_type=error_type, **kwargs)
