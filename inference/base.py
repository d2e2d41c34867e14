from abc import ABC, abstractmethod
from .types import InferenceResult


class InferenceBackend(ABC):
    """
    Abstract inference boundary.
    The dispatcher must depend ONLY on this interface.
    """

    @abstractmethod
    async def infer(self, prompt: str) -> InferenceResult:
        """Run one completion for the prompt. Never raises for backend failures."""
        raise NotImplementedError
