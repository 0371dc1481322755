"""Interface contracts for all completion backends."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from flowkit.models import CompletionResponse, GenerationOptions

logger = logging.getLogger(__name__)

FALLBACK_PROMPT_CHARS = 200


class CompletionBackend(ABC):
    """Base interface for language-model backends.

    Implementations handle API calls, authentication and error handling. For
    the engine's purposes generate_completion must not raise.
    """

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the model identifier."""
        pass

    @abstractmethod
    async def generate_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: The input prompt
            options: Generation options

        Returns:
            The backend response
        """
        pass


class ProviderBackend(CompletionBackend):
    """Shared behavior for hosted providers.

    Without an API key, or when the provider request fails, the backend returns
    a deterministic placeholder built from the prompt instead of raising.
    """

    provider: str = "provider"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key or ""
        self.model = model
        self.timeout = timeout

    def get_model_name(self) -> str:
        return self.model or self.provider

    def fallback_response(self, prompt: str) -> CompletionResponse:
        return CompletionResponse(
            content=f"{self.provider}-fallback: {prompt[:FALLBACK_PROMPT_CHARS]}",
            tokens_used=0,
            model=self.get_model_name(),
        )

    @abstractmethod
    async def _request_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        """Call the provider API. May raise."""
        pass

    async def generate_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        if not self.api_key:
            logger.warning(
                f"[{type(self).__name__}] No API key configured, returning fallback response"
            )
            return self.fallback_response(prompt)

        try:
            return await self._request_completion(prompt, options)
        except Exception as e:
            logger.warning(
                f"[{type(self).__name__}] Request to {self.provider} failed, "
                f"returning fallback response: {e}"
            )
            return self.fallback_response(prompt)
