import math

from flowkit.backends.base import CompletionBackend
from flowkit.models import CompletionResponse, GenerationOptions


class DummyBackend(CompletionBackend):
    """Echoes the prompt back without calling any service.

    Used for development, tests, and as the fallback when no real backend
    can be selected.
    """

    def get_model_name(self) -> str:
        return "dummy"

    async def generate_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        suffix = "..." if len(prompt) > 200 else ""
        content = f"ECHO: {prompt[:200]}{suffix}"
        # Roughly one token per four characters
        tokens_used = min(1000, math.ceil(len(content) / 4))
        return CompletionResponse(
            content=content, tokens_used=tokens_used, model=self.get_model_name()
        )
