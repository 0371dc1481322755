"""Hosted provider backends: Gemini, Claude and OpenAI.

Each backend is constructed with the API key for its provider family. Missing
keys and failed requests produce the provider fallback response (see
ProviderBackend).
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
import openai

from flowkit.backends.base import ProviderBackend
from flowkit.errors import BackendConstructionError
from flowkit.models import CompletionResponse, GenerationOptions

logger = logging.getLogger(__name__)


class GeminiBackend(ProviderBackend):
    """Backend for Google's Gemini generateContent REST API"""

    provider = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_api_model = "gemini-2.5-flash"

    def _api_model(self) -> str:
        if not self.model or self.model.strip().lower() == self.provider:
            return self.default_api_model
        return self.model.strip()

    async def _request_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": options.max_tokens,
                "temperature": options.temperature,
            },
        }
        url = f"{self.base_url}/models/{self._api_model()}:generateContent"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                url, json=body, headers={"x-goog-api-key": self.api_key}
            )
            response.raise_for_status()
            data = response.json()

        candidates = data.get("candidates") or []
        parts: List[Dict[str, Any]] = []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
        content = "".join(part.get("text", "") for part in parts)
        usage = data.get("usageMetadata") or {}
        return CompletionResponse(
            content=content,
            tokens_used=int(usage.get("totalTokenCount", 0)),
            model=self.get_model_name(),
        )


class ClaudeBackend(ProviderBackend):
    """Backend for Anthropic's Messages API"""

    provider = "claude"
    base_url = "https://api.anthropic.com/v1"
    api_version = "2023-06-01"
    default_api_model = "claude-sonnet-4-5"

    def _api_model(self) -> str:
        if not self.model or self.model.strip().lower() == self.provider:
            return self.default_api_model
        return self.model.strip()

    async def _request_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        body: Dict[str, Any] = {
            "model": self._api_model(),
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/messages", json=body, headers=headers
            )
            response.raise_for_status()
            data = response.json()

        content = "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        tokens = int(usage.get("input_tokens", 0)) + int(usage.get("output_tokens", 0))
        return CompletionResponse(
            content=content, tokens_used=tokens, model=self.get_model_name()
        )


class OpenAIBackend(ProviderBackend):
    """Backend for OpenAI chat completions.

    The base_url parameter can be set to an Azure OpenAI or other compatible
    endpoint.
    """

    provider = "openai"
    default_api_model = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        base_url: str = "https://api.openai.com/v1",
    ):
        super().__init__(api_key, model, timeout)
        self.async_client: Optional[openai.AsyncOpenAI] = None
        if self.api_key:
            try:
                self.async_client = openai.AsyncOpenAI(
                    api_key=self.api_key, base_url=base_url, timeout=timeout
                )
            except openai.OpenAIError as e:
                raise BackendConstructionError(f"Could not create OpenAI client: {e}") from e

    def _api_model(self) -> str:
        if not self.model or self.model.strip().lower() == self.provider:
            return self.default_api_model
        return self.model.strip()

    async def _request_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        if self.async_client is None:
            return self.fallback_response(prompt)

        messages: List[Dict[str, str]] = [{"role": "user", "content": prompt}]

        try:
            response = await self.async_client.chat.completions.create(
                model=self._api_model(),
                messages=messages,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
            )
        except openai.OpenAIError as e:
            raise RuntimeError(f"LLM API error: {e}") from e

        content = response.choices[0].message.content if response.choices else ""
        tokens = response.usage.total_tokens if response.usage else 0
        return CompletionResponse(
            content=content or "", tokens_used=tokens, model=self.get_model_name()
        )
