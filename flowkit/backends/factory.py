"""Backend selector.

Maps a model identifier to a completion backend by prefix. Selection never
fails: unknown identifiers and construction errors both yield a DummyBackend.
"""

import logging
from typing import List, Optional, Tuple, Type

from config.types import FlowkitSettings
from flowkit.backends.base import CompletionBackend
from flowkit.backends.dummy import DummyBackend
from flowkit.backends.providers import ClaudeBackend, GeminiBackend, OpenAIBackend
from flowkit.utils import log_with_context

logger = logging.getLogger(__name__)

# Ordered (prefix, provider family, backend class); the first match wins
BACKEND_TABLE: List[Tuple[str, str, Type[CompletionBackend]]] = [
    ("gemini", "gemini", GeminiBackend),
    ("claude", "claude", ClaudeBackend),
    ("gpt", "openai", OpenAIBackend),
    ("openai", "openai", OpenAIBackend),
]


def _normalize(model: Optional[str]) -> str:
    return (model or "").strip().lower()


def resolve_provider_family(model: Optional[str]) -> Optional[str]:
    """Get the provider family for a model identifier, or None if unrecognized"""
    normalized = _normalize(model)
    if not normalized:
        return None
    for prefix, family, _ in BACKEND_TABLE:
        if normalized.startswith(prefix):
            return family
    return None


class BackendSelector:
    """Selects a completion backend for a model identifier.

    Credentials are taken from the settings passed at construction.
    """

    def __init__(self, settings: Optional[FlowkitSettings] = None):
        self.settings = settings or FlowkitSettings()

    def get_api_key_for_model(self, model: Optional[str]) -> str:
        """Get the API key for a model's provider family, or an empty string"""
        family = resolve_provider_family(model)
        if family is None:
            return ""
        return self.settings.credential_for(family)

    def select(self, target_model: Optional[str]) -> CompletionBackend:
        """Create the backend for the requested model

        Args:
            target_model: Model identifier, e.g. 'gemini-2.5-pro', 'claude-3-opus', 'gpt-4'

        Returns:
            A backend ready for use; DummyBackend when nothing matches
        """
        normalized = _normalize(target_model)

        for prefix, family, backend_class in BACKEND_TABLE:
            if not normalized.startswith(prefix):
                continue
            try:
                backend = backend_class(
                    self.settings.credential_for(family),
                    (target_model or "").strip(),
                    timeout=self.settings.backend_request_timeout,
                )
            except Exception as e:
                log_with_context(
                    logger,
                    logging.WARNING,
                    "Backend construction failed, falling back to DummyBackend",
                    {"target_model": target_model, "backend": backend_class.__name__, "error": str(e)},
                )
                return DummyBackend()

            logger.debug(f"Selected {backend_class.__name__} for model '{target_model}'")
            return backend

        logger.debug(f"No backend matches model '{target_model}', using DummyBackend")
        return DummyBackend()

