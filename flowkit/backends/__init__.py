"""Completion backends and the backend selector."""

from flowkit.backends.base import CompletionBackend, ProviderBackend
from flowkit.backends.dummy import DummyBackend
from flowkit.backends.providers import ClaudeBackend, GeminiBackend, OpenAIBackend
from flowkit.backends.factory import (
    BACKEND_TABLE,
    BackendSelector,
    resolve_provider_family,
)

__all__ = [
    "CompletionBackend",
    "ProviderBackend",
    "DummyBackend",
    "GeminiBackend",
    "ClaudeBackend",
    "OpenAIBackend",
    "BACKEND_TABLE",
    "BackendSelector",
    "resolve_provider_family",
]
