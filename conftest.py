"""Shared pytest fixtures for the FlowKit test suite."""

import logging
from pathlib import Path
from typing import Callable, List

import pytest
import yaml

from config.types import FlowkitSettings
from flowkit.backends.base import CompletionBackend
from flowkit.models import CompletionResponse, GenerationOptions


logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


class RecordingBackend(CompletionBackend):
    """Backend that returns scripted outputs and records every call."""

    def __init__(self, outputs: List[str] = None, tokens: int = 7):
        self.outputs = list(outputs or [])
        self.tokens = tokens
        self.calls = []

    def get_model_name(self) -> str:
        return "recording"

    async def generate_completion(
        self, prompt: str, options: GenerationOptions
    ) -> CompletionResponse:
        self.calls.append((prompt, options))
        if self.outputs:
            content = self.outputs.pop(0)
        else:
            content = f"out-{len(self.calls)}"
        return CompletionResponse(content=content, tokens_used=self.tokens, model="recording")


class StubSelector:
    """Selector that always hands out the same backend."""

    def __init__(self, backend: CompletionBackend):
        self.backend = backend
        self.selected = []

    def select(self, target_model):
        self.selected.append(target_model)
        return self.backend


@pytest.fixture
def write_flow_file(tmp_path) -> Callable[..., Path]:
    """Factory writing a flow document (mapping or raw YAML text) to a temp file."""

    def _write(content, name: str = "flow.yaml") -> Path:
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(content, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings_for(tmp_path) -> Callable[..., FlowkitSettings]:
    """Factory building settings that point at a flow document."""

    def _settings(flow_path=None, **overrides) -> FlowkitSettings:
        values = {"flow_file_path": str(flow_path or tmp_path / "flow.yaml")}
        values.update(overrides)
        return FlowkitSettings(**values)

    return _settings


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def backend_factory():
    """The RecordingBackend class, for tests that script outputs."""
    return RecordingBackend


@pytest.fixture
def selector_for():
    """Build a selector that always returns the given backend."""
    return StubSelector
