import pytest

from config.types import FlowkitSettings
from flowkit.backends import factory
from flowkit.backends.dummy import DummyBackend
from flowkit.backends.factory import BackendSelector, resolve_provider_family
from flowkit.backends.providers import ClaudeBackend, GeminiBackend, OpenAIBackend


@pytest.mark.parametrize(
    "model, expected",
    [
        ("gemini-2.5-pro", GeminiBackend),
        ("claude-3-opus", ClaudeBackend),
        ("gpt-4", OpenAIBackend),
        ("openai-compatible", OpenAIBackend),
        ("  GPT-4o  ", OpenAIBackend),
        ("Claude", ClaudeBackend),
        ("dummy", DummyBackend),
        ("llama-3", DummyBackend),
        ("", DummyBackend),
        (None, DummyBackend),
    ],
)
def test_select_by_prefix(model, expected):
    assert type(BackendSelector().select(model)) is expected


def test_model_name_is_preserved():
    backend = BackendSelector().select("  gemini-2.5-pro ")
    assert backend.get_model_name() == "gemini-2.5-pro"


def test_credentials_come_from_settings():
    settings = FlowkitSettings(credentials={"claude": "a-key", "openai": "o-key"})
    selector = BackendSelector(settings)

    assert selector.select("claude-3").api_key == "a-key"
    assert selector.get_api_key_for_model("gpt-4") == "o-key"
    assert selector.get_api_key_for_model("openai") == "o-key"
    assert selector.get_api_key_for_model("gemini-pro") == ""
    assert selector.get_api_key_for_model("dummy") == ""


def test_missing_credential_still_constructs():
    backend = BackendSelector(FlowkitSettings()).select("gemini-pro")
    assert isinstance(backend, GeminiBackend)
    assert backend.api_key == ""


def test_construction_error_falls_back_to_dummy(monkeypatch):
    class Exploding(GeminiBackend):
        def __init__(self, *args, **kwargs):
            raise RuntimeError("cannot build")

    monkeypatch.setattr(
        factory,
        "BACKEND_TABLE",
        [("gemini", "gemini", Exploding)] + factory.BACKEND_TABLE[1:],
    )
    assert isinstance(BackendSelector().select("gemini-pro"), DummyBackend)


def test_first_matching_prefix_wins(monkeypatch):
    monkeypatch.setattr(
        factory,
        "BACKEND_TABLE",
        [("g", "gemini", GeminiBackend), ("gpt", "openai", OpenAIBackend)],
    )
    assert isinstance(BackendSelector().select("gpt-4"), GeminiBackend)


def test_resolve_provider_family():
    assert resolve_provider_family("GPT-4") == "openai"
    assert resolve_provider_family("unknown") is None
    assert resolve_provider_family(None) is None
