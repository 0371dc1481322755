"""FlowKit - model-agnostic multi-step prompt workflows."""

from flowkit.errors import BackendConstructionError, FlowkitError, FlowNotFoundError
from flowkit.models import (
    Flow,
    FlowDocument,
    FlowStep,
    OrchestrationResult,
    StepResult,
    ValidationResult,
)
from flowkit.flow_loader import load_flow_document, merge_flow_examples
from flowkit.validation import validate_step_output
from flowkit.backends import BackendSelector, CompletionBackend, DummyBackend
from flowkit.orchestrator import Orchestrator, execute_orchestration
from flowkit.plugin import PluginRegistry, register_tool, registry
from flowkit.tool import FlowkitInput, FlowkitTool

__version__ = "0.1.0"

__all__ = [
    # Errors
    "FlowkitError",
    "FlowNotFoundError",
    "BackendConstructionError",
    # Models
    "Flow",
    "FlowDocument",
    "FlowStep",
    "OrchestrationResult",
    "StepResult",
    "ValidationResult",
    # Engine
    "load_flow_document",
    "merge_flow_examples",
    "validate_step_output",
    "BackendSelector",
    "CompletionBackend",
    "DummyBackend",
    "Orchestrator",
    "execute_orchestration",
    # Plugin system
    "PluginRegistry",
    "register_tool",
    "registry",
    "FlowkitInput",
    "FlowkitTool",
]
