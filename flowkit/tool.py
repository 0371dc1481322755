"""The `flowkit` tool exposed through MCP."""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from config.types import FlowkitSettings
from flowkit.errors import FlowkitError
from flowkit.interfaces import ToolInterface
from flowkit.orchestrator import execute_orchestration
from flowkit.plugin import register_tool

logger = logging.getLogger(__name__)

TOOL_NAME = "flowkit"


class FlowkitInput(BaseModel):
    """Validated input for the flowkit tool"""

    flow_name: str
    target_model: str
    context_file_path: Optional[str] = None
    variables: Optional[Dict[str, str]] = None


@register_tool
class FlowkitTool(ToolInterface):
    """Executes a named flow from the flow document.

    Results are wrapped in an envelope: {"result": ...} on success,
    {"error": ...} otherwise.
    """

    def __init__(self, settings: Optional[FlowkitSettings] = None):
        self._settings = settings

    @property
    def name(self) -> str:
        return TOOL_NAME

    @property
    def description(self) -> str:
        return (
            "Executes a multi-step, model-agnostic developer workflow defined in a local "
            "flow.yaml file, handling step chaining, validation, and context injection."
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "flow_name": {
                    "type": "string",
                    "description": "Name of the workflow defined in flow.yaml",
                },
                "context_file_path": {
                    "type": "string",
                    "description": "Relative path to a file for RAG context injection into first step",
                },
                "target_model": {
                    "type": "string",
                    "description": "Target LLM model (e.g., 'gemini-2.5-pro', 'claude-3-opus', 'gpt-4')",
                },
                "variables": {
                    "type": "object",
                    "description": "Key-value pairs for variable substitution in prompts",
                    "additionalProperties": {"type": "string"},
                },
            },
            "required": ["flow_name", "target_model"],
        }

    def _get_settings(self) -> FlowkitSettings:
        if self._settings is None:
            from config.manager import EnvironmentManager

            return EnvironmentManager().load().to_settings()
        return self._settings

    async def execute_tool(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate the arguments and run the requested flow.

        Args:
            arguments: Tool input (flow_name, target_model, context_file_path, variables)

        Returns:
            Envelope with either the orchestration result or an error
        """
        try:
            parsed = FlowkitInput.model_validate(arguments or {})
        except ValidationError as e:
            return {
                "error": "invalid input",
                "details": e.errors(include_url=False, include_context=False),
            }

        try:
            result = await execute_orchestration(
                parsed.model_dump(), self._get_settings()
            )
        except FlowkitError as e:
            logger.warning(f"Tool {self.name} failed: {e}")
            return {"error": str(e)}
        except Exception as e:
            logger.exception(f"Error executing tool {self.name}")
            return {"error": str(e)}

        return {"result": result.to_dict()}
