"""Interfaces for FlowKit tools.

This module defines the interface a tool must implement to be exposed by the
MCP server.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class ToolInterface(ABC):
    """Base interface for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description."""
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        """Get the JSON schema for the tool input."""
        pass

    @abstractmethod
    async def execute_tool(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Execute the tool with the provided arguments.

        Implementations report failures in the returned envelope rather than
        raising.

        Args:
            arguments: Tool input as received from the client

        Returns:
            {"result": ...} on success, {"error": ...} otherwise
        """
        pass
