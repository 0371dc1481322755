"""
Tool handlers for the FlowKit MCP server.

Provides the two request methods the server answers: tools/list advertises the
registered tools and their schemas, tools/call runs one tool and wraps the
outcome in a {"result": ...} or {"error": ...} envelope.
"""

import logging
from typing import Any, Dict, List, Optional

from flowkit.plugin import PluginRegistry, registry

# Importing the tool module registers the flowkit tool
import flowkit.tool  # noqa: F401

logger = logging.getLogger(__name__)


def list_tools(tool_registry: Optional[PluginRegistry] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Describe every registered tool."""
    tool_registry = tool_registry or registry
    return {
        "tools": [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema,
            }
            for tool in tool_registry.get_all_instances()
        ]
    }


async def call_tool(
    request: Optional[Dict[str, Any]], tool_registry: Optional[PluginRegistry] = None
) -> Dict[str, Any]:
    """Execute a tool request of the form {"tool": name, "input": {...}}.

    Never raises; every failure is returned as an error envelope.
    """
    tool_registry = tool_registry or registry
    try:
        if not isinstance(request, dict) or not request.get("tool"):
            return {"error": "unsupported tool"}

        tool = tool_registry.get_tool_instance(request["tool"])
        if tool is None:
            return {"error": "unsupported tool"}

        logger.info(f"Executing tool '{tool.name}'")
        return await tool.execute_tool(request.get("input") or {})
    except Exception as e:
        logger.exception("Error handling tools/call")
        return {"error": str(e)}
