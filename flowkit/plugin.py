import inspect
import logging
from typing import Dict, List, Optional, Type

from flowkit.interfaces import ToolInterface

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Registry for tool plugins.

    This class handles the registration and lookup of tool classes that
    implement the ToolInterface, and caches one instance per tool.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(PluginRegistry, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize the plugin registry"""
        self.tools: Dict[str, Type[ToolInterface]] = {}
        self.instances: Dict[str, ToolInterface] = {}

    def register_tool(
        self, tool_class: Type[ToolInterface]
    ) -> Optional[Type[ToolInterface]]:
        """Register a tool class.

        Args:
            tool_class: A class that implements ToolInterface

        Returns:
            The registered tool class or None if it wasn't registered

        Raises:
            TypeError: If the provided class doesn't implement ToolInterface
        """
        if not inspect.isclass(tool_class):
            raise TypeError(f"Expected a class, got {type(tool_class)}")

        if not issubclass(tool_class, ToolInterface):
            raise TypeError(
                f"Class {tool_class.__name__} does not implement ToolInterface"
            )

        # Skip abstract classes
        if inspect.isabstract(tool_class):
            logger.debug(
                f"Skipping registration of abstract class {tool_class.__name__}"
            )
            return None

        # Create a temporary instance to get the name
        try:
            tool_name = tool_class().name
        except Exception as e:
            logger.error(f"Error creating instance of {tool_class.__name__}: {e}")
            return None

        logger.info(f"Registering tool: {tool_name} ({tool_class.__name__})")
        self.tools[tool_name] = tool_class
        self.instances.pop(tool_name, None)
        return tool_class

    def get_tool_instance(self, tool_name: str) -> Optional[ToolInterface]:
        """Get or create an instance of a registered tool.

        Args:
            tool_name: Name of the tool to get

        Returns:
            Instance of the tool, or None if not found
        """
        if tool_name in self.instances:
            return self.instances[tool_name]

        tool_class = self.tools.get(tool_name)
        if tool_class is None:
            logger.debug(f"Tool '{tool_name}' is not registered")
            return None

        instance = tool_class()
        self.instances[tool_name] = instance
        return instance

    def get_all_instances(self) -> List[ToolInterface]:
        """Get an instance of every registered tool."""
        return [self.get_tool_instance(name) for name in list(self.tools)]

    def clear(self) -> None:
        """Remove all registered tools and cached instances."""
        self.tools.clear()
        self.instances.clear()


# Create singleton instance
registry = PluginRegistry()


# Decorator for registering tools
def register_tool(cls=None):
    """Decorator to register a tool class with the plugin registry.

    Example:
        @register_tool
        class MyTool(ToolInterface):
            ...
    """

    def _register(cls):
        registry.register_tool(cls)
        return cls

    if cls is None:
        return _register
    return _register(cls)
